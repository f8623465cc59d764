import os
import re
from dataclasses import dataclass

from .cli_logger import logger
from .errors import ExtractionFailure

DEFAULT_HEADER = "native.http_archive"
DECLARATION_FILE = os.path.join("tensorflow", "workspace.bzl")

# Starlark is close enough to Python that a handful of token kinds suffice:
# comments and whitespace are dropped, everything unrecognized is an operator.
_TOKEN_RE = re.compile(r"""
    (?P<comment>\#[^\n]*)
  | (?P<space>\s+)
  | (?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
  | (?P<name>[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*)
  | (?P<number>\d+(?:\.\d+)?)
  | (?P<op>.)
""", re.VERBOSE | re.DOTALL)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}
_OPENERS = "([{"
_CLOSERS = ")]}"


@dataclass(frozen=True)
class DependencyDescriptor:
    """Where a vendored dependency is fetched from and what it unpacks to."""
    fetch_url: str
    archive_name: str
    extracted_folder_name: str

    def is_valid(self):
        return bool(self.fetch_url and self.archive_name and self.extracted_folder_name)


def archive_name(url):
    """Return everything after the last '/' of ``url`` (may be empty)."""
    return url.rsplit("/", 1)[-1]


def _tokenize(text):
    for match in _TOKEN_RE.finditer(text):
        kind = match.lastgroup
        if kind in ("comment", "space"):
            continue
        yield kind, match.group()


def _unquote(literal):
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), literal[1:-1], flags=re.DOTALL)


def _literal_value(tokens):
    """Evaluate a string literal, allowing implicit or '+' concatenation.

    Anything else (variables, lists, calls) yields None.
    """
    parts = []
    expect_string = True
    for kind, value in tokens:
        if kind == "string":
            parts.append(_unquote(value))
            expect_string = False
        elif kind == "op" and value == "+" and not expect_string:
            expect_string = True
        else:
            return None
    if not parts or expect_string:
        return None
    return "".join(parts)


def _store_argument(fields, tokens):
    if len(tokens) < 3 or tokens[0][0] != "name" or tokens[1] != ("op", "="):
        return
    fields[tokens[0][1]] = _literal_value(tokens[2:])


def _parse_call(tokens, start):
    """Parse keyword arguments from ``tokens[start]`` up to the matching ')'.

    Returns the fields dict, or None when the call is never closed.
    """
    fields = {}
    argument = []
    depth = 0
    for kind, value in tokens[start:]:
        if kind == "op" and value in _OPENERS:
            depth += 1
        elif kind == "op" and value in _CLOSERS:
            if depth == 0:
                _store_argument(fields, argument)
                return fields
            depth -= 1
        elif kind == "op" and value == "," and depth == 0:
            _store_argument(fields, argument)
            argument = []
            continue
        argument.append((kind, value))
    return None


def parse_declarations(text, header=DEFAULT_HEADER):
    """Return the keyword fields of every ``header(...)`` call in ``text``.

    Each entry maps argument names to their string value, or to None when the
    value is not a plain string literal.
    """
    tokens = list(_tokenize(text))
    declarations = []
    for i, token in enumerate(tokens[:-1]):
        if token == ("name", header) and tokens[i + 1] == ("op", "("):
            fields = _parse_call(tokens, i + 2)
            if fields is not None:
                declarations.append(fields)
    return declarations


def find_declaration(text, dependency_name, header=DEFAULT_HEADER):
    for fields in parse_declarations(text, header):
        if fields.get("name") == dependency_name:
            return fields
    return None


def locate(host_source_root, dependency_name, header=DEFAULT_HEADER, declaration_file=DECLARATION_FILE):
    """Find ``dependency_name`` in the host's workspace file.

    Raises ExtractionFailure when the file cannot be read, the declaration is
    missing, or any of url / archive name / strip_prefix comes out empty.
    """
    logger.info(f"Finding {dependency_name} information in {host_source_root}...")
    if not os.path.isdir(host_source_root):
        raise ExtractionFailure(host_source_root, ExtractionFailure.HOST_SOURCE_NOT_FOUND,
                                detail=f"{host_source_root} is not a directory")

    declaration_path = os.path.join(host_source_root, declaration_file)
    try:
        with open(declaration_path, "r", encoding="utf-8") as f:
            text = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionFailure(host_source_root, ExtractionFailure.HOST_SOURCE_NOT_FOUND, detail=str(e)) from e

    fields = find_declaration(text, dependency_name, header)
    if fields is None:
        raise ExtractionFailure(host_source_root, ExtractionFailure.METADATA_MISSING,
                                detail=f'no {header}(name = "{dependency_name}") in {declaration_path}')

    url = fields.get("url") or ""
    descriptor = DependencyDescriptor(
        fetch_url=url,
        archive_name=archive_name(url),
        extracted_folder_name=fields.get("strip_prefix") or "",
    )
    if not descriptor.is_valid():
        raise ExtractionFailure(host_source_root, ExtractionFailure.METADATA_MISSING,
                                detail=f"incomplete declaration for {dependency_name}: {descriptor}")

    logger.success(f"Found {dependency_name} information in {host_source_root}:")
    logger.step_info(f"URL:      {descriptor.fetch_url}", indent=2)
    logger.step_info(f"Archive:  {descriptor.archive_name}", indent=2)
    logger.step_info(f"Folder:   {descriptor.extracted_folder_name}", indent=2)
    return descriptor


def locate_configured(host_source_root, settings):
    """``locate`` using the [dependency] section of resolved settings."""
    dependency = settings["dependency"]
    return locate(
        host_source_root,
        dependency["name"],
        header=dependency["header_token"],
        declaration_file=dependency["declaration_file"],
    )
