import os
from .cli_logger import logger
from .errors import ExternalCommandFailure
from .utils import _safe_join, run_checked, download, extract, remove_path


def _build_commands(source_dir, install_dir, run_checks=True, ldconfig=True, jobs=0):
    """Return the ordered (step, command) pairs for an autotools build."""
    commands = []
    if os.path.exists(os.path.join(source_dir, "autogen.sh")):
        commands.append(("autogen.sh", ["./autogen.sh"]))
    commands.append(("configure", ["./configure", f"--prefix={install_dir}"]))
    make_cmd = ["make"]
    if jobs:
        make_cmd += ["-j", str(jobs)]
    commands.append(("make", make_cmd))
    if run_checks:
        commands.append(("make check", make_cmd + ["check"]))
    commands.append(("make install", ["make", "install"]))
    if ldconfig:
        commands.append(("ldconfig", ["ldconfig"]))
    return commands


def _download_child(download_dir, name):
    """Resolve ``name`` to a path strictly below ``download_dir``.

    Absolute names, names with "..", and names that resolve to
    ``download_dir`` itself are refused before anything is touched.
    """
    try:
        path = _safe_join(download_dir, name)
    except IOError as e:
        raise ExternalCommandFailure(f"Resolving {name} in {download_dir}", detail=str(e)) from e
    if path == os.path.abspath(download_dir):
        raise ExternalCommandFailure(f"Resolving {name} in {download_dir}", detail="refers to the download directory itself")
    return path


def fetch_source(descriptor, download_dir, verbose=False):
    """Download and unpack the dependency, returning its source directory.

    Any previously extracted copy is deleted first, whether or not the
    archive has changed since.
    """
    source_dir = _download_child(download_dir, descriptor.extracted_folder_name)
    archive_path = _download_child(download_dir, descriptor.archive_name)
    if os.path.isdir(source_dir):
        logger.warning(f"Found {descriptor.extracted_folder_name} in {download_dir}, will delete and download latest version.")
        remove_path(source_dir)

    download(descriptor.fetch_url, download_dir, descriptor.archive_name)
    extract(archive_path, download_dir, verbose=verbose)

    if not os.path.isdir(source_dir):
        raise ExternalCommandFailure(f"Entering {source_dir}", detail="archive did not contain the expected folder")
    return source_dir


def install_dependency(descriptor, install_dir, download_dir, run_checks=True, ldconfig=True, jobs=0, verbose=False):
    """Download, build and install a located dependency.

    Every step runs to completion before the next; the first failure raises
    ExternalCommandFailure and nothing after it runs. Partial state is left
    behind as-is.
    """
    source_dir = fetch_source(descriptor, download_dir, verbose=verbose)

    logger.info(f"Starting install of {descriptor.extracted_folder_name}.")
    for step, command in _build_commands(source_dir, install_dir, run_checks, ldconfig, jobs):
        run_checked(step, command, cwd=source_dir, verbose=verbose)

    remove_path(_download_child(download_dir, descriptor.archive_name))
    logger.success(f"{descriptor.extracted_folder_name} has been installed to {install_dir}")
    return source_dir
