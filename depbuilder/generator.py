import os
import shutil
from importlib import resources

from .cli_logger import logger
from .errors import ExternalCommandFailure

INSTALLED = "installed"
EXTERNAL = "external"

# Shipped under depbuilder/templates/
TEMPLATES = {
    EXTERNAL: "Protobuf.cmake",
    INSTALLED: "FindProtobuf.cmake",
}


def version_file_name(cmake_name):
    return f"{cmake_name}_VERSION.cmake"


def version_file_lines(descriptor, cmake_name, install_dir=None):
    lines = [f"set({cmake_name}_URL {descriptor.fetch_url})"]
    if install_dir is not None:
        lines.append(f"set({cmake_name}_INSTALL_DIR {install_dir})")
    return lines


def check_installation(install_dir, header_dir, cmake_name):
    """Report whether ``install_dir`` looks like it holds the dependency's headers."""
    if os.path.isdir(os.path.join(install_dir, header_dir)):
        logger.success(f"Found {cmake_name} in {install_dir}")
        return True
    logger.warning(f"Could not find {cmake_name} in {install_dir}")
    return False


def write_version_file(descriptor, output_dir, cmake_name, install_dir=None):
    out_path = os.path.join(output_dir, version_file_name(cmake_name))
    try:
        with open(out_path, "w") as f:
            for line in version_file_lines(descriptor, cmake_name, install_dir):
                f.write(line + "\n")
    except OSError as e:
        raise ExternalCommandFailure(f"Writing {out_path}", detail=str(e)) from e
    logger.info(f"Wrote {os.path.basename(out_path)} to {output_dir}")
    return out_path


def copy_template(mode, output_dir):
    template = TEMPLATES[mode]
    try:
        with resources.as_file(resources.files("depbuilder") / "templates" / template) as src:
            dest = shutil.copy(src, os.path.join(output_dir, template))
    except OSError as e:
        raise ExternalCommandFailure(f"Copying {template}", detail=str(e)) from e
    logger.info(f"Copied {template} to {output_dir}")
    return dest


def generate(mode, descriptor, output_dir, cmake_name="Protobuf", install_dir=None,
             header_dir=os.path.join("include", "google", "protobuf")):
    """Write the CMake version file and the template matching ``mode``.

    ``install_dir`` is only recorded (and probed) in installed mode.
    """
    if mode not in TEMPLATES:
        raise ValueError(f"Unknown generate mode: {mode}")

    if mode == INSTALLED:
        check_installation(install_dir, header_dir, cmake_name)
    else:
        install_dir = None

    version_path = write_version_file(descriptor, output_dir, cmake_name, install_dir)
    template_path = copy_template(mode, output_dir)
    return version_path, template_path
