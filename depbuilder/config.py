import copy
import toml
import os
from .cli_logger import logger

CONFIG_FILE = "depbuilder.toml"

DEFAULT_INSTALL_DIR = "/usr/local"

DEFAULTS = {
    "dependency": {
        "name": "protobuf",
        "cmake_name": "Protobuf",
        "header_token": "native.http_archive",
        "declaration_file": os.path.join("tensorflow", "workspace.bzl"),
        "header_dir": os.path.join("include", "google", "protobuf"),
    },
    "install": {
        "prefix": DEFAULT_INSTALL_DIR,
        "run_checks": True,
        "ldconfig": True,
        "jobs": 0,
    },
}

def _config_path(path):
    if os.path.isdir(path):
        return os.path.join(path, CONFIG_FILE)
    return path

def load_config(path="."):
    """Load a depbuilder.toml file; ``path`` is the file or its directory."""
    config_path = _config_path(path)
    if os.path.exists(config_path):
        logger.info(f"Loading configuration from {config_path}")
        try:
            with open(config_path, "r") as f:
                return toml.load(f)
        except toml.TomlDecodeError as e:
            logger.error(f"Error decoding TOML file at {config_path}: {e}")
            logger.info("Please check the file's format for syntax errors.")
        except IOError as e:
            logger.error(f"Error reading configuration file at {config_path}: {e}")
            logger.info("Please check file permissions.")
    return {}

def save_config(config, path="."):
    config_path = _config_path(path)
    logger.info(f"Saving configuration to {config_path}")
    try:
        with open(config_path, "w") as f:
            toml.dump(config, f)
    except IOError as e:
        logger.error(f"Error saving configuration to {config_path}: {e}")
        logger.info("Please check file permissions and ensure the directory is writable.")
        return False
    return True

def resolve_settings(config=None):
    """Merge a loaded configuration over DEFAULTS, section by section.

    Unknown sections are kept as-is; unknown keys inside known sections too.
    """
    settings = copy.deepcopy(DEFAULTS)
    for section, values in (config or {}).items():
        if isinstance(values, dict) and isinstance(settings.get(section), dict):
            settings[section].update(values)
        else:
            settings[section] = values
    return settings
