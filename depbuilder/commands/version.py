import click
import sys
import importlib.metadata
from ..cli_logger import logger

@click.command()
def version():
    """Print the version of the depbuilder tool."""
    try:
        ver = importlib.metadata.version("depbuilder")
    except importlib.metadata.PackageNotFoundError:
        logger.error("Error: Could not determine the version of depbuilder. Is it installed correctly?")
        sys.exit(1)
    logger.info(f"depbuilder version {ver}")
