import functools
import click
import sys
from .cli_logger import logger
from .errors import ExtractionFailure, ExternalCommandFailure, DepBuilderError

def handle_exceptions(func):
    """Report a command's failure once through the logger and exit with status 1."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except click.exceptions.Exit:
            raise
        except click.Abort:
            logger.warning("\nCommand aborted by user.")
        except ExtractionFailure as e:
            logger.error(f"Failure: {e.message}")
            if e.detail:
                logger.info(f"({e.kind}: {e.detail})")
        except ExternalCommandFailure as e:
            logger.error("Command failed - run terminated")
            logger.error(e.message)
        except DepBuilderError as e:
            logger.error(f"Error: {e.message}")
        except click.ClickException:
            raise
        except Exception as e:
            logger.error(f"\nAn unexpected error occurred: {e}")
            logger.exception(*sys.exc_info())
        sys.exit(1)
    return wrapper
