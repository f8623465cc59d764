import click


class DepBuilderError(click.ClickException):
    """Base class for every terminal failure of a depbuilder run."""
    exit_code = 1


class UsageError(DepBuilderError):
    """Wrong arguments or an unrecognized mode."""


class ExtractionFailure(DepBuilderError):
    """The dependency declaration could not be read or was incomplete."""

    HOST_SOURCE_NOT_FOUND = "host source not found"
    METADATA_MISSING = "dependency metadata missing"

    def __init__(self, host_dir, kind=METADATA_MISSING, detail=None):
        self.host_dir = host_dir
        self.kind = kind
        self.detail = detail
        super().__init__(f"Could not find all required strings in {host_dir}")


class ExternalCommandFailure(DepBuilderError):
    """A download, extraction, file operation or toolchain step failed."""

    def __init__(self, step, returncode=None, detail=None):
        self.step = step
        self.returncode = returncode
        self.detail = detail
        message = f"{step} failed"
        if returncode is not None:
            message += f" (Exit Code: {returncode})"
        if detail:
            message += f": {detail}"
        super().__init__(message)
