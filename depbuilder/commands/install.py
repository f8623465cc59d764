import click
from .. import installer
from ..locator import locate_configured
from ..decorators import handle_exceptions
from ..cli_logger import logger


@click.command()
@click.pass_context
@click.argument("host_source_dir", type=click.Path(file_okay=False))
@click.argument("install_dir", required=False, type=click.Path(file_okay=False, resolve_path=True))
@click.argument("download_dir", required=False,
                type=click.Path(exists=True, file_okay=False, writable=True, resolve_path=True))
@click.option("--skip-check", is_flag=True, help="Skip 'make check'.")
@click.option("--no-ldconfig", is_flag=True, help="Do not refresh the dynamic linker cache.")
@click.option("--jobs", "-j", type=click.IntRange(min=0), default=None, help="Parallel make jobs (0 runs plain make).")
@click.option("--verbose", "-v", is_flag=True, help="Stream build output.")
@handle_exceptions
def install(ctx, host_source_dir, install_dir, download_dir, skip_check, no_ldconfig, jobs, verbose):
    """Download, build and install the dependency.

    HOST_SOURCE_DIR: The host (TensorFlow) source checkout.
    INSTALL_DIR: Installation prefix; defaults to /usr/local.
    DOWNLOAD_DIR: Where the source is downloaded to; defaults to the current directory.
    """
    settings = ctx.obj["settings"]
    install_settings = settings["install"]

    descriptor = locate_configured(host_source_dir, settings)
    installer.install_dependency(
        descriptor,
        install_dir or install_settings["prefix"],
        download_dir or ctx.obj["cwd"],
        run_checks=install_settings["run_checks"] and not skip_check,
        ldconfig=install_settings["ldconfig"] and not no_ldconfig,
        jobs=install_settings["jobs"] if jobs is None else jobs,
        verbose=verbose,
    )
    logger.success("Done")
