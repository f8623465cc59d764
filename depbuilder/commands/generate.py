import click
from .. import generator
from ..locator import locate_configured
from ..decorators import handle_exceptions
from ..cli_logger import logger

OUTPUT_DIR = click.Path(exists=True, file_okay=False, writable=True, resolve_path=True)


@click.group(invoke_without_command=True)
@click.pass_context
def generate(ctx):
    """Generate CMake files describing where to find the dependency."""
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)


def _generate(ctx, mode, host_source_dir, output_dir, install_dir=None):
    settings = ctx.obj["settings"]
    dependency = settings["dependency"]
    output_dir = output_dir or ctx.obj["cwd"]

    descriptor = locate_configured(host_source_dir, settings)
    generator.generate(
        mode,
        descriptor,
        output_dir,
        cmake_name=dependency["cmake_name"],
        install_dir=install_dir or settings["install"]["prefix"],
        header_dir=dependency["header_dir"],
    )
    logger.success("Done")


@generate.command()
@click.pass_context
@click.argument("host_source_dir", type=click.Path(file_okay=False))
@click.argument("output_dir", required=False, type=OUTPUT_DIR)
@click.argument("install_dir", required=False, type=click.Path(file_okay=False, resolve_path=True))
@handle_exceptions
def installed(ctx, host_source_dir, output_dir, install_dir):
    """Describe an existing installation of the dependency.

    HOST_SOURCE_DIR: The host (TensorFlow) source checkout.
    OUTPUT_DIR: Where the CMake files are written; defaults to the current directory.
    INSTALL_DIR: Where the dependency was installed; defaults to /usr/local.
    """
    _generate(ctx, generator.INSTALLED, host_source_dir, output_dir, install_dir)


@generate.command()
@click.pass_context
@click.argument("host_source_dir", type=click.Path(file_okay=False))
@click.argument("output_dir", required=False, type=OUTPUT_DIR)
@handle_exceptions
def external(ctx, host_source_dir, output_dir):
    """Describe a fresh download of the dependency.

    HOST_SOURCE_DIR: The host (TensorFlow) source checkout.
    OUTPUT_DIR: Where the CMake files are written; defaults to the current directory.
    """
    _generate(ctx, generator.EXTERNAL, host_source_dir, output_dir)
