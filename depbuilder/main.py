import os
import sys
import click
from . import config as config_module
from .commands import *


class DepBuilderGroup(click.Group):
    """Click group that exits with status 1 on usage errors, like any other failure."""

    def main(self, args=None, prog_name=None, complete_var=None, standalone_mode=True, **extra):
        try:
            rv = super().main(args=args, prog_name=prog_name, complete_var=complete_var,
                              standalone_mode=False, **extra)
        except click.ClickException as e:
            e.show()
            sys.exit(1)
        except click.Abort:
            click.echo("Aborted!", err=True)
            sys.exit(1)
        if not standalone_mode:
            return rv
        sys.exit(rv if isinstance(rv, int) and not isinstance(rv, bool) else 0)


@click.group(cls=DepBuilderGroup, invoke_without_command=True)
@click.option("--config", "-c", "config_path", default=None, type=click.Path(dir_okay=False),
              help=f"Configuration file (defaults to ./{config_module.CONFIG_FILE}).")
@click.pass_context
def cli(ctx, config_path):
    """Locate, install or describe the protobuf release a TensorFlow checkout depends on."""
    cwd = os.getcwd()
    config_path = config_path or os.path.join(cwd, config_module.CONFIG_FILE)
    ctx.obj = {
        "cwd": cwd,
        "config_path": config_path,
        "settings": config_module.resolve_settings(config_module.load_config(path=config_path)),
    }
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        ctx.exit(1)

cli.add_command(generate)
cli.add_command(install)
cli.add_command(locate)
cli.add_command(config)
cli.add_command(log)
cli.add_command(version)


def main():
    cli(prog_name="depbuilder")


if __name__ == '__main__':
    main()
