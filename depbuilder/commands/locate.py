import click
import json
from dataclasses import asdict
from ..locator import locate_configured
from ..decorators import handle_exceptions


@click.command()
@click.pass_context
@click.argument("host_source_dir", type=click.Path(file_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the located fields as JSON.")
@handle_exceptions
def locate(ctx, host_source_dir, as_json):
    """Show where the dependency is fetched from, without acting on it."""
    descriptor = locate_configured(host_source_dir, ctx.obj["settings"])
    if as_json:
        click.echo(json.dumps(asdict(descriptor), indent=4))
