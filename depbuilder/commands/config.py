import click
import os
import json
from .. import config as config_module
from ..cli_logger import logger

@click.group()
@click.pass_context
def config(ctx):
    """View or edit the depbuilder.toml configuration file."""
    pass

@config.command()
@click.pass_context
def view(ctx):
    """Show the effective settings (file values merged over defaults)."""
    click.echo(json.dumps(ctx.obj["settings"], indent=4))

@config.command()
@click.argument('key')
@click.pass_context
def get(ctx, key):
    """Get an effective setting, e.g. 'install.prefix'."""
    value = ctx.obj["settings"]
    try:
        for k in key.split('.'):
            value = value[k]
    except (KeyError, TypeError):
        logger.error(f"Error: Key '{key}' not found in {config_module.CONFIG_FILE}")
        ctx.exit(1)
    click.echo(value)

@config.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set(ctx, key, value):
    """Set a value in the depbuilder.toml file.

    true/false and integers are stored as TOML booleans and integers.
    """
    config_path = ctx.obj["config_path"]
    conf = config_module.load_config(path=config_path)

    if value.lower() in ("true", "false"):
        value = value.lower() == "true"
    elif value.isdigit():
        value = int(value)

    keys = key.split('.')
    d = conf
    for k in keys[:-1]:
        d = d.setdefault(k, {})
    d[keys[-1]] = value

    if not config_module.save_config(conf, path=config_path):
        ctx.exit(1)
    logger.info(f"Set '{key}' to '{value}' in {os.path.basename(config_path)}")
