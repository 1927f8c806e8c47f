"""CLI main entry point."""

import json
import sys

import click
import yaml

from . import config as config_module
from .commands.export import export
from .commands.kubeconfig import kubeconfig
from .shared.logging import configure_logging, level_for_verbosity


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity")
@click.option("--log-json", is_flag=True, help="Log as JSON lines")
@click.option(
    "--kubeconfig",
    "kubeconfig_path",
    type=click.Path(dir_okay=False),
    help="Kubeconfig file path",
)
@click.option("--context", help="Kubeconfig context to use")
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    log_json: bool,
    kubeconfig_path: str | None,
    context: str | None,
) -> None:
    """Export Crossplane control plane state."""
    ctx.ensure_object(dict)
    try:
        cfg = config_module.load_config()
    except ValueError as e:
        raise click.ClickException(str(e))

    cfg.override("kubeconfig", kubeconfig_path)
    cfg.override("context", context)
    ctx.obj["config"] = cfg

    configure_logging(level_for_verbosity(verbose, cfg.log_level), json_output=log_json)


cli.add_command(export)
cli.add_command(kubeconfig)


@cli.command()
def version() -> None:
    """Show version."""
    from . import __version__

    click.echo(f"xpstate {__version__}")


@cli.group()
def config() -> None:
    """Manage CLI configuration."""
    pass


@config.command("show")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def config_show(ctx: click.Context, json_output: bool) -> None:
    """Show effective configuration and where each value comes from."""
    cfg: config_module.CLIConfig = ctx.obj["config"]
    values = cfg.to_dict()
    sources = {key: cfg.get_source(key) for key in values}

    if json_output:
        click.echo(json.dumps({"values": values, "sources": sources}, indent=2))
        return

    click.echo("xpstate CLI Configuration")
    click.echo(f"Config file: {config_module.get_config_path()}\n")
    for key, value in values.items():
        click.echo(f"  {key}: {value if value is not None else '(not set)'}  [{sources[key]}]")


@config.command("set")
@click.argument("key", type=click.Choice(config_module.CONFIG_KEYS))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value."""
    try:
        config_module.save_config(key, value)
    except (ValueError, OSError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"Set {key} = {value}")


@config.command("unset")
@click.argument("key", type=click.Choice(config_module.CONFIG_KEYS))
def config_unset(key: str) -> None:
    """Remove a persisted configuration value."""
    try:
        removed = config_module.unset_config(key)
    except (ValueError, OSError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if removed:
        click.echo(f"Unset {key}")
    else:
        click.echo(f"{key} is not set in {config_module.get_config_path()}")


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
