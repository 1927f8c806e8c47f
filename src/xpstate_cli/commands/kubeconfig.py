"""Kubeconfig command: add a control plane entry to a kubeconfig file."""

from __future__ import annotations

import sys

import click

from ..kube import apply_control_plane_kubeconfig, build_control_plane_kubeconfig
from ..shared.paths import default_kubeconfig_path


@click.group()
def kubeconfig() -> None:
    """Manage kubeconfig entries for control planes."""
    pass


@kubeconfig.command("add")
@click.argument("cp_id")
@click.option("--proxy", required=True, help="Base URL of the control plane proxy")
@click.option("--token", required=True, envvar="XPSTATE_TOKEN", help="Bearer token")
@click.option(
    "--file",
    "file_path",
    type=click.Path(dir_okay=False),
    help="Kubeconfig to update (default: $KUBECONFIG or ~/.kube/config)",
)
def kubeconfig_add(cp_id: str, proxy: str, token: str, file_path: str | None) -> None:
    """Add control plane CP_ID to a kubeconfig and make it the current context."""
    conf = build_control_plane_kubeconfig(proxy, cp_id, token)
    target = file_path or default_kubeconfig_path()
    try:
        path = apply_control_plane_kubeconfig(conf, target)
    except (OSError, ValueError) as e:
        click.echo(f"Error: cannot update kubeconfig: {e}", err=True)
        sys.exit(1)

    click.echo(f'Current context set to "{conf["current-context"]}" in {path}')
