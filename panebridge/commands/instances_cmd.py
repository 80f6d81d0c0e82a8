"""CLI handlers for inspecting assistant instances."""

from __future__ import annotations

import click

from panebridge.commands._helpers import _run, get_app_context
from panebridge.errors import PanebridgeError


@click.command("instances")
@click.argument("path", default=".", type=click.Path(exists=True))
def instances_command(path: str):
    """List assistant instances for the repository owning PATH."""

    async def _list():
        app = get_app_context()
        return await app.router.discover(path)

    try:
        candidates = _run(_list())
    except PanebridgeError as e:
        click.echo(f"{e.reason.value}: {e}", err=True)
        raise SystemExit(1)

    if not candidates:
        click.echo("No assistant instances found.")
        return
    for i, c in enumerate(candidates, start=1):
        current = "*" if c.is_current_session else " "
        click.echo(f"{current} {i}. {c.pane_id} {c.display}")


@click.command("probe")
@click.argument("pane_id")
def probe_command(pane_id: str):
    """Check whether the assistant in PANE_ID can accept input."""

    async def _probe():
        app = get_app_context()
        return await app.router.probe(pane_id)

    readiness = _run(_probe())
    if readiness.ready:
        click.echo(f"{pane_id}: ready")
        return
    click.echo(f"{pane_id}: not ready ({readiness.reason})")
    raise SystemExit(2)
