"""CLI handlers for remembered instance bindings."""

from __future__ import annotations

import click

from panebridge.commands._helpers import _run, get_app_context, report
from panebridge.errors import NoRepositoryRoot


@click.group("binding")
def binding_group():
    """Manage remembered instances."""
    pass


@binding_group.command("show")
@click.argument("path", default=".", type=click.Path(exists=True))
def binding_show(path: str):
    """Show the remembered instance for the repository owning PATH."""

    async def _show():
        app = get_app_context()
        return await app.router.remembered(path)

    try:
        candidate = _run(_show())
    except NoRepositoryRoot as e:
        click.echo(f"{e.reason.value}: {e}", err=True)
        raise SystemExit(1)

    if candidate is None:
        click.echo("No remembered instance.")
        return
    click.echo(f"{candidate.pane_id} {candidate.display}")


@binding_group.command("list")
def binding_list():
    """List every remembered binding (without liveness checks)."""
    app = get_app_context()
    entries = app.cache.entries()
    if not entries:
        click.echo("No remembered instances.")
        return
    for root, candidate in sorted(entries.items()):
        click.echo(f"  {root} -> {candidate.pane_id} ({candidate.pane.target})")


@binding_group.command("reset")
@click.argument("path", default=".", type=click.Path(exists=True))
def binding_reset(path: str):
    """Forget the remembered instance for the repository owning PATH."""

    async def _reset():
        app = get_app_context()
        return await app.router.reset_binding(path)

    report(_run(_reset()))
