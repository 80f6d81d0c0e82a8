"""CLI helpers shared by command groups."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from panebridge.config import load_config
from panebridge.models.result import ResultReason, RouteResult


def _run(coro):
    """Run an async function from sync context."""
    return asyncio.run(coro)


def config_path_option() -> Path | None:
    """The ``--config`` path given to the root command, if any."""
    ctx = click.get_current_context()
    obj = ctx.find_root().obj or {}
    return obj.get("config_path")


def get_app_context(remember: bool | None = None):
    """Build an AppContext from the CLI's global options."""
    from panebridge.context import AppContext
    from panebridge.ui.picker import make_chooser

    config = load_config(config_path_option())
    try:
        chooser = make_chooser(config.ui.picker)
    except ValueError as e:
        raise click.UsageError(str(e)) from e
    return AppContext(config=config, chooser=chooser, remember=remember)


def exit_code(result: RouteResult) -> int:
    if result.ok:
        return 0
    if result.reason == ResultReason.INSTANCE_NOT_READY:
        return 2
    return 1


def report(result: RouteResult) -> None:
    """Print a result and exit with its status code."""
    if result.ok:
        click.echo(result.message or result.reason.value)
    else:
        click.echo(f"{result.reason.value}: {result.message}", err=True)
    code = exit_code(result)
    if code:
        raise SystemExit(code)
