"""Click CLI definitions - main entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from panebridge.commands.binding_cmd import binding_group
from panebridge.commands.config_cmd import config_group
from panebridge.commands.instances_cmd import instances_command, probe_command
from panebridge.commands.send_cmd import send_command


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write logs to this file instead of stderr",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/panebridge/config.toml)",
)
@click.pass_context
def cli(ctx, debug: bool, log_file: Path | None, config_path: Path | None) -> None:
    """panebridge - send editor context to the assistant in your tmux panes."""
    level = logging.DEBUG if debug else logging.WARNING
    log_kwargs = {"filename": str(log_file)} if log_file else {"stream": sys.stderr}
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        **log_kwargs,
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = config_path


cli.add_command(send_command, "send")
cli.add_command(instances_command, "instances")
cli.add_command(probe_command, "probe")
cli.add_command(binding_group, "binding")
cli.add_command(config_group, "config")


if __name__ == "__main__":
    cli()
