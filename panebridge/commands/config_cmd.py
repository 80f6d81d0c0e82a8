"""CLI handlers for config commands."""

from __future__ import annotations

import click

from panebridge.commands._helpers import config_path_option
from panebridge.config import DEFAULT_CONFIG_PATH, init_config, load_config, set_config_value


def _config_path():
    return config_path_option() or DEFAULT_CONFIG_PATH


@click.group("config")
def config_group():
    """Manage configuration."""
    pass


@config_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config_init(force: bool):
    """Create default configuration file."""
    path = _config_path()
    if path.exists() and not force:
        click.echo(f"Configuration already exists at: {path} (use --force to overwrite)", err=True)
        raise SystemExit(1)
    path = init_config(path)
    click.echo(f"Configuration created at: {path}")


@config_group.command("path")
def config_path():
    """Print the configuration file location."""
    click.echo(str(_config_path()))


@config_group.command("show")
def config_show():
    """Show current configuration."""
    config = load_config(config_path_option())
    exists = "" if config.config_path.exists() else " (not created, using defaults)"
    click.echo(f"Config file: {config.config_path}{exists}")
    click.echo(f"  Launcher: {config.assistant.launcher} {' '.join(config.assistant.continue_args)}")
    click.echo(f"  Window name: {config.assistant.window_name}")
    click.echo(f"  Host runtimes: {', '.join(config.assistant.host_runtimes)}")
    click.echo(
        f"  Detection: capture_lines={config.detection.capture_lines}, "
        f"timeout={config.detection.command_timeout}s, probe={config.detection.probe_timeout}s"
    )
    click.echo(f"  Ignored commands: {len(config.detection.deny_commands)}")
    click.echo(
        f"  Provision: startup_delay={config.provision.startup_delay}s, "
        f"locate_attempts={config.provision.locate_attempts}"
    )
    click.echo(
        f"  Delivery: buffer={config.delivery.buffer_name}, "
        f"retries={config.delivery.paste_retries}, base_delay={config.delivery.retry_base_delay}s"
    )
    click.echo(f"  Auto switch: {'enabled' if config.delivery.auto_switch_pane else 'disabled'}")
    click.echo(f"  Remember choice: {'enabled' if config.cache.remember_choice else 'disabled'}")
    click.echo(f"  State file: {config.cache.resolved_state_file}")
    click.echo(f"  Picker: {config.ui.picker}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a configuration value.

    Modifies the TOML config file. Key uses dot notation, e.g.:
    assistant.launcher, delivery.paste_retries, cache.remember_choice.
    List settings take comma-separated values or a JSON array.
    """
    path = _config_path()
    if not path.exists():
        click.echo("No config file found. Run 'panebridge config init' first.", err=True)
        raise SystemExit(1)

    try:
        typed = set_config_value(path, key, value)
    except KeyError:
        click.echo(f"Unknown config key: {key}", err=True)
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"Invalid value for {key}: {e}", err=True)
        raise SystemExit(1)

    click.echo(f"Set {key} = {typed!r}")
