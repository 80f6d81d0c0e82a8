"""Configuration loading: TOML file + environment variable overlay."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]


DEFAULT_CONFIG_DIR = Path.home() / ".config" / "panebridge"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"


def _default_state_path() -> str:
    """Return default binding state file using XDG_RUNTIME_DIR or /tmp fallback."""
    runtime = os.environ.get("XDG_RUNTIME_DIR")
    if runtime:
        return str(Path(runtime) / "panebridge-bindings.json")
    return f"/tmp/panebridge-{os.getuid()}-bindings.json"


DEFAULT_TEMPLATE = """\
<context>
  <file_path>{file_path}</file_path>
  <git_root>{repository_root}</git_root>
  <line_number>{cursor_line}</line_number>
  <column_number>{cursor_column}</column_number>
  <selection>{selection}</selection>
  <file_content>{file_content}</file_content>
</context>"""

DEFAULT_DENY_COMMANDS = [
    "nvim", "vim", "vi", "emacs", "nano", "micro", "hx", "less", "man",
    "bash", "zsh", "fish", "sh", "dash", "tmux",
    "git", "lazygit", "tig",
    "python", "python3", "ruby", "perl", "java", "go", "cargo", "make",
    "ssh", "top", "htop", "watch", "tail",
]

DEFAULT_CONFIG_TOML = f'''\
[assistant]
launcher = "claude"
window_name = "claude"
continue_args = ["--continue"]
vendor_tokens = ["claude", "anthropic"]
host_runtimes = ["node", "nodejs", "bun", "deno"]

[detection]
capture_lines = 10
command_timeout = 3.0
probe_timeout = 2.0
# deny_commands defaults to editors, shells, VCS tools and generic runtimes

[provision]
startup_delay = 1.0
locate_attempts = 3
locate_delay = 0.5

[delivery]
buffer_name = "panebridge_context"
paste_retries = 3
retry_base_delay = 0.5
new_instance_delay = 1.0
auto_switch_pane = true
bracketed_paste = true
ready_wait_cycles = 6
ready_cycle_delay = 0.3

[cache]
remember_choice = true
# state_file defaults to XDG_RUNTIME_DIR or /tmp

[ui]
picker = "prompt"

[payload]
template = """
{DEFAULT_TEMPLATE}"""
'''


@dataclass
class AssistantConfig:
    launcher: str = "claude"
    window_name: str = "claude"
    continue_args: list[str] = field(default_factory=lambda: ["--continue"])
    vendor_tokens: list[str] = field(default_factory=lambda: ["claude", "anthropic"])
    host_runtimes: list[str] = field(default_factory=lambda: ["node", "nodejs", "bun", "deno"])


@dataclass
class DetectionConfig:
    capture_lines: int = 10
    command_timeout: float = 3.0
    probe_timeout: float = 2.0
    deny_commands: list[str] = field(default_factory=lambda: list(DEFAULT_DENY_COMMANDS))


@dataclass
class ProvisionConfig:
    startup_delay: float = 1.0
    locate_attempts: int = 3
    locate_delay: float = 0.5


@dataclass
class DeliveryConfig:
    buffer_name: str = "panebridge_context"
    paste_retries: int = 3
    retry_base_delay: float = 0.5
    new_instance_delay: float = 1.0
    auto_switch_pane: bool = True
    bracketed_paste: bool = True
    ready_wait_cycles: int = 6
    ready_cycle_delay: float = 0.3


@dataclass
class CacheConfig:
    remember_choice: bool = True
    state_file: str = ""

    @property
    def resolved_state_file(self) -> str:
        return self.state_file or _default_state_path()


@dataclass
class UIConfig:
    picker: str = "prompt"  # prompt, tui


@dataclass
class PayloadConfig:
    template: str = DEFAULT_TEMPLATE


@dataclass
class AppConfig:
    assistant: AssistantConfig = field(default_factory=AssistantConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    provision: ProvisionConfig = field(default_factory=ProvisionConfig)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    payload: PayloadConfig = field(default_factory=PayloadConfig)
    config_path: Path = DEFAULT_CONFIG_PATH


def _env_flag(value: str) -> bool:
    return value.strip().lower() not in ("0", "false", "no", "off", "")


def _env_overlay(config: AppConfig) -> None:
    """Override config values with environment variables where applicable."""
    if launcher := os.environ.get("PANEBRIDGE_LAUNCHER"):
        config.assistant.launcher = launcher
    if (auto_switch := os.environ.get("PANEBRIDGE_AUTO_SWITCH")) is not None:
        config.delivery.auto_switch_pane = _env_flag(auto_switch)
    if state_file := os.environ.get("PANEBRIDGE_STATE_FILE"):
        config.cache.state_file = state_file
    if picker := os.environ.get("PANEBRIDGE_PICKER"):
        config.ui.picker = picker


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file with env var overlay."""
    path = config_path or DEFAULT_CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    else:
        raw = tomllib.loads(DEFAULT_CONFIG_TOML)

    assistant_raw = raw.get("assistant", {})
    detection_raw = raw.get("detection", {})
    provision_raw = raw.get("provision", {})
    delivery_raw = raw.get("delivery", {})
    cache_raw = raw.get("cache", {})
    ui_raw = raw.get("ui", {})
    payload_raw = raw.get("payload", {})

    config = AppConfig(
        assistant=AssistantConfig(
            launcher=assistant_raw.get("launcher", "claude"),
            window_name=assistant_raw.get("window_name", "claude"),
            continue_args=list(assistant_raw.get("continue_args", ["--continue"])),
            vendor_tokens=list(assistant_raw.get("vendor_tokens", ["claude", "anthropic"])),
            host_runtimes=list(
                assistant_raw.get("host_runtimes", ["node", "nodejs", "bun", "deno"])
            ),
        ),
        detection=DetectionConfig(
            capture_lines=detection_raw.get("capture_lines", 10),
            command_timeout=detection_raw.get("command_timeout", 3.0),
            probe_timeout=detection_raw.get("probe_timeout", 2.0),
            deny_commands=list(detection_raw.get("deny_commands", DEFAULT_DENY_COMMANDS)),
        ),
        provision=ProvisionConfig(
            startup_delay=provision_raw.get("startup_delay", 1.0),
            locate_attempts=provision_raw.get("locate_attempts", 3),
            locate_delay=provision_raw.get("locate_delay", 0.5),
        ),
        delivery=DeliveryConfig(
            buffer_name=delivery_raw.get("buffer_name", "panebridge_context"),
            paste_retries=delivery_raw.get("paste_retries", 3),
            retry_base_delay=delivery_raw.get("retry_base_delay", 0.5),
            new_instance_delay=delivery_raw.get("new_instance_delay", 1.0),
            auto_switch_pane=delivery_raw.get("auto_switch_pane", True),
            bracketed_paste=delivery_raw.get("bracketed_paste", True),
            ready_wait_cycles=delivery_raw.get("ready_wait_cycles", 6),
            ready_cycle_delay=delivery_raw.get("ready_cycle_delay", 0.3),
        ),
        cache=CacheConfig(
            remember_choice=cache_raw.get("remember_choice", True),
            state_file=cache_raw.get("state_file", ""),
        ),
        ui=UIConfig(
            picker=ui_raw.get("picker", "prompt"),
        ),
        payload=PayloadConfig(
            template=payload_raw.get("template", DEFAULT_TEMPLATE).strip("\n") or DEFAULT_TEMPLATE,
        ),
        config_path=path,
    )

    _env_overlay(config)
    return config


def init_config(config_path: Path | None = None) -> Path:
    """Create default config file."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TOML)
    return path


def coerce_config_value(key: str, value: str) -> object:
    """Parse ``value`` for the ``section.name`` setting ``key``.

    The target type is the type of the field's default. Unknown keys raise
    ``KeyError``; text that does not parse raises ``ValueError``.
    """
    section_name, _, name = key.partition(".")
    section = getattr(AppConfig(), section_name, None)
    if not is_dataclass(section) or name not in {f.name for f in fields(section)}:
        raise KeyError(key)

    current = getattr(section, name)
    if isinstance(current, bool):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"expected true or false, got {value!r}")
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    if isinstance(current, list):
        if value.lstrip().startswith("["):
            items = json.loads(value)
            if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
                raise ValueError(f"expected a list of strings, got {value!r}")
            return items
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def set_config_value(path: Path, key: str, value: str) -> object:
    """Write one validated setting into the TOML file at ``path``."""
    import tomli_w

    typed = coerce_config_value(key, value)
    with open(path, "rb") as f:
        data = tomllib.load(f)
    section_name, _, name = key.partition(".")
    data.setdefault(section_name, {})[name] = typed
    with open(path, "wb") as f:
        tomli_w.dump(data, f)
    return typed
