"""TOML configuration management."""

from __future__ import annotations

import os
import re
import sys
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from sigwarden import constants

CONFIG_DIR = Path(os.environ.get("SIGWARDEN_CONFIG_DIR", "~/.config/sigwarden")).expanduser()
CONFIG_FILE = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = """\
# sigwarden configuration

[signals]
# Signals that run the termination procedures and exit the process
termination = [{termination}]

[logging]
# Level for the stdlib logging sink (DEBUG, INFO, WARNING, ...)
level = "{log_level}"
# Emit debug lines (handler registration, unhandled signals)
debug = false

[listener]
# Seconds the cancel handle waits for the listener thread to finish
stop_timeout = {stop_timeout}

[daemon]
# Seconds between checks of the daemon main loop
poll_interval = {poll_interval}
""".format(
    termination=", ".join(f'"{n}"' for n in constants.DEFAULT_TERMINATION_SIGNAL_NAMES),
    log_level=constants.LOG_LEVEL,
    stop_timeout=constants.STOP_TIMEOUT_SECONDS,
    poll_interval=constants.POLL_INTERVAL_SECONDS,
)


def init_config(force: bool = False) -> Path:
    """Create default config file. Returns path to config file."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    if CONFIG_FILE.exists() and not force:
        raise FileExistsError(f"Config already exists: {CONFIG_FILE}")
    CONFIG_FILE.write_text(DEFAULT_CONFIG)
    return CONFIG_FILE


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge *override* into *base*, returning a new dict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config() -> dict[str, Any]:
    """Load config from TOML file, merged on top of built-in defaults.

    Keys present in the default config but absent from the on-disk file
    are filled in automatically.
    """
    defaults = tomllib.loads(DEFAULT_CONFIG)
    if CONFIG_FILE.exists():
        on_disk = tomllib.loads(CONFIG_FILE.read_text())
        return _deep_merge(defaults, on_disk)
    return defaults


def get(section: str, key: str, default: Any = None) -> Any:
    """Get a config value by section and key."""
    cfg = load_config()
    return cfg.get(section, {}).get(key, default)


def data_dir() -> Path:
    """Return the data directory (same as config dir for simplicity)."""
    d = CONFIG_DIR
    d.mkdir(parents=True, exist_ok=True)
    return d


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_format_value(v) for v in value) + "]"
    return str(value)


def set_value(section: str, key: str, value: Any) -> None:
    """Persist a single key inside *section* in the on-disk config file.

    If the key already exists it is updated in-place; if the section exists
    but the key is absent the key is appended to the section; if the section
    itself is absent both are appended at the end of the file.

    Supports int, float, bool, str and flat lists of those.
    """
    val_str = _format_value(value)
    section_header = f"[{section}]"

    if not CONFIG_FILE.exists():
        init_config()

    lines = CONFIG_FILE.read_text().splitlines(keepends=True)
    new_lines: list[str] = []
    in_section = False
    key_found = False
    key_pattern = re.compile(rf"^{re.escape(key)}\s*=")

    for line in lines:
        stripped = line.strip()
        if stripped == section_header:
            in_section = True
        elif stripped.startswith("["):
            if in_section and not key_found:
                new_lines.append(f"{key} = {val_str}\n")
                key_found = True
            in_section = False

        if in_section and not key_found and key_pattern.match(stripped):
            new_lines.append(f"{key} = {val_str}\n")
            key_found = True
            continue  # discard original line

        new_lines.append(line)

    if not key_found:
        if in_section:
            if new_lines and not new_lines[-1].endswith("\n"):
                new_lines.append("\n")
            new_lines.append(f"{key} = {val_str}\n")
        else:
            if new_lines and not new_lines[-1].endswith("\n"):
                new_lines.append("\n")
            new_lines.append(f"\n{section_header}\n{key} = {val_str}\n")

    CONFIG_FILE.write_text("".join(new_lines))
