"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for speclens:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.speclens/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~speclens.models.GlobalConfig`
  JSON file storing defaults (output format, session time-to-live).
* **Session index location** -- :func:`get_sessions_path` names the JSON
  file the :class:`~speclens.session.SessionIndex` reads and rewrites.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and global config into the effective settings.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) so a crash never leaves a half-written index behind.
"""

from __future__ import annotations

import contextlib
import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional


from speclens.exceptions import ConfigError
from speclens.models import GlobalConfig, OutputFormat

_APP_NAME = "speclens"
_CONFIG_FILENAME = "config.json"
_SESSIONS_FILENAME = "sessions.json"

ENV_OUTPUT_FORMAT = "SPECLENS_OUTPUT_FORMAT"
ENV_SESSION_TTL_DAYS = "SPECLENS_SESSION_TTL_DAYS"
ENV_SESSION = "SPECLENS_SESSION"


# --- Directories ---

# Environment variable and default location under $HOME for each XDG kind
_XDG_DIRS = {
    "config": ("XDG_CONFIG_HOME", (".config",)),
    "data": ("XDG_DATA_HOME", (".local", "share")),
}


def _is_xdg_platform() -> bool:
    """Linux and the BSDs follow the XDG Base Directory layout."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    if _is_xdg_platform():
        env_var, segments = _XDG_DIRS[kind]
        override = os.environ.get(env_var)
        base = Path(override) if override else Path.home().joinpath(*segments)
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    ``$XDG_CONFIG_HOME/speclens`` (default ``~/.config/speclens``) on
    Linux/BSD, ``~/.speclens`` elsewhere.
    """
    return _app_dir("config")


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    ``$XDG_DATA_HOME/speclens`` (default ``~/.local/share/speclens``) on
    Linux/BSD, ``~/.speclens`` elsewhere.
    """
    return _app_dir("data")


def get_sessions_path() -> Path:
    """Path to the persisted session index (``<config_dir>/sessions.json``)."""
    return get_config_dir() / _SESSIONS_FILENAME


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* via a synced temp file in the same directory.

    Readers see either the old or the new content. The temp file is removed
    if anything fails before the rename.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~speclens.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def _parse_ttl_days(raw: str) -> int:
    try:
        days = int(raw)
    except ValueError:
        days = 0
    if days < 1:
        raise ConfigError(f"{ENV_SESSION_TTL_DAYS} must be a positive integer (got {raw!r})")
    return days


def resolve_config(cli_format: Optional[str] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low): the ``cli_format`` argument, environment
    variables (``SPECLENS_OUTPUT_FORMAT``, ``SPECLENS_SESSION_TTL_DAYS``),
    ``config.json``, defaults. Unrecognised format names keep the value from
    the next level down, as :meth:`OutputFormat.parse` does.

    Raises:
        ConfigError: If the config file is invalid or the TTL variable is
            not a positive integer.
    """
    config = load_global_config()

    for value in (os.environ.get(ENV_OUTPUT_FORMAT), cli_format):
        if value:
            config.default_output_format = OutputFormat.parse(value, default=config.default_output_format)

    raw_ttl = os.environ.get(ENV_SESSION_TTL_DAYS)
    if raw_ttl:
        config.session_ttl_days = _parse_ttl_days(raw_ttl)

    return config
