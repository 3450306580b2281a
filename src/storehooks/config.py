"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles persistent configuration for storehooks:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.storehooks/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- a single :class:`~storehooks.models.GlobalConfig`
  JSON file storing the store connection, plugin lists and per-collection
  options.
* **Project config** -- an optional ``./storehooks.json`` with the same
  shape, layered over the global config.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project-local config and global config into the
  effective configuration.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from storehooks.exceptions import ConfigError
from storehooks.models import CollectionOptions, GlobalConfig

_APP_NAME = "storehooks"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "storehooks.json"

ENV_BASE_URL = "STOREHOOKS_BASE_URL"
ENV_DATABASE = "STOREHOOKS_DATABASE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/storehooks/`` (default ``~/.config/storehooks/``).
    On macOS/Windows: ``~/.storehooks/``.
    """
    if _is_xdg_platform():
        env_val = os.environ.get("XDG_CONFIG_HOME")
        base = Path(env_val) if env_val else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def _read_json(path: Path, label: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~storehooks.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    data = _read_json(path, "global config")
    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./storehooks.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    data = _read_json(path, "project config")
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_database: Optional[str] = None,
) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_database``)
        2. Environment variables (``STOREHOOKS_BASE_URL``, ``STOREHOOKS_DATABASE``)
        3. Project config (``./storehooks.json``)
        4. User config (``~/.config/storehooks/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    data = load_global_config().model_dump(mode="json")

    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    store = data.setdefault("store", {})
    env_base_url = os.environ.get(ENV_BASE_URL)
    env_database = os.environ.get(ENV_DATABASE)
    if env_base_url:
        store["base_url"] = env_base_url
    if env_database:
        store["database"] = env_database
    if cli_base_url is not None:
        store["base_url"] = cli_base_url
    if cli_database is not None:
        store["database"] = cli_database

    try:
        return GlobalConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def collection_options(config: GlobalConfig, name: str) -> CollectionOptions:
    """Return the configured options for collection *name* (defaults when absent)."""
    return config.collections.get(name, CollectionOptions())
