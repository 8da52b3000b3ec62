"""Configuration management with XDG paths, atomic writes, and env overrides.

This module handles all persistent configuration for retoken:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.retoken/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Settings** -- A single :class:`~retoken.models.Settings` JSON file
  holding the base URL, interceptor options, and transport defaults.
* **Precedence** -- ``RETOKEN_*`` environment variables override values
  read from disk (see :data:`ENV_OVERRIDES`).

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from retoken.exceptions import ConfigError
from retoken.models import Settings

_APP_NAME = "retoken"
_CONFIG_FILENAME = "config.json"
_DEFAULT_BACKEND = "persistent"
_DEFAULT_CREDENTIAL_KEY = "access_token"

# env var -> (section, field); section None means a top-level field
ENV_OVERRIDES: dict[str, tuple[Optional[str], str]] = {
    "RETOKEN_BASE_URL": (None, "base_url"),
    "RETOKEN_STORAGE_BACKEND": ("interceptor", "storage_backend"),
    "RETOKEN_CREDENTIAL_KEY": ("interceptor", "credential_key"),
    "RETOKEN_REFRESH_CREDENTIAL_KEY": ("interceptor", "refresh_credential_key"),
    "RETOKEN_REFRESH_URL": ("interceptor", "refresh_url"),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/retoken/`` (default ``~/.config/retoken/``).
    On macOS/Windows: ``~/.retoken/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (persistent credentials), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/retoken/`` (default ``~/.local/share/retoken/``).
    On macOS/Windows: ``~/.retoken/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  When *mode* is
    given, permissions are applied to the temp file before any content is
    written.  On any failure the temp file is cleaned up and the error
    re-raised.
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
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
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


# --- Settings ---


def settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _CONFIG_FILENAME


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Overlay ``RETOKEN_*`` environment variables onto raw settings data."""
    for env_var, (section, field) in ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if not value:
            continue
        if section is None:
            data[field] = value
        else:
            target = data.get(section)
            if not isinstance(target, dict):
                target = {}
                data[section] = target
            target[field] = value
    return data


def load_settings(path: Optional[Path] = None, *, apply_env: bool = True) -> Settings:
    """Load settings from disk and apply environment overrides.

    Args:
        path: Settings file to read.  Defaults to :func:`settings_path`.
        apply_env: Overlay ``RETOKEN_*`` variables.  Disabled when the
            result is written back, so overrides never reach the file.

    Returns:
        The validated :class:`~retoken.models.Settings`.  A missing file
        yields the defaults (still subject to environment overrides).

    Raises:
        ConfigError: If the file contains invalid JSON, or the merged data
            fails validation (unknown backend name, empty key, ...).
    """
    path = path or settings_path()
    data: dict[str, Any] = {}
    if path.is_file():
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid settings file at {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigError(f"Invalid settings file at {path}: expected a JSON object")
        data = loaded

    if apply_env:
        data = _apply_env_overrides(data)
    section = data.get("interceptor")
    if isinstance(section, dict):
        # A partial interceptor section keeps the remaining defaults.
        section.setdefault("storage_backend", _DEFAULT_BACKEND)
        section.setdefault("credential_key", _DEFAULT_CREDENTIAL_KEY)
    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    """Persist settings atomically to disk."""
    data = settings.model_dump(mode="json")
    atomic_write(path or settings_path(), json.dumps(data, indent=2) + "\n")
