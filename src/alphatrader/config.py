"""Configuration management with XDG paths, atomic writes, and environment overrides.

This module handles all persistent configuration for alphatrader:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.alphatrader/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Settings** -- A single :class:`~alphatrader.models.Settings` JSON file
  holding the API URL, token, partner id, request and cache settings.
* **Precedence resolution** -- :func:`load_settings` layers the
  ``ALPHATRADER_*`` environment variables over the file, which in turn
  overrides the model defaults.
* **Credential resolution** -- :func:`resolve_credential` reads the token
  from an env var or a file when the configured value is a source
  descriptor rather than the token itself.

Writes use a temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from alphatrader.exceptions import ConfigError
from alphatrader.models import Settings

_APP_NAME = "alphatrader"
_CONFIG_FILENAME = "config.json"

ENV_API_URL = "ALPHATRADER_API_URL"
ENV_TOKEN = "ALPHATRADER_TOKEN"
ENV_PARTNER_ID = "ALPHATRADER_PARTNER_ID"
ENV_REFRESH_INTERVAL = "ALPHATRADER_REFRESH_INTERVAL"
ENV_CONFIG = "ALPHATRADER_CONFIG"


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

    On Linux/BSD: ``$XDG_CONFIG_HOME/alphatrader/`` (default
    ``~/.config/alphatrader/``).  On macOS/Windows: ``~/.alphatrader/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/alphatrader/`` (default
    ``~/.local/share/alphatrader/``).  On macOS/Windows: ``~/.alphatrader/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.
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


# --- Settings ---


def settings_path() -> Path:
    """Path to the settings file (``$ALPHATRADER_CONFIG`` wins if set)."""
    override = os.environ.get(ENV_CONFIG)
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def load_settings(apply_env: bool = True) -> Settings:
    """Load settings with full precedence chain.

    Precedence (high to low):
        1. Environment variables (``ALPHATRADER_API_URL``,
           ``ALPHATRADER_TOKEN``, ``ALPHATRADER_PARTNER_ID``,
           ``ALPHATRADER_REFRESH_INTERVAL``)
        2. Settings file (:func:`settings_path`)
        3. Defaults

    Args:
        apply_env: Set to ``False`` to read the file alone, e.g. before
            editing and saving it back.

    Returns:
        The effective :class:`~alphatrader.models.Settings`.

    Raises:
        ConfigError: If the file contains invalid JSON, fails validation,
            or an environment override has the wrong type.
    """
    path = settings_path()
    data: dict = {}
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, ValueError) as exc:
            raise ConfigError(f"Invalid settings at {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid settings at {path}: expected a JSON object")

    if apply_env:
        _apply_env_overrides(data)

    try:
        return Settings.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc


def _apply_env_overrides(data: dict) -> None:
    env_url = os.environ.get(ENV_API_URL)
    if env_url:
        data["api_url"] = env_url
    env_token = os.environ.get(ENV_TOKEN)
    if env_token:
        data["token"] = env_token
    env_partner = os.environ.get(ENV_PARTNER_ID)
    if env_partner:
        data["partner_id"] = env_partner
    env_interval = os.environ.get(ENV_REFRESH_INTERVAL)
    if env_interval:
        cache = dict(data.get("cache") or {})
        cache["refresh_interval_minutes"] = env_interval
        data["cache"] = cache


def save_settings(settings: Settings) -> Path:
    """Persist *settings* atomically and return the file path."""
    path = settings_path()
    data = settings.model_dump(mode="json")
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - anything else -- returned unchanged (a literal token)

    Raises:
        ConfigError: If the env var is unset or the file can't be read.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    return source


def resolve_token(settings: Settings) -> Optional[str]:
    """Return the bearer token for *settings*, or ``None`` if none is configured."""
    if not settings.token:
        return None
    return resolve_credential(settings.token)
