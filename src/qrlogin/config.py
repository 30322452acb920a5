"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for qrlogin:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.qrlogin/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir` and :func:`get_credentials_dir`.
* **Global config** -- A single :class:`~qrlogin.models.GlobalConfig`
  JSON file storing the default provider and per-provider endpoint
  overrides.
* **Precedence resolution** -- :func:`resolve_provider_config` merges CLI
  flags, environment variables, the global config and the built-in
  provider defaults into the effective
  :class:`~qrlogin.models.ProviderConfig`.

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

from qrlogin.exceptions import ConfigError
from qrlogin.models import GlobalConfig, Provider, ProviderConfig

_APP_NAME = "qrlogin"
_CONFIG_FILENAME = "config.json"

ENV_PROVIDER = "QRLOGIN_PROVIDER"
ENV_POLL_TIMEOUT = "QRLOGIN_POLL_TIMEOUT"
ENV_POLL_INTERVAL = "QRLOGIN_POLL_INTERVAL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/qrlogin/`` (default ``~/.config/qrlogin/``).
    On macOS/Windows: ``~/.qrlogin/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/qrlogin/`` (default ``~/.local/share/qrlogin/``).
    On macOS/Windows: ``~/.qrlogin/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_credentials_dir() -> Path:
    """Return ``<data_dir>/credentials``, creating it if necessary."""
    path = get_data_dir() / "credentials"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is
    given it is applied to the temp file before any content is written, so
    the data is never readable with looser permissions.
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
        # Clean up the temp file on any error (including KeyboardInterrupt).
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


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~qrlogin.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


# --- Precedence resolution ---


def _env_float(var: str) -> Optional[float]:
    value = os.environ.get(var)
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        raise ConfigError(f"Environment variable {var} must be a number, got '{value}'") from None


def resolve_provider(
    cli_provider: Optional[str] = None,
    global_cfg: Optional[GlobalConfig] = None,
) -> Provider:
    """Pick the active provider.

    Precedence (high to low): CLI flag, ``QRLOGIN_PROVIDER``, the global
    config's ``default_provider``.
    """
    from qrlogin.providers import get_provider

    if cli_provider:
        return get_provider(cli_provider)
    env_provider = os.environ.get(ENV_PROVIDER)
    if env_provider:
        return get_provider(env_provider)
    if global_cfg is None:
        global_cfg = load_global_config()
    return global_cfg.default_provider


def resolve_provider_config(
    provider: Provider,
    global_cfg: Optional[GlobalConfig] = None,
    cli_timeout: Optional[float] = None,
) -> ProviderConfig:
    """Build the effective :class:`~qrlogin.models.ProviderConfig`.

    Precedence (high to low):
        1. CLI flags (``cli_timeout``)
        2. Environment variables (``QRLOGIN_POLL_TIMEOUT``,
           ``QRLOGIN_POLL_INTERVAL``)
        3. ``providers.<name>`` overrides in ``config.json``
        4. Built-in defaults from :mod:`qrlogin.providers`

    A routing prefix on ``default_model`` (``qwen/qwen-max``) is stripped.

    Raises:
        ConfigError: If the provider has no built-in definition or the
            merged values fail validation.
    """
    from qrlogin.providers import BUILTIN_PROVIDERS, parse_model

    base = BUILTIN_PROVIDERS.get(provider)
    if base is None:
        raise ConfigError(f"No built-in configuration for provider '{provider.value}'")
    if global_cfg is None:
        global_cfg = load_global_config()

    merged: dict[str, Any] = base.model_dump()
    merged.update(global_cfg.providers.get(provider.value, {}))

    env_timeout = _env_float(ENV_POLL_TIMEOUT)
    if env_timeout is not None:
        merged["poll_timeout"] = env_timeout
    env_interval = _env_float(ENV_POLL_INTERVAL)
    if env_interval is not None:
        merged["poll_interval"] = env_interval

    if cli_timeout is not None:
        merged["poll_timeout"] = cli_timeout

    if isinstance(merged.get("default_model"), str):
        merged["default_model"] = parse_model(provider, merged["default_model"])

    try:
        return ProviderConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration for provider '{provider.value}': {exc}") from exc
