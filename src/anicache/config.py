"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.anicache/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- a single :class:`~anicache.models.GlobalConfig` JSON
  file storing cache sizing, provider URLs, and output defaults.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, and the global config file.

File writes use a temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from anicache.exceptions import ConfigError
from anicache.models import GlobalConfig, ProviderConfig

_APP_NAME = "anicache"
_CONFIG_FILENAME = "config.json"

ENV_BASE_URL = "ANICACHE_BASE_URL"
ENV_SKIP_TIMES_URL = "ANICACHE_SKIP_TIMES_URL"
ENV_CACHE_TTL = "ANICACHE_CACHE_TTL"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True on platforms following the XDG Base Directory spec (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
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

    On Linux/BSD: ``$XDG_CONFIG_HOME/anicache/`` (default ``~/.config/anicache/``).
    On macOS/Windows: ``~/.anicache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory holding snapshot slots, creating it if necessary.

    On Linux/BSD: ``$XDG_CACHE_HOME/anicache/`` (default ``~/.cache/anicache/``).
    On macOS/Windows: ``~/.anicache/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/anicache/`` (default ``~/.local/share/anicache/``).
    On macOS/Windows: ``~/.anicache/logs/``.
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
    ``os.replace`` is an atomic rename on POSIX systems. On failure the
    temp file is removed and the error re-raised.
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


def load_global_config() -> GlobalConfig:
    """Load the global configuration.

    Returns:
        The deserialised :class:`~anicache.models.GlobalConfig`, or a
        default instance if the file does not exist.

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


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically."""
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_format: Optional[str] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_format``)
        2. Environment variables (``ANICACHE_BASE_URL``,
           ``ANICACHE_SKIP_TIMES_URL``, ``ANICACHE_CACHE_TTL``)
        3. User config (``~/.config/anicache/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file is invalid or ``ANICACHE_CACHE_TTL``
            is not a number.
    """
    config = load_global_config()

    env_base_url = os.environ.get(ENV_BASE_URL)
    if cli_base_url is not None:
        config.provider.base_url = cli_base_url
    elif env_base_url:
        config.provider.base_url = env_base_url

    env_skip_times = os.environ.get(ENV_SKIP_TIMES_URL)
    if env_skip_times:
        config.provider = ProviderConfig.model_validate(
            {**config.provider.model_dump(), "skip_times_url": env_skip_times}
        )

    env_ttl = os.environ.get(ENV_CACHE_TTL)
    if env_ttl:
        try:
            config.cache.max_age_seconds = float(env_ttl)
        except ValueError:
            raise ConfigError(f"{ENV_CACHE_TTL} must be a number, got: {env_ttl}") from None

    if cli_format is not None:
        config.output.format = cli_format

    return config
