"""Configuration file loading and caching.

Handles:
- YAML file parsing
- Environment variable overrides
- Config caching with reset support
- Conversion from dict to typed Config dataclass
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from jub.config.merge import merge_configs
from jub.config.paths import get_config_paths
from jub.config.schema import BACKENDS, Config, LoggingConfig, WatchConfig

# Module logger (may not be configured yet at import time)
_log = logging.getLogger("jub.config")

# Global cached config
_cached_config: Config | None = None


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or invalid."""
    if not path.exists():
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        _log.warning("Invalid YAML in %s: %s", path, e)
        return {}
    except PermissionError:
        _log.debug("Permission denied reading %s", path)
        return {}
    except OSError as e:
        _log.warning("Error reading %s: %s", path, e)
        return {}


def env_overrides() -> dict[str, Any]:
    """Build config dict from JUB_* environment variables."""
    overrides: dict[str, Any] = {}

    log_path = os.environ.get("JUB_LOG")
    if log_path:
        overrides.setdefault("logging", {})["file"] = log_path

    backend = os.environ.get("JUB_WATCH_BACKEND")
    if backend:
        overrides.setdefault("watch", {})["backend"] = backend

    for var, key in (
        ("JUB_QUIET_WINDOW", "quiet_window"),
        ("JUB_POLL_INTERVAL", "poll_interval"),
    ):
        raw = os.environ.get(var)
        if not raw:
            continue
        try:
            overrides.setdefault("watch", {})[key] = float(raw)
        except ValueError:
            _log.warning("Ignoring %s=%r: not a number", var, raw)

    return overrides


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _duration(data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"watch.{key} must be a number, got {value!r}")
    if value < 0:
        raise ValueError(f"watch.{key} must not be negative, got {value!r}")
    return float(value)


def dict_to_config(data: dict[str, Any]) -> Config:
    """Convert merged dict to typed Config dataclass.

    Raises:
        ValueError: For an unknown watch backend or an invalid duration.
    """
    env = {str(k): str(v) for k, v in _section(data, "env").items() if v is not None}

    watch_data = _section(data, "watch")
    defaults = WatchConfig()
    backend = str(watch_data.get("backend", defaults.backend)).lower()
    if backend not in BACKENDS:
        raise ValueError(f"watch.backend must be one of {', '.join(BACKENDS)}, got {backend!r}")
    watch = WatchConfig(
        backend=backend,
        quiet_window=_duration(watch_data, "quiet_window", defaults.quiet_window),
        poll_interval=_duration(watch_data, "poll_interval", defaults.poll_interval),
    )

    log_data = _section(data, "logging")
    logging_config = LoggingConfig(
        level=log_data.get("level"),
        verbose=log_data.get("verbose"),
        file=log_data.get("file"),
    )

    return Config(env=env, watch=watch, logging=logging_config)


def load_config(root: str | os.PathLike[str] | None = None, reload: bool = False) -> Config:
    """Load and merge config from all sources.

    Priority order (highest to lowest):
    1. Environment variables (JUB_*)
    2. Project config (<root>/jub.yaml)
    3. User config (~/.config/jub/config.yaml)

    Args:
        root: Project directory for project-level config.
        reload: Force reload even if cached.

    Returns:
        Merged Config object.
    """
    global _cached_config

    if _cached_config is not None and not reload and root is None:
        return _cached_config

    configs: list[dict[str, Any]] = []

    for path in get_config_paths(root):
        config_data = load_yaml_file(path)
        if config_data:
            _log.debug("Loaded config from %s", path)
            configs.append(config_data)

    env_config = env_overrides()
    if env_config:
        configs.append(env_config)

    config = dict_to_config(merge_configs(*configs))

    # Cache only global config (no project root)
    if root is None:
        _cached_config = config

    return config


def get_config() -> Config:
    """Get the cached global config, loading it if needed."""
    if _cached_config is None:
        return load_config()
    return _cached_config


def reset_config() -> None:
    """Reset cached config."""
    global _cached_config
    _cached_config = None
