"""Configuration management for jub.

Layered YAML configuration:
- User-level config (~/.config/jub/config.yaml or %APPDATA%)
- Project-level config (<root>/jub.yaml)
- Environment variable overrides (highest priority)

Example usage:
    from jub.config import load_config

    config = load_config(root="/path/to/project")
    print(config.watch.quiet_window)
"""

from jub.config.loader import (
    dict_to_config,
    get_config,
    load_config,
    reset_config,
)
from jub.config.paths import (
    get_config_paths,
    get_project_config_path,
    get_user_config_path,
)
from jub.config.schema import (
    BACKENDS,
    Config,
    LoggingConfig,
    WatchConfig,
)

__all__ = [
    # Main API
    "Config",
    "load_config",
    "get_config",
    "reset_config",
    "dict_to_config",
    # Schema types
    "WatchConfig",
    "LoggingConfig",
    "BACKENDS",
    # Path utilities
    "get_config_paths",
    "get_user_config_path",
    "get_project_config_path",
]
