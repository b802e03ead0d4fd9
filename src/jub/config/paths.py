"""Configuration file locations.

- User: $XDG_CONFIG_HOME/jub/config.yaml, else ~/.config/jub/config.yaml
  (%APPDATA%\\jub\\config.yaml on Windows)
- Project: <root>/jub.yaml
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

CONFIG_FILENAME = "config.yaml"
PROJECT_FILENAME = "jub.yaml"
APP_NAME = "jub"


def get_user_config_path() -> Path | None:
    """Get user-level config path.

    Returns:
        Path to user config file, or None if not determinable.
        The file may not exist.
    """
    if sys.platform == "win32":
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME / CONFIG_FILENAME
        return None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME / CONFIG_FILENAME

    return Path.home() / ".config" / APP_NAME / CONFIG_FILENAME


def get_project_config_path(root: str | os.PathLike[str]) -> Path:
    """Get project-level config path (may not exist)."""
    return Path(root) / PROJECT_FILENAME


def get_config_paths(root: str | os.PathLike[str] | None = None) -> list[Path]:
    """Get all config paths in priority order (lowest to highest).

    Args:
        root: Optional project directory for project-level config.
    """
    paths: list[Path] = []

    user_path = get_user_config_path()
    if user_path:
        paths.append(user_path)

    if root is not None:
        paths.append(get_project_config_path(root))

    return paths
