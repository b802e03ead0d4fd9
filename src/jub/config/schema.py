"""Configuration schema dataclasses for jub.

All fields have defaults so partial configs merge together.

Example jub.yaml:
    env:
      main: lib/main.txt
      dist: $HOME/dist
    watch:
      backend: polling
      quiet_window: 0.2
      poll_interval: 0.5
    logging:
      level: DEBUG
      file: ~/jub.log
"""

from __future__ import annotations

from dataclasses import dataclass, field

BACKENDS = ("native", "polling")


@dataclass
class WatchConfig:
    """Watcher timing and backend selection."""

    backend: str = "native"  # "native" (OS events) or "polling"
    quiet_window: float = 0.1  # Seconds without events before a batch dispatches
    poll_interval: float = 0.5  # Seconds between polls (polling backend)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str | None = None  # DEBUG, INFO, WARNING, ERROR
    verbose: int | None = None  # 0-4, takes precedence over level
    file: str | None = None  # Log file path


@dataclass
class Config:
    """Root configuration object."""

    env: dict[str, str] = field(default_factory=dict)  # Extra environment entries
    watch: WatchConfig = field(default_factory=WatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
