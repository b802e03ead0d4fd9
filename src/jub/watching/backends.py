"""Backend selection."""

from __future__ import annotations

from jub.config.schema import BACKENDS, WatchConfig
from jub.watching.native import NativeBackend
from jub.watching.polling import PollingBackend
from jub.watching.protocol import ChangeBackend


def create_backend(name: str = "native", poll_interval: float = 0.5) -> ChangeBackend:
    """Create a change backend by name ("native" or "polling").

    Raises:
        ValueError: For an unknown backend name.
    """
    name = name.lower()
    if name == "native":
        return NativeBackend()
    if name == "polling":
        return PollingBackend(poll_interval=poll_interval)
    raise ValueError(f"Unknown watch backend {name!r}, expected one of {', '.join(BACKENDS)}")


def backend_from_config(config: WatchConfig) -> ChangeBackend:
    return create_backend(config.backend, poll_interval=config.poll_interval)
