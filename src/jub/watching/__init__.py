"""File watching for jub.

Watchers turn bursts of file changes into single, ordered task dispatches.
Change events come from a pluggable backend: native OS events (watchdog)
or stat() polling.
"""

from jub.watching.backends import backend_from_config, create_backend
from jub.watching.native import NativeBackend
from jub.watching.polling import PolledFile, PollingBackend
from jub.watching.protocol import ChangeBackend, ChangeCallback, Subscription
from jub.watching.watcher import DEFAULT_QUIET_WINDOW, Watcher, WatcherState

__all__ = [
    "ChangeBackend",
    "ChangeCallback",
    "DEFAULT_QUIET_WINDOW",
    "NativeBackend",
    "PolledFile",
    "PollingBackend",
    "Subscription",
    "Watcher",
    "WatcherState",
    "backend_from_config",
    "create_backend",
]
