"""Change-notification backend protocol.

A backend tells the watcher when a path's content changes. It knows nothing
about batching or tasks; the Watcher state machine does the rest.

Implementations:
- NativeBackend: OS file-system events via watchdog
- PollingBackend: periodic stat() comparison on the event loop
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

# Receives the subscribed path. May be called from any thread.
ChangeCallback = Callable[[str], None]


@dataclass(eq=False)
class Subscription:
    """One path registered with a backend."""

    path: str  # Absolute, normalized
    callback: ChangeCallback
    active: bool = True

    def notify(self) -> None:
        if self.active:
            self.callback(self.path)


class ChangeBackend(Protocol):
    """Protocol for change-notification backends."""

    def subscribe(self, path: str, callback: ChangeCallback) -> Subscription:
        """Start reporting changes to path.

        Args:
            path: Absolute path of a file or directory.
            callback: Called with the path on every change.

        Returns:
            Handle to pass to unsubscribe().
        """
        ...

    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop reporting changes for a subscription. Idempotent."""
        ...

    def shutdown(self) -> None:
        """Release every OS resource the backend holds."""
        ...
