"""Change notification using polling.

Polling is the portable fallback: it needs no OS event support and works
on network filesystems, at the cost of latency bounded by the poll
interval. Polling runs as a task on the asyncio event loop.
"""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass

from jub.logging import get_logger
from jub.watching.protocol import ChangeCallback, Subscription

log = get_logger("watching.polling")

# Minimum poll interval in seconds
MIN_POLL_INTERVAL = 0.01


@dataclass(eq=False)
class PolledFile(Subscription):
    """Subscription plus the last observed stat state."""

    mtime: int | None = None
    size: int | None = None
    exists: bool = False

    def refresh(self) -> bool:
        """Re-stat the path and return True if it changed."""
        try:
            stat = os.stat(self.path)
        except FileNotFoundError:
            if self.exists:
                # Deleted
                self.exists = False
                self.mtime = None
                self.size = None
                return True
            return False
        except OSError as e:
            log.warning("Error checking %s: %s", self.path, e)
            return False

        changed = (
            not self.exists
            or stat.st_mtime_ns != self.mtime
            or stat.st_size != self.size
        )
        self.exists = True
        self.mtime = stat.st_mtime_ns
        self.size = stat.st_size
        return changed


class PollingBackend:
    """Reports changes by comparing mtime and size at a fixed interval.

    The poll task starts with the first subscription and stops when the
    last one is removed. subscribe() must be called from the thread running
    the event loop.

    Example:
        backend = PollingBackend(poll_interval=0.5)
        sub = backend.subscribe("/project/main.py", print)
        ...
        backend.unsubscribe(sub)
    """

    def __init__(self, poll_interval: float = 0.5) -> None:
        self._poll_interval = max(MIN_POLL_INTERVAL, poll_interval)
        self._subscriptions: list[PolledFile] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def poll_interval(self) -> float:
        """Get the polling interval in seconds."""
        return self._poll_interval

    @poll_interval.setter
    def poll_interval(self, value: float) -> None:
        self._poll_interval = max(MIN_POLL_INTERVAL, value)

    @property
    def watched_count(self) -> int:
        """Number of active subscriptions."""
        return len(self._subscriptions)

    def subscribe(self, path: str, callback: ChangeCallback) -> Subscription:
        subscription = PolledFile(path=path, callback=callback)
        subscription.refresh()
        self._subscriptions.append(subscription)
        log.debug("Polling %s", path)

        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._poll_loop())
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            log.debug("Stopped polling %s", subscription.path)
        if not self._subscriptions:
            self._stop()

    def check_changes(self) -> list[Subscription]:
        """Poll every subscription once and notify the changed ones.

        Returns:
            The subscriptions that changed.
        """
        changed: list[Subscription] = []
        for subscription in list(self._subscriptions):
            if subscription.active and subscription.refresh():
                changed.append(subscription)
                try:
                    subscription.notify()
                except Exception as e:
                    log.error("Error in change callback for %s: %s", subscription.path, e)
        return changed

    async def _poll_loop(self) -> None:
        log.debug("Polling started (interval: %.2fs)", self._poll_interval)
        try:
            while self._subscriptions:
                await asyncio.sleep(self._poll_interval)
                self.check_changes()
        except asyncio.CancelledError:
            log.debug("Polling cancelled")
            raise

    def _stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
        self._task = None

    def shutdown(self) -> None:
        for subscription in self._subscriptions:
            subscription.active = False
        self._subscriptions.clear()
        self._stop()
