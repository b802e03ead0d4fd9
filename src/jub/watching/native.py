"""Change notification from OS file-system events (watchdog).

Each subscribed path's parent directory is scheduled once, non-recursively,
on a shared watchdog Observer. Events arrive on the observer thread and are
routed to the subscriptions for the affected path. A symlinked path is also
watched under its resolved target, where writes through the link are
reported.
"""

from __future__ import annotations

import os
import threading

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from jub.logging import get_logger
from jub.watching.protocol import ChangeCallback, Subscription

log = get_logger("watching.native")

# Opened/closed events do not change content
_CONTENT_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED}
)


def _normalize(path: str | bytes) -> str:
    return os.path.normpath(os.path.abspath(os.fsdecode(path)))


class _RoutingHandler(FileSystemEventHandler):
    """Forwards content events to the owning backend."""

    def __init__(self, backend: NativeBackend) -> None:
        super().__init__()
        self._backend = backend

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in _CONTENT_EVENTS:
            return
        self._backend.route(event.src_path)
        dest = getattr(event, "dest_path", "")
        if dest:
            self._backend.route(dest)


class NativeBackend:
    """Reports changes using the platform's native file-system events.

    Example:
        backend = NativeBackend()
        sub = backend.subscribe("/project/main.py", print)
        ...
        backend.shutdown()
    """

    def __init__(self, observer: BaseObserver | None = None) -> None:
        self._observer = observer
        self._started = False
        self._lock = threading.Lock()
        self._handler = _RoutingHandler(self)
        self._by_path: dict[str, list[Subscription]] = {}
        self._watches: dict[str, ObservedWatch] = {}
        self._dir_refs: dict[str, int] = {}
        self._points: dict[Subscription, list[tuple[str, str]]] = {}

    @property
    def watched_count(self) -> int:
        with self._lock:
            return len(self._points)

    def _ensure_observer(self) -> BaseObserver:
        if self._observer is None:
            self._observer = Observer()
        if not self._started:
            self._observer.start()
            self._started = True
            log.debug("Observer started")
        return self._observer

    def _hold(self, directory: str) -> None:
        if directory not in self._watches:
            observer = self._ensure_observer()
            self._watches[directory] = observer.schedule(self._handler, directory, recursive=False)
            log.debug("Scheduled %s", directory)
        self._dir_refs[directory] = self._dir_refs.get(directory, 0) + 1

    def _release(self, directory: str) -> None:
        self._dir_refs[directory] -= 1
        if self._dir_refs[directory] == 0:
            del self._dir_refs[directory]
            watch = self._watches.pop(directory)
            if self._observer is not None:
                self._observer.unschedule(watch)
            log.debug("Unscheduled %s", directory)

    def subscribe(self, path: str, callback: ChangeCallback) -> Subscription:
        key = _normalize(path)
        subscription = Subscription(path=key, callback=callback)

        # Events for a symlink's target arrive under the target's path
        points = [key]
        real = os.path.realpath(key)
        if real != key:
            points.append(real)
        watched = [(p, p if os.path.isdir(p) else os.path.dirname(p)) for p in points]

        with self._lock:
            self._ensure_observer()
            for point, directory in watched:
                self._hold(directory)
                self._by_path.setdefault(point, []).append(subscription)
            self._points[subscription] = watched

        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        with self._lock:
            watched = self._points.pop(subscription, None)
            if watched is None:
                return
            for point, directory in watched:
                subs = self._by_path[point]
                subs.remove(subscription)
                if not subs:
                    del self._by_path[point]
                self._release(directory)

    def route(self, raw_path: str | bytes) -> None:
        """Notify subscriptions for a changed path and for its directory."""
        path = _normalize(raw_path)
        with self._lock:
            candidates = [*self._by_path.get(path, ()), *self._by_path.get(os.path.dirname(path), ())]

        targets: list[Subscription] = []
        for subscription in candidates:
            if subscription not in targets:
                targets.append(subscription)

        for subscription in targets:
            try:
                subscription.notify()
            except Exception as e:
                log.error("Error in change callback for %s: %s", subscription.path, e)

    def shutdown(self) -> None:
        with self._lock:
            for subscription in self._points:
                subscription.active = False
            self._by_path.clear()
            self._watches.clear()
            self._dir_refs.clear()
            self._points.clear()
            observer, started = self._observer, self._started
            self._started = False
            self._observer = None

        if observer is not None and started:
            observer.stop()
            observer.join(timeout=5)
            log.debug("Observer stopped")
