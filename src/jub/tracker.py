"""Modification tracking against a per-path timestamp baseline."""

from __future__ import annotations

import os
import threading

from jub.logging import get_logger

log = get_logger("tracker")


def _key(path: str | os.PathLike[str]) -> str:
    return os.path.normpath(os.path.abspath(os.fspath(path)))


class ModificationTracker:
    """Answers "has this path changed since I last asked?".

    The first check of a path always reports it as modified and records its
    modification time as the baseline. Later checks report a change only
    when the modification time differs from the baseline, updating it.
    A missing path drops its baseline and reports modified, so a
    deleted-then-recreated path is modified again on its next check.

    Example:
        tracker = ModificationTracker()
        tracker.check("lib/main.txt")  # True (no baseline)
        tracker.check("lib/main.txt")  # False (unchanged)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._baseline: dict[str, int] = {}

    def check(self, path: str | os.PathLike[str]) -> bool:
        """Return True if path was modified since the previous check."""
        key = _key(path)

        try:
            mtime = os.stat(key).st_mtime_ns
        except OSError:
            mtime = None

        with self._lock:
            if mtime is None:
                self._baseline.pop(key, None)
                log.debug("No stat for %s, reporting modified", key)
                return True

            previous = self._baseline.get(key)
            if previous == mtime:
                return False

            self._baseline[key] = mtime
            return True

    def forget(self, path: str | os.PathLike[str]) -> None:
        """Drop the baseline for a path."""
        with self._lock:
            self._baseline.pop(_key(path), None)

    def clear(self) -> None:
        """Drop all baselines."""
        with self._lock:
            self._baseline.clear()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, os.PathLike)):
            return False
        with self._lock:
            return _key(path) in self._baseline

    def __len__(self) -> int:
        with self._lock:
            return len(self._baseline)
