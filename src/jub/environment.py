"""Variable environment used for ``$name`` expansion in path patterns."""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator, Mapping, MutableMapping

HOME = "HOME"


class Environment(MutableMapping[str, str]):
    """Mutable name -> path mapping with a built-in ``HOME`` entry.

    Callers set entries before resolving patterns that reference them:

        env = Environment()
        env["main"] = "lib/main.txt"
        expand("$main", env)  # -> "lib/main.txt"

    Access is serialized with a lock so a watcher backend thread and the
    event loop can both read it.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._lock = threading.Lock()
        self._vars: dict[str, str] = {HOME: os.path.expanduser("~")}
        if initial:
            self.update(initial)

    @property
    def home(self) -> str:
        with self._lock:
            return self._vars.get(HOME) or os.path.expanduser("~")

    def __getitem__(self, name: str) -> str:
        with self._lock:
            return self._vars[name]

    def __setitem__(self, name: str, value: str | os.PathLike[str]) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"Invalid variable name: {name!r}")
        with self._lock:
            self._vars[name] = os.fspath(value)

    def __delitem__(self, name: str) -> None:
        with self._lock:
            del self._vars[name]

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._vars))

    def __len__(self) -> int:
        with self._lock:
            return len(self._vars)

    def __repr__(self) -> str:
        with self._lock:
            return f"Environment({self._vars!r})"
