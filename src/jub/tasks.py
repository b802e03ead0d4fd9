"""Named task registry."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

from jub.errors import UnknownTaskError
from jub.logging import get_logger

log = get_logger("tasks")

TaskAction = Callable[[], Any]


class TaskRegistry:
    """Name-keyed store of zero-argument actions.

    Registering an existing name replaces its action. ``reset()`` removes
    every registration so independent sessions do not leak tasks into each
    other.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[str, TaskAction] = {}

    def register(
        self, name: str, action: TaskAction | None = None
    ) -> TaskAction | Callable[[TaskAction], TaskAction]:
        """Register an action under a name.

        Usable directly or as a decorator:

            registry.register("build", build)

            @registry.register("test")
            def test():
                ...

        Raises:
            TypeError: If name is not a string or action is not callable.
            ValueError: If name is empty.
        """
        if not isinstance(name, str):
            raise TypeError(f"Task name must be a string, got {type(name).__name__}")
        if not name:
            raise ValueError("Task name must not be empty")

        if action is None:

            def decorator(func: TaskAction) -> TaskAction:
                self.register(name, func)
                return func

            return decorator

        if not callable(action):
            raise TypeError(f"Task {name!r} action is not callable")

        with self._lock:
            replaced = name in self._tasks
            self._tasks[name] = action
        log.debug("%s task %s", "Replaced" if replaced else "Registered", name)
        return action

    def get(self, name: str) -> TaskAction:
        """Look up an action.

        Raises:
            UnknownTaskError: If no task is registered under name.
        """
        with self._lock:
            action = self._tasks.get(name)
        if action is None:
            raise UnknownTaskError(name)
        return action

    def run(self, name: str) -> Any:
        """Invoke a registered action and return its result.

        An async action returns its coroutine; awaiting it is up to the
        caller.

        Raises:
            UnknownTaskError: If no task is registered under name.
        """
        action = self.get(name)
        log.debug("Running task %s", name)
        return action()

    def unregister(self, name: str) -> bool:
        """Remove a task. Returns True if it was registered."""
        with self._lock:
            return self._tasks.pop(name, None) is not None

    def reset(self) -> None:
        """Remove all registrations."""
        with self._lock:
            count = len(self._tasks)
            self._tasks.clear()
        log.debug("Task registry reset (%d removed)", count)

    def names(self) -> list[str]:
        """Registered task names in registration order."""
        with self._lock:
            return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._tasks

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)
