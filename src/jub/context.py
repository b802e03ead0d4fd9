"""Scheduling context.

A Context owns the state that path resolution and change-triggered
scheduling share: the variable environment, the modification baseline, the
task registry and the watchers created through it. Independent contexts do
not see each other's tasks or baselines, which keeps test runs isolated.

Module-level helpers (task, watch, modified...) use a lazily created
default context, mirroring the cached/reset pair used for configuration:

    import jub

    jub.env["main"] = "lib/main.txt"
    jub.task("build", build)
    watcher = jub.watch("lib/*.txt", ["build"], on_built)
"""

from __future__ import annotations

import asyncio
import inspect
import os
from collections.abc import Callable, Sequence
from typing import Any

from jub.config import Config, load_config
from jub.environment import Environment
from jub.logging import get_logger
from jub.paths import expand, resolve_list
from jub.tasks import TaskAction, TaskRegistry
from jub.tracker import ModificationTracker
from jub.watching import ChangeBackend, Watcher, backend_from_config
from jub.watching.watcher import CompletionCallback, ErrorCallback

log = get_logger("context")


class Context:
    """Environment, modification baseline, task registry and watchers."""

    def __init__(
        self,
        config: Config | None = None,
        *,
        backend: ChangeBackend | None = None,
    ) -> None:
        """Initialize a context.

        Args:
            config: Configuration; defaults to built-in defaults.
            backend: Change backend shared by this context's watchers.
                Created from config.watch on first use when omitted.
        """
        self.config = config or Config()
        self.env = Environment()
        for name, value in self.config.env.items():
            self.env[name] = expand(value, self.env, strict=False)

        self.tracker = ModificationTracker()
        self.tasks = TaskRegistry()
        self.dir_stack: list[str] = []

        self._backend = backend
        self._owns_backend = False
        self._watchers: list[Watcher] = []

    # -- resolution --------------------------------------------------------

    def expand(self, token: Any, operation: str = "expand") -> str:
        """Expand ``~`` and ``$name`` references in a single token."""
        return expand(token, self.env, operation)

    def resolve(self, patterns: Any, operation: str = "expand") -> list[str]:
        """Resolve a pattern or list of patterns into concrete paths."""
        return resolve_list(patterns, self.env, operation)

    def modified(self, token: Any) -> bool:
        """Return True if the path changed since it was last checked."""
        return self.tracker.check(self.expand(token, "modified"))

    # -- tasks -------------------------------------------------------------

    def task(self, name: str, action: TaskAction | None = None) -> Any:
        """Register a task. Without an action, returns a decorator."""
        return self.tasks.register(name, action)

    def run(self, name: str) -> Any:
        """Run a registered task and return its result."""
        return self.tasks.run(name)

    async def run_tasks(self, names: Sequence[str]) -> None:
        """Run tasks in order, awaiting async ones before the next starts."""
        for name in names:
            result = self.tasks.run(name)
            if inspect.isawaitable(result):
                await result

    def reset(self) -> None:
        """Remove every registered task."""
        self.tasks.reset()

    # -- watching ----------------------------------------------------------

    @property
    def backend(self) -> ChangeBackend:
        """Change backend for watchers, created from config on first use."""
        if self._backend is None:
            self._backend = backend_from_config(self.config.watch)
            self._owns_backend = True
            log.debug("Created %s backend", self.config.watch.backend)
        return self._backend

    @property
    def watchers(self) -> list[Watcher]:
        """Watchers created through this context that are still open."""
        self._watchers = [w for w in self._watchers if not w.closed]
        return list(self._watchers)

    def watch(
        self,
        patterns: Any,
        tasks: Sequence[str] | str,
        callback: CompletionCallback | None = None,
        *,
        backend: ChangeBackend | None = None,
        quiet_window: float | None = None,
        on_error: ErrorCallback | None = None,
    ) -> Watcher:
        """Watch the files a pattern resolves to and run tasks on change.

        The pattern is resolved once, here; files created later are not
        picked up. Must be called while an event loop is running.

        Args:
            patterns: Path pattern or list of patterns.
            tasks: Task names to run in order on each dispatch.
            callback: Called once after each dispatch.
            backend: Override the context's change backend.
            quiet_window: Override the configured quiet window (seconds).
            on_error: Called with the error when a dispatch fails.

        Returns:
            The new Watcher.
        """
        files = self.resolve(patterns, "watch")
        if isinstance(tasks, str):
            tasks = [tasks]

        watcher = Watcher(
            files,
            tasks,
            callback,
            registry=self.tasks,
            backend=backend or self.backend,
            quiet_window=self.config.watch.quiet_window if quiet_window is None else quiet_window,
            on_error=on_error,
        )
        self._watchers.append(watcher)
        return watcher

    async def wait_closed(self) -> None:
        """Wait until every watcher created here has been closed."""
        await asyncio.gather(*(w.wait_closed() for w in list(self._watchers)))

    def close(self) -> None:
        """Close all watchers and shut down a backend this context created."""
        for watcher in self._watchers:
            watcher.close()
        self._watchers.clear()
        if self._owns_backend and self._backend is not None:
            self._backend.shutdown()
            self._backend = None
            self._owns_backend = False


# Global default context
_default_context: Context | None = None


def get_context() -> Context:
    """Get the default context, creating it from config if needed.

    Project configuration is read from ``jub.yaml`` in the current directory.
    """
    global _default_context
    if _default_context is None:
        _default_context = Context(load_config(root=os.getcwd()))
    return _default_context


def set_context(context: Context | None) -> Context | None:
    """Replace the default context. Returns the previous one (not closed)."""
    global _default_context
    previous, _default_context = _default_context, context
    return previous


def reset_context() -> None:
    """Close and drop the default context."""
    global _default_context
    if _default_context is not None:
        _default_context.close()
        _default_context = None


# Default-context shortcuts


def modified(token: Any) -> bool:
    """Return True if the path changed since it was last checked."""
    return get_context().modified(token)


def task(name: str, action: TaskAction | None = None) -> Any:
    """Register a task in the default context (or return a decorator)."""
    return get_context().task(name, action)


def run(name: str) -> Any:
    return get_context().run(name)


def reset() -> None:
    """Remove every task registered in the default context."""
    get_context().reset()


def watch(
    patterns: Any,
    tasks: Sequence[str] | str,
    callback: Callable[[], Any] | None = None,
    **kwargs: Any,
) -> Watcher:
    """Create a watcher in the default context. See Context.watch."""
    return get_context().watch(patterns, tasks, callback, **kwargs)
