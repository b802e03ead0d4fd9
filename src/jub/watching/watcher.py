"""Change-triggered task dispatch.

A Watcher owns a fixed list of files, subscribes each one to a change
backend, and turns bursts of change events into dispatches: once no event
has arrived for the quiet window, the configured tasks run in order,
followed by the completion callback.

State machine:

    OPEN --change--> PENDING_BATCH --quiet window--> DISPATCHING --> OPEN
                          ^   |                           |
                          +---+ change (restarts window)  +--> PENDING_BATCH
                                                              (changes seen
                                                               while running)
    any state --close()--> CLOSED

All state lives on the event loop thread. Backends may report changes from
other threads; they are handed to the loop with call_soon_threadsafe.
"""

from __future__ import annotations

import asyncio
import inspect
import os
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Any

from jub.errors import WatcherClosedError
from jub.logging import get_logger
from jub.tasks import TaskRegistry
from jub.watching.protocol import ChangeBackend, Subscription

log = get_logger("watching")

# Default quiet window in seconds
DEFAULT_QUIET_WINDOW = 0.1

CompletionCallback = Callable[[], Any]
ErrorCallback = Callable[[BaseException], Any]


class WatcherState(Enum):
    """Lifecycle state of a Watcher."""

    OPEN = "open"
    PENDING_BATCH = "pending_batch"
    DISPATCHING = "dispatching"
    CLOSED = "closed"


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class Watcher:
    """Runs an ordered task chain once per coalesced burst of file changes.

    Example:
        registry = TaskRegistry()
        registry.register("build", build)
        registry.register("test", test)

        watcher = Watcher(
            ["lib/main.txt", "lib/util.txt"],
            ["build", "test"],
            lambda: print(watcher.get_modified_files()),
            registry=registry,
            backend=PollingBackend(),
        )
        ...
        watcher.close()

    Guarantees:
    - one dispatch per burst, not one per changed file
    - tasks run strictly in the configured order, each to completion
    - the completion callback runs exactly once per successful dispatch
    - no dispatch starts after close()
    """

    def __init__(
        self,
        files: Sequence[str],
        tasks: Sequence[str],
        callback: CompletionCallback | None = None,
        *,
        registry: TaskRegistry,
        backend: ChangeBackend,
        quiet_window: float = DEFAULT_QUIET_WINDOW,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """Initialize the watcher and subscribe every file.

        Must be called while an asyncio event loop is running in the
        current thread.

        Args:
            files: Concrete paths to watch (already resolved).
            tasks: Task names to run, in order, on each dispatch.
            callback: Called once after the last task of each dispatch.
            registry: Registry the task names are looked up in.
            backend: Change-notification backend.
            quiet_window: Seconds without events before a batch dispatches.
            on_error: Called with the exception when a timer-driven dispatch
                fails.

        Raises:
            TypeError: If tasks is not a sequence of strings.
            ValueError: If quiet_window is negative.
            RuntimeError: If no event loop is running.
        """
        if isinstance(tasks, str) or not all(isinstance(t, str) for t in tasks):
            raise TypeError("tasks must be a sequence of task names")
        if quiet_window < 0:
            raise ValueError(f"quiet_window must not be negative, got {quiet_window}")

        self._loop = asyncio.get_running_loop()
        self._files: tuple[str, ...] = tuple(files)
        self._tasks: tuple[str, ...] = tuple(tasks)
        self._callback = callback
        self._on_error = on_error
        self._registry = registry
        self._backend = backend
        self._quiet_window = quiet_window

        self._state = WatcherState.OPEN
        self._modified: list[str] = []
        self._window: set[str] = set()
        self._timer: asyncio.TimerHandle | None = None
        self._dispatch_task: asyncio.Task[None] | None = None
        self._dispatch_count = 0
        self._closed = asyncio.Event()
        self.last_error: BaseException | None = None

        self._subscriptions: list[Subscription] = []
        try:
            for path in self._files:
                self._subscriptions.append(
                    backend.subscribe(os.path.abspath(path), self._listener(path))
                )
        except BaseException:
            self._release()
            raise

        log.debug("Watching %d file(s) for tasks %s", len(self._files), list(self._tasks))

    # -- accessors ---------------------------------------------------------

    @property
    def files(self) -> tuple[str, ...]:
        """The resolved file list, fixed at construction."""
        return self._files

    @property
    def tasks(self) -> tuple[str, ...]:
        return self._tasks

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is WatcherState.CLOSED

    @property
    def quiet_window(self) -> float:
        return self._quiet_window

    @property
    def dispatch_count(self) -> int:
        """Number of dispatches that ran every task to completion."""
        return self._dispatch_count

    def get_modified_files(self) -> list[str]:
        """Return the files changed since the last call and clear the log.

        Paths are reported as they appear in ``files``, in the order they
        were first seen changing within each quiet window.
        """
        modified, self._modified = self._modified, []
        return modified

    # -- event handling ----------------------------------------------------

    def _listener(self, path: str) -> Callable[[str], None]:
        def on_change(_changed: str) -> None:
            if self._state is WatcherState.CLOSED:
                return
            try:
                self._loop.call_soon_threadsafe(self._on_change, path)
            except RuntimeError:
                # Event loop already closed
                log.debug("Dropped change for %s: event loop closed", path)

        return on_change

    def _on_change(self, path: str) -> None:
        if self._state is WatcherState.CLOSED:
            return

        if path not in self._window:
            self._window.add(path)
            self._modified.append(path)
            log.debug("Changed: %s", path)

        if self._state is WatcherState.DISPATCHING:
            # Picked up once the running dispatch finishes
            return

        self._state = WatcherState.PENDING_BATCH
        self._arm_timer()

    def _arm_timer(self) -> None:
        self._cancel_timer()
        self._timer = self._loop.call_later(self._quiet_window, self._on_quiet)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_quiet(self) -> None:
        self._timer = None
        if self._state is not WatcherState.PENDING_BATCH:
            return
        self._state = WatcherState.DISPATCHING
        self._dispatch_task = self._loop.create_task(self._dispatch_batch())

    # -- dispatch ----------------------------------------------------------

    async def dispatch(self) -> None:
        """Run the task chain now, without waiting for the quiet window.

        Raises:
            WatcherClosedError: If the watcher is closed.
            RuntimeError: If a dispatch is already running.
            Exception: Whatever a task or the callback raised. Remaining
                tasks are skipped; the watcher stays usable.
        """
        if self._state is WatcherState.CLOSED:
            raise WatcherClosedError("dispatch")
        if self._state is WatcherState.DISPATCHING:
            raise RuntimeError("A dispatch is already running")

        self._cancel_timer()
        self._state = WatcherState.DISPATCHING
        try:
            await self._run_chain()
        finally:
            self._finish_dispatch()

    async def _dispatch_batch(self) -> None:
        try:
            await self._run_chain()
        except Exception as e:
            self.last_error = e
            log.error("Dispatch of %s failed: %s", list(self._tasks), e)
            if self._on_error is not None:
                try:
                    await _maybe_await(self._on_error(e))
                except Exception as callback_error:
                    log.error("Error in dispatch error callback: %s", callback_error)
        finally:
            self._finish_dispatch()

    async def _run_chain(self) -> None:
        # Changes from here on belong to the next batch
        self._window = set()

        for name in self._tasks:
            log.debug("Dispatching task %s", name)
            await _maybe_await(self._registry.run(name))

        self._dispatch_count += 1
        if self._callback is not None:
            await _maybe_await(self._callback())

    def _finish_dispatch(self) -> None:
        self._dispatch_task = None
        if self._state is WatcherState.CLOSED:
            return
        if self._window:
            self._state = WatcherState.PENDING_BATCH
            self._arm_timer()
        else:
            self._state = WatcherState.OPEN

    # -- lifecycle ---------------------------------------------------------

    def _release(self) -> None:
        for subscription in self._subscriptions:
            try:
                self._backend.unsubscribe(subscription)
            except Exception as e:
                log.warning("Error unsubscribing %s: %s", subscription.path, e)
        self._subscriptions.clear()

    def close(self) -> None:
        """Stop watching. Idempotent.

        A pending quiet window is dropped without dispatching. A dispatch
        already running is allowed to finish, but no new one will start.
        """
        if self._state is WatcherState.CLOSED:
            return
        self._state = WatcherState.CLOSED
        self._cancel_timer()
        self._release()
        self._closed.set()
        log.debug("Watcher closed (%d dispatches)", self._dispatch_count)

    async def wait_closed(self) -> None:
        """Wait until close() was called and any running dispatch ended."""
        await self._closed.wait()
        task = self._dispatch_task
        if task is not None and task is not asyncio.current_task():
            await asyncio.wait([task])

    async def __aenter__(self) -> Watcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"<Watcher files={len(self._files)} tasks={list(self._tasks)} "
            f"state={self._state.value}>"
        )
