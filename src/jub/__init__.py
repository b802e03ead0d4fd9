"""jub: shell-scripting helpers with change-triggered task scheduling."""

from __future__ import annotations

from typing import Any

__version__ = "0.1.0"

# Public API
from jub.context import (
    Context,
    get_context,
    modified,
    reset,
    reset_context,
    run,
    set_context,
    task,
    watch,
)
from jub.environment import Environment
from jub.errors import (
    JubError,
    PathNotFoundError,
    PatternTypeError,
    UnknownTaskError,
    UnknownVariableError,
    WatcherClosedError,
)
from jub.paths import expand as expand_token
from jub.paths import resolve_list
from jub.shell import (
    append,
    chdir,
    concat,
    concat_bytes,
    copy,
    exists,
    glob,
    listdir,
    ls,
    mkdir,
    move,
    not_exists,
    popd,
    prepend,
    pushd,
    read_file,
    remove,
    remove_recursive,
    replace,
    temp_file,
    write_file,
)
from jub.tasks import TaskRegistry
from jub.tracker import ModificationTracker
from jub.watching import NativeBackend, PollingBackend, Watcher, WatcherState


def expand(token: Any) -> str:
    """Expand ``~`` and ``$name`` in a token using the default context."""
    return get_context().expand(token)


def __getattr__(name: str) -> Any:
    # jub.env follows the default context, which reset_context() replaces
    if name == "env":
        return get_context().env
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Context
    "Context",
    "get_context",
    "set_context",
    "reset_context",
    "expand",
    "modified",
    "task",
    "run",
    "reset",
    "watch",
    # Building blocks
    "Environment",
    "ModificationTracker",
    "TaskRegistry",
    "Watcher",
    "WatcherState",
    "NativeBackend",
    "PollingBackend",
    "expand_token",
    "resolve_list",
    # Errors
    "JubError",
    "PathNotFoundError",
    "PatternTypeError",
    "UnknownTaskError",
    "UnknownVariableError",
    "WatcherClosedError",
    # Shell helpers
    "append",
    "chdir",
    "concat",
    "concat_bytes",
    "copy",
    "exists",
    "glob",
    "listdir",
    "ls",
    "mkdir",
    "move",
    "not_exists",
    "popd",
    "prepend",
    "pushd",
    "read_file",
    "remove",
    "remove_recursive",
    "replace",
    "temp_file",
    "write_file",
]
