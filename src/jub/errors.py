"""Error types for jub.

Every error raised by the resolver, the task registry or the shell helpers
carries the name of the operation that failed (``expand``, ``listdir``,
``move``, ``concat``...). Callers branch on ``error.operation``; the rendered
message is ``jub.<operation>: <detail>``.
"""

from __future__ import annotations


class JubError(Exception):
    """Base class for all tagged jub errors."""

    def __init__(self, operation: str, message: str) -> None:
        self.operation = operation
        self.detail = message
        super().__init__(f"jub.{operation}: {message}")


class UnknownVariableError(JubError):
    """A ``$name`` reference has no entry in the environment."""

    def __init__(self, operation: str, name: str) -> None:
        self.name = name
        super().__init__(operation, f"unknown variable ${name}")


class PathNotFoundError(JubError, FileNotFoundError):
    """A literal (non-wildcard) path does not exist."""

    def __init__(self, operation: str, path: str) -> None:
        self.path = path
        super().__init__(operation, f"no such file or directory: {path}")


class PatternTypeError(JubError, TypeError):
    """A path pattern argument has the wrong shape."""

    def __init__(self, value: object, operation: str = "expand") -> None:
        self.value = value
        super().__init__(
            operation,
            f"expected a path string or a list of path strings, got {type(value).__name__}",
        )


class UnknownTaskError(JubError, LookupError):
    """No task is registered under the requested name."""

    def __init__(self, name: str, operation: str = "run") -> None:
        self.name = name
        super().__init__(operation, f"unknown task {name!r}")


class WatcherClosedError(JubError):
    """An operation was attempted on a closed watcher."""

    def __init__(self, operation: str = "watch") -> None:
        super().__init__(operation, "watcher is closed")
