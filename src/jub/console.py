"""Tagged console output for build scripts.

    log("built", "$dist")       # [Log] built /home/me/dist
    warn("no tests found")      # [Warning] no tests found   (stderr)
    task_info("test", "passed") # [Task test] passed

Tags are colored when the stream is a terminal. String arguments have
``$name`` references expanded against the default context; unknown names
are printed as-is.
"""

from __future__ import annotations

import inspect
import os
from typing import Any

from rich.console import Console
from rich.text import Text

stdout = Console(highlight=False)
stderr = Console(stderr=True, highlight=False)


def _expand(arg: Any) -> Any:
    if not isinstance(arg, str):
        return arg
    from jub.context import get_context
    from jub.paths import expand

    return expand(arg, get_context().env, strict=False)


def _emit(console: Console, color: str, title: str, args: tuple[Any, ...]) -> None:
    tag = Text.assemble("[", (title, color), "]")
    console.print(tag, *(_expand(a) for a in args), markup=False)


def log(*args: Any) -> None:
    _emit(stdout, "green", "Log", args)


def info(*args: Any) -> None:
    _emit(stdout, "blue", "Info", args)


def warn(*args: Any) -> None:
    _emit(stderr, "yellow", "Warning", args)


def error(*args: Any) -> None:
    _emit(stderr, "red", "Error", args)


def task_info(task_name: str, message: Any) -> None:
    """Print a message tagged with a task name."""
    _emit(stdout, "blue", f"Task {task_name}", (message,))


def trace(*args: Any) -> None:
    """Print a message tagged with the caller's file name and line."""
    frame = inspect.currentframe()
    caller = frame.f_back if frame is not None else None
    if caller is None:
        title = "?"
    else:
        title = f"{os.path.basename(caller.f_code.co_filename)}:{caller.f_lineno}"
    del frame, caller
    _emit(stdout, "green", title, args)
