"""Command-line interface for jub.

Loads a task file (``jubfile.py`` by default), runs the requested tasks in
order and keeps running while the file has watchers open:

    jub build test        # run two tasks
    jub -f tools/jub.py   # run "default" from another file
    jub -l                # list tasks
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import os
import runpy
import signal
from collections.abc import Sequence
from pathlib import Path

from jub import __version__, console
from jub.config import load_config
from jub.context import Context, set_context
from jub.errors import JubError
from jub.logging import get_logger, setup_logging

log = get_logger("cli")

DEFAULT_JUBFILE = "jubfile.py"
DEFAULT_TASK = "default"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_NO_JUBFILE = 2


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="jub",
        description="Run build tasks and re-run them when files change",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-f", "--file",
        type=Path,
        default=Path(DEFAULT_JUBFILE),
        help=f"Task file to load (default: ./{DEFAULT_JUBFILE})",
    )
    parser.add_argument(
        "-C", "--directory",
        type=Path,
        help="Change to this directory before doing anything",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Project config directory (default: the working directory)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=None,
        help="Increase log verbosity (can be repeated)",
    )
    parser.add_argument(
        "-l", "--list",
        action="store_true",
        help="List registered tasks and exit",
    )
    parser.add_argument(
        "tasks",
        nargs="*",
        help=f"Tasks to run in order (default: {DEFAULT_TASK!r} if defined)",
    )
    return parser


async def run_jubfile(context: Context, jubfile: Path, tasks: Sequence[str], list_only: bool) -> int:
    """Load the task file, run tasks and wait for its watchers."""
    runpy.run_path(str(jubfile), run_name="__jubfile__")

    if list_only:
        for name in context.tasks.names():
            print(name)
        context.close()
        return EXIT_OK

    if not tasks and DEFAULT_TASK in context.tasks:
        tasks = [DEFAULT_TASK]

    for name in tasks:
        console.task_info(name, "start")
        await context.run_tasks([name])
        console.task_info(name, "done")

    if context.watchers:
        loop = asyncio.get_running_loop()
        # Not available on Windows, where KeyboardInterrupt ends asyncio.run
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signal.SIGINT, context.close)
        console.info(f"Watching with {len(context.watchers)} watcher(s), Ctrl-C to stop")
        await context.wait_closed()

    return EXIT_OK


def run_cli(args: Sequence[str]) -> int:
    """Run the CLI with the given arguments."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.directory is not None:
        os.chdir(parsed.directory)

    try:
        config = load_config(root=parsed.config or os.getcwd())
    except ValueError as e:
        console.error(f"Invalid configuration: {e}")
        return EXIT_FAILURE
    if parsed.verbose is not None:
        config.logging.verbose = min(parsed.verbose + 1, 4)
    setup_logging(config.logging)

    jubfile: Path = parsed.file
    if not jubfile.is_file():
        console.error(f"No task file found at {jubfile}")
        return EXIT_NO_JUBFILE

    context = Context(config)
    previous = set_context(context)
    try:
        return asyncio.run(run_jubfile(context, jubfile, parsed.tasks, parsed.list))
    except JubError as e:
        console.error(str(e))
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_OK
    except Exception as e:
        log.debug("Task failure", exc_info=True)
        console.error(f"{type(e).__name__}: {e}")
        return EXIT_FAILURE
    finally:
        context.close()
        set_context(previous)
