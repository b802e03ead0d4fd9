"""Tests for infrastructure components (logging, console, entry point).

Tests coverage for:
- src/jub/logging.py
- src/jub/console.py
- src/jub/cli.py
- src/jub/__main__.py
"""

from __future__ import annotations

import logging
import sys
import textwrap
from pathlib import Path
from unittest.mock import patch

import pytest

from jub import console
from jub.cli import EXIT_FAILURE, EXIT_NO_JUBFILE, EXIT_OK, create_parser, run_cli
from jub.config import LoggingConfig
from jub.logging import TRACE, VERBOSE, get_logger, level_for, reset_logging, setup_logging


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_logging():
    """Let each test call setup_logging from scratch."""
    reset_logging()
    yield
    reset_logging()


@pytest.fixture
def jubfile(tree: Path):
    """Write a jubfile into the test tree."""

    def write(source: str, name: str = "jubfile.py") -> Path:
        path = tree / name
        path.write_text(textwrap.dedent(source))
        return path

    return write


# =============================================================================
# Logging Tests
# =============================================================================


class TestLogging:
    """Tests for logging configuration."""

    def test_get_logger_children(self):
        assert get_logger().name == "jub"
        assert get_logger("watching").name == "jub.watching"

    def test_level_for(self):
        assert level_for(None) == logging.INFO
        assert level_for(LoggingConfig(level="debug")) == logging.DEBUG
        assert level_for(LoggingConfig(level="nonsense")) == logging.INFO
        assert level_for(LoggingConfig(level="ERROR", verbose=3)) == VERBOSE
        assert level_for(LoggingConfig(verbose=9)) == TRACE

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "jub.log"
        setup_logging(LoggingConfig(level="DEBUG", file=str(log_file)))

        get_logger("tests").debug("hello from the test")
        for handler in get_logger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "debug: jub.tests: hello from the test" in content

    def test_log_file_from_environment(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("JUB_LOG", str(log_file))
        setup_logging(LoggingConfig(level="INFO"))

        get_logger().info("from env")
        for handler in get_logger().handlers:
            handler.flush()

        assert "from env" in log_file.read_text()

    def test_setup_is_idempotent(self, tmp_path):
        config = LoggingConfig(file=str(tmp_path / "jub.log"))
        setup_logging(config)
        setup_logging(config)
        assert len(get_logger().handlers) == 1

    def test_no_stderr_handler_when_not_a_tty(self):
        with patch.object(sys.stderr, "isatty", return_value=False):
            setup_logging(LoggingConfig())
        assert get_logger().handlers == []

    def test_reset_removes_handlers(self, tmp_path):
        setup_logging(LoggingConfig(file=str(tmp_path / "jub.log")))
        reset_logging()
        assert get_logger().handlers == []


# =============================================================================
# Console Tests
# =============================================================================


class TestConsole:
    """Tests for tagged console output."""

    def test_log_and_info_go_to_stdout(self, context, capsys):
        console.log("built", 3)
        console.info("ready")

        out, err = capsys.readouterr()
        assert "[Log] built 3" in out
        assert "[Info] ready" in out
        assert err == ""

    def test_warn_and_error_go_to_stderr(self, context, capsys):
        console.warn("careful")
        console.error("broken")

        out, err = capsys.readouterr()
        assert out == ""
        assert "[Warning] careful" in err
        assert "[Error] broken" in err

    def test_arguments_are_expanded(self, context, capsys):
        console.log("wrote $main")
        assert "[Log] wrote lib/main.txt" in capsys.readouterr().out

    def test_unknown_variables_printed_as_is(self, context, capsys):
        console.log("costs $nothing")
        assert "costs $nothing" in capsys.readouterr().out

    def test_brackets_not_treated_as_markup(self, context, capsys):
        console.log("[bold]literal[/bold]")
        assert "[bold]literal[/bold]" in capsys.readouterr().out

    def test_task_info(self, context, capsys):
        console.task_info("build", "done")
        assert "[Task build] done" in capsys.readouterr().out

    def test_trace_tags_caller(self, context, capsys):
        console.trace("here")
        assert "[test_infrastructure.py:" in capsys.readouterr().out


# =============================================================================
# CLI Tests
# =============================================================================


class TestCLI:
    """Tests for the jub command line."""

    def test_parser_defaults(self):
        parsed = create_parser().parse_args([])
        assert parsed.file == Path("jubfile.py")
        assert parsed.tasks == []
        assert parsed.verbose is None
        assert not parsed.list

    def test_runs_default_task(self, jubfile, tree, capsys):
        jubfile("""
            import jub

            jub.task("default", lambda: jub.write_file("out.txt", "built"))
        """)

        assert run_cli([]) == EXIT_OK
        assert (tree / "out.txt").read_text() == "built"
        assert "[Task default] done" in capsys.readouterr().out

    def test_runs_named_tasks_in_order(self, jubfile, tree):
        jubfile("""
            import jub

            jub.task("one", lambda: jub.append("order.txt", "1"))
            jub.task("two", lambda: jub.append("order.txt", "2"))
        """)

        assert run_cli(["two", "one"]) == EXIT_OK
        assert (tree / "order.txt").read_text() == "21"

    def test_async_task(self, jubfile, tree):
        jubfile("""
            import asyncio
            import jub

            @jub.task("default")
            async def build():
                await asyncio.sleep(0)
                jub.write_file("out.txt", "async")
        """)

        assert run_cli([]) == EXIT_OK
        assert (tree / "out.txt").read_text() == "async"

    def test_missing_jubfile(self, tree, capsys):
        assert run_cli([]) == EXIT_NO_JUBFILE
        assert "No task file" in capsys.readouterr().err

    def test_failing_task(self, jubfile, capsys):
        jubfile("""
            import jub

            def fail():
                raise RuntimeError("compile error")

            jub.task("default", fail)
        """)

        assert run_cli([]) == EXIT_FAILURE
        assert "RuntimeError: compile error" in capsys.readouterr().err

    def test_unknown_task(self, jubfile, capsys):
        jubfile("import jub\n")

        assert run_cli(["nope"]) == EXIT_FAILURE
        assert "jub.run:" in capsys.readouterr().err

    def test_list_tasks(self, jubfile, capsys):
        jubfile("""
            import jub

            jub.task("build", lambda: None)
            jub.task("test", lambda: None)
        """)

        assert run_cli(["-l"]) == EXIT_OK
        assert capsys.readouterr().out.split() == ["build", "test"]

    def test_other_file_and_directory(self, tree, capsys):
        (tree / "tools").mkdir()
        (tree / "tools" / "build.py").write_text(
            "import jub\njub.task('default', lambda: jub.write_file('made.txt', 'x'))\n"
        )

        assert run_cli(["-C", "tools", "-f", "build.py"]) == EXIT_OK
        assert (tree / "tools" / "made.txt").exists()

    def test_invalid_config(self, jubfile, tree, capsys):
        jubfile("import jub\n")
        (tree / "jub.yaml").write_text("watch:\n  backend: carrier-pigeon\n")

        assert run_cli([]) == EXIT_FAILURE
        assert "Invalid configuration" in capsys.readouterr().err

    def test_env_from_project_config(self, jubfile, tree):
        (tree / "jub.yaml").write_text("env:\n  target: built.txt\n")
        jubfile("""
            import jub

            jub.task("default", lambda: jub.write_file("$target", jub.env["target"]))
        """)

        assert run_cli([]) == EXIT_OK
        assert (tree / "built.txt").read_text() == "built.txt"

    def test_watcher_runs_until_closed(self, jubfile, tree, monkeypatch):
        monkeypatch.setenv("JUB_WATCH_BACKEND", "polling")
        monkeypatch.setenv("JUB_POLL_INTERVAL", "0.02")
        monkeypatch.setenv("JUB_QUIET_WINDOW", "0.02")
        jubfile("""
            import os
            import jub

            def touch():
                stat = os.stat("lib/main.txt")
                ns = stat.st_mtime_ns + 10_000_000_000
                os.utime("lib/main.txt", ns=(ns, ns))

            jub.task("touch", touch)
            jub.task("build", lambda: jub.append("builds.txt", "x"))

            def done():
                jub.write_file("changed.txt", " ".join(watcher.get_modified_files()))
                jub.get_context().close()

            watcher = jub.watch("$main", ["build"], done)
            jub.task("default", lambda: jub.run("touch"))
        """)
        (tree / "jub.yaml").write_text("env:\n  main: lib/main.txt\n")

        assert run_cli([]) == EXIT_OK
        assert (tree / "builds.txt").read_text() == "x"
        assert (tree / "changed.txt").read_text() == "lib/main.txt"

    def test_main_entry_point(self, tree):
        from jub.__main__ import main

        with patch.object(sys, "argv", ["jub"]):
            assert main() == EXIT_NO_JUBFILE
