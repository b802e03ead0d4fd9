"""Root pytest configuration for all tests."""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from jub.config import Config, reset_config
from jub.context import Context, set_context
from jub.watching import Subscription


class ManualBackend:
    """Change backend driven by the test instead of the filesystem."""

    def __init__(self) -> None:
        self.subscriptions: list[Subscription] = []
        self.shut_down = False

    def subscribe(self, path: str, callback) -> Subscription:
        subscription = Subscription(path=path, callback=callback)
        self.subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        if subscription in self.subscriptions:
            self.subscriptions.remove(subscription)

    def shutdown(self) -> None:
        self.shut_down = True
        for subscription in self.subscriptions:
            subscription.active = False
        self.subscriptions.clear()

    def emit(self, path: str | os.PathLike[str]) -> None:
        """Report a change to path, as an OS event would."""
        key = os.path.abspath(path)
        for subscription in list(self.subscriptions):
            if subscription.path == key:
                subscription.notify()


@pytest.fixture
def manual_backend() -> ManualBackend:
    return ManualBackend()


@pytest.fixture
def tree(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create the test tree and make it the working directory.

    data (current directory)
    ├── TESTDATA.txt
    ├── bin
    │   └── app
    └── lib
        ├── linkmain  -> main.txt
        ├── main.txt
        └── util.txt
    """
    root = tmp_path / "data"
    root.mkdir()
    (root / "TESTDATA.txt").write_text("testdata")
    (root / "bin").mkdir()
    (root / "bin" / "app").write_text("app")
    (root / "lib").mkdir()
    (root / "lib" / "main.txt").write_text("main")
    (root / "lib" / "util.txt").write_text("util")
    (root / "lib" / "linkmain").symlink_to("main.txt")
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def context(tree: Path, manual_backend: ManualBackend) -> Iterator[Context]:
    """A fresh default context with $main/$util defined over the test tree."""
    ctx = Context(Config(), backend=manual_backend)
    ctx.env["main"] = "lib/main.txt"
    ctx.env["util"] = "lib/util.txt"
    previous = set_context(ctx)
    yield ctx
    ctx.close()
    set_context(previous)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep user config and JUB_* variables out of tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ("JUB_LOG", "JUB_WATCH_BACKEND", "JUB_QUIET_WINDOW", "JUB_POLL_INTERVAL"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()
