"""Filesystem helpers for build scripts.

Thin wrappers over os/shutil that accept path patterns (``$name``, ``~``,
wildcards) and report failures with the operation name:

    ls("lib/*")              # ['lib/main.txt', 'lib/util.txt']
    copy(["$main", "$util"], "dist")
    concat("src/*.js", sep=";\\n")

Every helper takes an optional ``context`` keyword; the default context is
used when it is omitted.
"""

from __future__ import annotations

import contextlib
import errno
import os
import re
import shutil
import tempfile as _tempfile
from collections.abc import Callable
from typing import Any

from jub.context import Context, get_context
from jub.errors import JubError, PathNotFoundError, PatternTypeError
from jub.paths import has_magic, iter_glob, normalize_patterns

Replacement = str | Callable[[re.Match[str]], str]


def _ctx(context: Context | None) -> Context:
    return context if context is not None else get_context()


def _children(directory: str) -> list[str]:
    names = sorted(os.listdir(directory))
    if os.path.normpath(directory) == os.curdir:
        return names
    return [os.path.join(directory, name) for name in names]


def _targets(ctx: Context, patterns: Any, operation: str) -> list[str]:
    """Expand patterns without requiring literal paths to exist."""
    paths: list[str] = []
    for token in normalize_patterns(patterns):
        expanded = ctx.expand(token, operation)
        paths.extend(iter_glob(expanded) if has_magic(expanded) else [expanded])
    return paths


def _destination(source: str, dst: str) -> str:
    if os.path.isdir(dst):
        return os.path.join(dst, os.path.basename(os.path.normpath(source)))
    return dst


# -- listing -----------------------------------------------------------------


def listdir(path: Any = ".", *, context: Context | None = None) -> list[str]:
    """Sorted entry names of a directory."""
    directory = _ctx(context).expand(path, "listdir")
    try:
        return sorted(os.listdir(directory))
    except FileNotFoundError:
        raise PathNotFoundError("listdir", directory) from None


def ls(patterns: Any = ".", *, context: Context | None = None) -> list[str]:
    """Resolve patterns, replacing each directory with its entries.

    Raises:
        JubError: Tagged ``listdir`` when nothing is left to list.
    """
    result: list[str] = []
    for path in _ctx(context).resolve(patterns, "listdir"):
        if os.path.isdir(path):
            result.extend(_children(path))
        else:
            result.append(path)

    if not result:
        raise JubError("listdir", f"nothing matched {patterns!r}")
    return result


def glob(patterns: Any, *, context: Context | None = None) -> list[str]:
    """Resolve patterns into matching paths (files and directories)."""
    return _ctx(context).resolve(patterns, "glob")


def exists(patterns: Any, *, context: Context | None = None) -> bool:
    """True if every literal path exists and wildcards match something."""
    try:
        return bool(_ctx(context).resolve(patterns, "exists"))
    except PathNotFoundError:
        return False


def not_exists(patterns: Any, *, context: Context | None = None) -> bool:
    return not exists(patterns, context=context)


# -- directories ---------------------------------------------------------------


def mkdir(path: Any, *, context: Context | None = None) -> str:
    """Create a directory and its parents. Existing directories are fine.

    Raises:
        FileExistsError: If a non-directory is in the way.
    """
    directory = _ctx(context).expand(path, "mkdir")
    os.makedirs(directory, exist_ok=True)
    return directory


def chdir(path: Any, *, context: Context | None = None) -> str:
    """Change the working directory. Returns the new directory."""
    os.chdir(_ctx(context).expand(path, "chdir"))
    return os.getcwd()


def pushd(path: Any, *, context: Context | None = None) -> str:
    """Save the working directory on the context stack and change to path."""
    ctx = _ctx(context)
    previous = os.getcwd()
    cwd = chdir(path, context=ctx)
    ctx.dir_stack.append(previous)
    return cwd


def popd(*, context: Context | None = None) -> str:
    """Return to the directory saved by the matching pushd()."""
    ctx = _ctx(context)
    if not ctx.dir_stack:
        raise JubError("popd", "directory stack is empty")
    os.chdir(ctx.dir_stack.pop())
    return os.getcwd()


# -- move / copy / remove ------------------------------------------------------


def _sources(ctx: Context, src: Any, dst: Any, operation: str) -> tuple[list[str], str]:
    if not normalize_patterns(src):
        raise PatternTypeError(src)
    sources = ctx.resolve(src, operation)
    target = ctx.expand(dst, operation)
    if not sources:
        raise JubError(operation, f"nothing matched {src!r}")
    if len(sources) > 1 and not os.path.isdir(target):
        raise JubError(operation, f"target is not a directory: {target}")
    return sources, target


def move(src: Any, dst: Any, *, context: Context | None = None) -> list[str]:
    """Move files or directories. Moves into dst when it is a directory.

    Returns:
        The destination paths.
    """
    sources, target = _sources(_ctx(context), src, dst, "move")
    moved: list[str] = []
    for source in sources:
        destination = _destination(source, target)
        shutil.move(source, destination)
        moved.append(destination)
    return moved


def copy(src: Any, dst: Any, *, context: Context | None = None) -> list[str]:
    """Copy files or directory trees. Symlinks are copied as links.

    Returns:
        The destination paths.

    Raises:
        NotADirectoryError: When copying a directory onto a file.
    """
    sources, target = _sources(_ctx(context), src, dst, "copy")
    copied: list[str] = []
    for source in sources:
        destination = _destination(source, target)

        if os.path.islink(source):
            if os.path.lexists(destination):
                os.remove(destination)
            os.symlink(os.readlink(source), destination)
        elif os.path.isdir(source):
            if os.path.lexists(destination) and not os.path.isdir(destination):
                raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), destination)
            shutil.copytree(source, destination, symlinks=True, dirs_exist_ok=True)
        else:
            shutil.copy2(source, destination)

        copied.append(destination)
    return copied


def remove(patterns: Any, *, context: Context | None = None) -> None:
    """Delete files. Missing files are ignored.

    Raises:
        IsADirectoryError: If a path is a directory.
    """
    for path in _targets(_ctx(context), patterns, "remove"):
        if os.path.isdir(path) and not os.path.islink(path):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)
        with contextlib.suppress(FileNotFoundError):
            os.remove(path)


def remove_recursive(patterns: Any, *, context: Context | None = None) -> None:
    """Delete files and directory trees. Missing paths are ignored."""
    for path in _targets(_ctx(context), patterns, "remove"):
        if os.path.isdir(path) and not os.path.islink(path):
            shutil.rmtree(path)
        elif os.path.lexists(path):
            os.remove(path)


# -- file contents -------------------------------------------------------------


def read_file(path: Any, encoding: str = "utf-8", *, context: Context | None = None) -> str:
    with open(_ctx(context).expand(path, "read"), encoding=encoding) as f:
        return f.read()


def write_file(
    path: Any, content: str | bytes, encoding: str = "utf-8", *, context: Context | None = None
) -> str:
    """Write content to a file, replacing it. Returns the expanded path."""
    target = _ctx(context).expand(path, "write")
    if isinstance(content, bytes):
        with open(target, "wb") as f:
            f.write(content)
    else:
        with open(target, "w", encoding=encoding) as f:
            f.write(content)
    return target


def append(path: Any, content: str, *, context: Context | None = None) -> None:
    with open(_ctx(context).expand(path, "append"), "a", encoding="utf-8") as f:
        f.write(content)


def prepend(path: Any, content: str, *, context: Context | None = None) -> None:
    ctx = _ctx(context)
    target = ctx.expand(path, "prepend")
    with open(target, encoding="utf-8") as f:
        existing = f.read()
    with open(target, "w", encoding="utf-8") as f:
        f.write(content + existing)


def replace(
    path: Any,
    pattern: str | re.Pattern[str],
    repl: Replacement,
    count: int = 0,
    *,
    context: Context | None = None,
) -> int:
    """Regex-substitute inside a file. Returns the number of replacements."""
    target = _ctx(context).expand(path, "replace")
    with open(target, encoding="utf-8") as f:
        text = f.read()
    text, replaced = re.subn(pattern, repl, text, count=count)
    with open(target, "w", encoding="utf-8") as f:
        f.write(text)
    return replaced


def _concat_paths(ctx: Context, patterns: Any) -> list[str]:
    if not normalize_patterns(patterns):
        raise PatternTypeError(patterns)
    paths = [p for p in ctx.resolve(patterns, "concat") if not os.path.isdir(p)]
    if not paths:
        raise JubError("concat", f"no files matched {patterns!r}")
    return paths


def concat(
    patterns: Any, sep: str = "\n", encoding: str = "utf-8", *, context: Context | None = None
) -> str:
    """Join the text of every matched file with sep."""
    parts = []
    for path in _concat_paths(_ctx(context), patterns):
        with open(path, encoding=encoding) as f:
            parts.append(f.read())
    return sep.join(parts)


def concat_bytes(patterns: Any, *, context: Context | None = None) -> bytes:
    """Concatenate the raw bytes of every matched file."""
    parts = []
    for path in _concat_paths(_ctx(context), patterns):
        with open(path, "rb") as f:
            parts.append(f.read())
    return b"".join(parts)


def temp_file(content: str | bytes = "", suffix: str = "") -> str:
    """Create a temporary file holding content and return its path.

    The caller is responsible for removing it.
    """
    fd, path = _tempfile.mkstemp(suffix=suffix, prefix="jub-")
    data = content.encode("utf-8") if isinstance(content, str) else content
    with os.fdopen(fd, "wb") as f:
        f.write(data)
    return path
