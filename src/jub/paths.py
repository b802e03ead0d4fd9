"""Path pattern resolution.

Turns path patterns into concrete, ordered path lists:

- ``~`` at the start of a token expands to the environment's home entry
- ``$name`` / ``${name}`` expand to ``env[name]``
- ``*``, ``?`` and ``[...]`` match within a single path segment
- ``**`` as a whole segment matches zero or more directories

Wildcard matches are produced depth-first with entries sorted lexically in
each directory, so results are stable across platforms and runs. Literal
tokens must exist; wildcard tokens that match nothing resolve to nothing.
"""

from __future__ import annotations

import fnmatch
import os
import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Union

from jub.environment import HOME
from jub.errors import PathNotFoundError, PatternTypeError, UnknownVariableError

PathToken = Union[str, "os.PathLike[str]"]
PathPattern = Union[PathToken, list[PathToken], tuple[PathToken, ...]]

GLOBSTAR = "**"

_VAR_RE = re.compile(r"\$(?:\{(\w+)\}|(\w+))")
_MAGIC_RE = re.compile(r"[*?[]")
_SEP_RE = re.compile("[" + re.escape(os.sep + (os.altsep or "")) + "]+")


def has_magic(token: str) -> bool:
    """Return True if the token contains glob metacharacters."""
    return _MAGIC_RE.search(token) is not None


def _is_path_boundary(s: str) -> bool:
    """Check if string is empty or starts with a path separator."""
    return not s or s[0] in "/\\"


def _home_of(env: Mapping[str, str]) -> str:
    return env.get(HOME) or os.path.expanduser("~")


def expand(
    token: PathToken,
    env: Mapping[str, str],
    operation: str = "expand",
    *,
    strict: bool = True,
) -> str:
    """Expand variable references and the leading home marker in a token.

    Args:
        token: Path string (or path-like) to expand.
        env: Variable environment.
        operation: Tag reported by errors raised here.
        strict: When False, unknown variables are left untouched instead of
            raising.

    Returns:
        The expanded string.

    Raises:
        PatternTypeError: If token is not a string or path-like.
        UnknownVariableError: If a referenced variable is not in env.
    """
    if isinstance(token, os.PathLike):
        token = os.fspath(token)
    if not isinstance(token, str):
        raise PatternTypeError(token)

    def replace_var(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        try:
            return env[name]
        except KeyError:
            if strict:
                raise UnknownVariableError(operation, name) from None
            return match.group(0)

    expanded = _VAR_RE.sub(replace_var, token)

    # ~user is a valid path on its own, only a bare ~ or ~/ is the home marker
    if expanded.startswith("~") and _is_path_boundary(expanded[1:]):
        rest = expanded[1:].lstrip("/\\")
        home = _home_of(env)
        expanded = os.path.join(home, rest) if rest else home

    return expanded


def normalize_patterns(patterns: object) -> list[str]:
    """Normalize a single token or a list of tokens to a list of strings.

    Raises:
        PatternTypeError: For any other argument shape.
    """
    if isinstance(patterns, (str, os.PathLike)):
        return [os.fspath(patterns)]
    if isinstance(patterns, (list, tuple)):
        tokens: list[str] = []
        for item in patterns:
            if not isinstance(item, (str, os.PathLike)):
                raise PatternTypeError(patterns)
            tokens.append(os.fspath(item))
        return tokens
    raise PatternTypeError(patterns)


def _on_disk(path: str, cwd: str | None) -> str:
    if cwd is None:
        return path
    return os.path.join(cwd, path)


def _closure(segments: list[str], states: Iterable[int]) -> set[int]:
    """Add the states reachable by letting ``**`` match zero directories."""
    result = set(states)
    stack = list(result)
    while stack:
        i = stack.pop()
        if i < len(segments) and segments[i] == GLOBSTAR and i + 1 not in result:
            result.add(i + 1)
            stack.append(i + 1)
    return result


def _walk(
    fs_dir: str,
    shown_dir: str,
    segments: list[str],
    states: set[int],
) -> Iterator[str]:
    try:
        names = sorted(os.listdir(fs_dir))
    except OSError:
        return

    final = len(segments)
    active = _closure(segments, states)

    for name in names:
        hidden = name.startswith(".")
        nxt: set[int] = set()
        globstar_only = True

        for i in active:
            if i >= final:
                continue
            segment = segments[i]
            if segment == GLOBSTAR:
                if not hidden:
                    nxt.add(i)
            elif (not hidden or segment.startswith(".")) and fnmatch.fnmatchcase(name, segment):
                nxt.add(i + 1)
                globstar_only = False

        if not nxt:
            continue

        reachable = _closure(segments, nxt)
        fs_path = os.path.join(fs_dir, name)
        shown = os.path.join(shown_dir, name) if shown_dir else name

        if final in reachable:
            yield shown

        if any(i < final for i in reachable) and os.path.isdir(fs_path):
            # ** does not follow symlinked directories (cycles)
            if globstar_only and os.path.islink(fs_path):
                continue
            yield from _walk(fs_path, shown, segments, nxt)


def iter_glob(pattern: str, cwd: str | None = None) -> Iterator[str]:
    """Yield paths matching an already-expanded wildcard pattern.

    Relative patterns are matched against ``cwd`` (default: the process
    working directory) and yield relative paths; absolute patterns yield
    absolute paths.
    """
    if os.path.isabs(pattern):
        drive, rest = os.path.splitdrive(pattern)
        root = drive + os.sep
    else:
        root, rest = "", pattern

    segments = [s for s in _SEP_RE.split(rest) if s and s != "."]

    literal: list[str] = []
    while segments and not has_magic(segments[0]):
        literal.append(segments.pop(0))

    shown_base = os.path.join(root, *literal) if literal else root
    if not segments:
        if os.path.lexists(_on_disk(shown_base, cwd)):
            yield shown_base
        return

    fs_base = _on_disk(shown_base or os.curdir, cwd)
    if not os.path.isdir(fs_base):
        return

    yield from _walk(fs_base, shown_base, segments, {0})


def resolve_list(
    patterns: object,
    env: Mapping[str, str],
    operation: str = "expand",
    cwd: str | None = None,
) -> list[str]:
    """Resolve one or more path patterns into an ordered list of paths.

    All tokens are expanded before the filesystem is consulted, so a bad
    variable fails before any lookup. Results are concatenated in input
    order; a path produced by two tokens is kept at its first position.

    Args:
        patterns: A path string or a list/tuple of path strings.
        env: Variable environment.
        operation: Tag reported by errors raised here.
        cwd: Directory relative patterns are resolved against.

    Returns:
        The concrete path list.

    Raises:
        PatternTypeError: For a malformed patterns argument.
        UnknownVariableError: For an unknown ``$name``.
        PathNotFoundError: For a literal token that does not exist.
    """
    tokens = [expand(t, env, operation) for t in normalize_patterns(patterns)]

    result: list[str] = []
    seen: set[str] = set()

    for token in tokens:
        if has_magic(token):
            matches: Iterable[str] = iter_glob(token, cwd)
        else:
            if not os.path.lexists(_on_disk(token, cwd)):
                raise PathNotFoundError(operation, token)
            matches = (token,)

        for path in matches:
            if path not in seen:
                seen.add(path)
                result.append(path)

    return result
