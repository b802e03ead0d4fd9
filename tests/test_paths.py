"""Tests for path pattern expansion and resolution."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from jub.environment import Environment
from jub.errors import JubError, PathNotFoundError, PatternTypeError, UnknownVariableError
from jub.paths import expand, has_magic, iter_glob, normalize_patterns, resolve_list


@pytest.fixture
def env() -> Environment:
    env = Environment()
    env["HOME"] = "/home/test"
    env["main"] = "lib/main.txt"
    env["util"] = "lib/util.txt"
    env["lib"] = "lib"
    return env


class TestExpand:
    """Test variable and home expansion of single tokens."""

    def test_plain_token_unchanged(self, env: Environment) -> None:
        assert expand("lib/main.txt", env) == "lib/main.txt"

    def test_variable(self, env: Environment) -> None:
        assert expand("$main", env) == "lib/main.txt"

    def test_braced_variable_inside_path(self, env: Environment) -> None:
        assert expand("${lib}/main.txt", env) == "lib/main.txt"
        assert expand("$lib/*.txt", env) == "lib/*.txt"

    def test_tilde_alone(self, env: Environment) -> None:
        assert expand("~", env) == "/home/test"

    def test_tilde_prefix(self, env: Environment) -> None:
        assert expand("~/docs/a.txt", env) == os.path.join("/home/test", "docs/a.txt")

    def test_tilde_user_untouched(self, env: Environment) -> None:
        assert expand("~other/file", env) == "~other/file"

    def test_home_variable(self, env: Environment) -> None:
        assert expand("$HOME", env) == "/home/test"

    def test_home_follows_environment(self, env: Environment) -> None:
        env["HOME"] = "/elsewhere"
        assert expand("~", env) == "/elsewhere"

    def test_pathlike(self, env: Environment) -> None:
        assert expand(Path("lib") / "main.txt", env) == os.path.join("lib", "main.txt")

    def test_unknown_variable_tagged_with_operation(self, env: Environment) -> None:
        with pytest.raises(UnknownVariableError) as exc_info:
            expand("$missing/x", env, "move")

        assert exc_info.value.operation == "move"
        assert exc_info.value.name == "missing"
        assert str(exc_info.value).startswith("jub.move:")

    def test_unknown_variable_lenient(self, env: Environment) -> None:
        assert expand("cost: $missing", env, strict=False) == "cost: $missing"

    @pytest.mark.parametrize("value", [None, 1, 2.5, {"a": 1}])
    def test_non_string_rejected_as_expand(self, env: Environment, value: object) -> None:
        with pytest.raises(PatternTypeError) as exc_info:
            expand(value, env, "listdir")  # type: ignore[arg-type]

        assert exc_info.value.operation == "expand"
        assert isinstance(exc_info.value, TypeError)


class TestNormalizePatterns:
    """Test argument shape handling."""

    def test_single_string(self) -> None:
        assert normalize_patterns("a/*") == ["a/*"]

    def test_list_and_tuple(self) -> None:
        assert normalize_patterns(["a", Path("b")]) == ["a", "b"]
        assert normalize_patterns(("a",)) == ["a"]

    @pytest.mark.parametrize("value", [None, 1, {"a"}, ["ok", 3]])
    def test_invalid_shapes(self, value: object) -> None:
        with pytest.raises(PatternTypeError) as exc_info:
            normalize_patterns(value)
        assert exc_info.value.operation == "expand"


class TestHasMagic:
    @pytest.mark.parametrize("token", ["*", "a/*.txt", "file?.txt", "[ab].txt", "**/x"])
    def test_magic(self, token: str) -> None:
        assert has_magic(token)

    @pytest.mark.parametrize("token", ["a.txt", "lib/main.txt", "~", "$main"])
    def test_literal(self, token: str) -> None:
        assert not has_magic(token)


class TestResolveList:
    """Test resolution against the standard test tree."""

    def test_globstar_txt(self, tree: Path, env: Environment) -> None:
        assert resolve_list("**/*.txt", env) == ["TESTDATA.txt", "lib/main.txt", "lib/util.txt"]

    def test_input_token_order_preserved(self, tree: Path, env: Environment) -> None:
        assert resolve_list(["bin/*", "TESTDATA.*"], env) == ["bin/app", "TESTDATA.txt"]

    def test_star_matches_files_and_directories(self, tree: Path, env: Environment) -> None:
        assert resolve_list("*", env) == ["TESTDATA.txt", "bin", "lib"]

    def test_star_includes_symlinks(self, tree: Path, env: Environment) -> None:
        assert resolve_list("lib/*", env) == ["lib/linkmain", "lib/main.txt", "lib/util.txt"]

    def test_wildcard_without_match_is_empty(self, tree: Path, env: Environment) -> None:
        assert resolve_list("**/cat.jpg", env) == []
        assert resolve_list(["*.foo", "*.bar"], env) == []

    def test_literal_missing_fails_with_tag(self, tree: Path, env: Environment) -> None:
        with pytest.raises(PathNotFoundError) as exc_info:
            resolve_list("not_exists_file", env, "move")

        assert exc_info.value.operation == "move"
        assert isinstance(exc_info.value, FileNotFoundError)
        assert isinstance(exc_info.value, JubError)

    def test_literal_existing(self, tree: Path, env: Environment) -> None:
        assert resolve_list(["$main", "$util"], env) == ["lib/main.txt", "lib/util.txt"]

    def test_same_path_from_two_tokens_kept_once(self, tree: Path, env: Environment) -> None:
        assert resolve_list(["$main", "lib/*.txt"], env) == ["lib/main.txt", "lib/util.txt"]

    def test_unknown_variable_fails_before_lookup(self, tree: Path, env: Environment) -> None:
        with pytest.raises(UnknownVariableError):
            resolve_list(["not_exists_file", "$nope"], env, "copy")

    def test_question_mark_and_class(self, tree: Path, env: Environment) -> None:
        assert resolve_list("lib/[mu]*.txt", env) == ["lib/main.txt", "lib/util.txt"]
        assert resolve_list("bin/ap?", env) == ["bin/app"]

    def test_case_sensitive(self, tree: Path, env: Environment) -> None:
        assert resolve_list("testdata.*", env) == []

    def test_cwd_argument(self, tree: Path, env: Environment, tmp_path: Path) -> None:
        os.chdir(tmp_path)
        assert resolve_list("lib/*.txt", env, cwd=str(tree)) == ["lib/main.txt", "lib/util.txt"]

    def test_absolute_pattern_yields_absolute_paths(self, tree: Path, env: Environment) -> None:
        pattern = os.path.join(str(tree), "lib", "*.txt")
        assert resolve_list(pattern, env) == [
            os.path.join(str(tree), "lib", "main.txt"),
            os.path.join(str(tree), "lib", "util.txt"),
        ]

    def test_variable_inside_wildcard_pattern(self, tree: Path, env: Environment) -> None:
        assert resolve_list("$lib/u*", env) == ["lib/util.txt"]


class TestGlobTraversal:
    """Test traversal order and hidden/symlink handling."""

    def test_depth_first_lexical_order(self, tmp_path: Path) -> None:
        (tmp_path / "a.txt").write_text("")
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "x.txt").write_text("")
        (tmp_path / "b" / "sub").mkdir()
        (tmp_path / "b" / "sub" / "y.txt").write_text("")
        (tmp_path / "c.txt").write_text("")

        assert list(iter_glob("**/*.txt", str(tmp_path))) == [
            "a.txt",
            os.path.join("b", "sub", "y.txt"),
            os.path.join("b", "x.txt"),
            "c.txt",
        ]

    def test_directory_before_its_contents(self, tmp_path: Path) -> None:
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "f").write_text("")

        assert list(iter_glob("**", str(tmp_path))) == ["d", os.path.join("d", "f")]

    def test_hidden_entries_skipped(self, tmp_path: Path) -> None:
        (tmp_path / ".hidden.txt").write_text("")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "x.txt").write_text("")
        (tmp_path / "shown.txt").write_text("")

        assert list(iter_glob("**/*.txt", str(tmp_path))) == ["shown.txt"]

    def test_hidden_entries_matched_explicitly(self, tmp_path: Path) -> None:
        (tmp_path / ".hidden.txt").write_text("")

        assert list(iter_glob(".*.txt", str(tmp_path))) == [".hidden.txt"]

    def test_globstar_does_not_follow_symlinked_directories(self, tmp_path: Path) -> None:
        (tmp_path / "real").mkdir()
        (tmp_path / "real" / "f.txt").write_text("")
        (tmp_path / "loop").symlink_to(tmp_path, target_is_directory=True)

        assert list(iter_glob("**/*.txt", str(tmp_path))) == [os.path.join("real", "f.txt")]

    def test_explicit_segment_follows_symlinked_directory(self, tmp_path: Path) -> None:
        (tmp_path / "real").mkdir()
        (tmp_path / "real" / "f.txt").write_text("")
        (tmp_path / "link").symlink_to(tmp_path / "real", target_is_directory=True)

        assert list(iter_glob("l*/*.txt", str(tmp_path))) == [os.path.join("link", "f.txt")]

    def test_missing_base_directory(self, tmp_path: Path) -> None:
        assert list(iter_glob("nowhere/*.txt", str(tmp_path))) == []


class TestEnvironment:
    """Test the Environment mapping."""

    def test_home_builtin(self) -> None:
        assert Environment()["HOME"] == os.path.expanduser("~")

    def test_dict_copy_is_detached(self, env: Environment) -> None:
        copied = dict(env)
        env["dist"] = "dist"

        assert copied == {
            "HOME": "/home/test",
            "main": "lib/main.txt",
            "util": "lib/util.txt",
            "lib": "lib",
        }
        assert "dist" in env

    def test_invalid_name(self, env: Environment) -> None:
        with pytest.raises(ValueError):
            env[""] = "x"
