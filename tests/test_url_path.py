"""Tests for remote_files.url_path."""

from __future__ import annotations

import pytest

from remote_files.exceptions import UrlPathError
from remote_files.url_path import UrlDirPath, UrlPath


class TestUrlPathParse:
    def test_strips_query(self):
        assert str(UrlPath.parse("/hello/there/?q")) == "hello/there"

    def test_strips_fragment(self):
        assert UrlPath.parse("/a/b#frag").segments == ("a", "b")

    def test_collapses_repeated_slashes(self):
        assert UrlPath.parse("//a//b/") == UrlPath.parse("a/b")

    def test_root_is_empty(self):
        path = UrlPath.parse("/")
        assert path.is_empty()
        assert str(path) == ""

    def test_empty_string_is_root(self):
        assert UrlPath.parse("").is_empty()

    def test_query_only_is_root(self):
        assert UrlPath.parse("?a=/b/c").is_empty()

    @pytest.mark.parametrize(
        "bad", ["/a b", "/a<b>", "/tab\there", "/back`tick", "/del\x7f", "/café", "/a?q=<x>"]
    )
    def test_invalid_characters_raise(self, bad):
        with pytest.raises(UrlPathError, match="invalid URI path"):
            UrlPath.parse(bad)

    @pytest.mark.parametrize(
        ("text", "segments"),
        [
            ("/a^b", ("a^b",)),
            ("/a\\b", ("a\\b",)),
            ("/[x]/y|z", ("[x]", "y|z")),
            ('/{"k":1}', ('{"k":1}',)),
            ("/a%20b/~c", ("a%20b", "~c")),
        ],
    )
    def test_request_target_characters_accepted(self, text, segments):
        assert UrlPath.parse(text).segments == segments

    def test_query_may_hold_question_marks(self):
        assert UrlPath.parse("/a?b=?c").segments == ("a",)

    def test_quote_rejected_in_query(self):
        with pytest.raises(UrlPathError, match="position 4"):
            UrlPath.parse('/a?b"')

    def test_fragment_is_not_checked(self):
        assert UrlPath.parse("/a#frag ment<>").segments == ("a",)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            UrlPath.parse("/with space")

    @pytest.mark.parametrize(
        "text", ["/", "", "a", "/a/b/", "//x///y", "/a/b?c=d", "/hello/there/?q", "a:b/c.d"]
    )
    def test_render_then_parse_is_stable(self, text):
        first = UrlPath.parse(text)
        assert UrlPath.parse(str(first)) == first


class TestUrlPathRender:
    def test_absolute_path(self):
        assert UrlPath.parse("/hello/").to_absolute_path() == "/hello"

    def test_absolute_path_of_root_is_none(self):
        assert UrlPath.parse("/").to_absolute_path() is None

    def test_absolute_dir_path(self):
        assert UrlPath.parse("a/b").to_absolute_dir_path() == "/a/b/"

    def test_absolute_dir_path_of_root(self):
        assert UrlPath.parse("/").to_absolute_dir_path() == "/"

    def test_name(self):
        assert UrlPath.parse("/a/b/c.txt").name == "c.txt"
        assert UrlPath.parse("/").name is None


class TestUrlDirPath:
    def test_render_adds_slashes(self):
        assert str(UrlDirPath.parse("hello")) == "/hello/"

    def test_root_renders_as_slash(self):
        assert str(UrlDirPath.parse("/")) == "/"
        assert UrlDirPath.parse("/").is_empty()

    def test_from_url_path_keeps_segments(self):
        path = UrlPath.parse("/a/b.txt")
        directory = UrlDirPath.from_url_path(path)
        assert directory.segments == path.segments
        assert str(directory) == "/a/b.txt/"

    def test_is_hashable_and_frozen(self):
        directory = UrlDirPath.parse("a")
        assert {directory: 1}[UrlDirPath.parse("/a/")] == 1
        with pytest.raises(AttributeError):
            directory.segments = ()  # type: ignore[misc]
