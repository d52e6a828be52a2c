"""Tests for remote_files.operator helpers."""

from __future__ import annotations

import pytest

from remote_files.operator import (
    Entry,
    endpoint_url,
    object_key,
    operator_path,
    sanitize_error,
)
from remote_files.url_path import UrlDirPath, UrlPath


def test_sanitize_arn():
    msg = "User arn:aws:iam::123456789012:user/bob is not authorized"
    assert sanitize_error(msg) == "User arn:*** is not authorized"


def test_sanitize_account_id():
    assert sanitize_error("account 123456789012 denied") == "account *** denied"


def test_sanitize_leaves_plain_text():
    assert sanitize_error("NoSuchKey") == "NoSuchKey"


class TestObjectKey:
    @pytest.mark.parametrize(
        ("root", "path", "expected"),
        [
            (None, "/", ""),
            (None, "/a/b.txt", "a/b.txt"),
            (None, "/a/", "a/"),
            (UrlDirPath.parse("base"), "/", "base/"),
            (UrlDirPath.parse("/base/deep/"), "/a.txt", "base/deep/a.txt"),
            (UrlDirPath.parse("/"), "/a/", "a/"),
        ],
    )
    def test_mapping(self, root, path, expected):
        assert object_key(root, path) == expected

    @pytest.mark.parametrize("path", ["/a.txt", "/a/", "/a/b/c.txt"])
    def test_operator_path_inverts_object_key(self, path):
        root = UrlDirPath.parse("base")
        assert operator_path(root, object_key(root, path)) == path


class TestEntry:
    def test_file(self):
        assert Entry.from_path("/a/b.txt") == Entry(path="/a/b.txt", name="b.txt")

    def test_directory_keeps_slash(self):
        assert Entry.from_path("/a/sub/").name == "sub/"


class TestEndpointUrl:
    def test_with_scheme(self):
        assert endpoint_url(UrlPath.parse("http://localhost:9000")) == "http://localhost:9000"

    def test_with_path(self):
        endpoint = UrlPath.parse("https://example.com/storage/v1")
        assert endpoint_url(endpoint) == "https://example.com/storage/v1"

    def test_without_scheme(self):
        assert endpoint_url(UrlPath.parse("s3.example.com")) == "https://s3.example.com"
