"""Shared pytest fixtures for remote-files tests."""

from __future__ import annotations

import os

import pytest

from remote_files.models import EntryMode
from remote_files.operator import Entry, ErrorKind, Metadata, OperatorError


class MemoryOperator:
    """In-memory operator: files are absolute paths, directories are implied by them."""

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files: dict[str, bytes] = dict(files or {})
        self.content_types: dict[str, str | None] = {}
        self.fail_stat: set[str] = set()
        self.unknown: set[str] = set()
        self.stat_calls: list[str] = []
        self.list_calls: list[str] = []

    def _is_dir(self, path: str) -> bool:
        return path == "/" or any(key.startswith(path) for key in self.files)

    def stat(self, path: str) -> Metadata:
        self.stat_calls.append(path)
        if path in self.fail_stat:
            raise OperatorError(ErrorKind.UNEXPECTED, f"stat '{path}': backend exploded")
        if path in self.unknown:
            return Metadata(mode=EntryMode.UNKNOWN)
        if path.endswith("/") and self._is_dir(path):
            return Metadata(mode=EntryMode.DIR)
        if path in self.files:
            return Metadata(
                mode=EntryMode.FILE,
                content_type=self.content_types.get(path, "text/plain"),
                content_length=len(self.files[path]),
            )
        raise OperatorError(ErrorKind.NOT_FOUND, f"stat '{path}': not found")

    def list(self, path: str) -> list[Entry]:
        self.list_calls.append(path)
        if not path.endswith("/") or path.rstrip("/") in self.files:
            raise OperatorError(ErrorKind.NOT_A_DIRECTORY, f"path '{path}' is not a directory")
        children: list[Entry] = []
        seen: set[str] = set()
        for key in sorted(self.files):
            if not key.startswith(path):
                continue
            head, sep, _ = key[len(path):].partition("/")
            child = path + head + sep
            if child not in seen:
                seen.add(child)
                children.append(Entry.from_path(child))
        return children

    def read(self, path: str) -> bytes:
        try:
            return self.files[path]
        except KeyError:
            raise OperatorError(ErrorKind.NOT_FOUND, f"read '{path}': not found") from None

    def write(self, path: str, data: bytes, content_type: str | None = None) -> None:
        self.files[path] = data
        self.content_types[path] = content_type

    def remove_all(self, path: str) -> None:
        prefix = path.rstrip("/") + "/"
        for key in list(self.files):
            if key == path or key.startswith(prefix):
                del self.files[key]


@pytest.fixture()
def memory_operator() -> MemoryOperator:
    """An operator pre-loaded with a small tree."""
    return MemoryOperator(
        {
            "/docs/a.txt": b"alpha",
            "/docs/b.txt": b"bravo!",
            "/docs/nested/c.txt": b"charlie",
            "/readme.md": b"# hi",
        }
    )


@pytest.fixture()
def big_operator() -> MemoryOperator:
    """An operator whose ``/data/`` folder holds 25 files."""
    return MemoryOperator({f"/data/file-{i:02d}.txt": b"x" * i for i in range(25)})


@pytest.fixture()
def aws_credentials():
    """Ensure moto doesn't try to use real AWS credentials."""
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_SECURITY_TOKEN", "testing")
    os.environ.setdefault("AWS_SESSION_TOKEN", "testing")
