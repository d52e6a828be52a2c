"""The operator contract every storage backend adapter satisfies.

An operator is bound to one bucket (and optional root prefix).  Paths are
absolute within that root: ``/a/b.txt`` is a file, ``/a/`` a directory and
``/`` the root itself.  Adapters must translate all SDK exceptions into
:class:`OperatorError`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from remote_files.models import EntryMode
from remote_files.url_path import UrlDirPath, UrlPath

_ARN_RE = re.compile(r"arn:aws[a-zA-Z-]*:[a-zA-Z0-9-]+:\S+")
_ACCOUNT_RE = re.compile(r"\b\d{12}\b")


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    NOT_A_DIRECTORY = "not_a_directory"
    PERMISSION_DENIED = "permission_denied"
    CONFIG_INVALID = "config_invalid"
    UNEXPECTED = "unexpected"


class OperatorError(Exception):
    """Raised by operators for any backend failure."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class Metadata:
    mode: EntryMode
    content_type: str | None = None
    content_length: int = 0


@dataclass(frozen=True)
class Entry:
    """A raw listing item: its absolute path and its last segment."""

    path: str
    name: str

    @classmethod
    def from_path(cls, path: str) -> Entry:
        trimmed = path.rstrip("/")
        name = trimmed.rsplit("/", 1)[-1]
        if path.endswith("/"):
            name += "/"
        return cls(path=path, name=name)


class Operator(Protocol):
    """Storage primitives bound to one bucket."""

    def stat(self, path: str) -> Metadata:
        """Return metadata for *path*.

        Raises:
            OperatorError: ``NOT_FOUND`` when nothing exists at *path*.
        """
        ...  # pragma: no cover

    def list(self, path: str) -> list[Entry]:
        """Return the direct children of directory *path*, in backend order.

        Raises:
            OperatorError: ``NOT_A_DIRECTORY`` when *path* does not end with ``/``.
        """
        ...  # pragma: no cover

    def read(self, path: str) -> bytes: ...  # pragma: no cover

    def write(self, path: str, data: bytes, content_type: str | None = None) -> None:
        ...  # pragma: no cover

    def remove_all(self, path: str) -> None:
        """Remove *path* and everything below it; missing paths are not an error."""
        ...  # pragma: no cover


def sanitize_error(msg: str) -> str:
    """Strip ARNs and AWS account IDs from error messages."""
    msg = _ARN_RE.sub("arn:***", msg)
    msg = _ACCOUNT_RE.sub("***", msg)
    return msg


def object_key(root: UrlDirPath | None, path: str) -> str:
    """Map an operator path onto a bucket object key below *root*.

    ``/a/b`` becomes ``<root>a/b``; ``/a/`` becomes ``<root>a/``; ``/``
    becomes ``<root>`` (the empty string when there is no root).
    """
    base = str(root).lstrip("/") if root is not None and not root.is_empty() else ""
    relative = "/".join(segment for segment in path.split("/") if segment)
    if relative and path.endswith("/"):
        relative += "/"
    return base + relative


def operator_path(root: UrlDirPath | None, key: str) -> str:
    """Inverse of :func:`object_key`: turn a bucket key into an absolute path."""
    base = str(root).lstrip("/") if root is not None and not root.is_empty() else ""
    if base and key.startswith(base):
        key = key[len(base):]
    return "/" + key.lstrip("/")


def endpoint_url(endpoint: UrlPath) -> str:
    """Rebuild an SDK endpoint URL from a segment path.

    ``https://host:9000`` is stored as the segments ``("https:", "host:9000")``;
    an endpoint without a scheme segment is assumed to be HTTPS.
    """
    segments = endpoint.segments
    if segments and segments[0].endswith(":"):
        return f"{segments[0]}//{'/'.join(segments[1:])}"
    return f"https://{endpoint}"
