"""Segment-based models for remote bucket paths.

``UrlPath`` and ``UrlDirPath`` share the same representation: an ordered
tuple of non-empty segments, none of which contains ``/``.  They only differ
in how they render.

>>> str(UrlPath.parse("/hello/there/?q"))
'hello/there'
>>> str(UrlDirPath.parse("hello"))
'/hello/'
>>> UrlPath.parse("/").to_absolute_path() is None
True
"""

from __future__ import annotations

from dataclasses import dataclass

from remote_files.exceptions import UrlPathError


def _chars(*ranges: tuple[int, int]) -> frozenset[str]:
    return frozenset(chr(code) for low, high in ranges for code in range(low, high + 1))


# Characters a request target may carry unencoded.  The path also accepts
# '"', '{' and '}'; the fragment is never checked.
_PATH_CHARS = _chars((0x21, 0x22), (0x24, 0x3B), (0x3D, 0x3D), (0x40, 0x5F), (0x61, 0x7E))
_QUERY_CHARS = _chars((0x21, 0x21), (0x24, 0x3B), (0x3D, 0x3D), (0x3F, 0x7E))


def _check(text: str, part: str, allowed: frozenset[str], offset: int) -> None:
    for position, char in enumerate(part, start=offset):
        if char not in allowed:
            raise UrlPathError(
                f"invalid URI path {text!r}: character {char!r} "
                f"at position {position} is not allowed"
            )


def _split(text: str) -> tuple[str, ...]:
    if not isinstance(text, str):
        raise UrlPathError(f"expected a string path, got {type(text).__name__}")
    path_and_query = text.split("#", 1)[0]
    path, sep, query = path_and_query.partition("?")
    _check(text, path, _PATH_CHARS, 0)
    if sep:
        _check(text, query, _QUERY_CHARS, len(path) + 1)
    # The query never contributes segments.
    return tuple(segment for segment in path.split("/") if segment)


@dataclass(frozen=True)
class UrlPath:
    """A remote path, rendered without leading or trailing slash."""

    segments: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> UrlPath:
        """Parse *text* collapsing repeated slashes and dropping the query.

        Raises:
            UrlPathError: If *text* is not valid URI path-and-query syntax.
        """
        return cls(_split(text))

    def is_empty(self) -> bool:
        return not self.segments

    @property
    def name(self) -> str | None:
        """Last segment, or ``None`` for the root."""
        return self.segments[-1] if self.segments else None

    def to_absolute_path(self) -> str | None:
        """Return ``/a/b`` (a file-like path), or ``None`` for the root."""
        if not self.segments:
            return None
        return "/" + "/".join(self.segments)

    def to_absolute_dir_path(self) -> str:
        """Return ``/a/b/``; the root renders as ``/``."""
        if not self.segments:
            return "/"
        return "/" + "/".join(self.segments) + "/"

    def __str__(self) -> str:
        return "/".join(self.segments)


@dataclass(frozen=True)
class UrlDirPath:
    """A remote path that always denotes a directory."""

    segments: tuple[str, ...] = ()

    @classmethod
    def parse(cls, text: str) -> UrlDirPath:
        return cls.from_url_path(UrlPath.parse(text))

    @classmethod
    def from_url_path(cls, path: UrlPath) -> UrlDirPath:
        return cls(path.segments)

    def is_empty(self) -> bool:
        return not self.segments

    def __str__(self) -> str:
        if not self.segments:
            return "/"
        return "/" + "/".join(self.segments) + "/"
