"""Paginated, stat-enriched directory listings."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import TypeVar

from remote_files.exceptions import (
    ListMetadataError,
    ListNotDirectoryError,
    UnhandledBackendError,
)
from remote_files.models import EntryMode, StatEntry
from remote_files.operator import Entry, ErrorKind, Operator, OperatorError
from remote_files.url_path import UrlDirPath

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10

T = TypeVar("T")


def _chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class ListingPipeline:
    """Forward-only iterator over pages of :class:`StatEntry`.

    The directory is listed once, when the pipeline is built, so a
    non-directory path fails before any metadata is fetched.  Each call to
    :func:`next` then stats the entries of a single page.

    Without an explicit *page_size* the pipeline is a preview: it yields only
    the first page of :data:`DEFAULT_PAGE_SIZE` entries.

    Args:
        operator: Backend operator bound to the bucket.
        path: Directory to list.
        page_size: Entries per page.  ``None`` selects preview mode.
        drop_on_stat_failure: When *True*, entries whose stat call fails are
            left out of their page and counted in :attr:`dropped`; when
            *False* the first failure raises :class:`ListMetadataError`.
            Entries the backend reports as neither file nor directory are
            always skipped and counted, whatever this flag says.

    Raises:
        ListNotDirectoryError: If *path* is not a directory.
        UnhandledBackendError: On any other listing failure.
    """

    def __init__(
        self,
        operator: Operator,
        path: UrlDirPath,
        page_size: int | None = None,
        *,
        drop_on_stat_failure: bool = True,
    ) -> None:
        if page_size is not None and page_size < 1:
            raise ValueError(f"page size must be a positive integer, got {page_size}")

        self._operator = operator
        self._path = str(path)
        self._drop_on_stat_failure = drop_on_stat_failure
        self.paginate = page_size is not None
        self.dropped = 0

        try:
            entries = operator.list(self._path)
        except OperatorError as exc:
            if exc.kind is ErrorKind.NOT_A_DIRECTORY:
                raise ListNotDirectoryError(self._path) from exc
            raise UnhandledBackendError(f"cannot list path '{self._path}'") from exc

        logger.debug("Listed %d entries under %s", len(entries), self._path)
        chunks = _chunked(entries, page_size or DEFAULT_PAGE_SIZE)
        self._chunks: Iterator[list[Entry]] = chunks if self.paginate else _first(chunks)

    def __iter__(self) -> ListingPipeline:
        return self

    def __next__(self) -> list[StatEntry]:
        chunk = next(self._chunks)
        page: list[StatEntry] = []
        dropped = 0
        for entry in chunk:
            stat_entry = self._stat(entry)
            if stat_entry is None:
                dropped += 1
            else:
                page.append(stat_entry)
        if dropped:
            self.dropped += dropped
            logger.warning("Dropped %d of %d entries under %s", dropped, len(chunk), self._path)
        return page

    def _stat(self, entry: Entry) -> StatEntry | None:
        try:
            meta = self._operator.stat(entry.path)
        except OperatorError as exc:
            if not self._drop_on_stat_failure:
                raise ListMetadataError(entry.path) from exc
            logger.debug("Cannot stat %s: %s", entry.path, exc)
            return None

        if meta.mode is EntryMode.UNKNOWN:
            logger.debug("Skipping %s: unknown entry mode", entry.path)
            return None

        is_dir = meta.mode is EntryMode.DIR
        return StatEntry(
            name=entry.name,
            content_type=meta.content_type or "",
            content_length=None if is_dir else meta.content_length,
            kind=meta.mode,
        )


def _first(chunks: Iterator[list[Entry]]) -> Iterator[list[Entry]]:
    first = next(chunks, None)
    if first is not None:
        yield first
