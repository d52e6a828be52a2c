"""Uniform file operations over one profile's bucket."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import Callable
from pathlib import Path

from remote_files.exceptions import (
    ClientInitializationError,
    DeleteError,
    DownloadError,
    ListMetadataError,
    StatUnknownModeError,
    UploadFileNotFoundError,
    UploadInvalidFilePathError,
    UploadLoadError,
    UploadWriteError,
)
from remote_files.gcs import GcsOperator
from remote_files.listing import ListingPipeline
from remote_files.models import Bucket, BucketKind, EntryMode, StatEntry
from remote_files.operator import Operator, OperatorError
from remote_files.s3 import S3Operator
from remote_files.url_path import UrlDirPath, UrlPath

logger = logging.getLogger(__name__)

_ADAPTERS: dict[BucketKind, Callable[[Bucket], Operator]] = {
    BucketKind.GCS: GcsOperator.from_config,  # type: ignore[dict-item]
    BucketKind.S3: S3Operator.from_config,  # type: ignore[dict-item]
}


def upload_destination(src: Path, dest: UrlDirPath) -> str:
    """Return the remote path a local file *src* is uploaded to.

    The file keeps its local name and lands directly inside *dest*; any file
    name the user typed as part of the destination has already been dropped
    when it was turned into a :class:`UrlDirPath`.

    Raises:
        UploadInvalidFilePathError: If *src* has no file name component.
    """
    name = src.name
    if not name or name in (".", ".."):
        raise UploadInvalidFilePathError(str(src))
    return f"{dest}{name}"


class StorageClient:
    """Stat, list, download, upload and delete against a single bucket."""

    def __init__(self, operator: Operator) -> None:
        self._operator = operator

    @classmethod
    def from_bucket(cls, bucket: Bucket) -> StorageClient:
        """Build a client with the adapter registered for the bucket's kind.

        Raises:
            ClientInitializationError: If the adapter rejects the configuration.
        """
        adapter = _ADAPTERS[bucket.kind]
        try:
            operator = adapter(bucket)
        except OperatorError as exc:
            raise ClientInitializationError(
                f"cannot initialize {bucket.kind.value} client for bucket '{bucket.name}'"
            ) from exc
        logger.debug("Initialized %s client for bucket %s", bucket.kind.value, bucket.name)
        return cls(operator)

    def stat(self, path: str) -> StatEntry:
        """Fetch metadata for a single *path*.

        Raises:
            StatUnknownModeError: If the backend reports neither file nor directory.
            ListMetadataError: If the metadata cannot be fetched.
        """
        try:
            meta = self._operator.stat(path)
        except OperatorError as exc:
            raise ListMetadataError(path) from exc
        if meta.mode is EntryMode.UNKNOWN:
            raise StatUnknownModeError(path)

        is_dir = meta.mode is EntryMode.DIR
        return StatEntry(
            name=UrlPath.parse(path).name or "/",
            content_type=meta.content_type or "",
            content_length=None if is_dir else meta.content_length,
            kind=meta.mode,
        )

    def list(
        self,
        path: UrlDirPath,
        page_size: int | None = None,
        *,
        drop_on_stat_failure: bool = True,
    ) -> ListingPipeline:
        return ListingPipeline(
            self._operator, path, page_size, drop_on_stat_failure=drop_on_stat_failure
        )

    def download(self, path: str) -> bytes:
        try:
            data = self._operator.read(path)
        except OperatorError as exc:
            raise DownloadError(path) from exc
        logger.info("Downloaded %d bytes from %s", len(data), path)
        return data

    def upload(self, src: Path, dest: UrlDirPath, content_type: str | None = None) -> str:
        """Upload the local file *src* into the remote directory *dest*.

        When *content_type* is not given it is guessed from the file name.

        Returns:
            The remote path that was written.

        Raises:
            UploadInvalidFilePathError: If *src* has no file name.
            UploadFileNotFoundError: If *src* does not exist.
            UploadLoadError: If *src* cannot be read.
            UploadWriteError: If the remote write fails.
        """
        remote = upload_destination(src, dest)
        try:
            data = src.read_bytes()
        except FileNotFoundError as exc:
            raise UploadFileNotFoundError(str(src)) from exc
        except OSError as exc:
            raise UploadLoadError(str(src)) from exc

        if content_type is None:
            content_type, _ = mimetypes.guess_type(src.name)

        try:
            self._operator.write(remote, data, content_type)
        except OperatorError as exc:
            raise UploadWriteError(remote) from exc
        logger.info("Uploaded %s (%d bytes) to %s", src, len(data), remote)
        return remote

    def delete(self, path: str) -> None:
        """Remove *path* and everything below it."""
        try:
            self._operator.remove_all(path)
        except OperatorError as exc:
            raise DeleteError(path) from exc
        logger.info("Deleted %s", path)
