"""S3 operator backed by boto3."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from remote_files.models import EntryMode, S3Config, S3StorageClass
from remote_files.operator import (
    Entry,
    ErrorKind,
    Metadata,
    OperatorError,
    endpoint_url,
    object_key,
    operator_path,
    sanitize_error,
)
from remote_files.url_path import UrlDirPath

if TYPE_CHECKING:
    from mypy_boto3_s3 import S3Client

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}
_DENIED_CODES = {"403", "AccessDenied", "Forbidden"}
_DELETE_BATCH = 1000  # DeleteObjects hard limit
_RETRIES = {"max_attempts": 5, "mode": "adaptive"}


def _translate(exc: ClientError | BotoCoreError, action: str, path: str) -> OperatorError:
    kind = ErrorKind.UNEXPECTED
    if isinstance(exc, ClientError):
        code = str(exc.response.get("Error", {}).get("Code", ""))
        if code in _NOT_FOUND_CODES:
            kind = ErrorKind.NOT_FOUND
        elif code in _DENIED_CODES:
            kind = ErrorKind.PERMISSION_DENIED
    return OperatorError(kind, f"{action} '{path}': {sanitize_error(str(exc))}")


class S3Operator:
    """Operator over one S3 bucket, optionally rooted at a key prefix."""

    def __init__(
        self,
        client: S3Client,
        bucket: str,
        root: UrlDirPath | None = None,
        storage_class: S3StorageClass | None = None,
    ) -> None:
        self._client = client
        self._bucket = bucket
        self._root = root
        self._storage_class = storage_class

    @classmethod
    def from_config(cls, config: S3Config) -> S3Operator:
        """Build a client from a profile configuration.

        Custom endpoints (MinIO, R2, ...) use path-style addressing; AWS
        itself is addressed virtual-host style.

        Raises:
            OperatorError: ``CONFIG_INVALID`` if boto3 rejects the settings.
        """
        try:
            session = boto3.Session(
                aws_access_key_id=config.access_key_id.read() if config.access_key_id else None,
                aws_secret_access_key=(
                    config.secret_access_key.read() if config.secret_access_key else None
                ),
                region_name=config.region,
            )
            if config.endpoint is not None:
                client = session.client(
                    "s3",
                    endpoint_url=endpoint_url(config.endpoint),
                    config=Config(retries=_RETRIES, s3={"addressing_style": "path"}),
                )
            else:
                client = session.client(
                    "s3", config=Config(retries=_RETRIES, s3={"addressing_style": "virtual"})
                )
        except (BotoCoreError, ValueError) as exc:
            raise OperatorError(
                ErrorKind.CONFIG_INVALID,
                f"cannot create S3 client for bucket '{config.name}': {sanitize_error(str(exc))}",
            ) from exc
        return cls(client, config.name, root=config.prefix, storage_class=config.default_storage_class)

    def _key(self, path: str) -> str:
        return object_key(self._root, path)

    def stat(self, path: str) -> Metadata:
        key = self._key(path)
        try:
            if path.endswith("/"):
                if not path.strip("/"):
                    return Metadata(mode=EntryMode.DIR)
                response = self._client.list_objects_v2(Bucket=self._bucket, Prefix=key, MaxKeys=1)
                if response.get("KeyCount", 0) > 0:
                    return Metadata(mode=EntryMode.DIR)
                raise OperatorError(ErrorKind.NOT_FOUND, f"stat '{path}': no such directory")
            head = self._client.head_object(Bucket=self._bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "stat", path) from exc
        return Metadata(
            mode=EntryMode.FILE,
            content_type=head.get("ContentType"),
            content_length=int(head.get("ContentLength", 0)),
        )

    def list(self, path: str) -> list[Entry]:
        if not path.endswith("/"):
            raise OperatorError(ErrorKind.NOT_A_DIRECTORY, f"path '{path}' is not a directory")
        prefix = self._key(path)
        paginator = self._client.get_paginator("list_objects_v2")
        entries: list[Entry] = []
        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix, Delimiter="/"):
                keys = [cp["Prefix"] for cp in page.get("CommonPrefixes", []) if cp.get("Prefix")]
                keys.extend(
                    obj["Key"]
                    for obj in page.get("Contents", [])
                    if obj.get("Key") and obj["Key"] != prefix
                )
                entries.extend(Entry.from_path(operator_path(self._root, k)) for k in sorted(keys))
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "list", path) from exc
        return entries

    def read(self, path: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self._bucket, Key=self._key(path))
            body = response["Body"]
            try:
                return body.read()
            finally:
                body.close()
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "read", path) from exc

    def write(self, path: str, data: bytes, content_type: str | None = None) -> None:
        put_kwargs: dict[str, Any] = {
            "Bucket": self._bucket,
            "Key": self._key(path),
            "Body": data,
        }
        if content_type:
            put_kwargs["ContentType"] = content_type
        if self._storage_class is not None:
            put_kwargs["StorageClass"] = self._storage_class.value
        try:
            self._client.put_object(**put_kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "write", path) from exc

    def remove_all(self, path: str) -> None:
        key = self._key(path)
        keys: list[str] = []
        if key and not key.endswith("/"):
            keys.append(key)
            prefix = key + "/"
        else:
            prefix = key

        paginator = self._client.get_paginator("list_objects_v2")
        try:
            for page in paginator.paginate(Bucket=self._bucket, Prefix=prefix):
                keys.extend(obj["Key"] for obj in page.get("Contents", []) if obj.get("Key"))

            for start in range(0, len(keys), _DELETE_BATCH):
                batch = keys[start : start + _DELETE_BATCH]
                response = self._client.delete_objects(
                    Bucket=self._bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
                errors = response.get("Errors", [])
                if errors:
                    first = errors[0]
                    raise OperatorError(
                        ErrorKind.UNEXPECTED,
                        f"remove '{path}': {len(errors)} object(s) not deleted, "
                        f"first {first.get('Key')!r}: {first.get('Message', first.get('Code'))}",
                    )
        except (ClientError, BotoCoreError) as exc:
            raise _translate(exc, "remove", path) from exc
