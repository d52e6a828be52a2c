"""Google Cloud Storage operator backed by google-cloud-storage."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any

import google.cloud.storage
import google.oauth2.service_account
from google.api_core.exceptions import (
    Forbidden,
    GoogleAPICallError,
    NotFound,
    Unauthorized,
)
from google.auth.exceptions import GoogleAuthError

from remote_files.models import EntryMode, GcsConfig, GcsStorageClass
from remote_files.operator import (
    Entry,
    ErrorKind,
    Metadata,
    OperatorError,
    endpoint_url,
    object_key,
    operator_path,
)
from remote_files.url_path import UrlDirPath

_DEFAULT_CONTENT_TYPE = "application/octet-stream"

# requests' exceptions derive from OSError, so connection faults land here too.
_GCS_ERRORS = (GoogleAPICallError, GoogleAuthError, OSError)


def _translate(exc: Exception, action: str, path: str) -> OperatorError:
    if isinstance(exc, NotFound):
        kind = ErrorKind.NOT_FOUND
    elif isinstance(exc, (Forbidden, Unauthorized)):
        kind = ErrorKind.PERMISSION_DENIED
    elif isinstance(exc, GoogleAuthError):
        kind = ErrorKind.CONFIG_INVALID
    else:
        kind = ErrorKind.UNEXPECTED
    return OperatorError(kind, f"{action} '{path}': {exc}")


def _ignore_missing(blob: google.cloud.storage.Blob) -> None:
    pass


def _credentials(config: GcsConfig) -> google.oauth2.service_account.Credentials | None:
    """Load service account credentials from the inline secret or the file path.

    The inline credential is the service account JSON key, base64 encoded.
    """
    if config.credential is not None:
        try:
            info: Any = json.loads(base64.b64decode(config.credential.read()))
        except (binascii.Error, ValueError) as exc:
            raise OperatorError(
                ErrorKind.CONFIG_INVALID,
                f"credential for bucket '{config.name}' is not base64 encoded JSON",
            ) from exc
        if not isinstance(info, dict):
            raise OperatorError(
                ErrorKind.CONFIG_INVALID,
                f"credential for bucket '{config.name}' must decode to a JSON object, "
                f"got {type(info).__name__}",
            )
        return google.oauth2.service_account.Credentials.from_service_account_info(info)
    if config.credential_path is not None:
        return google.oauth2.service_account.Credentials.from_service_account_file(
            str(config.credential_path)
        )
    return None


class GcsOperator:
    """Operator over one GCS bucket, optionally rooted at a prefix."""

    def __init__(
        self,
        client: google.cloud.storage.Client,
        bucket: str,
        root: UrlDirPath | None = None,
        storage_class: GcsStorageClass | None = None,
        predefined_acl: str | None = None,
    ) -> None:
        self._client = client
        self._bucket = client.bucket(bucket)
        self._root = root
        self._storage_class = storage_class
        self._predefined_acl = predefined_acl

    @classmethod
    def from_config(cls, config: GcsConfig) -> GcsOperator:
        client_options = None
        if config.endpoint is not None:
            client_options = {"api_endpoint": endpoint_url(config.endpoint)}
        try:
            credentials = _credentials(config)
            client = google.cloud.storage.Client(
                project=getattr(credentials, "project_id", None),
                credentials=credentials,
                client_options=client_options,
            )
        except (GoogleAuthError, ValueError, OSError) as exc:
            raise OperatorError(
                ErrorKind.CONFIG_INVALID,
                f"cannot create GCS client for bucket '{config.name}': {exc}",
            ) from exc
        return cls(
            client,
            config.name,
            root=config.prefix,
            storage_class=config.default_storage_class,
            predefined_acl=config.predefined_acl,
        )

    def _key(self, path: str) -> str:
        return object_key(self._root, path)

    def stat(self, path: str) -> Metadata:
        key = self._key(path)
        try:
            if path.endswith("/"):
                if not path.strip("/"):
                    return Metadata(mode=EntryMode.DIR)
                blobs = self._client.list_blobs(self._bucket, prefix=key, max_results=1)
                if any(True for _ in blobs):
                    return Metadata(mode=EntryMode.DIR)
                raise OperatorError(ErrorKind.NOT_FOUND, f"stat '{path}': no such directory")
            blob = self._bucket.get_blob(key)
        except _GCS_ERRORS as exc:
            raise _translate(exc, "stat", path) from exc
        if blob is None:
            raise OperatorError(ErrorKind.NOT_FOUND, f"stat '{path}': no such object")
        return Metadata(
            mode=EntryMode.FILE,
            content_type=blob.content_type,
            content_length=int(blob.size or 0),
        )

    def list(self, path: str) -> list[Entry]:
        if not path.endswith("/"):
            raise OperatorError(ErrorKind.NOT_A_DIRECTORY, f"path '{path}' is not a directory")
        prefix = self._key(path)
        try:
            iterator = self._client.list_blobs(self._bucket, prefix=prefix or None, delimiter="/")
            keys = [blob.name for blob in iterator if blob.name != prefix]
            # Prefixes are only known once every page has been fetched.
            keys.extend(iterator.prefixes)
        except _GCS_ERRORS as exc:
            raise _translate(exc, "list", path) from exc
        return [Entry.from_path(operator_path(self._root, k)) for k in sorted(keys)]

    def read(self, path: str) -> bytes:
        try:
            return self._bucket.blob(self._key(path)).download_as_bytes()
        except _GCS_ERRORS as exc:
            raise _translate(exc, "read", path) from exc

    def write(self, path: str, data: bytes, content_type: str | None = None) -> None:
        blob = self._bucket.blob(self._key(path))
        if self._storage_class is not None:
            blob.storage_class = self._storage_class.value
        try:
            blob.upload_from_string(
                data,
                content_type=content_type or _DEFAULT_CONTENT_TYPE,
                predefined_acl=self._predefined_acl,
            )
        except _GCS_ERRORS as exc:
            raise _translate(exc, "write", path) from exc

    def remove_all(self, path: str) -> None:
        key = self._key(path)
        prefix = key + "/" if key and not key.endswith("/") else key
        try:
            blobs = list(self._client.list_blobs(self._bucket, prefix=prefix or None))
            if key and not key.endswith("/"):
                blobs.append(self._bucket.blob(key))
            if blobs:
                self._bucket.delete_blobs(blobs, on_error=_ignore_missing)
        except _GCS_ERRORS as exc:
            raise _translate(exc, "remove", path) from exc
