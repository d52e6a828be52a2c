"""Data models for remote-files."""

from __future__ import annotations

import hmac
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, ClassVar, TypeVar

from remote_files.exceptions import ConfigurationError, UrlPathError
from remote_files.url_path import UrlDirPath, UrlPath

REDACTED = "[REDACTED]"
SCHEMA_KEY = "$schema"

E = TypeVar("E", bound=Enum)


class Secret:
    """A plaintext secret that never shows up in ``str``/``repr`` output.

    The value is only reachable through :meth:`read`.  The backing buffer is
    zeroed when the object is garbage collected.
    """

    __slots__ = ("_content",)

    def __init__(self, content: str) -> None:
        self._content = bytearray(content.encode("utf-8"))

    def read(self) -> str:
        return self._content.decode("utf-8")

    def __repr__(self) -> str:
        return REDACTED

    __str__ = __repr__

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Secret):
            return NotImplemented
        return hmac.compare_digest(bytes(self._content), bytes(other._content))

    __hash__ = None  # type: ignore[assignment]

    def __del__(self) -> None:
        content = getattr(self, "_content", None)
        if content is not None:
            content[:] = bytes(len(content))


class BucketKind(str, Enum):
    GCS = "gcs"
    S3 = "s3"


class GcsStorageClass(str, Enum):
    STANDARD = "STANDARD"
    NEARLINE = "NEARLINE"
    COLDLINE = "COLDLINE"
    ARCHIVE = "ARCHIVE"


class S3StorageClass(str, Enum):
    DEEP_ARCHIVE = "DEEP_ARCHIVE"
    GLACIER = "GLACIER"
    GLACIER_IR = "GLACIER_IR"
    INTELLIGENT_TIERING = "INTELLIGENT_TIERING"
    ONEZONE_IA = "ONEZONE_IA"
    OUTPOSTS = "OUTPOSTS"
    REDUCED_REDUNDANCY = "REDUCED_REDUNDANCY"
    STANDARD = "STANDARD"
    STANDARD_IA = "STANDARD_IA"


# --- field decoding helpers -------------------------------------------------

def _str_field(data: dict[str, Any], key: str, *, required: bool = False) -> str | None:
    value = data.get(key)
    if value is None:
        if required:
            raise ConfigurationError(f"missing required field '{key}'")
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"field '{key}' must be a string, got {type(value).__name__}")
    if required and not value.strip():
        raise ConfigurationError(f"field '{key}' must not be empty")
    return value


def _secret_field(data: dict[str, Any], key: str) -> Secret | None:
    value = _str_field(data, key)
    return Secret(value) if value is not None else None


def _enum_field(data: dict[str, Any], key: str, enum_cls: type[E]) -> E | None:
    value = _str_field(data, key)
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(
            f"field '{key}': unknown variant {value!r}; expected one of {choices}"
        ) from None


def _url_field(data: dict[str, Any], key: str) -> UrlPath | None:
    value = _str_field(data, key)
    if value is None:
        return None
    try:
        return UrlPath.parse(value)
    except UrlPathError as exc:
        raise ConfigurationError(f"field '{key}': {exc}") from exc


def _dir_field(data: dict[str, Any], key: str) -> UrlDirPath | None:
    path = _url_field(data, key)
    return UrlDirPath.from_url_path(path) if path is not None else None


def _secret_out(secret: Secret | None, reveal: bool) -> str | None:
    if secret is None:
        return None
    return secret.read() if reveal else str(secret)


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


# --- bucket configurations --------------------------------------------------

@dataclass
class GcsConfig:
    """Connection settings for a Google Cloud Storage bucket."""

    kind: ClassVar[BucketKind] = BucketKind.GCS

    name: str
    credential: Secret | None = None       # base64 encoded service account JSON
    credential_path: Path | None = None
    default_storage_class: GcsStorageClass | None = None
    endpoint: UrlPath | None = None
    prefix: UrlDirPath | None = None       # root folder inside the bucket
    predefined_acl: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigurationError("bucket name must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GcsConfig:
        credential_path = _str_field(data, "credentialPath")
        return cls(
            name=_str_field(data, "name", required=True) or "",
            credential=_secret_field(data, "credential"),
            credential_path=Path(credential_path) if credential_path else None,
            default_storage_class=_enum_field(data, "defaultStorageClass", GcsStorageClass),
            endpoint=_url_field(data, "endpoint"),
            prefix=_dir_field(data, "prefix"),
            predefined_acl=_str_field(data, "predefinedAcl"),
        )

    def to_dict(self, reveal: bool = True) -> dict[str, Any]:
        return _compact(
            {
                "name": self.name,
                "credential": _secret_out(self.credential, reveal),
                "credentialPath": str(self.credential_path) if self.credential_path else None,
                "defaultStorageClass": (
                    self.default_storage_class.value if self.default_storage_class else None
                ),
                "endpoint": str(self.endpoint) if self.endpoint is not None else None,
                "prefix": str(self.prefix) if self.prefix is not None else None,
                "predefinedAcl": self.predefined_acl,
            }
        )


@dataclass
class S3Config:
    """Connection settings for an S3 (or S3-compatible) bucket."""

    kind: ClassVar[BucketKind] = BucketKind.S3

    name: str
    endpoint: UrlPath | None = None
    prefix: UrlDirPath | None = None
    region: str | None = None
    access_key_id: Secret | None = None
    secret_access_key: Secret | None = None
    default_storage_class: S3StorageClass | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigurationError("bucket name must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> S3Config:
        return cls(
            name=_str_field(data, "name", required=True) or "",
            endpoint=_url_field(data, "endpoint"),
            prefix=_dir_field(data, "prefix"),
            region=_str_field(data, "region"),
            access_key_id=_secret_field(data, "accessKeyId"),
            secret_access_key=_secret_field(data, "secretAccessKey"),
            default_storage_class=_enum_field(data, "defaultStorageClass", S3StorageClass),
        )

    def to_dict(self, reveal: bool = True) -> dict[str, Any]:
        return _compact(
            {
                "name": self.name,
                "endpoint": str(self.endpoint) if self.endpoint is not None else None,
                "prefix": str(self.prefix) if self.prefix is not None else None,
                "region": self.region,
                "accessKeyId": _secret_out(self.access_key_id, reveal),
                "secretAccessKey": _secret_out(self.secret_access_key, reveal),
                "defaultStorageClass": (
                    self.default_storage_class.value if self.default_storage_class else None
                ),
            }
        )


Bucket = GcsConfig | S3Config

_BUCKET_TYPES: dict[BucketKind, type[GcsConfig] | type[S3Config]] = {
    BucketKind.GCS: GcsConfig,
    BucketKind.S3: S3Config,
}


def bucket_from_dict(data: Any) -> Bucket:
    """Decode a ``{"type": ..., "configuration": {...}}`` bucket document."""
    if not isinstance(data, dict):
        raise ConfigurationError("bucket definition must be a JSON object")
    raw_kind = data.get("type")
    try:
        kind = BucketKind(raw_kind)
    except ValueError:
        choices = ", ".join(k.value for k in BucketKind)
        raise ConfigurationError(
            f"unknown bucket type {raw_kind!r}; expected one of {choices}"
        ) from None
    configuration = data.get("configuration")
    if not isinstance(configuration, dict):
        raise ConfigurationError(f"{kind.value} bucket is missing its 'configuration' object")
    return _BUCKET_TYPES[kind].from_dict(configuration)


def bucket_to_dict(bucket: Bucket, reveal: bool = True) -> dict[str, Any]:
    return {"type": bucket.kind.value, "configuration": bucket.to_dict(reveal=reveal)}


# --- persisted documents ----------------------------------------------------

@dataclass
class Configuration:
    """All known profiles, keyed by profile name."""

    buckets: dict[str, Bucket] = field(default_factory=dict)
    schema: str | None = None  # "$schema" tag, carried through untouched

    @classmethod
    def from_dict(cls, data: Any) -> Configuration:
        if not isinstance(data, dict):
            raise ConfigurationError("configuration must be a JSON object")
        schema = data.get(SCHEMA_KEY)
        if schema is not None and not isinstance(schema, str):
            raise ConfigurationError(f"field '{SCHEMA_KEY}' must be a string")
        buckets: dict[str, Bucket] = {}
        for name, raw in data.items():
            if name == SCHEMA_KEY:
                continue
            try:
                buckets[name] = bucket_from_dict(raw)
            except ConfigurationError as exc:
                raise ConfigurationError(f"profile '{name}': {exc}") from exc
        return cls(buckets=buckets, schema=schema)

    def to_dict(self, reveal: bool = True) -> dict[str, Any]:
        """Serialize every profile, keyed by name.

        Raises:
            ConfigurationError: If a profile is named ``$schema``; that key
                holds the schema tag and could not be read back.
        """
        if SCHEMA_KEY in self.buckets:
            raise ConfigurationError(f"'{SCHEMA_KEY}' is reserved and cannot name a profile")
        out: dict[str, Any] = {}
        if self.schema is not None:
            out[SCHEMA_KEY] = self.schema
        for name, bucket in self.buckets.items():
            out[name] = bucket_to_dict(bucket, reveal=reveal)
        return out


@dataclass
class CliState:
    """Process-independent CLI state: the currently selected profile."""

    current: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> CliState:
        if not isinstance(data, dict):
            raise ConfigurationError("cli state must be a JSON object")
        current = data.get("current")
        if current is not None and not isinstance(current, str):
            raise ConfigurationError("field 'current' must be a string")
        return cls(current=current)

    def to_dict(self, reveal: bool = True) -> dict[str, Any]:
        return _compact({"current": self.current})


# --- listing ----------------------------------------------------------------

class EntryMode(str, Enum):
    FILE = "file"
    DIR = "directory"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class StatEntry:
    """A metadata-enriched listing item."""

    name: str                   # path segment (directories keep a trailing "/")
    content_type: str
    content_length: int | None  # always None for directories
    kind: EntryMode

    @property
    def is_file(self) -> bool:
        return self.kind is EntryMode.FILE

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryMode.DIR
