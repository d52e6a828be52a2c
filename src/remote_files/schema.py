"""JSON Schema documents for ``configuration.json`` and ``rf.json``.

Point an editor at the written files through the ``$schema`` key of
``configuration.json`` to get completion and validation while editing
profiles by hand.
"""

from __future__ import annotations

import json
import logging
from copy import deepcopy
from pathlib import Path
from typing import Any

from remote_files.exceptions import StoredError
from remote_files.models import SCHEMA_KEY, BucketKind, GcsStorageClass, S3StorageClass

logger = logging.getLogger(__name__)

DRAFT = "https://json-schema.org/draft/2020-12/schema"
CONFIGURATION_SCHEMA_FILE = "configuration.schema.json"
CLI_STATE_SCHEMA_FILE = "cli_state.schema.json"

_STRING = {"type": "string"}

_GCS_CONFIG: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "credential": {
            "type": "string",
            "description": "Service account JSON key, base64 encoded.",
        },
        "credentialPath": _STRING,
        "defaultStorageClass": {
            "type": "string",
            "enum": [member.value for member in GcsStorageClass],
        },
        "endpoint": _STRING,
        "prefix": _STRING,
        "predefinedAcl": _STRING,
    },
    "required": ["name"],
}

_S3_CONFIG: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "endpoint": _STRING,
        "prefix": _STRING,
        "region": _STRING,
        "accessKeyId": _STRING,
        "secretAccessKey": _STRING,
        "defaultStorageClass": {
            "type": "string",
            "enum": [member.value for member in S3StorageClass],
        },
    },
    "required": ["name"],
}


def _variant(kind: BucketKind, ref: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "type": {"const": kind.value},
            "configuration": {"$ref": f"#/$defs/{ref}"},
        },
        "required": ["type", "configuration"],
    }


CONFIGURATION_SCHEMA: dict[str, Any] = {
    "$schema": DRAFT,
    "title": "Configuration",
    "description": "Bucket profiles known to rf, keyed by profile name.",
    "type": "object",
    "properties": {SCHEMA_KEY: _STRING},
    "additionalProperties": {"$ref": "#/$defs/Bucket"},
    "$defs": {
        "Bucket": {
            "oneOf": [
                _variant(BucketKind.GCS, "GcsConfig"),
                _variant(BucketKind.S3, "S3Config"),
            ]
        },
        "GcsConfig": _GCS_CONFIG,
        "S3Config": _S3_CONFIG,
    },
    "examples": [
        {},
        {
            SCHEMA_KEY: f"./{CONFIGURATION_SCHEMA_FILE}",
            "docs": {
                "type": "s3",
                "configuration": {
                    "name": "docs-bucket",
                    "region": "eu-west-1",
                    "prefix": "/team/",
                    "defaultStorageClass": "STANDARD_IA",
                },
            },
            "media": {
                "type": "gcs",
                "configuration": {
                    "name": "media-bucket",
                    "credentialPath": "/etc/rf/service-account.json",
                    "defaultStorageClass": "NEARLINE",
                    "predefinedAcl": "publicRead",
                },
            },
        },
        {
            "minio": {
                "type": "s3",
                "configuration": {
                    "name": "local",
                    "endpoint": "http://localhost:9000",
                    "accessKeyId": "minio",
                    "secretAccessKey": "minio123",
                },
            }
        },
    ],
}

CLI_STATE_SCHEMA: dict[str, Any] = {
    "$schema": DRAFT,
    "title": "CliState",
    "type": "object",
    "properties": {
        "current": {"type": "string", "description": "Name of the selected profile."},
    },
    "examples": [{}, {"current": "docs"}],
}


def configuration_schema() -> dict[str, Any]:
    """Return a deep copy of the ``configuration.json`` schema."""
    return deepcopy(CONFIGURATION_SCHEMA)


def cli_state_schema() -> dict[str, Any]:
    """Return a deep copy of the ``rf.json`` schema."""
    return deepcopy(CLI_STATE_SCHEMA)


def write_schemas(directory: Path) -> list[Path]:
    """Write both schema files into *directory*, creating it when missing.

    Returns:
        The written paths, configuration schema first.

    Raises:
        StoredError: If the directory or a file cannot be written.
    """
    documents = {
        CONFIGURATION_SCHEMA_FILE: CONFIGURATION_SCHEMA,
        CLI_STATE_SCHEMA_FILE: CLI_STATE_SCHEMA,
    }
    written: list[Path] = []
    try:
        directory.mkdir(parents=True, exist_ok=True)
        for filename, document in documents.items():
            path = directory / filename
            path.write_text(json.dumps(document, indent=2, ensure_ascii=False), encoding="utf-8")
            written.append(path)
    except OSError as exc:
        raise StoredError(f"writing schema files to '{directory}'") from exc
    logger.debug("Wrote %d schema files to %s", len(written), directory)
    return written
