"""Exception hierarchy for remote-files.

Every error the package raises derives from :class:`RemoteFilesError` so the
CLI can render one clean message (plus its cause chain) without a traceback.
Third-party exceptions from cloud SDKs are translated at the operator
boundary and never escape :mod:`remote_files.client` untyped.

Hierarchy
---------
RemoteFilesError
├── StoredError
├── UrlPathError
├── ConfigurationError
├── ProfileError
└── StorageClientError
    ├── ClientInitializationError
    ├── UnhandledBackendError
    ├── StatUnknownModeError
    ├── ListNotDirectoryError
    ├── ListMetadataError
    ├── DownloadError
    ├── UploadInvalidFilePathError
    ├── UploadFileNotFoundError
    ├── UploadLoadError
    ├── UploadWriteError
    └── DeleteError
"""

from __future__ import annotations


class RemoteFilesError(Exception):
    """Base exception for all remote-files errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Local state -----------------------------------------------------------

class StoredError(RemoteFilesError):
    """Raised when a local state document cannot be resolved, read or written."""


# --- Paths and profiles ----------------------------------------------------

class UrlPathError(RemoteFilesError, ValueError):
    """Raised when a string is not valid URI path-and-query syntax."""


class ConfigurationError(RemoteFilesError, ValueError):
    """Raised when a profile configuration document is malformed."""


class ProfileError(RemoteFilesError):
    """Raised when a profile cannot be resolved or would be duplicated."""


# --- Storage client --------------------------------------------------------

class StorageClientError(RemoteFilesError):
    """Base class for failures talking to a remote bucket."""


class ClientInitializationError(StorageClientError):
    """Raised when a bucket configuration cannot be turned into an operator."""


class UnhandledBackendError(StorageClientError):
    """Raised for backend faults with no more specific mapping."""


class StatUnknownModeError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"unknown entry mode for path '{path}'")
        self.path = path


class ListNotDirectoryError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(
            f"path '{path}' is not a directory",
            hint="Directory paths end with '/'.",
        )
        self.path = path


class ListMetadataError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"invalid metadata for path '{path}'")
        self.path = path


class DownloadError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"cannot download resource '{path}'")
        self.path = path


class UploadInvalidFilePathError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"invalid path '{path}': no file name to upload")
        self.path = path


class UploadFileNotFoundError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"cannot find file '{path}'")
        self.path = path


class UploadLoadError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"error while reading file '{path}'")
        self.path = path


class UploadWriteError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"cannot write to path '{path}'")
        self.path = path


class DeleteError(StorageClientError):
    def __init__(self, path: str) -> None:
        super().__init__(f"cannot delete path '{path}'")
        self.path = path


def describe(exc: BaseException) -> list[str]:
    """Return the message of *exc* followed by each chained cause, outermost first."""
    lines: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        text = str(current) or type(current).__name__
        if not lines or lines[-1] != text:
            lines.append(text)
        current = current.__cause__ or (
            None if current.__suppress_context__ else current.__context__
        )
    return lines
