"""File-backed, load-or-create, explicit-persist JSON documents.

Two documents live in the home directory:

* ``configuration.json``: every profile (:class:`~remote_files.models.Configuration`)
* ``rf.json``: CLI state such as the current profile (:class:`~remote_files.models.CliState`)

Both are created with ``{}`` when missing.  Each :class:`Stored` keeps the
file handle it was opened with, and :meth:`Stored.persist` rewrites that same
file in place.
"""

from __future__ import annotations

import json
import logging
import os
import stat
from pathlib import Path
from types import TracebackType
from typing import Any, BinaryIO, Generic, Protocol, TypeVar

import click

from remote_files.exceptions import ConfigurationError, StoredError
from remote_files.models import CliState, Configuration

logger = logging.getLogger(__name__)

RF_HOME_ENV_VAR = "RF_HOME"
APP_NAME = "rf"
CONFIG_FILENAME = "configuration.json"
CLI_STATE_FILENAME = "rf.json"

_FILE_MODE = 0o600  # profiles may hold credentials


class Document(Protocol):
    def __init__(self) -> None: ...

    @classmethod
    def from_dict(cls, data: Any) -> Any: ...

    def to_dict(self, reveal: bool = True) -> dict[str, Any]: ...


D = TypeVar("D", bound=Document)


def dumps(document: Document) -> str:
    """Serialize *document* to pretty, key-sorted JSON (no trailing newline)."""
    return json.dumps(document.to_dict(), indent=2, sort_keys=True, ensure_ascii=False)


def get_home_folder() -> Path:
    """Resolve the directory holding both state files.

    ``$RF_HOME`` wins; otherwise the platform configuration directory is used.
    A missing directory is fine (it is created by :func:`try_init`), but an
    existing non-directory is not.

    Raises:
        StoredError: If the location cannot be determined or is not a directory.
    """
    override = os.environ.get(RF_HOME_ENV_VAR)
    if override:
        home = Path(override).expanduser()
    else:
        home = Path(click.get_app_dir(APP_NAME))
        if not home.is_absolute():
            raise StoredError(
                "cannot access os configuration directory",
                hint=f"Set ${RF_HOME_ENV_VAR} to choose a location explicitly.",
            )

    try:
        mode = home.stat().st_mode
    except FileNotFoundError:
        return home
    except OSError as exc:
        raise StoredError(f"cannot stat path '{home}'") from exc

    if not stat.S_ISDIR(mode):
        raise StoredError(f"path '{home}' is not a directory")
    return home


def _write_new(path: Path, content: bytes) -> None:
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
    with os.fdopen(fd, "wb") as fh:
        fh.write(content)
        fh.flush()


def read_or_create(path: Path, doc_type: type[D]) -> D:
    """Load a *doc_type* document from *path*, creating it with defaults if absent.

    An existing file is never modified.  An empty file reads as ``{}``.

    Raises:
        StoredError: If *path* is not a regular file, or on read, decode or
            write failure.
    """
    try:
        mode = path.stat().st_mode
    except FileNotFoundError:
        document = doc_type()
        try:
            _write_new(path, dumps(document).encode("utf-8"))
        except OSError as exc:
            raise StoredError(f"writing file at '{path}'") from exc
        logger.info("Created %s with default content", path)
        return document
    except OSError as exc:
        raise StoredError(f"retrieving metadata for path '{path}'") from exc

    if stat.S_ISDIR(mode):
        raise StoredError(f"path '{path}' is a directory")
    if not stat.S_ISREG(mode):
        raise StoredError(f"path '{path}' is not a regular file")

    try:
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise StoredError(f"reading file '{path}'") from exc

    if not text.strip():
        return doc_type()

    try:
        return doc_type.from_dict(json.loads(text))
    except (json.JSONDecodeError, ConfigurationError) as exc:
        raise StoredError(f"deserializing content of file '{path}'") from exc


def open_rw(path: Path) -> BinaryIO:
    """Open *path* for reading and writing, creating it but never truncating it."""
    try:
        fd = os.open(path, os.O_RDWR | os.O_CREAT, _FILE_MODE)
    except OSError as exc:
        raise StoredError(f"opening file at path '{path}'") from exc
    return os.fdopen(fd, "r+b")


class Stored(Generic[D]):
    """An in-memory document paired with the file it was loaded from.

    Mutations through :meth:`get_mut` only touch memory; nothing reaches
    disk until :meth:`persist` is called.  Not safe for concurrent use.
    """

    def __init__(self, inner: D, fd: BinaryIO, path: Path) -> None:
        self._inner = inner
        self._fd = fd
        self._path = path
        fd.seek(0)
        self._on_disk = fd.read()

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> D:
        return self._inner

    def get_mut(self) -> D:
        return self._inner

    def persist(self) -> None:
        """Replace the file content with the current document.

        The new content is fully serialized before the file is touched.  If
        writing fails, the previous content is written back before the error
        is raised.

        Raises:
            StoredError: On serialization or write failure.
        """
        if self._fd.closed:
            raise StoredError(f"cannot persist '{self._path}': file handle is closed")
        try:
            content = dumps(self._inner).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise StoredError(f"serializing content for '{self._path}'") from exc

        try:
            self._overwrite(content)
        except OSError as exc:
            try:
                self._overwrite(self._on_disk)
            except OSError:
                logger.error("Could not restore previous content of %s", self._path)
            raise StoredError(f"writing file at '{self._path}'") from exc

        self._on_disk = content
        logger.debug("Persisted %d bytes to %s", len(content), self._path)

    def _overwrite(self, content: bytes) -> None:
        self._fd.seek(0)
        self._fd.truncate(len(content))
        self._fd.write(content)
        self._fd.flush()
        os.fsync(self._fd.fileno())

    def close(self) -> None:
        self._fd.close()

    def __enter__(self) -> Stored[D]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


def try_init(home: Path) -> tuple[Stored[CliState], Stored[Configuration]]:
    """Create *home* if needed, then load (or create) both state documents.

    Returns:
        ``(cli_state, configuration)``; each owns its own open file handle.

    Raises:
        StoredError: On any directory or file failure.
    """
    try:
        home.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StoredError(f"creating home directory at path '{home}'") from exc

    state_path = home / CLI_STATE_FILENAME
    config_path = home / CONFIG_FILENAME

    cli_state = read_or_create(state_path, CliState)
    configuration = read_or_create(config_path, Configuration)

    state_fd = open_rw(state_path)
    try:
        config_fd = open_rw(config_path)
    except StoredError:
        state_fd.close()
        raise

    return (
        Stored(cli_state, state_fd, state_path),
        Stored(configuration, config_fd, config_path),
    )
