"""Scoped local file that mirrors the remote object while it is being edited."""

import logging
import os
import re
import tempfile
from pathlib import Path, PurePosixPath

from .storage.base import ObjectSnapshot

log = logging.getLogger(__name__)

_SAFE_SUFFIX = re.compile(r"^\.[A-Za-z0-9_+-]{1,15}$")


class WorkspaceError(Exception):
    """Raised when the local temp file cannot be created, read or removed."""

    def __init__(self, message: str, path: Path | None = None, cause: Exception | None = None):
        self.path = path
        self.cause = cause
        super().__init__(message)


def suffix_for_key(key: str) -> str:
    """Return the key's file extension if it is safe to reuse for a local temp file."""
    suffix = PurePosixPath(key).suffix
    return suffix if _SAFE_SUFFIX.match(suffix) else ""


class TempWorkspace:
    """Owns one local file for the duration of an edit session.

    Used as a context manager the file is released on every way out of the
    block, including exceptions and KeyboardInterrupt. ``keep()`` turns the
    release into a no-op on disk so that edits that could not be uploaded
    survive the session.

    A pinned ``path`` is never overwritten: acquiring fails if it already exists.
    """

    def __init__(self, suffix: str = "", path: str | os.PathLike | None = None):
        self._suffix = suffix
        self._pinned = Path(path) if path is not None else None
        self._path: Path | None = None
        self._kept = False
        self._released = False

    @property
    def path(self) -> Path:
        if self._path is None:
            raise WorkspaceError("Workspace has not been acquired")
        return self._path

    @property
    def kept(self) -> bool:
        return self._kept

    def acquire(self, snapshot: ObjectSnapshot) -> Path:
        """Write the snapshot content to a fresh private file and return its path."""
        if self._path is not None:
            raise WorkspaceError("Workspace already acquired", path=self._path)

        try:
            if self._pinned is not None:
                fd = os.open(self._pinned, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
                path = self._pinned
            else:
                fd, name = tempfile.mkstemp(prefix="eo-", suffix=self._suffix)
                path = Path(name)
        except FileExistsError as e:
            raise WorkspaceError(
                f"Refusing to overwrite existing file {self._pinned}", path=self._pinned, cause=e
            ) from e
        except OSError as e:
            raise WorkspaceError(f"Could not create local file: {e}", path=self._pinned, cause=e) from e

        self._path = path
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(snapshot.content)
        except OSError as e:
            raise WorkspaceError(f"Could not write {path}: {e}", path=path, cause=e) from e

        log.debug("Workspace file %s holds %d bytes", path, len(snapshot.content))
        return path

    def read_current(self) -> bytes:
        """Read back the file as the editor left it."""
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise WorkspaceError(f"Could not read {self._path}: {e}", path=self._path, cause=e) from e

    def keep(self) -> None:
        """Leave the file on disk when the workspace is released."""
        self._kept = True

    def release(self) -> None:
        """Remove the file unless it is kept. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        if self._path is None or self._kept:
            return
        try:
            self._path.unlink()
            log.debug("Removed workspace file %s", self._path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.error("Failed to remove workspace file %s: %s", self._path, e)
            raise WorkspaceError(f"Could not remove {self._path}: {e}", path=self._path, cause=e) from e

    def __enter__(self) -> "TempWorkspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self.release()
        except WorkspaceError:
            # Already logged; do not mask the exception that ended the session.
            if exc_type is None:
                raise
