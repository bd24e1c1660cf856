"""
Edit-sync engine.

Drives one edit session through
``Resolving -> Fetching -> Editing -> Comparing -> WritingBack -> Done``.
Any fatal error or interrupt goes through ``Aborting`` to ``Done`` after the
workspace file has been released. A conflict keeps the edited file on disk.
"""

import logging
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .editor import Editor, EditorError
from .interrupts import TerminationRequested, termination_signals_raise
from .location import ObjectLocation
from .outcome import ConflictDetected, SyncOutcome, Unchanged, Uploaded, UploadFailed
from .save_sync import SaveSyncWatcher
from .storage.base import DEFAULT_CONTENT_TYPE, Conflict, ObjectSnapshot, StorageBackend
from .storage.exceptions import StorageError, StorageNotFoundError
from .storage.retry import RetryPolicy
from .workspace import TempWorkspace, WorkspaceError, suffix_for_key

log = logging.getLogger(__name__)


class SessionState(str, Enum):
    RESOLVING = "resolving"
    FETCHING = "fetching"
    EDITING = "editing"
    COMPARING = "comparing"
    WRITING_BACK = "writing_back"
    ABORTING = "aborting"
    DONE = "done"


class SessionAbortedError(Exception):
    """Raised when a session ends without an outcome. The workspace is already released."""

    reason = "aborted"

    def __init__(self, state: SessionState, cause: BaseException):
        self.state = state
        self.cause = cause
        detail = f": {cause}" if str(cause) else ""
        super().__init__(f"Edit session {self.reason} while {state.value}{detail}")


class SessionInterruptedError(SessionAbortedError):
    """Raised when SIGINT or a termination signal ended the session."""

    reason = "interrupted"


@dataclass
class EditSession:
    location: ObjectLocation
    workspace: TempWorkspace
    original: ObjectSnapshot

    @property
    def local_path(self) -> Path:
        return self.workspace.path


def content_type_for_key(key: str) -> str:
    content_type, _ = mimetypes.guess_type(key)
    return content_type or DEFAULT_CONTENT_TYPE


class EditSyncEngine:
    """Fetches an object, lets the user edit it and writes it back if it changed.

    All collaborators are passed in, so tests can use a fake backend and editor.

    Args:
        backend: Storage backend for the location's provider.
        editor: Editor to run on the workspace file.
        retry: Policy for transient storage errors. Defaults to 3 attempts.
        file_path: Pinned local path instead of a generated temp file.
        sync_on_save: Upload every settled save while the editor is open.
        debounce: Quiet period in seconds before a save is uploaded.
        poll_interval: How often the save watcher samples the file.
    """

    def __init__(
        self,
        backend: StorageBackend,
        editor: Editor,
        retry: RetryPolicy | None = None,
        file_path: str | Path | None = None,
        sync_on_save: bool = False,
        debounce: float = 0.5,
        poll_interval: float = 0.1,
    ):
        self._backend = backend
        self._editor = editor
        self._retry = retry or RetryPolicy()
        self._file_path = file_path
        self._sync_on_save = sync_on_save
        self._debounce = debounce
        self._poll_interval = poll_interval
        self.state = SessionState.DONE
        self.transitions: list[SessionState] = []

    def run(self, location: ObjectLocation) -> SyncOutcome:
        """Run one edit session for ``location`` and return its outcome.

        Raises:
            SessionAbortedError: On access errors, unrecoverable fetch failures,
                editor launch failures or workspace I/O failures.
            SessionInterruptedError: On SIGINT, SIGTERM or SIGHUP.
        """
        self.transitions = []
        self._transition(SessionState.RESOLVING)
        try:
            with termination_signals_raise():
                outcome = self._run_session(location)
        except (KeyboardInterrupt, TerminationRequested) as e:
            raise self._abort(SessionInterruptedError, e) from e
        except (StorageError, EditorError, WorkspaceError) as e:
            raise self._abort(SessionAbortedError, e) from e

        self._transition(SessionState.DONE)
        log.info("Session for %s finished: %s", location, type(outcome).__name__)
        return outcome

    def _run_session(self, location: ObjectLocation) -> SyncOutcome:
        self._transition(SessionState.FETCHING)
        original = self._fetch(location)

        with TempWorkspace(suffix=suffix_for_key(location.key), path=self._file_path) as workspace:
            workspace.acquire(original)
            session = EditSession(location=location, workspace=workspace, original=original)
            outcome = self._edit_and_sync(session)
            if isinstance(outcome, ConflictDetected):
                workspace.keep()
                log.warning("Edited copy of %s kept at %s", location, workspace.path)
            return outcome

    def _fetch(self, location: ObjectLocation) -> ObjectSnapshot:
        try:
            snapshot = self._retry.call(self._backend.fetch, location)
        except StorageNotFoundError:
            log.info("%s does not exist yet; starting from an empty file", location)
            return ObjectSnapshot.absent(content_type=content_type_for_key(location.key))
        log.debug("Fetched %s: %d bytes, fingerprint %s", location, len(snapshot.content), snapshot.fingerprint)
        return snapshot

    def _edit_and_sync(self, session: EditSession) -> SyncOutcome:
        location = session.location
        self._transition(SessionState.EDITING)

        watcher = None
        if self._sync_on_save:
            watcher = SaveSyncWatcher(
                self._backend,
                location,
                session.local_path,
                session.original,
                retry=self._retry,
                debounce=self._debounce,
                poll_interval=self._poll_interval,
            )
            watcher.start()
        try:
            status = self._editor.run(session.local_path)
        finally:
            if watcher is not None:
                watcher.stop()

        baseline = watcher.baseline if watcher else session.original
        uploads = watcher.uploads if watcher else 0
        if watcher is not None and watcher.conflict is not None:
            return ConflictDetected(location, watcher.conflict.actual_fingerprint, session.local_path)

        if status != 0:
            if uploads:
                return Uploaded(location, baseline.fingerprint, uploads=uploads)
            return Unchanged(location, reason=f"editor exited with status {status}")

        self._transition(SessionState.COMPARING)
        current = session.workspace.read_current()
        if current == baseline.content:
            if uploads:
                return Uploaded(location, baseline.fingerprint, uploads=uploads)
            return Unchanged(location)

        self._transition(SessionState.WRITING_BACK)
        return self._write_back(session, current, baseline, uploads)

    def _write_back(
        self,
        session: EditSession,
        content: bytes,
        baseline: ObjectSnapshot,
        uploads: int,
    ) -> SyncOutcome:
        location = session.location
        try:
            result = self._retry.call(
                self._backend.conditional_write,
                location,
                content,
                baseline.fingerprint,
                content_type=baseline.content_type,
                metadata=baseline.metadata or None,
            )
        except StorageError as e:
            log.error("Upload of %s failed: %s", location, e)
            return UploadFailed(location, cause=e)

        if isinstance(result, Conflict):
            return ConflictDetected(location, result.actual_fingerprint, session.local_path)
        return Uploaded(location, result.new_fingerprint, uploads=uploads + 1)

    def _abort(self, error_cls: type[SessionAbortedError], cause: BaseException) -> SessionAbortedError:
        failed_state = self.state
        self._transition(SessionState.ABORTING)
        self._transition(SessionState.DONE)
        log.debug("Session aborted while %s: %r", failed_state.value, cause)
        return error_cls(failed_state, cause)

    def _transition(self, state: SessionState) -> None:
        log.debug("Session state: %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)
