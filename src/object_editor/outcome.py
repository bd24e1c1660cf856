"""Result of an edit session and the process exit codes it maps to."""

from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path

from .location import ObjectLocation


class ExitCode(IntEnum):
    """Process exit status for each way an edit session can end."""

    OK = 0
    FETCH_FAILED = 1
    USAGE = 2
    CONFLICT = 3
    UPLOAD_FAILED = 4
    ACCESS_DENIED = 5
    EDITOR_FAILED = 6
    WORKSPACE_FAILED = 7
    INTERRUPTED = 130


@dataclass(frozen=True)
class Unchanged:
    location: ObjectLocation
    reason: str | None = None

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.OK

    @property
    def message(self) -> str:
        detail = f" ({self.reason})" if self.reason else ""
        return f"No changes to {self.location}{detail}; nothing uploaded."


@dataclass(frozen=True)
class Uploaded:
    location: ObjectLocation
    fingerprint: str
    uploads: int = 1

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.OK

    @property
    def message(self) -> str:
        return f"Uploaded {self.location} (fingerprint {self.fingerprint})."


@dataclass(frozen=True)
class ConflictDetected:
    """The remote object changed after it was fetched; local edits were kept on disk."""

    location: ObjectLocation
    remote_fingerprint: str
    local_path: Path

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.CONFLICT

    @property
    def message(self) -> str:
        return (
            f"Conflict: {self.location} changed remotely (now {self.remote_fingerprint}); "
            f"your edits were NOT uploaded.\n"
            f"Edited copy kept at: {self.local_path}\n"
            f"Run the command again to edit the current version and re-apply your changes from that file."
        )


@dataclass(frozen=True)
class UploadFailed:
    location: ObjectLocation
    cause: Exception

    @property
    def exit_code(self) -> ExitCode:
        return ExitCode.UPLOAD_FAILED

    @property
    def message(self) -> str:
        return f"Error: upload of {self.location} failed: {self.cause}"


SyncOutcome = Unchanged | Uploaded | ConflictDetected | UploadFailed
