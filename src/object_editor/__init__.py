"""Edit a single S3 or GCS object in a local editor with conflict-safe write-back."""

from .editor import Editor, EditorError, EditorLaunchError, EditorNotConfiguredError
from .engine import (
    EditSession,
    EditSyncEngine,
    SessionAbortedError,
    SessionInterruptedError,
    SessionState,
)
from .location import ObjectLocation, StorageProvider, parse_object_uri
from .outcome import (
    ConflictDetected,
    ExitCode,
    SyncOutcome,
    Unchanged,
    Uploaded,
    UploadFailed,
)
from .workspace import TempWorkspace, WorkspaceError

__version__ = "1.1.0"

__all__ = [
    "ConflictDetected",
    "EditSession",
    "EditSyncEngine",
    "Editor",
    "EditorError",
    "EditorLaunchError",
    "EditorNotConfiguredError",
    "ExitCode",
    "ObjectLocation",
    "SessionAbortedError",
    "SessionInterruptedError",
    "SessionState",
    "StorageProvider",
    "SyncOutcome",
    "TempWorkspace",
    "Unchanged",
    "UploadFailed",
    "Uploaded",
    "WorkspaceError",
    "parse_object_uri",
]
