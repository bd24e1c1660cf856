import sys

import click

from object_editor.editor import EditorError
from object_editor.engine import SessionAbortedError, SessionInterruptedError
from object_editor.outcome import ExitCode
from object_editor.storage.exceptions import StoragePermissionError
from object_editor.workspace import WorkspaceError


def error_exit(message: str, code: int = ExitCode.FETCH_FAILED):
    """Print an error message to stderr and exit with the given code."""
    click.echo(click.style(message, fg="red"), err=True)
    sys.exit(int(code))


def exit_code_for_error(error: BaseException) -> ExitCode:
    """Map an error that ended a session, or the cause of an aborted session, to an exit code."""
    if isinstance(error, SessionInterruptedError):
        return ExitCode.INTERRUPTED
    if isinstance(error, SessionAbortedError):
        return exit_code_for_error(error.cause)
    if isinstance(error, KeyboardInterrupt):
        return ExitCode.INTERRUPTED
    if isinstance(error, StoragePermissionError):
        return ExitCode.ACCESS_DENIED
    if isinstance(error, EditorError):
        return ExitCode.EDITOR_FAILED
    if isinstance(error, WorkspaceError):
        return ExitCode.WORKSPACE_FAILED
    return ExitCode.FETCH_FAILED
