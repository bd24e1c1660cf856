"""Launching the user's external editor on the workspace file."""

import logging
import os
import shlex
import signal
import subprocess

from .interrupts import deferred_sigint

log = logging.getLogger(__name__)


class EditorError(Exception):
    """Base exception for editor invocation failures."""


class EditorNotConfiguredError(EditorError):
    """Raised when no editor command could be resolved."""


class EditorLaunchError(EditorError):
    """Raised when the editor process cannot be started."""

    def __init__(self, message: str, command: list[str], cause: Exception | None = None):
        self.command = command
        self.cause = cause
        super().__init__(message)


class Editor:
    """Runs an editor command line as a foreground process and waits for it.

    The command is split like a shell would, so values such as
    ``code --wait`` or ``emacsclient -t`` work as expected.
    """

    def __init__(self, command: str | None):
        self._command = (command or "").strip()

    def ensure_configured(self) -> list[str]:
        """Return the parsed command line without the file argument.

        Raises:
            EditorNotConfiguredError: If the command is missing or cannot be parsed.
        """
        if not self._command:
            raise EditorNotConfiguredError(
                "No editor configured. Set $VISUAL or $EDITOR, or pass --editor."
            )
        try:
            args = shlex.split(self._command, posix=os.name != "nt")
        except ValueError as e:
            raise EditorNotConfiguredError(f"Cannot parse editor command {self._command!r}: {e}") from e
        if not args:
            raise EditorNotConfiguredError(f"Editor command {self._command!r} is empty")
        return args

    def argv(self, path: str | os.PathLike) -> list[str]:
        return [*self.ensure_configured(), os.fspath(path)]

    def run(self, path: str | os.PathLike) -> int:
        """Block until the editor exits and return its exit status.

        A non-zero status is returned, not raised. If Ctrl-C was pressed and
        the editor was killed by it, KeyboardInterrupt is raised after the
        editor has exited.

        Raises:
            EditorNotConfiguredError: If there is no usable editor command.
            EditorLaunchError: If the process cannot be started.
        """
        argv = self.argv(path)
        log.debug("Launching editor: %s", argv)

        with deferred_sigint() as sigint:
            try:
                completed = subprocess.run(argv, check=False)
            except OSError as e:
                raise EditorLaunchError(f"Failed to launch editor {argv[0]!r}: {e}", argv, cause=e) from e

        returncode = completed.returncode
        if sigint.received and returncode in (-signal.SIGINT, 128 + signal.SIGINT):
            raise KeyboardInterrupt
        if returncode != 0:
            log.warning("Editor %r exited with status %d", argv[0], returncode)
        return returncode

