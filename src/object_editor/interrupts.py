"""Signal routing for an interactive edit session."""

import logging
import signal
import threading
from contextlib import contextmanager
from typing import Iterator

log = logging.getLogger(__name__)

_TERMINATION_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class TerminationRequested(BaseException):
    """Raised in the main thread when a termination signal arrives.

    Derives from BaseException, like KeyboardInterrupt, so that generic
    ``except Exception`` handlers around SDK calls do not absorb it.
    """

    def __init__(self, signum: int):
        self.signum = signum
        super().__init__(f"Received signal {signal.Signals(signum).name}")


class SigintRecord:
    """Whether SIGINT arrived while it was deferred."""

    def __init__(self):
        self.received = False


def _in_main_thread() -> bool:
    return threading.current_thread() is threading.main_thread()


@contextmanager
def termination_signals_raise() -> Iterator[None]:
    """Turn SIGTERM and SIGHUP into TerminationRequested for the duration of the block."""
    if not _in_main_thread():
        yield
        return

    def signal_handler(signum, frame):
        log.info("Received signal %d, aborting session", signum)
        raise TerminationRequested(signum)

    previous = {sig: signal.signal(sig, signal_handler) for sig in _TERMINATION_SIGNALS}
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


@contextmanager
def deferred_sigint() -> Iterator[SigintRecord]:
    """Record SIGINT instead of raising KeyboardInterrupt.

    Used while a foreground child process owns the terminal: Ctrl-C reaches
    both processes, and terminal editors handle it themselves. A Python level
    handler is not inherited across exec, so the child keeps default handling.
    """
    record = SigintRecord()
    if not _in_main_thread():
        yield record
        return

    def signal_handler(signum, frame):
        record.received = True

    previous = signal.signal(signal.SIGINT, signal_handler)
    try:
        yield record
    finally:
        signal.signal(signal.SIGINT, previous)
