"""Background upload of each editor save while the editor is still open."""

import dataclasses
import logging
import threading
import time
from pathlib import Path

from .location import ObjectLocation
from .storage.base import Conflict, ObjectSnapshot, StorageBackend, WriteResult
from .storage.exceptions import StorageError
from .storage.retry import NO_RETRY, RetryPolicy

log = logging.getLogger(__name__)


class SaveSyncWatcher:
    """Polls the workspace file and uploads it once a save has settled.

    The watch loop:
    1. Samples the file's (mtime, size) signature every ``poll_interval``
    2. On a change, waits until the signature is stable for ``debounce`` seconds
    3. Uploads with the last synced fingerprint as precondition
    4. Advances the baseline on success, or stops for good on a conflict

    The baseline is what the engine compares against once the editor exits.
    No write is issued after ``stop()`` returns.
    """

    def __init__(
        self,
        backend: StorageBackend,
        location: ObjectLocation,
        path: Path,
        baseline: ObjectSnapshot,
        retry: RetryPolicy | None = None,
        debounce: float = 0.5,
        poll_interval: float = 0.1,
    ):
        self._backend = backend
        self._location = location
        self._path = Path(path)
        self._retry = retry or NO_RETRY
        self._debounce = debounce
        self._poll_interval = poll_interval

        self._lock = threading.Lock()
        self._baseline = baseline
        self._uploads = 0
        self._conflict: Conflict | None = None
        self.last_error: StorageError | None = None

        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_signature = self._signature()
        self._pending_since: float | None = None

    @property
    def baseline(self) -> ObjectSnapshot:
        with self._lock:
            return self._baseline

    @property
    def uploads(self) -> int:
        with self._lock:
            return self._uploads

    @property
    def conflict(self) -> Conflict | None:
        with self._lock:
            return self._conflict

    def start(self) -> None:
        """Start the background watch thread."""
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="save-sync",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop watching and wait for an in-flight upload to finish."""
        self._stop.set()
        if self._thread and self._thread.is_alive():
            self._thread.join()

    def _watch_loop(self) -> None:
        log.debug("Save sync started for %s (debounce %.2fs)", self._path, self._debounce)
        while not self._stop.wait(self._poll_interval):
            try:
                self._poll_once()
            except Exception as e:
                log.error("Save sync cycle failed: %s", e, exc_info=True)
        log.debug("Save sync stopped after %d upload(s)", self.uploads)

    def _poll_once(self, now: float | None = None) -> None:
        now = time.monotonic() if now is None else now
        signature = self._signature()
        if signature != self._last_signature:
            self._last_signature = signature
            self._pending_since = now
            return
        if self._pending_since is None or now - self._pending_since < self._debounce:
            return
        self._pending_since = None
        self.sync_now()

    def sync_now(self) -> WriteResult | None:
        """Upload the file if it differs from the baseline. Returns None if nothing was written."""
        if self.conflict is not None:
            return None
        try:
            content = self._path.read_bytes()
        except OSError as e:
            log.warning("Could not read %s for save sync: %s", self._path, e)
            return None

        baseline = self.baseline
        if content == baseline.content:
            return None

        try:
            result = self._retry.call(
                self._backend.conditional_write,
                self._location,
                content,
                baseline.fingerprint,
                content_type=baseline.content_type,
                metadata=baseline.metadata or None,
            )
        except StorageError as e:
            self.last_error = e
            log.warning("Save sync of %s failed, will retry on next save: %s", self._location, e)
            return None

        with self._lock:
            if isinstance(result, Conflict):
                self._conflict = result
                self._stop.set()
                log.warning("%s changed remotely (now %s); save sync stopped", self._location, result.actual_fingerprint)
            else:
                self._baseline = dataclasses.replace(baseline, content=content, fingerprint=result.new_fingerprint)
                self._uploads += 1
                log.info("Synced save of %s (fingerprint %s)", self._location, result.new_fingerprint)
        return result

    def _signature(self) -> tuple[int, int] | None:
        try:
            stat = self._path.stat()
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size
