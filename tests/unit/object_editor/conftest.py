"""Fake storage backend and editor shared by the object editor tests."""

import tempfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import pytest

from object_editor.editor import Editor
from object_editor.location import ObjectLocation, StorageProvider
from object_editor.storage.base import (
    ABSENT_FINGERPRINT,
    DEFAULT_CONTENT_TYPE,
    Conflict,
    ObjectSnapshot,
    StorageBackend,
    Written,
)
from object_editor.storage.exceptions import StorageNotFoundError
from object_editor.storage.retry import RetryPolicy


@dataclass
class WriteCall:
    location: ObjectLocation
    content: bytes
    expected_fingerprint: str
    content_type: str | None = None
    metadata: dict | None = None


@dataclass
class FakeBackend(StorageBackend):
    """In-memory backend with real compare-and-swap semantics."""

    objects: dict[str, ObjectSnapshot] = field(default_factory=dict)
    fetch_errors: list[Exception] = field(default_factory=list)
    write_errors: list[Exception] = field(default_factory=list)
    fetch_calls: list[ObjectLocation] = field(default_factory=list)
    write_calls: list[WriteCall] = field(default_factory=list)
    _writes: int = 0

    def put(self, key: str, content: bytes, fingerprint: str, **kwargs) -> None:
        self.objects[key] = ObjectSnapshot(content=content, fingerprint=fingerprint, **kwargs)

    def fetch(self, location):
        self.fetch_calls.append(location)
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        snapshot = self.objects.get(location.key)
        if snapshot is None:
            raise StorageNotFoundError(f"{location} not found", key=location.key)
        return snapshot

    def conditional_write(self, location, content, expected_fingerprint, *, content_type=None, metadata=None):
        self.write_calls.append(WriteCall(location, content, expected_fingerprint, content_type, metadata))
        if self.write_errors:
            raise self.write_errors.pop(0)
        current = self.objects.get(location.key)
        current_fingerprint = current.fingerprint if current else ABSENT_FINGERPRINT
        if current_fingerprint != expected_fingerprint:
            return Conflict(current_fingerprint)
        self._writes += 1
        new_fingerprint = f"etag-w{self._writes}"
        self.objects[location.key] = ObjectSnapshot(
            content=content,
            fingerprint=new_fingerprint,
            content_type=content_type or DEFAULT_CONTENT_TYPE,
            metadata=metadata or {},
        )
        return Written(new_fingerprint)


class FakeEditor(Editor):
    """Editor that edits the file in-process instead of launching a program.

    ``edit`` is either the new file content or a callable receiving the path.
    """

    def __init__(self, edit: bytes | Callable[[Path], None] | None = None, status: int = 0):
        super().__init__("fake-editor")
        self.edit = edit
        self.status = status
        self.paths: list[Path] = []
        self.seen: list[bytes] = []

    def run(self, path):
        path = Path(path)
        self.paths.append(path)
        self.seen.append(path.read_bytes())
        if callable(self.edit):
            self.edit(path)
        elif self.edit is not None:
            path.write_bytes(self.edit)
        return self.status


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture(autouse=True)
def isolated_tempdir(tmp_path, monkeypatch):
    """Point tempfile at the test's tmp_path so workspace files are easy to inspect."""
    workdir = tmp_path / "tmp"
    workdir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(workdir))
    return workdir


@pytest.fixture()
def location() -> ObjectLocation:
    return ObjectLocation(provider=StorageProvider.S3, bucket="test-bucket", key="docs/notes.txt")


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def no_wait_retry() -> RetryPolicy:
    return RetryPolicy(max_attempts=3, sleep=lambda _delay: None)


@pytest.fixture()
def make_editor():
    return FakeEditor


@pytest.fixture(name="wait_for")
def wait_for_fixture():
    return wait_for
