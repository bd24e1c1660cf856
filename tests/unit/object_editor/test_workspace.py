"""Tests for the temp workspace file lifecycle."""

import os
import stat
import sys

import pytest

from object_editor.storage.base import ObjectSnapshot
from object_editor.workspace import TempWorkspace, WorkspaceError, suffix_for_key

SNAPSHOT = ObjectSnapshot(content=b"hello\n", fingerprint="etag1")


class TestAcquire:
    def test_writes_snapshot_content(self, isolated_tempdir):
        workspace = TempWorkspace()
        path = workspace.acquire(SNAPSHOT)

        assert path.parent == isolated_tempdir
        assert path.read_bytes() == b"hello\n"
        assert path.name.startswith("eo-")
        workspace.release()

    def test_uses_suffix(self):
        with TempWorkspace(suffix=".json") as workspace:
            assert workspace.acquire(SNAPSHOT).suffix == ".json"

    def test_zero_byte_snapshot_creates_empty_file(self):
        with TempWorkspace() as workspace:
            path = workspace.acquire(ObjectSnapshot(content=b"", fingerprint="etag0"))
            assert path.read_bytes() == b""

    def test_concurrent_workspaces_get_distinct_files(self):
        with TempWorkspace() as first, TempWorkspace() as second:
            assert first.acquire(SNAPSHOT) != second.acquire(SNAPSHOT)

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_file_is_private(self):
        with TempWorkspace() as workspace:
            mode = stat.S_IMODE(os.stat(workspace.acquire(SNAPSHOT)).st_mode)
            assert mode == 0o600

    def test_pinned_path(self, tmp_path):
        pinned = tmp_path / "pinned.txt"
        with TempWorkspace(path=pinned) as workspace:
            assert workspace.acquire(SNAPSHOT) == pinned
            assert pinned.read_bytes() == b"hello\n"
        assert not pinned.exists()

    def test_existing_pinned_path_is_not_overwritten(self, tmp_path):
        pinned = tmp_path / "pinned.txt"
        pinned.write_bytes(b"keep me")

        with pytest.raises(WorkspaceError, match="Refusing to overwrite"):
            TempWorkspace(path=pinned).acquire(SNAPSHOT)

        assert pinned.read_bytes() == b"keep me"

    def test_missing_pinned_directory_raises(self, tmp_path):
        with pytest.raises(WorkspaceError):
            TempWorkspace(path=tmp_path / "nope" / "file.txt").acquire(SNAPSHOT)

    def test_second_acquire_raises(self):
        with TempWorkspace() as workspace:
            workspace.acquire(SNAPSHOT)
            with pytest.raises(WorkspaceError, match="already acquired"):
                workspace.acquire(SNAPSHOT)

    def test_path_before_acquire_raises(self):
        with pytest.raises(WorkspaceError):
            TempWorkspace().path


class TestReadCurrent:
    def test_reads_edited_bytes(self):
        with TempWorkspace() as workspace:
            path = workspace.acquire(SNAPSHOT)
            path.write_bytes(b"\x00binary\xff")
            assert workspace.read_current() == b"\x00binary\xff"

    def test_deleted_file_raises(self):
        with TempWorkspace() as workspace:
            workspace.acquire(SNAPSHOT).unlink()
            with pytest.raises(WorkspaceError):
                workspace.read_current()


class TestRelease:
    def test_removes_file(self):
        workspace = TempWorkspace()
        path = workspace.acquire(SNAPSHOT)

        workspace.release()

        assert not path.exists()

    def test_release_is_idempotent(self):
        workspace = TempWorkspace()
        workspace.acquire(SNAPSHOT)

        workspace.release()
        workspace.release()

    def test_release_without_acquire_is_noop(self):
        TempWorkspace().release()

    def test_kept_file_survives_release(self):
        workspace = TempWorkspace()
        path = workspace.acquire(SNAPSHOT)

        workspace.keep()
        workspace.release()

        assert path.exists()
        assert workspace.kept

    def test_context_manager_releases_on_exception(self):
        with pytest.raises(RuntimeError):
            with TempWorkspace() as workspace:
                path = workspace.acquire(SNAPSHOT)
                raise RuntimeError("boom")

        assert not path.exists()

    def test_context_manager_releases_on_keyboard_interrupt(self):
        with pytest.raises(KeyboardInterrupt):
            with TempWorkspace() as workspace:
                path = workspace.acquire(SNAPSHOT)
                raise KeyboardInterrupt

        assert not path.exists()

    def test_file_removed_by_editor_is_tolerated(self):
        workspace = TempWorkspace()
        workspace.acquire(SNAPSHOT).unlink()

        workspace.release()


class TestSuffixForKey:
    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("config/app.json", ".json"),
            ("notes.txt", ".txt"),
            ("archive.tar.gz", ".gz"),
            ("README", ""),
            ("dir.d/file", ""),
            ("evil.$(rm -rf)", ""),
            ("name.averyveryverylongextension", ""),
        ],
    )
    def test_suffix(self, key, expected):
        assert suffix_for_key(key) == expected
