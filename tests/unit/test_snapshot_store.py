"""Tests for SnapshotStore commit and lookup."""

import os
import tempfile
from pathlib import Path

import pytest

from filetrack.errors import ErrorCode, TrackError
from filetrack.store import ARCHIVE_DIR_NAME, MAX_SEQUENCE, SnapshotStore, tracked_basename

TEST_FILE = "rtrack_test"


class TestCommit:
    """Tests for SnapshotStore.commit()."""

    def test_first_commit_creates_archive_and_001(self, store: SnapshotStore, workspace: Path) -> None:
        """First commit creates .track lazily and writes <name>.001."""
        archive = workspace / ARCHIVE_DIR_NAME
        assert not archive.exists()

        snapshot = store.commit(Path(TEST_FILE))

        assert archive.is_dir()
        assert snapshot.sequence == 1
        assert snapshot.path == archive / "rtrack_test.001"
        assert snapshot.path.read_text() == "0123456789\n"
        assert not (archive / "rtrack_test.002").exists()

    def test_second_commit_uses_002(self, store: SnapshotStore, workspace: Path) -> None:
        """Committing unchanged content again still takes a new slot."""
        store.commit(Path(TEST_FILE))
        second = store.commit(Path(TEST_FILE))

        archive = workspace / ARCHIVE_DIR_NAME
        assert second.sequence == 2
        assert (archive / "rtrack_test.001").read_bytes() == (archive / "rtrack_test.002").read_bytes()

    def test_nth_commit_yields_sequence_n(self, store: SnapshotStore) -> None:
        """Sequence numbers are gap-free and strictly increasing."""
        sequences = [store.commit(Path(TEST_FILE)).sequence for _ in range(5)]

        assert sequences == [1, 2, 3, 4, 5]

    def test_commit_fills_lowest_free_slot(self, store: SnapshotStore, workspace: Path) -> None:
        """A hole left by manual deletion is reused first."""
        for _ in range(3):
            store.commit(Path(TEST_FILE))
        (workspace / ARCHIVE_DIR_NAME / "rtrack_test.002").unlink()

        assert store.commit(Path(TEST_FILE)).sequence == 2

    def test_content_is_byte_identical(self, store: SnapshotStore, tracked_file: Path) -> None:
        """Binary-safe copy: snapshot bytes equal the source bytes."""
        payload = bytes(range(256)) * 10
        tracked_file.write_bytes(payload)

        snapshot = store.commit(tracked_file)

        assert snapshot.read_bytes() == payload

    def test_absolute_path_uses_basename(self, store: SnapshotStore, workspace: Path) -> None:
        """Snapshots are keyed by filename, not by directory."""
        sub = workspace / "sub"
        sub.mkdir()
        (sub / "notes.txt").write_text("x\n")

        snapshot = store.commit(sub / "notes.txt")

        assert snapshot.path == workspace / ARCHIVE_DIR_NAME / "notes.txt.001"

    def test_missing_file_is_not_found(self, store: SnapshotStore, workspace: Path) -> None:
        """A missing source fails before the archive is created."""
        with pytest.raises(TrackError) as exc_info:
            store.commit(Path("bad_" + TEST_FILE))

        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert not (workspace / ARCHIVE_DIR_NAME).exists()

    def test_directory_is_not_found(self, store: SnapshotStore, workspace: Path) -> None:
        """Only regular files can be committed."""
        (workspace / "adir").mkdir()

        with pytest.raises(TrackError) as exc_info:
            store.commit(Path("adir"))

        assert exc_info.value.code == ErrorCode.NOT_FOUND
        assert "not a regular file" in exc_info.value.message

    def test_path_without_filename_is_programmer_error(self, store: SnapshotStore) -> None:
        """Paths with no filename component violate the caller contract."""
        with pytest.raises(ValueError):
            store.commit(Path("/"))

    def test_archive_path_is_a_file(self, store: SnapshotStore, workspace: Path) -> None:
        """A plain file squatting on .track makes the store unavailable."""
        (workspace / ARCHIVE_DIR_NAME).write_text("not a dir")

        with pytest.raises(TrackError) as exc_info:
            store.commit(Path(TEST_FILE))

        assert exc_info.value.code == ErrorCode.STORE_UNAVAILABLE

    def test_store_exhausted(self, store: SnapshotStore, workspace: Path) -> None:
        """All 999 slots taken raises STORE_EXHAUSTED without writing."""
        archive = workspace / ARCHIVE_DIR_NAME
        archive.mkdir()
        for seq in range(1, MAX_SEQUENCE + 1):
            (archive / f"{TEST_FILE}.{seq:03d}").touch()

        with pytest.raises(TrackError) as exc_info:
            store.commit(Path(TEST_FILE))

        assert exc_info.value.code == ErrorCode.STORE_EXHAUSTED
        assert len(list(archive.iterdir())) == MAX_SEQUENCE

    def test_slot_taken_race_fails_loudly(
        self, store: SnapshotStore, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A slot created between scan and publish is never overwritten."""
        archive = workspace / ARCHIVE_DIR_NAME
        real_publish = store._publish_copy

        def racing_publish(source: Path, destination: Path) -> None:
            destination.write_text("other writer\n")
            real_publish(source, destination)

        monkeypatch.setattr(store, "_publish_copy", racing_publish)

        with pytest.raises(TrackError) as exc_info:
            store.commit(Path(TEST_FILE))

        assert exc_info.value.code == ErrorCode.SLOT_TAKEN
        assert exc_info.value.code.is_copy_failure
        assert (archive / "rtrack_test.001").read_text() == "other writer\n"

    def test_copy_failure_leaves_no_partial_snapshot(
        self, store: SnapshotStore, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An I/O error before publish leaves neither snapshot nor temp file."""
        def failing_link(src: str, dst: str) -> None:
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "link", failing_link)

        with pytest.raises(TrackError) as exc_info:
            store.commit(Path(TEST_FILE))

        assert exc_info.value.code == ErrorCode.COPY_FAILED
        assert list((workspace / ARCHIVE_DIR_NAME).iterdir()) == []

    def test_long_basename_commits(self, store: SnapshotStore, workspace: Path) -> None:
        """A basename whose snapshot name fits the filesystem limit can be committed."""
        name = "x" * 250
        (workspace / name).write_text("long\n")

        snapshot = store.commit(workspace / name)

        assert snapshot.path.name == f"{name}.001"
        assert snapshot.read_text() == "long\n"
        assert [p.name for p in (workspace / ARCHIVE_DIR_NAME).iterdir()] == [f"{name}.001"]

    def test_temp_file_failure_is_copy_failed(
        self, store: SnapshotStore, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An unwritable archive surfaces as COPY_FAILED, not a raw OSError."""
        def failing_mkstemp(*args, **kwargs):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(tempfile, "mkstemp", failing_mkstemp)

        with pytest.raises(TrackError) as exc_info:
            store.commit(Path(TEST_FILE))

        assert exc_info.value.code == ErrorCode.COPY_FAILED
        assert isinstance(exc_info.value.cause, PermissionError)
        assert list((workspace / ARCHIVE_DIR_NAME).iterdir()) == []

    def test_locked_commit(self, workspace: Path) -> None:
        """use_lock serialises commits through .track/.lock."""
        store = SnapshotStore(workspace, use_lock=True)

        first = store.commit(Path(TEST_FILE))
        second = store.commit(Path(TEST_FILE))

        assert (first.sequence, second.sequence) == (1, 2)
        assert (workspace / ARCHIVE_DIR_NAME / ".lock").exists()


class TestLatestSnapshot:
    """Tests for SnapshotStore.latest_snapshot()."""

    def test_no_archive_is_no_track_repo(self, store: SnapshotStore) -> None:
        """Lookup without .track fails with NO_TRACK_REPO."""
        with pytest.raises(TrackError) as exc_info:
            store.latest_snapshot(TEST_FILE)

        assert exc_info.value.code == ErrorCode.NO_TRACK_REPO

    def test_no_entries_is_not_found(self, store: SnapshotStore, workspace: Path) -> None:
        """An archive without entries for the basename fails with NOT_FOUND."""
        (workspace / ARCHIVE_DIR_NAME).mkdir()
        store.commit(Path(TEST_FILE))

        with pytest.raises(TrackError) as exc_info:
            store.latest_snapshot("other.txt")

        assert exc_info.value.code == ErrorCode.NOT_FOUND

    def test_picks_highest_sequence(self, store: SnapshotStore, workspace: Path) -> None:
        """The greatest numeric suffix wins regardless of creation order."""
        archive = workspace / ARCHIVE_DIR_NAME
        archive.mkdir()
        for seq in (10, 2, 100, 9):
            (archive / f"{TEST_FILE}.{seq:03d}").write_text(str(seq))

        latest = store.latest_snapshot(TEST_FILE)

        assert latest.sequence == 100
        assert latest.read_text() == "100"

    def test_ignores_malformed_and_prefixed_names(self, store: SnapshotStore, workspace: Path) -> None:
        """Only <basename>.<3 digits> in 1..999 counts as a snapshot."""
        archive = workspace / ARCHIVE_DIR_NAME
        archive.mkdir()
        (archive / f"{TEST_FILE}.001").write_text("real")
        (archive / f"{TEST_FILE}.0002").write_text("four digits")
        (archive / f"{TEST_FILE}.000").write_text("zero")
        (archive / f"{TEST_FILE}.abc").write_text("letters")
        (archive / f"{TEST_FILE}.bak.005").write_text("other file")
        (archive / f"x{TEST_FILE}.007").write_text("other file")

        latest = store.latest_snapshot(TEST_FILE)

        assert latest.sequence == 1
        assert latest.read_text() == "real"

    def test_round_trip_content(self, store: SnapshotStore, tracked_file: Path) -> None:
        """Commit then lookup returns the committed bytes."""
        committed = store.commit(tracked_file)

        latest = store.latest_snapshot(tracked_basename(tracked_file))

        assert latest == committed
        assert latest.read_bytes() == tracked_file.read_bytes()


class TestListSnapshots:
    """Tests for SnapshotStore.list_snapshots()."""

    def test_sorted_oldest_first(self, store: SnapshotStore) -> None:
        for _ in range(3):
            store.commit(Path(TEST_FILE))

        assert [s.sequence for s in store.list_snapshots(TEST_FILE)] == [1, 2, 3]

    def test_empty_for_unknown_basename(self, store: SnapshotStore) -> None:
        store.commit(Path(TEST_FILE))

        assert store.list_snapshots("nothing") == []

    def test_no_archive(self, store: SnapshotStore) -> None:
        with pytest.raises(TrackError) as exc_info:
            store.list_snapshots(TEST_FILE)

        assert exc_info.value.code == ErrorCode.NO_TRACK_REPO
