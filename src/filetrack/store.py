"""Snapshot store backed by a flat ``.track`` directory.

Each commit copies a file to ``.track/<basename>.<NNN>`` where ``NNN`` is the
lowest unused sequence number in 1..999 for that basename. Snapshots are
never modified or deleted once written.

Storage layout:
    .track/
    ├── notes.txt.001
    ├── notes.txt.002
    ├── setup.py.001
    └── .lock            # only when commits run with use_lock=True

Concurrency:
    Choosing a slot is a scan followed by a create, so two processes
    committing the same basename can pick the same number. The final publish
    step is create-only (``os.link``), so the loser fails with SLOT_TAKEN
    instead of overwriting. Cooperating processes can serialise commits with
    ``use_lock=True``, which holds an ``fcntl.flock`` on ``.track/.lock``.
"""

import fcntl
import logging
import os
import re
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filetrack.errors import (
    ErrorCode,
    copy_error,
    not_found,
    read_error,
    store_error,
)
from filetrack.types import SEQUENCE_WIDTH, Snapshot, snapshot_name

logger = logging.getLogger(__name__)

ARCHIVE_DIR_NAME = ".track"
"""Name of the archive directory, relative to the store root."""

MAX_SEQUENCE = 999
"""Highest sequence number a basename can reach."""

LOCK_FILE_NAME = ".lock"

TEMP_PREFIX = ".tmp-"

_COPY_CHUNK_SIZE = 64 * 1024


def tracked_basename(path: Path | str) -> str:
    """Return the filename component snapshots are keyed by.

    Raises:
        ValueError: If the path has no filename component (caller bug)
    """
    name = Path(path).name
    if not name or name in (".", ".."):
        raise ValueError(f"Path has no filename component: {path!r}")
    return name


class SnapshotStore:
    """Persists and enumerates snapshots under ``root/.track``.

    The root directory is always explicit; the store never consults the
    process working directory.

    Example:
        >>> store = SnapshotStore(Path("/project"))
        >>> snap = store.commit(Path("notes.txt"))
        >>> snap.name
        'notes.txt.001'
        >>> store.latest_snapshot("notes.txt") == snap
        True
    """

    def __init__(self, root: Path | str, *, use_lock: bool = False) -> None:
        self.root = Path(root)
        self.archive_dir = self.root / ARCHIVE_DIR_NAME
        self.use_lock = use_lock

    def resolve(self, path: Path | str) -> Path:
        """Resolve a caller-supplied path against the store root."""
        path = Path(path)
        return path if path.is_absolute() else self.root / path

    # -------------------------------------------------------------------------
    # Commit
    # -------------------------------------------------------------------------

    def commit(self, path: Path | str) -> Snapshot:
        """Copy ``path`` into the archive as its next snapshot.

        The source is checked before the archive directory is created, so a
        failed commit of a missing file leaves no ``.track`` behind.

        Args:
            path: File to snapshot (relative paths resolve against root)

        Returns:
            The new Snapshot

        Raises:
            ValueError: If ``path`` has no filename component
            TrackError: NOT_FOUND, STORE_UNAVAILABLE, STORE_EXHAUSTED,
                COPY_FAILED or SLOT_TAKEN
        """
        basename = tracked_basename(path)
        source = self.resolve(path)
        logger.debug("commit: %s (root=%s)", source, self.root)

        if not source.is_file():
            detail = "not a regular file" if source.exists() else ""
            raise not_found(path, detail=detail, basename=basename)

        self._ensure_archive_dir()

        with self._commit_lock():
            sequence = self._next_free_sequence(basename)
            destination = self.archive_dir / snapshot_name(basename, sequence)
            self._publish_copy(source, destination)

        snapshot = Snapshot(basename=basename, sequence=sequence, path=destination)
        logger.info("Committed %s as %s", source, destination)
        return snapshot

    def _ensure_archive_dir(self) -> None:
        try:
            self.archive_dir.mkdir(exist_ok=True)
        except OSError as e:
            logger.debug("cannot create track dir at %s: %s", self.archive_dir, e)
            raise store_error(
                ErrorCode.STORE_UNAVAILABLE, self.archive_dir, str(e), cause=e
            ) from e
        if not self.archive_dir.is_dir():
            raise store_error(
                ErrorCode.STORE_UNAVAILABLE, self.archive_dir, "exists and is not a directory"
            )

    @contextmanager
    def _commit_lock(self) -> Iterator[None]:
        """Hold the archive-wide advisory lock when ``use_lock`` is set."""
        if not self.use_lock:
            yield
            return

        lock_path = self.archive_dir / LOCK_FILE_NAME
        try:
            fd = os.open(str(lock_path), os.O_CREAT | os.O_RDWR)
        except OSError as e:
            raise store_error(
                ErrorCode.STORE_UNAVAILABLE, self.archive_dir, f"cannot open lock: {e}", cause=e
            ) from e
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
            logger.debug("Acquired archive lock %s", lock_path)
            yield
        finally:
            fcntl.flock(fd, fcntl.LOCK_UN)
            os.close(fd)

    def _next_free_sequence(self, basename: str) -> int:
        """Lowest sequence in 1..MAX_SEQUENCE with no snapshot on disk."""
        for sequence in range(1, MAX_SEQUENCE + 1):
            candidate = self.archive_dir / snapshot_name(basename, sequence)
            if not os.path.lexists(candidate):
                return sequence

        raise store_error(
            ErrorCode.STORE_EXHAUSTED,
            self.archive_dir,
            basename=basename,
            limit=MAX_SEQUENCE,
        )

    def _publish_copy(self, source: Path, destination: Path) -> None:
        """Copy ``source`` to ``destination`` all-or-nothing, never overwriting.

        Content goes to a temp file in the archive directory first and is then
        hard-linked into place; ``os.link`` refuses an existing destination.
        """
        tmp_name: str | None = None
        try:
            try:
                fd, tmp_name = tempfile.mkstemp(
                    prefix=TEMP_PREFIX, suffix=".tmp", dir=self.archive_dir
                )
                with os.fdopen(fd, "wb") as out, open(source, "rb") as src:
                    for chunk in iter(lambda: src.read(_COPY_CHUNK_SIZE), b""):
                        out.write(chunk)
                    out.flush()
                    os.fsync(out.fileno())
                os.link(tmp_name, destination)
            except FileExistsError as e:
                logger.debug("Snapshot slot %s taken by another writer", destination)
                raise copy_error(ErrorCode.SLOT_TAKEN, source, destination, e) from e
            except OSError as e:
                logger.debug("copy %s -> %s failed: %s", source, destination, e)
                raise copy_error(ErrorCode.COPY_FAILED, source, destination, e) from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.debug("Temp file %s already gone", tmp_name)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def _require_archive(self) -> None:
        if not self.archive_dir.is_dir():
            raise store_error(ErrorCode.NO_TRACK_REPO, self.archive_dir)

    def _scan(self, basename: str) -> list[Snapshot]:
        """All well-formed snapshots of ``basename``, in directory order."""
        pattern = re.compile(rf"{re.escape(basename)}\.(\d{{{SEQUENCE_WIDTH}}})")
        snapshots = []
        try:
            entries = list(self.archive_dir.iterdir())
        except OSError as e:
            raise read_error(self.archive_dir, e) from e

        for entry in entries:
            match = pattern.fullmatch(entry.name)
            if match is None:
                continue
            sequence = int(match.group(1))
            if 1 <= sequence <= MAX_SEQUENCE:
                snapshots.append(Snapshot(basename=basename, sequence=sequence, path=entry))
        return snapshots

    def list_snapshots(self, basename: str) -> list[Snapshot]:
        """List snapshots of ``basename``, oldest first.

        Raises:
            TrackError: NO_TRACK_REPO if the archive directory is missing
        """
        self._require_archive()
        return sorted(self._scan(basename), key=lambda s: s.sequence)

    def latest_snapshot(self, basename: str) -> Snapshot:
        """Return the snapshot of ``basename`` with the highest sequence.

        Directory enumeration order is unspecified, so matches are sorted by
        their parsed sequence number.

        Raises:
            TrackError: NO_TRACK_REPO if the archive directory is missing,
                NOT_FOUND if it holds no snapshot of ``basename``
        """
        self._require_archive()
        snapshots = sorted(self._scan(basename), key=lambda s: s.sequence, reverse=True)
        if not snapshots:
            raise not_found(
                basename, detail=f"no snapshots in {ARCHIVE_DIR_NAME}", basename=basename
            )
        logger.debug("latest snapshot of %s: %s", basename, snapshots[0].path)
        return snapshots[0]
