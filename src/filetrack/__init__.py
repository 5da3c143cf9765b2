"""Filetrack - extra simple source code control.

Automates making a numbered copy of a file: every commit copies the file to
``.track/<name>.NNN``. Restoring is done by copying a snapshot back by hand.
Written as a library with a thin CLI on top, so it can be embedded in other
programs.

Usage:
    from pathlib import Path
    from filetrack import Commit, Diff, handle_track

    handle_track(Commit(Path("notes.txt")), root=Path.cwd())
    result = handle_track(Diff(Path("notes.txt")), root=Path.cwd())
    if result.script.is_empty:
        print("unchanged")
"""

__version__ = "0.2.0"

from filetrack.config import TrackConfig, load_config
from filetrack.core import handle_track
from filetrack.diff import DiffEngine, diff_lines
from filetrack.errors import ErrorCode, TrackError
from filetrack.store import ARCHIVE_DIR_NAME, MAX_SEQUENCE, SnapshotStore
from filetrack.types import (
    Commit,
    CommitResult,
    Diff,
    DiffLine,
    DiffResult,
    EditScript,
    History,
    HistoryResult,
    LineTag,
    Snapshot,
)

__all__ = [
    "ARCHIVE_DIR_NAME",
    "MAX_SEQUENCE",
    "Commit",
    "CommitResult",
    "Diff",
    "DiffEngine",
    "DiffLine",
    "DiffResult",
    "EditScript",
    "ErrorCode",
    "History",
    "HistoryResult",
    "LineTag",
    "Snapshot",
    "SnapshotStore",
    "TrackConfig",
    "TrackError",
    "diff_lines",
    "handle_track",
    "load_config",
]
