"""Central dispatch from commands to the snapshot store and diff engine.

The caller decides where the archive lives by passing ``root``; nothing here
reads the process working directory or exits the process.
"""

import logging
from pathlib import Path

from rich.console import Console

from filetrack.config import TrackConfig
from filetrack.diff import DiffEngine
from filetrack.errors import TrackError
from filetrack.render import DiffRenderer
from filetrack.store import SnapshotStore, tracked_basename
from filetrack.theme import make_console
from filetrack.types import (
    Commit,
    CommitResult,
    Diff,
    DiffResult,
    History,
    HistoryResult,
    TrackCommand,
    TrackResult,
)

logger = logging.getLogger(__name__)


def handle_track(
    command: TrackCommand,
    *,
    root: Path | str,
    config: TrackConfig | None = None,
    console: Console | None = None,
) -> TrackResult:
    """Run one command against the archive under ``root``.

    Args:
        command: Commit, Diff or History
        root: Directory holding the ``.track`` archive; relative command
            paths resolve against it
        config: Settings for locking and diff rendering
        console: Where Diff prints its rendering (stdout by default)

    Returns:
        CommitResult, DiffResult or HistoryResult matching the command

    Raises:
        TrackError: Any store or diff failure, after it has been logged
    """
    config = config or TrackConfig()
    logger.debug("handle_track: %r", command)

    store = SnapshotStore(root, use_lock=config.lock)

    try:
        match command:
            case Commit(path=path):
                return CommitResult(snapshot=store.commit(path))
            case Diff(path=path):
                renderer = DiffRenderer(
                    console or make_console(color=config.color),
                    context_lines=config.context_lines,
                    max_lines=config.max_lines,
                )
                snapshot, script = DiffEngine(store, renderer=renderer).diff(path)
                return DiffResult(snapshot=snapshot, script=script)
            case History(path=path):
                basename = tracked_basename(path)
                return HistoryResult(
                    basename=basename,
                    snapshots=tuple(store.list_snapshots(basename)),
                )
            case _:
                raise TypeError(f"Unknown track command: {command!r}")
    except TrackError as e:
        logger.error("error in handle_track()/%s: %s", type(command).__name__.lower(), e)
        raise
