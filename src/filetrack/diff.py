"""Line diff between a file and its latest snapshot.

The snapshot is the "before" side and the current file the "after" side:
REMOVED lines exist only in the snapshot, INSERTED lines only in the file.
The returned EditScript and the rendered output come from the same opcodes.
"""

import difflib
import logging
from pathlib import Path

from filetrack.errors import read_error
from filetrack.render import DiffRenderer
from filetrack.store import SnapshotStore, tracked_basename
from filetrack.types import DiffLine, EditScript, LineTag, Snapshot

logger = logging.getLogger(__name__)

LINE_SEPARATOR = "\n"


def split_lines(text: str) -> list[str]:
    """Split on ``"\\n"`` only; a trailing newline yields a final empty line."""
    return text.split(LINE_SEPARATOR)


def diff_lines(before: str, after: str) -> EditScript:
    """Compute the line edit script turning ``before`` into ``after``.

    Uses difflib's matcher with autojunk disabled so frequent lines (blank
    lines, braces) are still matched.

    Example:
        >>> script = diff_lines("a\\nb\\n", "a\\nb\\nc\\n")
        >>> script.insertions
        ['c']
    """
    old = split_lines(before)
    new = split_lines(after)
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)

    lines: list[DiffLine] = []
    for op, i1, i2, j1, j2 in matcher.get_opcodes():
        if op == "equal":
            lines.extend(DiffLine(LineTag.UNCHANGED, text) for text in old[i1:i2])
        elif op == "delete":
            lines.extend(DiffLine(LineTag.REMOVED, text) for text in old[i1:i2])
        elif op == "insert":
            lines.extend(DiffLine(LineTag.INSERTED, text) for text in new[j1:j2])
        elif op == "replace":
            lines.extend(DiffLine(LineTag.REMOVED, text) for text in old[i1:i2])
            lines.extend(DiffLine(LineTag.INSERTED, text) for text in new[j1:j2])

    return EditScript(tuple(lines))


def read_text(path: Path) -> str:
    """Read ``path`` as UTF-8 text (READ_FAILED on I/O or decode errors)."""
    try:
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise read_error(path, e) from e


class DiffEngine:
    """Compares files against their most recent snapshot.

    Usage:
        engine = DiffEngine(SnapshotStore(root))
        script = engine.compute_diff(Path("notes.txt"))
        if script.is_empty:
            ...
    """

    def __init__(
        self,
        store: SnapshotStore,
        *,
        renderer: DiffRenderer | None = None,
    ) -> None:
        self.store = store
        self.renderer = renderer or DiffRenderer()

    def compare(self, path: Path | str) -> tuple[Snapshot, EditScript]:
        """Diff ``path`` against its latest snapshot without rendering.

        Raises:
            TrackError: NO_TRACK_REPO, NOT_FOUND or READ_FAILED
        """
        basename = tracked_basename(path)
        source = self.store.resolve(path)

        snapshot = self.store.latest_snapshot(basename)
        current = read_text(source)
        archived = snapshot.read_text()

        script = diff_lines(archived, current)
        logger.debug(
            "diff %s against %s: %s", source, snapshot.path, script.stats.format()
        )
        return snapshot, script

    def diff(self, path: Path | str) -> tuple[Snapshot, EditScript]:
        """Diff ``path`` against its latest snapshot and print the result.

        Args:
            path: Tracked file (relative paths resolve against the store root)

        Returns:
            The snapshot compared against and the edit script, snapshot as
            "before" and file as "after"

        Raises:
            TrackError: NO_TRACK_REPO, NOT_FOUND or READ_FAILED
        """
        snapshot, script = self.compare(path)
        self.renderer.render(
            script,
            before_label=f"{snapshot.path.parent.name}/{snapshot.name}",
            after_label=str(path),
        )
        return snapshot, script

    def compute_diff(self, path: Path | str) -> EditScript:
        """Render and return the edit script for ``path``."""
        return self.diff(path)[1]
