"""Core value types for filetrack.

Commands are built by the CLI (or any other caller) and handed to
``filetrack.core.handle_track``; results carry the snapshot and edit
script the store and diff engine produced.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from filetrack.errors import read_error

# Width of the zero-padded sequence suffix (``notes.txt.007``)
SEQUENCE_WIDTH = 3


def snapshot_name(basename: str, sequence: int) -> str:
    """Build the archive file name for a snapshot.

    Example:
        >>> snapshot_name("notes.txt", 7)
        'notes.txt.007'
    """
    return f"{basename}.{sequence:0{SEQUENCE_WIDTH}d}"


@dataclass(frozen=True, slots=True)
class Snapshot:
    """An immutable stored copy of a tracked file.

    Attributes:
        basename: File name component of the tracked file
        sequence: 1-based commit number for this basename (1..999)
        path: Location of the snapshot inside the archive directory
    """

    basename: str
    sequence: int
    path: Path

    @property
    def name(self) -> str:
        return snapshot_name(self.basename, self.sequence)

    def read_bytes(self) -> bytes:
        """Read raw snapshot content (READ_FAILED on I/O errors)."""
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise read_error(self.path, e) from e

    def read_text(self) -> str:
        """Read snapshot content as UTF-8 text (READ_FAILED if unreadable)."""
        try:
            return self.path.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise read_error(self.path, e) from e


class LineTag(Enum):
    """Tag of a single line in an edit script."""

    UNCHANGED = "unchanged"
    """Present in both the snapshot and the current file."""

    INSERTED = "inserted"
    """Present only in the current file."""

    REMOVED = "removed"
    """Present only in the snapshot."""

    @property
    def prefix(self) -> str:
        """Unified-diff prefix character for this tag."""
        return {
            LineTag.UNCHANGED: " ",
            LineTag.INSERTED: "+",
            LineTag.REMOVED: "-",
        }[self]


@dataclass(frozen=True, slots=True)
class DiffLine:
    """One tagged line of an edit script."""

    tag: LineTag
    text: str

    def __str__(self) -> str:
        return f"{self.tag.prefix}{self.text}"


@dataclass(frozen=True, slots=True)
class DiffStats:
    """Statistics about an edit script."""

    insertions: int
    removals: int
    hunks: int

    @property
    def total_changes(self) -> int:
        return self.insertions + self.removals

    def format(self) -> str:
        """Format stats as a string."""
        parts = []
        if self.insertions:
            parts.append(f"+{self.insertions}")
        if self.removals:
            parts.append(f"-{self.removals}")
        return ", ".join(parts) if parts else "no changes"


@dataclass(frozen=True, slots=True)
class EditScript:
    """Line-level transformation from a snapshot (before) to a file (after).

    Every line of both texts appears exactly once, in order. Texts are split
    on ``"\\n"`` so a trailing newline shows up as a final empty line.

    Example:
        >>> script = EditScript((
        ...     DiffLine(LineTag.UNCHANGED, "a"),
        ...     DiffLine(LineTag.INSERTED, "b"),
        ... ))
        >>> script.apply_forward("a")
        'a\\nb'
    """

    lines: tuple[DiffLine, ...] = ()

    @property
    def changes(self) -> tuple[DiffLine, ...]:
        """Only the inserted and removed lines."""
        return tuple(line for line in self.lines if line.tag is not LineTag.UNCHANGED)

    @property
    def insertions(self) -> list[str]:
        return [line.text for line in self.lines if line.tag is LineTag.INSERTED]

    @property
    def removals(self) -> list[str]:
        return [line.text for line in self.lines if line.tag is LineTag.REMOVED]

    @property
    def is_empty(self) -> bool:
        """True when the two texts are identical."""
        return not self.changes

    @property
    def stats(self) -> DiffStats:
        hunks = 0
        in_change = False
        for line in self.lines:
            changed = line.tag is not LineTag.UNCHANGED
            if changed and not in_change:
                hunks += 1
            in_change = changed
        return DiffStats(
            insertions=len(self.insertions),
            removals=len(self.removals),
            hunks=hunks,
        )

    def before_lines(self) -> list[str]:
        return [line.text for line in self.lines if line.tag is not LineTag.INSERTED]

    def after_lines(self) -> list[str]:
        return [line.text for line in self.lines if line.tag is not LineTag.REMOVED]

    def apply_forward(self, before: str) -> str:
        """Apply the script to the snapshot text, producing the current text.

        Raises:
            ValueError: If ``before`` is not the text this script was built from
        """
        if before.split("\n") != self.before_lines():
            raise ValueError("Edit script does not apply to the given text")
        return "\n".join(self.after_lines())

    def apply_backward(self, after: str) -> str:
        """Undo the script on the current text, producing the snapshot text."""
        if after.split("\n") != self.after_lines():
            raise ValueError("Edit script does not apply to the given text")
        return "\n".join(self.before_lines())

    def __iter__(self) -> Iterator[DiffLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)


# =============================================================================
# Commands
# =============================================================================


@dataclass(frozen=True, slots=True)
class Commit:
    """Save a new snapshot of ``path``."""

    path: Path


@dataclass(frozen=True, slots=True)
class Diff:
    """Compare ``path`` against its latest snapshot."""

    path: Path


@dataclass(frozen=True, slots=True)
class History:
    """List the snapshots of ``path``."""

    path: Path


TrackCommand = Commit | Diff | History


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True, slots=True)
class CommitResult:
    snapshot: Snapshot

    @property
    def sequence(self) -> int:
        return self.snapshot.sequence


@dataclass(frozen=True, slots=True)
class DiffResult:
    snapshot: Snapshot
    script: EditScript


@dataclass(frozen=True, slots=True)
class HistoryResult:
    basename: str
    snapshots: tuple[Snapshot, ...]


TrackResult = CommitResult | DiffResult | HistoryResult
