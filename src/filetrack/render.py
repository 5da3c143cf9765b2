"""Diff renderer for edit scripts.

Renders an EditScript as unified-diff style hunks:
- Green for insertions (+)
- Red for removals (-)
- Yellow for hunk headers (@@)
- Dim for context lines

The text is derived from the EditScript itself, so the printed view and the
returned script always agree on which lines changed.
"""

from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from filetrack.theme import make_console
from filetrack.types import EditScript, LineTag


@dataclass(frozen=True, slots=True)
class Hunk:
    """A run of script lines shown together, with its unified header."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    start: int
    """Index of the first script line in the hunk."""

    end: int
    """Index one past the last script line in the hunk."""

    @property
    def header(self) -> str:
        return f"@@ -{self.old_start},{self.old_count} +{self.new_start},{self.new_count} @@"


def build_hunks(script: EditScript, context_lines: int = 3) -> list[Hunk]:
    """Group changed lines of ``script`` into hunks with surrounding context.

    Line numbers follow unified-diff conventions: 1-based, and a side with
    zero lines reports the line before the hunk.
    """
    lines = script.lines
    changed = [i for i, line in enumerate(lines) if line.tag is not LineTag.UNCHANGED]
    if not changed:
        return []

    # Merge overlapping context windows into [start, end) ranges
    ranges: list[list[int]] = []
    for i in changed:
        start = max(0, i - context_lines)
        end = min(len(lines), i + context_lines + 1)
        if ranges and start <= ranges[-1][1]:
            ranges[-1][1] = max(ranges[-1][1], end)
        else:
            ranges.append([start, end])

    # old_before[i] / new_before[i]: lines of each side preceding script index i
    old_before = [0]
    new_before = [0]
    for line in lines:
        old_before.append(old_before[-1] + (line.tag is not LineTag.INSERTED))
        new_before.append(new_before[-1] + (line.tag is not LineTag.REMOVED))

    hunks = []
    for start, end in ranges:
        old_count = old_before[end] - old_before[start]
        new_count = new_before[end] - new_before[start]
        hunks.append(Hunk(
            old_start=old_before[start] + (1 if old_count else 0),
            old_count=old_count,
            new_start=new_before[start] + (1 if new_count else 0),
            new_count=new_count,
            start=start,
            end=end,
        ))
    return hunks


def format_unified(
    script: EditScript,
    *,
    before_label: str = "snapshot",
    after_label: str = "current",
    context_lines: int = 3,
) -> str:
    """Format ``script`` as unified diff text without rendering.

    Returns:
        Unified diff string, empty when the script has no changes
    """
    hunks = build_hunks(script, context_lines)
    if not hunks:
        return ""

    out = [f"--- {before_label}", f"+++ {after_label}"]
    for hunk in hunks:
        out.append(hunk.header)
        out.extend(str(line) for line in script.lines[hunk.start:hunk.end])
    return "\n".join(out) + "\n"


class DiffRenderer:
    """Renders edit scripts with themed styling.

    Usage:
        renderer = DiffRenderer(console)
        renderer.render(script, before_label=".track/a.txt.002", after_label="a.txt")
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        context_lines: int = 3,
        max_lines: int = 200,
    ) -> None:
        """Initialize the renderer.

        Args:
            console: Rich console (creates a stdout one if not provided)
            context_lines: Lines of context around changes
            max_lines: Maximum lines to display, 0 for no limit
        """
        self.console = console or make_console()
        self.context_lines = context_lines
        self.max_lines = max_lines

    def render(
        self,
        script: EditScript,
        *,
        before_label: str = "snapshot",
        after_label: str = "current",
    ) -> str:
        """Print ``script`` and return the plain unified text that was shown."""
        diff_text = format_unified(
            script,
            before_label=before_label,
            after_label=after_label,
            context_lines=self.context_lines,
        )

        if not diff_text:
            self.console.print(f"[track.hint]No changes in {escape(after_label)}[/]")
            return diff_text

        # format_unified ends with "\n"; only "\n" separates lines
        lines = diff_text.split("\n")[:-1]
        styled = Text()
        for count, line in enumerate(lines):
            if self.max_lines and count >= self.max_lines:
                styled.append(f"... ({len(lines) - count} more lines)\n", style="dim")
                break
            styled.append(self._style_line(line, is_header=count < 2))
            styled.append("\n")

        self.console.print(Panel(
            styled,
            title=f"[track.accent]{escape(after_label)}[/] ({script.stats.format()})",
            border_style="track.accent.dim",
            padding=(0, 1),
        ))
        return diff_text

    def _style_line(self, line: str, *, is_header: bool = False) -> Text:
        if is_header:
            style = "track.header"
        elif line.startswith("@@"):
            style = "track.hunk"
        elif line.startswith("+"):
            style = "track.inserted"
        elif line.startswith("-"):
            style = "track.removed"
        else:
            style = "track.unchanged"
        return Text(line, style=style)
