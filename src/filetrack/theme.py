"""Terminal theme for filetrack output.

All console output goes through a rich Console built with TRACK_THEME so
styles are named by meaning (``track.inserted``) rather than color.
"""

from rich.console import Console
from rich.theme import Theme

TRACK_THEME = Theme({
    # Diff lines
    "track.inserted": "green",
    "track.removed": "red",
    "track.unchanged": "dim white",
    "track.hunk": "yellow",
    "track.header": "bold white",

    # Chrome
    "track.accent": "yellow",
    "track.accent.dim": "dim yellow",
    "track.success": "bold green",
    "track.error": "bold red",
    "track.hint": "dim",
})


def make_console(*, color: bool = True, stderr: bool = False) -> Console:
    """Create a themed console.

    Args:
        color: Disable to emit plain text (no ANSI styles)
        stderr: Write to stderr instead of stdout
    """
    return Console(
        theme=TRACK_THEME,
        stderr=stderr,
        color_system="auto" if color else None,
        highlight=False,
    )
