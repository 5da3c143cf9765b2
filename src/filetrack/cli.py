"""Command line interface for filetrack.

    filetrack notes.txt          # commit notes.txt to .track/notes.txt.NNN
    filetrack -d notes.txt       # diff notes.txt against its latest snapshot
    filetrack -l notes.txt       # list snapshots of notes.txt

This is the glue layer: it parses arguments, loads config, configures
logging, builds a command and hands it to ``handle_track`` with the current
directory as the archive root.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import click
from rich.markup import escape
from rich.table import Table

from filetrack import __version__
from filetrack.config import load_config
from filetrack.core import handle_track
from filetrack.errors import TrackError
from filetrack.logging import configure_logging
from filetrack.theme import make_console
from filetrack.types import (
    Commit,
    CommitResult,
    Diff,
    History,
    HistoryResult,
)

logger = logging.getLogger(__name__)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("file_name", type=click.Path(path_type=Path))
@click.option("--diff", "-d", is_flag=True, help="Diff FILE against its latest snapshot")
@click.option("--log", "-l", "show_log", is_flag=True, help="List the snapshots of FILE")
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="Config file (default: .filetrack.yaml)")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__, prog_name="filetrack")
def main(
    file_name: Path,
    diff: bool,
    show_log: bool,
    config_path: Path | None,
    no_color: bool,
    debug: bool,
) -> None:
    """Minimal localized version control.

    Copies FILE into the .track directory as FILE.001, FILE.002, ...
    Restoring is done by copying a snapshot back by hand.

    \b
    Examples:
        filetrack notes.txt
        filetrack --diff notes.txt
        filetrack --log notes.txt
    """
    if diff and show_log:
        raise click.UsageError("--diff and --log are mutually exclusive")

    err_console = make_console(color=not no_color, stderr=True)
    root = Path.cwd()

    try:
        config = load_config(config_path, cwd=root)
    except TrackError as e:
        _print_error(err_console, e)
        sys.exit(1)

    configure_logging(debug=debug or config.debug)
    logger.info("filetrack %s started", __version__)

    color = config.color and not no_color
    console = make_console(color=color)

    if diff:
        command = Diff(file_name)
    elif show_log:
        command = History(file_name)
    else:
        command = Commit(file_name)

    try:
        result = handle_track(command, root=root, config=config, console=console)
    except TrackError as e:
        _print_error(make_console(color=color, stderr=True), e)
        sys.exit(1)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="FILE") from e

    if isinstance(result, CommitResult):
        snapshot = result.snapshot
        console.print(
            f"[track.success]Committed[/] {escape(str(file_name))} as "
            f"{escape(f'{snapshot.path.parent.name}/{snapshot.name}')}"
        )
    elif isinstance(result, HistoryResult):
        _print_history(console, result)


def _print_history(console, result: HistoryResult) -> None:
    """Display the snapshots of one file as a table."""
    if not result.snapshots:
        console.print(f"[track.hint]No snapshots of {escape(result.basename)}[/]")
        return

    table = Table(
        title=f"[track.accent]{escape(result.basename)}[/]",
        border_style="track.accent.dim",
        show_header=True,
    )
    table.add_column("#", style="dim", justify="right")
    table.add_column("Snapshot")
    table.add_column("Size", justify="right")
    table.add_column("Saved", style="dim")

    for snapshot in result.snapshots:
        try:
            stat = snapshot.path.stat()
        except OSError:
            size, saved = "?", "?"
        else:
            size = f"{stat.st_size:,}"
            saved = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M")
        table.add_row(str(snapshot.sequence), snapshot.name, size, saved)

    console.print(table)


def _print_error(console, error: TrackError) -> None:
    console.print(f"[track.error]{escape(str(error))}[/]")
    for hint in error.recovery_hints:
        console.print(f"  [track.hint]• {escape(hint)}[/]")
