"""
Command line interface for downloads-organizer.

Sorts a downloads folder into category folders, undoes a previous run, or
keeps watching the folder for new files.
"""

import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .. import __version__
from ..core.config import OrganizerConfig, Settings, load_config
from ..core.errors import HistoryNotFoundError, OrganizerError
from ..core.types import OrganizeOptions, RunStats
from ..organization import runner

console = Console()
logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Setup logging with rich handler and an optional log file.

    Args:
        verbose: If True, set logging level to DEBUG
        log_file: Also append ``<timestamp>: <message>`` lines to this file
    """
    level = logging.DEBUG if verbose else logging.INFO
    handlers: list = [RichHandler(rich_tracebacks=True, console=console)]

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s: %(message)s"))
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=handlers,
        force=True,
    )


def _load_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as e:
        console.print(f"[red]✗ Error: invalid ORGANIZER_* settings: {escape(str(e))}[/red]")
        sys.exit(1)


def _load_rules(config_file: Optional[Path], settings: Settings) -> OrganizerConfig:
    config = load_config(config_file or settings.config_file)
    logger.debug(f"Using {len(config.rules)} categories")
    return config


config_option = click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON rules file (default: built-in categories)",
)
history_option = click.option(
    "--history",
    "history_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="History file used for undo (default: ~/.downloads-organizer/history.json)",
)
log_file_option = click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write log lines to this file",
)
verbose_option = click.option(
    "-v", "--verbose", is_flag=True, default=False, help="Verbose output"
)


@click.group()
@click.version_option(__version__, prog_name="downloads-organizer")
def cli() -> None:
    """Sort downloaded files into folders by type."""


@cli.command()
@click.argument(
    "source", required=False, type=click.Path(file_okay=False, path_type=Path)
)
@config_option
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Preview changes without executing (RECOMMENDED FIRST)",
)
@click.option(
    "--recursive", "-r", is_flag=True, default=False, help="Descend into subfolders"
)
@click.option(
    "--skip-hidden", is_flag=True, default=False, help="Leave dotfiles where they are"
)
@history_option
@log_file_option
@verbose_option
def organize(
    source: Optional[Path],
    config_file: Optional[Path],
    dry_run: bool,
    recursive: bool,
    skip_hidden: bool,
    history_file: Optional[Path],
    log_file: Optional[Path],
    verbose: bool,
) -> None:
    """
    Move files from SOURCE (default: ~/Downloads) into category folders.

    \b
    Examples:
        # DRY RUN (preview changes)
        downloads-organizer organize --dry-run

        # Organize a folder and its subfolders with custom rules
        downloads-organizer organize ~/Desktop -r --config rules.json

        # Put everything back
        downloads-organizer undo
    """
    settings = _load_settings()
    setup_logging(verbose, log_file or settings.log_file)

    source_dir = (source or settings.source_directory).expanduser()
    history_path = (history_file or settings.history_file).expanduser()

    try:
        config = _load_rules(config_file, settings)

        console.print("\n[cyan]Organization Configuration:[/cyan]")
        console.print(f"  Source: {source_dir}")
        console.print(f"  Categories: {', '.join(config.extensions)}")
        console.print(f"  Recursive: {'YES' if recursive else 'NO'}")
        console.print(f"  Dry run: {'YES' if dry_run else 'NO'}")
        if dry_run:
            console.print(
                "\n[yellow]⚠ DRY RUN MODE - No files will be modified[/yellow]"
            )
        console.print()

        stats = runner.organize(
            source_dir,
            config,
            OrganizeOptions(
                dry_run=dry_run, recursive=recursive, skip_hidden=skip_hidden
            ),
            history_path=history_path,
        )
    except OrganizerError as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        sys.exit(1)

    if stats.source_empty:
        console.print(f"\n[yellow]No files in {source_dir}[/yellow]")
        return

    _display_result(stats, "Organization complete!")

    if not dry_run and stats.moved:
        console.print(f"\n[dim]History saved to {history_path}[/dim]")
        console.print("[dim]You can undo this run with:[/dim]")
        console.print(f"[dim]  downloads-organizer undo --history {history_path}[/dim]")


@cli.command()
@history_option
@click.option(
    "--dry-run", is_flag=True, default=False, help="Show what would be restored"
)
@log_file_option
@verbose_option
def undo(
    history_file: Optional[Path],
    dry_run: bool,
    log_file: Optional[Path],
    verbose: bool,
) -> None:
    """Move the files of the last run back to where they came from."""
    settings = _load_settings()
    setup_logging(verbose, log_file or settings.log_file)

    history_path = (history_file or settings.history_file).expanduser()
    console.print(f"[yellow]Undoing moves recorded in {history_path}...[/yellow]")

    try:
        stats = runner.undo(history_path, dry_run=dry_run)
    except HistoryNotFoundError:
        console.print(f"[red]✗ Undo failed: no history found at {history_path}[/red]")
        sys.exit(1)
    except OrganizerError as e:
        console.print(f"[red]✗ Undo failed: {e}[/red]")
        sys.exit(1)

    _display_result(stats, "Undo complete!", moved_label="Restored")


@cli.command()
@click.argument(
    "source", required=False, type=click.Path(file_okay=False, path_type=Path)
)
@config_option
@click.option(
    "--recursive", "-r", is_flag=True, default=False, help="Watch subfolders too"
)
@click.option(
    "--no-initial-scan",
    is_flag=True,
    default=False,
    help="Do not organize files that are already there",
)
@click.option(
    "--dry-run", is_flag=True, default=False, help="Report moves without executing"
)
@click.option(
    "--settle",
    type=float,
    default=None,
    help="Seconds to wait after a file appears before moving it",
)
@history_option
@log_file_option
@verbose_option
def watch(
    source: Optional[Path],
    config_file: Optional[Path],
    recursive: bool,
    no_initial_scan: bool,
    dry_run: bool,
    settle: Optional[float],
    history_file: Optional[Path],
    log_file: Optional[Path],
    verbose: bool,
) -> None:
    """Keep SOURCE (default: ~/Downloads) organized until interrupted."""
    settings = _load_settings()
    setup_logging(verbose, log_file or settings.log_file)

    source_dir = (source or settings.source_directory).expanduser()
    history_path = (history_file or settings.history_file).expanduser()
    options = OrganizeOptions(
        dry_run=dry_run,
        recursive=recursive,
        process_existing=not no_initial_scan,
        settle_seconds=settings.settle_seconds if settle is None else settle,
    )

    try:
        config = _load_rules(config_file, settings)
        loop = runner.watch(source_dir, config, options, history_path=history_path)
    except (OrganizerError, OSError) as e:
        console.print(f"\n[red]✗ Error: {e}[/red]")
        sys.exit(1)

    console.print(f"[green]Watching {source_dir}[/green] [dim](Ctrl+C to stop)[/dim]")

    previous_handler = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        while not loop.wait(1.0):
            pass
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping...[/yellow]")
    finally:
        stats = loop.stop()
        signal.signal(signal.SIGTERM, previous_handler)

    _display_result(stats, "Watcher stopped")

    if loop.failure is not None:
        console.print(f"\n[red]✗ Error: {loop.failure}[/red]")
        sys.exit(1)


@cli.command()
@config_option
def rules(config_file: Optional[Path]) -> None:
    """Show the categories files are sorted into."""
    settings = _load_settings()
    try:
        config = _load_rules(config_file, settings)
    except OrganizerError as e:
        console.print(f"[red]✗ Error: {e}[/red]")
        sys.exit(1)

    table = Table(title="Categories")
    table.add_column("Category", style="cyan")
    table.add_column("Extensions")
    table.add_column("Folder", style="green")

    for rule in config.rules:
        table.add_row(rule.name, " ".join(rule.extensions), str(rule.folder))

    console.print(table)


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def _display_result(stats: RunStats, title: str, moved_label: str = "Moved") -> None:
    """Display run statistics."""
    console.print(f"\n[green]✓ {title}[/green]\n")

    table = Table(title="Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")

    table.add_row(moved_label, str(stats.moved))
    table.add_row("Skipped", str(stats.skipped))
    table.add_row("Unsupported", str(stats.unsupported))
    table.add_row("Failed", str(stats.errors))

    console.print(table)

    if stats.dry_run:
        console.print("\n[yellow]This was a DRY RUN - no files were modified[/yellow]")

    if stats.failures:
        console.print("\n[red]Errors:[/red]")
        for error in stats.failures[:10]:
            console.print(f"  [red]• {error}[/red]")
        if len(stats.failures) > 10:
            console.print(f"  [dim]... and {len(stats.failures) - 10} more[/dim]")


if __name__ == "__main__":
    cli()
