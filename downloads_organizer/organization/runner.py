"""
Entry points used by the command line.

Each operation takes an explicit configuration and returns plain statistics,
so the CLI (or any other caller) only deals with RunStats and exceptions from
``core.errors``.
"""

import logging
from pathlib import Path
from typing import Optional

from ..core.config import OrganizerConfig
from ..core.types import OrganizeOptions, RunStats
from .traversal import Organizer
from .undo import UndoEngine
from .watcher import WatchLoop


def organize(
    source_dir: Path,
    config: OrganizerConfig,
    options: Optional[OrganizeOptions] = None,
    history_path: Optional[Path] = None,
    logger: Optional[logging.Logger] = None,
) -> RunStats:
    """
    Organize a source directory once.

    Args:
        source_dir: Directory to organize
        config: Category rules
        options: Dry run / recursive / hidden-file options
        history_path: Where the move history is written (live runs only)
        logger: Logger receiving run events

    Returns:
        Statistics for the run
    """
    organizer = Organizer(config, options, history_path=history_path, logger=logger)
    return organizer.organize(Path(source_dir))


def undo(
    history_path: Path,
    dry_run: bool = False,
    logger: Optional[logging.Logger] = None,
) -> RunStats:
    """
    Undo the moves recorded in a history file and delete it.

    Args:
        history_path: History file of a previous run
        dry_run: If True, only report what would be restored
        logger: Logger receiving run events

    Returns:
        Statistics; ``moved`` counts restored files
    """
    return UndoEngine(logger).undo(Path(history_path), dry_run=dry_run)


def watch(
    source_dir: Path,
    config: OrganizerConfig,
    options: Optional[OrganizeOptions] = None,
    history_path: Optional[Path] = None,
    logger: Optional[logging.Logger] = None,
) -> WatchLoop:
    """
    Start watching a source directory.

    Args:
        source_dir: Directory to watch
        config: Category rules
        options: Run options, including the initial pass and settle delay
        history_path: Where accumulated moves are written on stop
        logger: Logger receiving run events

    Returns:
        Running watch loop; call ``stop()`` to end it
    """
    loop = WatchLoop(
        config, Path(source_dir), options, history_path=history_path, logger=logger
    )
    loop.start()
    return loop
