"""
Directory traversal for one-shot organization runs.

Walks the source directory (optionally recursively), hands every file to the
mover and persists the move history when the run is over.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ..core.config import OrganizerConfig
from ..core.errors import DestinationError, SourceDirectoryError
from ..core.types import OrganizeOptions, RunStats
from .history import HistoryStore
from .mover import Mover

module_logger = logging.getLogger(__name__)


class Organizer:
    """Organize a source directory according to category rules."""

    def __init__(
        self,
        config: OrganizerConfig,
        options: Optional[OrganizeOptions] = None,
        history_path: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
        stats: Optional[RunStats] = None,
        history: Optional[HistoryStore] = None,
    ):
        """
        Initialize organizer.

        Args:
            config: Category rules
            options: Run options (dry run, recursion, hidden files)
            history_path: Where the move history is written after a live run
            logger: Logger receiving run and per-file events
            stats: Counters to update (a fresh RunStats by default)
            history: Move history to append to (a fresh store by default)
        """
        self.config = config
        self.options = options or OrganizeOptions()
        self.history_path = history_path
        self.logger = logger or module_logger
        self.stats = stats if stats is not None else RunStats()
        self.stats.dry_run = self.options.dry_run
        self.history = history if history is not None else HistoryStore()
        self.mover = Mover(
            config,
            self.stats,
            self.history,
            skip_hidden=self.options.skip_hidden,
            logger=self.logger,
        )

    def organize(self, directory: Path) -> RunStats:
        """
        Organize every file in a directory.

        Args:
            directory: Source directory

        Returns:
            Statistics for the run

        Raises:
            SourceDirectoryError: If the source cannot be listed
            DestinationError: If a destination folder cannot be created
            ConflictResolutionError: If a destination has no free name left
        """
        directory = Path(directory).expanduser()
        mode = "DRY RUN" if self.options.dry_run else "LIVE"
        self.logger.info(f"Organizing {directory} ({mode})")

        entries = self._list_source(directory)
        if not entries:
            self.stats.source_empty = True
            self.logger.info(f"No files in {directory}")
            return self.stats

        if not self.options.dry_run:
            self.prepare_destinations()

        try:
            self._process_entries(entries)
        finally:
            self.save_history()

        self.logger.info(
            f"{self.stats.moved} file(s) moved, {self.stats.unsupported} unsupported, "
            f"{self.stats.skipped} skipped, {self.stats.errors} failed"
        )
        return self.stats

    def prepare_destinations(self) -> None:
        """
        Create every destination folder.

        Raises:
            DestinationError: If a folder cannot be created
        """
        for rule in self.config.rules:
            try:
                rule.folder.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DestinationError(
                    f"Cannot create destination folder {rule.folder} "
                    f"for '{rule.name}': {e}"
                ) from e

    def save_history(self) -> bool:
        """Persist the move history of a live run, if there is anything to save."""
        if self.options.dry_run or self.history_path is None:
            return False
        return self.history.persist(self.history_path)

    def _list_source(self, directory: Path) -> list:
        if not directory.is_dir():
            raise SourceDirectoryError(f"Invalid source folder: {directory}")
        try:
            return _scan(directory)
        except OSError as e:
            raise SourceDirectoryError(f"Cannot read source folder {directory}: {e}") from e

    def _process_entries(self, entries: list) -> None:
        for entry in entries:
            if _is_directory(entry):
                if self.options.recursive:
                    self._walk(Path(entry.path))
                continue
            self.mover.move(Path(entry.path), entry.name, dry_run=self.options.dry_run)

    def _walk(self, directory: Path) -> None:
        self.logger.info(f"Entering {directory}")
        try:
            entries = _scan(directory)
        except OSError as e:
            self.logger.error(
                f"Cannot read directory {directory}: {e}",
                extra={"file_path": str(directory)},
            )
            self.stats.add_error(f"{directory}: {e.strerror or e}")
            return
        self._process_entries(entries)


def _scan(directory: Path) -> list:
    """List a directory, sorted by name so runs are reproducible."""
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def _is_directory(entry: os.DirEntry) -> bool:
    # Symlinked directories are not followed
    try:
        return entry.is_dir(follow_symlinks=False)
    except OSError:
        return False
