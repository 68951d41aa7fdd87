"""
Undo of a previous organization run.

Replays the history file newest-first, moving every file back to where it came
from. Undo is single-use: the history file is deleted once it has been
replayed.
"""

import logging
from pathlib import Path
from typing import Optional

from ..core.types import MoveRecord, RunStats
from .history import load_history
from .mover import rename_no_clobber

module_logger = logging.getLogger(__name__)


class UndoEngine:
    """Restore files recorded in a history file."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or module_logger

    def undo(self, history_path: Path, dry_run: bool = False) -> RunStats:
        """
        Undo the moves recorded in a history file.

        The whole history is loaded before anything is restored; a missing or
        unreadable file aborts the undo. Individual restores that fail are
        counted and reported, the remaining ones still run.

        Args:
            history_path: History file written by an organize or watch run
            dry_run: If True, report restores without moving anything

        Returns:
            Statistics; ``moved`` counts restored files

        Raises:
            HistoryNotFoundError: If the history file does not exist
            HistoryCorruptError: If the history file cannot be parsed
        """
        history_path = Path(history_path)
        records = load_history(history_path)
        stats = RunStats(dry_run=dry_run)

        self.logger.info(
            f"Undoing {len(records)} move(s) from {history_path}"
            f"{' (DRY RUN)' if dry_run else ''}"
        )

        for record in reversed(records):
            self._restore(record, stats, dry_run)

        if not dry_run:
            history_path.unlink(missing_ok=True)
            self.logger.info(f"Removed history file {history_path}")

        self.logger.info(
            f"Undo complete: {stats.moved} restored, {stats.errors} failed"
        )
        return stats

    def _restore(self, record: MoveRecord, stats: RunStats, dry_run: bool) -> None:
        current = record.destination
        original = record.source
        extra = {"file_path": str(current)}

        if not (current.is_symlink() or current.exists()):
            self.logger.error(f"Cannot restore {current}: file is missing", extra=extra)
            stats.add_error(f"{current}: missing, cannot restore to {original}")
            return

        if original.is_symlink() or original.exists():
            self.logger.error(
                f"Cannot restore {current}: {original} already exists", extra=extra
            )
            stats.add_error(f"{current}: {original} already exists")
            return

        if dry_run:
            self.logger.info(f"[DRY RUN] Would restore {current} → {original}", extra=extra)
            stats.moved += 1
            return

        try:
            original.parent.mkdir(parents=True, exist_ok=True)
            rename_no_clobber(current, original)
        except OSError as e:
            reason = e.strerror or str(e)
            self.logger.error(f"Failed to restore {current}: {reason}", extra=extra)
            stats.add_error(f"{current}: {reason}")
            return

        self.logger.info(f"Restored {current} → {original}", extra=extra)
        stats.moved += 1
