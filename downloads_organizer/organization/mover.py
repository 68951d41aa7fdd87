"""
Single-file mover.

Takes one file, classifies it, picks a conflict-free destination and renames
it there, updating the run statistics and the move history.
"""

import errno
import logging
import stat
import threading
from pathlib import Path
from typing import Dict, Optional, Set

from ..core.config import OrganizerConfig
from ..core.types import (
    CategoryRule,
    MoveOutcome,
    MoveRecord,
    MoveResult,
    RunStats,
)
from .classifier import Classifier
from .conflict import DEFAULT_MAX_ATTEMPTS, resolve_unique_path
from .history import HistoryStore

module_logger = logging.getLogger(__name__)


class Mover:
    """Move files into their category folders."""

    def __init__(
        self,
        config: OrganizerConfig,
        stats: RunStats,
        history: HistoryStore,
        skip_hidden: bool = False,
        logger: Optional[logging.Logger] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        """
        Initialize mover.

        Args:
            config: Category rules
            stats: Counters updated for every file handled
            history: Store receiving a record for every completed move
            skip_hidden: Leave dotfiles where they are
            logger: Logger receiving per-file events
            max_attempts: Numbered names tried before a conflict is fatal
        """
        self.classifier = Classifier(config)
        self.stats = stats
        self.history = history
        self.skip_hidden = skip_hidden
        self.logger = logger or module_logger
        self.max_attempts = max_attempts

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._stats_lock = threading.Lock()
        # Destinations handed out during a dry run, nothing is on disk yet
        self._claimed: Set[Path] = set()

    def move(
        self, file_path: Path, file_name: Optional[str] = None, dry_run: bool = False
    ) -> MoveResult:
        """
        Move a single file to its category folder.

        Args:
            file_path: File to move
            file_name: Name to classify and keep (defaults to the path's name)
            dry_run: If True, report the move without touching the filesystem

        Returns:
            Result of the move; also counted in the run statistics

        Raises:
            ConflictResolutionError: If no free destination name exists
        """
        result = self._move(Path(file_path), file_name, dry_run)
        with self._stats_lock:
            self.stats.record(result)
        return result

    def _move(self, path: Path, file_name: Optional[str], dry_run: bool) -> MoveResult:
        name = file_name or path.name
        extra = {"file_path": str(path)}

        try:
            st = path.lstat()
        except FileNotFoundError:
            self.logger.debug(f"Skipping {name}: no longer exists", extra=extra)
            return MoveResult(
                outcome=MoveOutcome.SKIPPED, source=path, reason="file vanished"
            )
        except OSError as e:
            self.logger.error(f"Cannot stat {path}: {e}", extra=extra)
            return MoveResult(outcome=MoveOutcome.ERROR, source=path, reason=str(e))

        if not stat.S_ISREG(st.st_mode):
            self.logger.debug(f"Skipping {name}: not a regular file", extra=extra)
            return MoveResult(
                outcome=MoveOutcome.SKIPPED, source=path, reason="not a regular file"
            )

        if self.skip_hidden and name.startswith("."):
            self.logger.debug(f"Skipping hidden file {name}", extra=extra)
            return MoveResult(
                outcome=MoveOutcome.SKIPPED, source=path, reason="hidden file"
            )

        rule = self.classifier.classify(Path(name).suffix)
        if rule is None:
            self.logger.info(f"{name} failed to move: Invalid Extension", extra=extra)
            return MoveResult(
                outcome=MoveOutcome.UNSUPPORTED,
                source=path,
                reason="unsupported extension",
            )

        source = path.parent.resolve() / name
        if source.parent == rule.folder:
            self.logger.debug(f"Skipping {name}: already in {rule.folder}", extra=extra)
            return MoveResult(
                outcome=MoveOutcome.SKIPPED,
                source=source,
                category=rule.name,
                reason="already organized",
            )

        with self._category_lock(rule.name):
            if dry_run:
                return self._preview(source, rule)
            return self._relocate(source, rule)

    def _preview(self, source: Path, rule: CategoryRule) -> MoveResult:
        target = resolve_unique_path(
            rule.folder / source.name, taken=self._claimed, max_attempts=self.max_attempts
        )
        self._claimed.add(target)
        self.logger.info(
            f"[DRY RUN] Would move {source.name} → {target}",
            extra={"file_path": str(source)},
        )
        return MoveResult(
            outcome=MoveOutcome.MOVED,
            source=source,
            destination=target,
            category=rule.name,
            reason="dry run",
        )

    def _relocate(self, source: Path, rule: CategoryRule) -> MoveResult:
        extra = {"file_path": str(source)}
        target = resolve_unique_path(
            rule.folder / source.name, max_attempts=self.max_attempts
        )

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            rename_no_clobber(source, target)
        except OSError as e:
            reason = e.strerror or str(e)
            self.logger.error(
                f"Error: {source.name} failed to move to {rule.folder}: {reason}",
                extra=extra,
            )
            return MoveResult(
                outcome=MoveOutcome.ERROR,
                source=source,
                destination=target,
                category=rule.name,
                reason=reason,
            )

        self.history.append(MoveRecord(source=source, destination=target))
        self.logger.info(f"{source.name} moved to {target}", extra=extra)
        return MoveResult(
            outcome=MoveOutcome.MOVED,
            source=source,
            destination=target,
            category=rule.name,
        )

    def _category_lock(self, category: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(category, threading.Lock())


def rename_no_clobber(source: Path, target: Path) -> None:
    """
    Rename ``source`` to ``target`` unless ``target`` already exists.

    ``os.rename`` silently replaces an existing file on POSIX, so the target is
    probed again right before renaming.

    Raises:
        FileExistsError: If target exists
        OSError: If the rename itself fails
    """
    if target.is_symlink() or target.exists():
        raise FileExistsError(errno.EEXIST, "Destination already exists", str(target))
    source.rename(target)
