"""
Filesystem watcher for continuous organization.

Monitors the source directory and moves every new file to its category
folder as soon as it appears. Events are funnelled through a bounded queue
into a single worker thread, so files are handled one at a time even if the
observer delivers events concurrently.
"""

import logging
import os
import queue
import threading
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Collection, Optional, Tuple

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..core.config import OrganizerConfig
from ..core.errors import ConflictResolutionError, SourceDirectoryError
from ..core.types import OrganizeOptions, RunStats
from .history import HistoryStore
from .traversal import Organizer

module_logger = logging.getLogger(__name__)

_STOP = object()


class WatchState(str, Enum):
    """Lifecycle of a watch loop."""

    STARTING = "starting"
    WATCHING = "watching"
    STOPPING = "stopping"
    STOPPED = "stopped"


class OrganizerEventHandler(FileSystemEventHandler):
    """
    Turns filesystem events into files to organize.

    Handles files created in the watched directory and files renamed into it
    (browsers download to a temporary name, then rename).
    """

    def __init__(
        self,
        root: Path,
        submit: Callable[[Path], None],
        recursive: bool = False,
        ignored_dirs: Collection[Path] = (),
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize event handler.

        Args:
            root: Watched directory
            submit: Called with every file path that should be organized
            recursive: Accept files in subdirectories of root
            ignored_dirs: Directories whose files are never submitted
            logger: Logger for watcher errors
        """
        super().__init__()
        self.root = root
        self.submit = submit
        self.recursive = recursive
        self.ignored_dirs = set(ignored_dirs)
        self.logger = logger or module_logger

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if not event.is_directory:
            self._handle(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        """Handle files renamed into place."""
        if not event.is_directory:
            self._handle(event.dest_path)

    def _handle(self, raw_path) -> None:
        try:
            file_path = Path(os.fsdecode(raw_path))
            if not self._in_scope(file_path):
                return
            self.logger.debug(f"Detected new file: {file_path}")
            self.submit(file_path)
        except Exception as e:
            self.logger.error(f"Watcher failed to handle {raw_path}: {e}")

    def _in_scope(self, file_path: Path) -> bool:
        parent = file_path.parent
        if parent in self.ignored_dirs:
            return False
        if self.recursive:
            return parent == self.root or self.root in parent.parents
        return parent == self.root


class WatchLoop:
    """
    Long-running organization of a source directory.

    States: STARTING -> WATCHING -> STOPPING -> STOPPED.
    """

    def __init__(
        self,
        config: OrganizerConfig,
        source: Path,
        options: Optional[OrganizeOptions] = None,
        history_path: Optional[Path] = None,
        logger: Optional[logging.Logger] = None,
        observer_factory: Callable[[], Observer] = Observer,
        queue_size: int = 1024,
    ):
        """
        Initialize watch loop.

        Args:
            config: Category rules
            source: Directory to watch
            options: Run options (recursion, dry run, initial pass, settle delay)
            history_path: Where accumulated moves are written on stop
            logger: Logger receiving run and per-file events
            observer_factory: Builds the watchdog observer
            queue_size: Maximum number of events waiting for the worker
        """
        self.config = config
        self.source = Path(source).expanduser().resolve()
        self.options = options or OrganizeOptions()
        self.history_path = history_path
        self.logger = logger or module_logger
        self.observer_factory = observer_factory

        self.stats = RunStats(dry_run=self.options.dry_run)
        self.history = HistoryStore()
        self.organizer = Organizer(
            config,
            self.options,
            logger=self.logger,
            stats=self.stats,
            history=self.history,
        )

        self.state = WatchState.STARTING
        self.observer: Optional[Observer] = None
        self.worker: Optional[threading.Thread] = None
        self._queue: "queue.Queue" = queue.Queue(maxsize=queue_size)
        self._state_lock = threading.Lock()
        self._stopped = threading.Event()
        self.failure: Optional[ConflictResolutionError] = None

    def __enter__(self) -> "WatchLoop":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()

    def start(self) -> None:
        """
        Run the initial pass and start watching.

        Raises:
            SourceDirectoryError: If the source is not a directory
            DestinationError: If a destination folder cannot be created
        """
        with self._state_lock:
            if self.state != WatchState.STARTING:
                raise RuntimeError(f"Watch loop cannot start from state {self.state.value}")

        try:
            if not self.source.is_dir():
                raise SourceDirectoryError(f"Invalid source folder: {self.source}")

            if self.options.process_existing:
                self.logger.info(f"Organizing existing files in {self.source}")
                self.organizer.organize(self.source)
                self._save_history()
            if not self.options.dry_run:
                self.organizer.prepare_destinations()

            handler = OrganizerEventHandler(
                self.source,
                self.submit,
                recursive=self.options.recursive,
                ignored_dirs=[rule.folder for rule in self.config.rules],
                logger=self.logger,
            )
            self.worker = threading.Thread(
                target=self._work, name="organizer-worker", daemon=True
            )
            self.worker.start()

            self.observer = self.observer_factory()
            self.observer.schedule(
                handler, str(self.source), recursive=self.options.recursive
            )
            self.observer.start()
        except BaseException:
            self.stop()
            raise

        with self._state_lock:
            self.state = WatchState.WATCHING
        self.logger.info(f"Watching: {self.source}")

    def submit(self, file_path: Path) -> None:
        """Queue a file for the worker."""
        if self.state in (WatchState.STOPPING, WatchState.STOPPED):
            return
        self._queue.put((Path(file_path), time.monotonic()))

    def stop(self) -> RunStats:
        """
        Stop watching, finish queued files and save the history.

        Returns:
            Statistics for the whole watch session
        """
        with self._state_lock:
            if self.state in (WatchState.STOPPING, WatchState.STOPPED):
                already_stopping = True
            else:
                already_stopping = False
                self.state = WatchState.STOPPING

        if already_stopping:
            self._stopped.wait()
            return self.stats

        self.logger.info("Stopping watcher")

        try:
            if self.observer is not None:
                self.observer.stop()
                if self.observer.is_alive():
                    self.observer.join()
            if self.worker is not None:
                self._queue.put(_STOP)
                self.worker.join()
            self._save_history()
        finally:
            self.observer = None
            self.worker = None
            with self._state_lock:
                self.state = WatchState.STOPPED
            self._stopped.set()

        self.logger.info(
            f"Watcher stopped: {self.stats.moved} moved, "
            f"{self.stats.unsupported} unsupported, {self.stats.skipped} skipped, "
            f"{self.stats.errors} failed"
        )
        return self.stats

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the loop has stopped.

        Returns:
            True if the loop is stopped
        """
        return self._stopped.wait(timeout)

    def is_running(self) -> bool:
        """Check if the loop is watching."""
        return self.state == WatchState.WATCHING

    def _work(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                if self.failure is None:
                    self._process(item)
            finally:
                self._queue.task_done()

    def _process(self, item: Tuple[Path, float]) -> None:
        """
        Move one queued file once it has settled.

        Per-file failures are counted and watching continues. Running out of
        conflict-free names is fatal: the loop records it in ``failure``,
        skips whatever is still queued and stops.
        """
        file_path, seen_at = item
        delay = seen_at + self.options.settle_seconds - time.monotonic()
        if delay > 0:
            time.sleep(delay)

        try:
            self.organizer.mover.move(file_path, dry_run=self.options.dry_run)
        except ConflictResolutionError as e:
            self.logger.error(
                f"Stopping watcher: {e}", extra={"file_path": str(file_path)}
            )
            self.stats.add_error(f"{file_path}: {e}")
            self.failure = e
            threading.Thread(
                target=self.stop, name="organizer-abort", daemon=True
            ).start()
        except Exception as e:
            self.logger.error(
                f"Failed to process {file_path}: {e}",
                extra={"file_path": str(file_path)},
            )
            self.stats.add_error(f"{file_path}: {e}")

    def _save_history(self) -> None:
        if self.options.dry_run or self.history_path is None:
            return
        self.history.persist(self.history_path)
