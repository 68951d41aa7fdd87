"""
Move history for undo.

Every successful move of a run is appended to a ``HistoryStore``. At the end
of a live run the records are written as a JSON array (oldest first), replacing
whatever history file was there before:

    [
      {"timestamp": "2024-05-01T10:15:02.113", "from": "/home/u/Downloads/a.jpg",
       "to": "/home/u/Pictures/a.jpg"}
    ]
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from ..core.errors import HistoryCorruptError, HistoryNotFoundError, UndoError
from ..core.types import MoveRecord

logger = logging.getLogger(__name__)

_records_adapter = TypeAdapter(List[MoveRecord])


class HistoryStore:
    """Append-only, in-memory list of the moves made during one run."""

    def __init__(self) -> None:
        self._records: List[MoveRecord] = []
        self._lock = threading.Lock()

    def append(self, record: MoveRecord) -> None:
        """Add a completed move."""
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> List[MoveRecord]:
        """Copy of the recorded moves, oldest first."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def persist(self, history_path: Path) -> bool:
        """
        Write the history file, replacing any previous one.

        Nothing is written when no move was recorded, so the previous run's
        history stays available for undo.

        Args:
            history_path: Path of the history file

        Returns:
            True if a file was written
        """
        records = self.records
        if not records:
            logger.debug("No moves recorded, history file left untouched")
            return False

        save_history(records, history_path)
        return True


def save_history(records: List[MoveRecord], history_path: Path) -> None:
    """
    Atomically write move records to a history file.

    Args:
        records: Moves, oldest first
        history_path: Destination file (parent directories are created)
    """
    history_path = Path(history_path)
    history_path.parent.mkdir(parents=True, exist_ok=True)

    data = _records_adapter.dump_python(records, mode="json", by_alias=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{history_path.name}.", suffix=".tmp", dir=history_path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_name, history_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(f"Saved {len(records)} move(s) to history {history_path}")


def load_history(history_path: Path) -> List[MoveRecord]:
    """
    Load move records from a history file.

    Args:
        history_path: Path of the history file

    Returns:
        Moves, oldest first

    Raises:
        HistoryNotFoundError: If the file does not exist
        HistoryCorruptError: If the file is not a valid history
    """
    history_path = Path(history_path)
    try:
        raw = history_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise HistoryNotFoundError(f"History file not found: {history_path}") from e
    except UnicodeDecodeError as e:
        raise HistoryCorruptError(f"History file is not UTF-8 text: {history_path}") from e
    except OSError as e:
        raise UndoError(f"Cannot read history file {history_path}: {e}") from e

    try:
        return _records_adapter.validate_json(raw)
    except ValidationError as e:
        raise HistoryCorruptError(f"Invalid history file {history_path}: {e}") from e
