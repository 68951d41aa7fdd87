"""
Organization module for sorting files into category folders.

This module classifies files by extension and moves them into their category
folders with safety features like dry-run mode, conflict-safe renaming,
move history and undo.
"""

from .classifier import Classifier
from .conflict import resolve_unique_path
from .history import HistoryStore, load_history, save_history
from .mover import Mover
from .runner import organize, undo, watch
from .traversal import Organizer
from .undo import UndoEngine
from .watcher import OrganizerEventHandler, WatchLoop, WatchState

__all__ = [
    "Classifier",
    "resolve_unique_path",
    "HistoryStore",
    "load_history",
    "save_history",
    "Mover",
    "organize",
    "undo",
    "watch",
    "Organizer",
    "UndoEngine",
    "OrganizerEventHandler",
    "WatchLoop",
    "WatchState",
]
