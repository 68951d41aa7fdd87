"""
Core types, configuration and errors shared by the organizer components.
"""

from .config import OrganizerConfig, Settings, default_config, load_config
from .errors import (
    AccessError,
    ConfigurationError,
    ConflictResolutionError,
    DestinationError,
    HistoryCorruptError,
    HistoryNotFoundError,
    OrganizerError,
    SourceDirectoryError,
    UndoError,
)
from .types import (
    CategoryRule,
    MoveOutcome,
    MoveRecord,
    MoveResult,
    OrganizeOptions,
    RunStats,
)

__all__ = [
    "OrganizerConfig",
    "Settings",
    "default_config",
    "load_config",
    "AccessError",
    "ConfigurationError",
    "ConflictResolutionError",
    "DestinationError",
    "HistoryCorruptError",
    "HistoryNotFoundError",
    "OrganizerError",
    "SourceDirectoryError",
    "UndoError",
    "CategoryRule",
    "MoveOutcome",
    "MoveRecord",
    "MoveResult",
    "OrganizeOptions",
    "RunStats",
]
