"""
Exception hierarchy for the organizer.

Everything raised here is fatal for the current run. Per-file failures are
never raised; they are counted in RunStats and logged instead.
"""


class OrganizerError(Exception):
    """Base error for the project."""


class ConfigurationError(OrganizerError):
    """Configuration file is missing, malformed or incomplete."""


class AccessError(OrganizerError):
    """A directory the run depends on cannot be used."""


class SourceDirectoryError(AccessError):
    """Source directory is missing, not a directory or unreadable."""


class DestinationError(AccessError):
    """A destination folder cannot be created."""


class ConflictResolutionError(OrganizerError):
    """No free name was found for a destination within the attempt limit."""


class UndoError(OrganizerError):
    """Undo cannot start."""


class HistoryNotFoundError(UndoError):
    """History file does not exist (never written or already undone)."""


class HistoryCorruptError(UndoError):
    """History file cannot be parsed."""
