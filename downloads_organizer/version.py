"""Version information for downloads-organizer."""

__version__ = "1.0.0"
