"""
Downloads Organizer - sort a downloads folder into category folders.

Files are classified by extension, moved with conflict-safe renaming, and
every run keeps a history that can be undone.
"""

from .version import __version__

__all__ = ["__version__"]
