"""
Destination name conflict resolution.

A file never overwrites another one: when ``photo.jpg`` is taken the next free
name out of ``photo(1).jpg``, ``photo(2).jpg``, ... is used.
"""

import logging
from pathlib import Path
from typing import Collection

from ..core.errors import ConflictResolutionError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10000


def numbered_name(path: Path, counter: int) -> Path:
    """Return ``path`` with ``(counter)`` inserted before its suffix."""
    return path.with_name(f"{path.stem}({counter}){path.suffix}")


def resolve_unique_path(
    candidate: Path,
    taken: Collection[Path] = (),
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Path:
    """
    Find a destination path that does not collide with an existing file.

    Args:
        candidate: Preferred destination path
        taken: Paths already promised to other files (not yet on disk)
        max_attempts: Numbered names to try before giving up

    Returns:
        ``candidate`` if it is free, otherwise the first free numbered variant

    Raises:
        ConflictResolutionError: If no free name is found within max_attempts
    """
    if not _occupied(candidate, taken):
        return candidate

    for counter in range(1, max_attempts + 1):
        new_path = numbered_name(candidate, counter)
        if not _occupied(new_path, taken):
            logger.debug(f"Name conflict: {candidate.name} -> {new_path.name}")
            return new_path

    raise ConflictResolutionError(
        f"Too many naming conflicts for {candidate} ({max_attempts} attempts)"
    )


def _occupied(path: Path, taken: Collection[Path]) -> bool:
    # a dangling symlink still occupies the name
    return path in taken or path.is_symlink() or path.exists()
