"""
Type definitions for the organizer.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class MoveOutcome(str, Enum):
    """Outcome of handing a single file to the mover."""

    MOVED = "moved"
    SKIPPED = "skipped"
    UNSUPPORTED = "unsupported"
    ERROR = "error"


class CategoryRule(BaseModel):
    """A named bucket of extensions mapped to one destination folder."""

    name: str = Field(description="Category name")
    extensions: Tuple[str, ...] = Field(
        description="Lower-case extensions, each starting with '.'"
    )
    folder: Path = Field(description="Destination directory")

    model_config = ConfigDict(frozen=True)

    def matches(self, extension: str) -> bool:
        """Check whether an extension belongs to this category."""
        return extension.lower() in self.extensions


class MoveRecord(BaseModel):
    """A completed move, as written to the history file."""

    timestamp: datetime = Field(
        default_factory=datetime.now,
        description="When the move happened",
    )
    source: Path = Field(alias="from", description="Original absolute path")
    destination: Path = Field(alias="to", description="New absolute path")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MoveResult(BaseModel):
    """Result of moving (or trying to move) a single file."""

    outcome: MoveOutcome
    source: Path
    destination: Optional[Path] = None
    category: Optional[str] = None
    reason: Optional[str] = None


class RunStats(BaseModel):
    """Counters for one execution. Reported once, never persisted."""

    moved: int = 0
    skipped: int = 0
    unsupported: int = 0
    errors: int = 0
    dry_run: bool = False
    source_empty: bool = False
    failures: List[str] = Field(default_factory=list)

    def record(self, result: MoveResult) -> None:
        """
        Count a move result.

        Args:
            result: Result returned by the mover
        """
        if result.outcome == MoveOutcome.MOVED:
            self.moved += 1
        elif result.outcome == MoveOutcome.SKIPPED:
            self.skipped += 1
        elif result.outcome == MoveOutcome.UNSUPPORTED:
            self.unsupported += 1
        else:
            self.add_error(f"{result.source}: {result.reason}")

    def add_error(self, message: str) -> None:
        """Count an error and remember its description."""
        self.errors += 1
        self.failures.append(message)

    @property
    def total(self) -> int:
        """Number of files that were looked at."""
        return self.moved + self.skipped + self.unsupported + self.errors


class OrganizeOptions(BaseModel):
    """Options recognized by organize and watch."""

    dry_run: bool = Field(
        default=False, description="Report moves without touching the filesystem"
    )
    recursive: bool = Field(default=False, description="Descend into subdirectories")
    skip_hidden: bool = Field(
        default=False, description="Leave files whose name starts with '.' alone"
    )
    process_existing: bool = Field(
        default=True,
        description="Watch mode: organize files already present before watching",
    )
    settle_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Watch mode: delay between a creation event and the move",
    )
