"""
Pytest configuration and fixtures for downloads_organizer tests.
"""

from pathlib import Path

import pytest

from downloads_organizer.core.config import OrganizerConfig


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Resolved temporary directory (tmp_path may sit behind a symlink)."""
    return tmp_path.resolve()


@pytest.fixture
def source_dir(workspace: Path) -> Path:
    """Empty downloads folder."""
    path = workspace / "Downloads"
    path.mkdir()
    return path


@pytest.fixture
def config(workspace: Path) -> OrganizerConfig:
    """Rules sorting pictures, videos and documents into the workspace."""
    return OrganizerConfig(
        extensions={
            "images": [".jpg", ".png"],
            "videos": [".mkv", ".mp4"],
            "documents": [".pdf", ".txt"],
        },
        folders={
            "images": workspace / "Pictures",
            "videos": workspace / "Videos",
            "documents": workspace / "Documents",
        },
    )


@pytest.fixture
def history_path(workspace: Path) -> Path:
    """Location of the history file (parent does not exist yet)."""
    return workspace / "state" / "history.json"


def _make_file(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content or f"content of {path.name}")
    return path


def _snapshot(root: Path) -> dict:
    return {
        p.relative_to(root): p.read_bytes() for p in sorted(root.rglob("*")) if p.is_file()
    }


@pytest.fixture
def make_file():
    """Create a file (and its parents) with some content."""
    return _make_file


@pytest.fixture
def snapshot():
    """Map every file below a directory to its bytes."""
    return _snapshot
