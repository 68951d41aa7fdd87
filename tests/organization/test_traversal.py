"""Tests for directory traversal (one-shot organize runs)."""

import os
from unittest.mock import patch

import pytest

from downloads_organizer.core.errors import DestinationError, SourceDirectoryError
from downloads_organizer.core.types import OrganizeOptions
from downloads_organizer.organization.history import load_history
from downloads_organizer.organization.traversal import Organizer


class TestOrganize:
    """Test organizing a flat source directory."""

    def test_sorts_by_category(self, config, source_dir, workspace, history_path, make_file):
        """Test the pictures/videos/unsupported scenario."""
        make_file(source_dir / "a.jpg")
        make_file(source_dir / "b.mkv")
        make_file(source_dir / "c.xyz")

        stats = Organizer(config, history_path=history_path).organize(source_dir)

        assert (workspace / "Pictures" / "a.jpg").exists()
        assert (workspace / "Videos" / "b.mkv").exists()
        assert (source_dir / "c.xyz").exists()
        assert not (source_dir / "a.jpg").exists()
        assert not (source_dir / "b.mkv").exists()
        assert (stats.moved, stats.unsupported, stats.errors) == (2, 1, 0)

    def test_conflict_scenario(self, config, source_dir, workspace, history_path, make_file):
        """Test a name clash keeps the original and adds a(1).jpg."""
        make_file(workspace / "Pictures" / "a.jpg", "original")
        make_file(source_dir / "a.jpg", "downloaded")

        Organizer(config, history_path=history_path).organize(source_dir)

        assert (workspace / "Pictures" / "a.jpg").read_text() == "original"
        assert (workspace / "Pictures" / "a(1).jpg").read_text() == "downloaded"
        assert list(source_dir.iterdir()) == []

    def test_second_run_moves_nothing(self, config, source_dir, history_path, make_file):
        """Test running twice without new files moves nothing the second time."""
        make_file(source_dir / "a.jpg")
        make_file(source_dir / "b.pdf")

        first = Organizer(config, history_path=history_path).organize(source_dir)
        second = Organizer(config, history_path=history_path).organize(source_dir)

        assert first.moved == 2
        assert second.moved == 0
        assert second.source_empty is True

    def test_history_written(self, config, source_dir, workspace, history_path, make_file):
        """Test live runs persist their moves in order."""
        make_file(source_dir / "a.jpg")
        make_file(source_dir / "b.mkv")

        Organizer(config, history_path=history_path).organize(source_dir)

        records = load_history(history_path)
        assert [(r.source, r.destination) for r in records] == [
            (source_dir / "a.jpg", workspace / "Pictures" / "a.jpg"),
            (source_dir / "b.mkv", workspace / "Videos" / "b.mkv"),
        ]

    def test_no_history_without_moves(self, config, source_dir, history_path, make_file):
        """Test a run that moved nothing writes no history."""
        make_file(source_dir / "c.xyz")

        Organizer(config, history_path=history_path).organize(source_dir)

        assert not history_path.exists()

    def test_creates_destinations_up_front(self, config, source_dir, workspace, make_file):
        """Test every destination folder exists after a live run."""
        make_file(source_dir / "a.jpg")

        Organizer(config).organize(source_dir)

        for folder in ("Pictures", "Videos", "Documents"):
            assert (workspace / folder).is_dir()

    def test_directories_skipped_without_recursion(self, config, source_dir, make_file):
        """Test subdirectories are left alone in flat mode."""
        nested = make_file(source_dir / "sub" / "deep.jpg")

        stats = Organizer(config).organize(source_dir)

        assert nested.exists()
        assert stats.moved == 0
        assert stats.skipped == 0

    def test_empty_source(self, config, source_dir, history_path):
        """Test an empty folder is reported as such."""
        stats = Organizer(config, history_path=history_path).organize(source_dir)

        assert stats.source_empty is True
        assert stats.total == 0
        assert not history_path.exists()

    def test_only_unsupported_is_not_empty(self, config, source_dir, make_file):
        """Test a run that moved nothing is distinct from an empty folder."""
        make_file(source_dir / "c.xyz")

        stats = Organizer(config).organize(source_dir)

        assert stats.source_empty is False
        assert stats.unsupported == 1

    def test_missing_source(self, config, workspace):
        """Test a missing source folder is fatal."""
        with pytest.raises(SourceDirectoryError, match="Invalid source folder"):
            Organizer(config).organize(workspace / "nope")

    def test_source_is_a_file(self, config, workspace, make_file):
        """Test a file given as source is fatal."""
        path = make_file(workspace / "file.txt")

        with pytest.raises(SourceDirectoryError):
            Organizer(config).organize(path)

    def test_destination_failure_is_fatal(self, config, source_dir, workspace, make_file):
        """Test an uncreatable destination aborts before moving anything."""
        make_file(workspace / "Pictures", "a file where a folder should be")
        src = make_file(source_dir / "b.mkv")

        with pytest.raises(DestinationError, match="images"):
            Organizer(config).organize(source_dir)

        assert src.exists()

    def test_history_saved_when_run_aborts(self, config, source_dir, workspace, history_path, make_file):
        """Test moves done before a fatal error can still be undone."""
        make_file(source_dir / "a.jpg")
        make_file(source_dir / "b.mkv")
        organizer = Organizer(config, history_path=history_path)
        original_move = organizer.mover.move

        def move_then_fail(path, name=None, dry_run=False):
            if path.name == "b.mkv":
                raise RuntimeError("disk on fire")
            return original_move(path, name, dry_run=dry_run)

        organizer.mover.move = move_then_fail
        with pytest.raises(RuntimeError):
            organizer.organize(source_dir)

        records = load_history(history_path)
        assert [r.destination for r in records] == [workspace / "Pictures" / "a.jpg"]


class TestOrganizeDryRun:
    """Test dry-run organize."""

    def test_filesystem_unchanged(self, config, source_dir, workspace, history_path, make_file, snapshot):
        """Test a dry run changes nothing but still counts moves."""
        make_file(source_dir / "a.jpg")
        make_file(source_dir / "b.mkv")
        make_file(source_dir / "c.xyz")
        make_file(workspace / "Pictures" / "a.jpg", "already there")
        before = snapshot(workspace)

        stats = Organizer(
            config, OrganizeOptions(dry_run=True), history_path=history_path
        ).organize(source_dir)

        assert snapshot(workspace) == before
        assert not (workspace / "Videos").exists()
        assert not history_path.exists()
        assert stats.dry_run is True
        assert stats.moved == 2
        assert stats.unsupported == 1


class TestOrganizeRecursive:
    """Test recursive organize."""

    def test_descends_into_subdirectories(self, config, source_dir, workspace, make_file):
        """Test files in nested folders are organized too."""
        make_file(source_dir / "top.jpg")
        make_file(source_dir / "sub" / "mid.pdf")
        make_file(source_dir / "sub" / "deeper" / "low.mp4")

        stats = Organizer(config, OrganizeOptions(recursive=True)).organize(source_dir)

        assert stats.moved == 3
        assert (workspace / "Pictures" / "top.jpg").exists()
        assert (workspace / "Documents" / "mid.pdf").exists()
        assert (workspace / "Videos" / "low.mp4").exists()
        assert (source_dir / "sub" / "deeper").is_dir()

    def test_same_names_in_subdirectories(self, config, source_dir, workspace, make_file):
        """Test same-named files from different folders both survive."""
        make_file(source_dir / "a.jpg", "first")
        make_file(source_dir / "sub" / "a.jpg", "second")

        Organizer(config, OrganizeOptions(recursive=True)).organize(source_dir)

        contents = {
            (workspace / "Pictures" / "a.jpg").read_text(),
            (workspace / "Pictures" / "a(1).jpg").read_text(),
        }
        assert contents == {"first", "second"}

    def test_destinations_inside_source(self, workspace, make_file):
        """Test repeated recursive runs are stable when folders live in the source."""
        from downloads_organizer.core.config import OrganizerConfig

        source = workspace / "Inbox"
        config = OrganizerConfig(
            extensions={"images": [".jpg"]},
            folders={"images": source / "Pictures"},
        )
        make_file(source / "a.jpg")
        options = OrganizeOptions(recursive=True)

        first = Organizer(config, options).organize(source)
        second = Organizer(config, options).organize(source)

        assert first.moved == 1
        assert second.moved == 0
        assert second.skipped == 1
        assert sorted(p.name for p in (source / "Pictures").iterdir()) == ["a.jpg"]

    @pytest.mark.skipif(
        hasattr(os, "geteuid") and os.geteuid() == 0,
        reason="root can read any directory",
    )
    def test_unreadable_subdirectory(self, config, source_dir, workspace, make_file):
        """Test an unreadable folder is an error but siblings are processed."""
        locked = source_dir / "locked"
        make_file(locked / "hidden.jpg")
        make_file(source_dir / "open" / "b.pdf")
        locked.chmod(0)

        try:
            stats = Organizer(config, OrganizeOptions(recursive=True)).organize(
                source_dir
            )
        finally:
            locked.chmod(0o755)

        assert stats.errors == 1
        assert str(locked) in stats.failures[0]
        assert stats.moved == 1
        assert (workspace / "Documents" / "b.pdf").exists()

    def test_scan_error_is_contained(self, config, source_dir, workspace, make_file):
        """Test a listing failure only affects its own subtree."""
        from downloads_organizer.organization import traversal

        make_file(source_dir / "bad" / "x.jpg")
        make_file(source_dir / "good" / "y.jpg")
        real_scan = traversal._scan

        def flaky_scan(directory):
            if directory.name == "bad":
                raise PermissionError(13, "Permission denied")
            return real_scan(directory)

        with patch.object(traversal, "_scan", side_effect=flaky_scan):
            stats = Organizer(config, OrganizeOptions(recursive=True)).organize(
                source_dir
            )

        assert stats.errors == 1
        assert stats.moved == 1
        assert (workspace / "Pictures" / "y.jpg").exists()
        assert (source_dir / "bad" / "x.jpg").exists()
