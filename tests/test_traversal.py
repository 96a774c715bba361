"""Tests for processors.traversal module"""
import logging
import os
import tempfile
import shutil
import pytest
from unittest.mock import Mock, patch
from processors import file_processor
from processors.traversal import organize_once


def write_file(path, content="content"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(content)
    return path


def tree(root):
    """Return every file under `root` as a sorted list of relative paths"""
    found = []
    for dirpath, _, filenames in os.walk(root):
        for name in filenames:
            found.append(os.path.relpath(os.path.join(dirpath, name), root).replace(os.sep, "/"))
    return sorted(found)


class TestOrganizeOnce:
    """Test suite for organize_once function"""

    @pytest.fixture
    def temp_dirs(self):
        source_dir = tempfile.mkdtemp()
        dest_dir = tempfile.mkdtemp()
        yield source_dir, dest_dir
        shutil.rmtree(source_dir, ignore_errors=True)
        shutil.rmtree(dest_dir, ignore_errors=True)

    @pytest.fixture
    def sample_files(self, temp_dirs):
        source_dir, _ = temp_dirs
        for name in ("photo.jpg", "note.txt", "movie.mp4", "archive.zzz"):
            write_file(os.path.join(source_dir, name))
        return temp_dirs

    def test_sorts_files_into_categories(self, sample_files):
        source_dir, dest_dir = sample_files

        summary = organize_once(source_dir, dest_dir, settle_seconds=0.01)

        assert tree(dest_dir) == ["docs/note.txt", "other/archive.zzz", "pics/photo.jpg", "video/movie.mp4"]
        assert tree(source_dir) == []
        assert summary.moved == 4
        assert summary.failed == 0

    def test_collision_gets_prefix(self, temp_dirs):
        source_dir, dest_dir = temp_dirs
        write_file(os.path.join(dest_dir, "pics", "photo.jpg"), "old")
        write_file(os.path.join(source_dir, "photo.jpg"), "new")

        organize_once(source_dir, dest_dir, settle_seconds=0.01)

        assert tree(dest_dir) == ["pics/1_photo.jpg", "pics/photo.jpg"]
        assert not os.path.exists(os.path.join(source_dir, "photo.jpg"))

    def test_dry_run_changes_nothing(self, sample_files):
        source_dir, dest_dir = sample_files
        logger = Mock(spec=logging.Logger)

        organize_once(source_dir, dest_dir, dry_run=True, settle_seconds=0.01, logger=logger)

        assert tree(dest_dir) == []
        assert len(tree(source_dir)) == 4
        messages = [call.args[0] for call in logger.info.call_args_list]
        assert messages.count("[dry-run] %s → %s") == 4

    def test_dry_run_counts_planned_not_moved(self, sample_files):
        """Announced moves are not reported as done"""
        source_dir, dest_dir = sample_files

        summary = organize_once(source_dir, dest_dir, dry_run=True, settle_seconds=0.01)

        assert summary.moved == 0
        assert summary.planned == 4
        assert summary.failed == 0

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_directory_symlink_is_moved_as_link(self, temp_dirs):
        """A link to a directory is moved itself and never followed"""
        source_dir, dest_dir = temp_dirs
        target = tempfile.mkdtemp()
        try:
            inner = write_file(os.path.join(target, "inner.txt"))
            os.symlink(target, os.path.join(source_dir, "shortcut"))

            summary = organize_once(source_dir, dest_dir, settle_seconds=0.01)

            moved = os.path.join(dest_dir, "other", "shortcut")
            assert os.path.islink(moved)
            assert os.readlink(moved) == target
            assert not os.path.lexists(os.path.join(source_dir, "shortcut"))
            assert os.path.exists(inner)
            assert summary.moved == 1
        finally:
            shutil.rmtree(target, ignore_errors=True)

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_directory_symlink_is_moved_without_recursion(self, temp_dirs):
        source_dir, dest_dir = temp_dirs
        target = tempfile.mkdtemp()
        try:
            os.symlink(target, os.path.join(source_dir, "shortcut"))

            organize_once(source_dir, dest_dir, no_recursive=True, settle_seconds=0.01)

            assert os.path.islink(os.path.join(dest_dir, "other", "shortcut"))
        finally:
            shutil.rmtree(target, ignore_errors=True)

    def test_recurses_into_subdirectories(self, temp_dirs):
        source_dir, dest_dir = temp_dirs
        write_file(os.path.join(source_dir, "nested", "deeper", "song.mp3"))

        organize_once(source_dir, dest_dir, settle_seconds=0.01)

        assert tree(dest_dir) == ["audio/song.mp3"]

    def test_no_recursive_skips_subdirectories(self, temp_dirs):
        source_dir, dest_dir = temp_dirs
        write_file(os.path.join(source_dir, "top.txt"))
        nested = write_file(os.path.join(source_dir, "nested", "inner.txt"))

        organize_once(source_dir, dest_dir, no_recursive=True, settle_seconds=0.01)

        assert tree(dest_dir) == ["docs/top.txt"]
        assert os.path.exists(nested)

    def test_nested_destination_is_skipped(self):
        """A destination inside the source is never walked into"""
        source_dir = tempfile.mkdtemp()
        try:
            dest_dir = os.path.join(source_dir, "organized")
            write_file(os.path.join(dest_dir, "pics", "old.jpg"))
            write_file(os.path.join(source_dir, "new.jpg"))

            with patch("processors.traversal.process_new_file", wraps=file_processor.process_new_file) as spy:
                organize_once(source_dir, dest_dir, settle_seconds=0.01)

            moved = [call.args[0] for call in spy.call_args_list]
            assert moved == [os.path.join(source_dir, "new.jpg")]
            assert tree(dest_dir) == ["pics/new.jpg", "pics/old.jpg"]
        finally:
            shutil.rmtree(source_dir, ignore_errors=True)

    def test_source_equal_to_destination_does_nothing(self, temp_dirs):
        source_dir, _ = temp_dirs
        write_file(os.path.join(source_dir, "a.txt"))

        summary = organize_once(source_dir, source_dir, settle_seconds=0.01)

        assert tree(source_dir) == ["a.txt"]
        assert summary.moved == 0

    def test_file_failure_does_not_stop_walk(self, sample_files):
        """A failing file is logged and the remaining files still move"""
        source_dir, dest_dir = sample_files
        logger = Mock(spec=logging.Logger)
        real = file_processor.process_new_file

        def flaky(path, *args, **kwargs):
            if path.endswith("movie.mp4"):
                raise OSError("device busy")
            return real(path, *args, **kwargs)

        with patch("processors.traversal.process_new_file", side_effect=flaky):
            summary = organize_once(source_dir, dest_dir, settle_seconds=0.01, logger=logger)

        assert summary.moved == 3
        assert summary.failed == 1
        assert tree(source_dir) == ["movie.mp4"]
        logger.error.assert_called_once()
        assert logger.error.call_args.args[0] == "move failed: %s"

    def test_missing_source_raises(self, temp_dirs):
        """A source directory that cannot be read aborts the walk"""
        source_dir, dest_dir = temp_dirs

        with pytest.raises(OSError):
            organize_once(os.path.join(source_dir, "missing"), dest_dir)
