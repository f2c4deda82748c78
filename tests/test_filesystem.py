"""Tests for LocalFileSystem directory allocation and cleanup."""

import logging
import shutil

from revsync.core.filesystem import Lifetime, LocalFileSystem


class TestLocalFileSystem:
    """Tests for LocalFileSystem."""

    def test_allocates_fresh_prefixed_directories(self, tmp_path):
        fs = LocalFileSystem(root=tmp_path / "scratch")

        first = fs.get_temporary_directory("hg_clone_x_", Lifetime.TEMPORARY)
        second = fs.get_temporary_directory("hg_clone_x_", Lifetime.TEMPORARY)

        assert first != second
        assert first.is_dir() and second.is_dir()
        assert first.name.startswith("hg_clone_x_")
        assert first.parent == tmp_path / "scratch"
        assert fs.allocated(Lifetime.TEMPORARY) == [first, second]

    def test_cleanup_removes_temporary_only(self, tmp_path):
        fs = LocalFileSystem(root=tmp_path)
        temp = fs.get_temporary_directory("t_", Lifetime.TEMPORARY)
        (temp / "file.txt").write_text("data")
        kept = fs.get_temporary_directory("p_", Lifetime.PERSISTENT)

        fs.cleanup()

        assert not temp.exists()
        assert kept.is_dir()
        assert fs.allocated(Lifetime.TEMPORARY) == []
        assert fs.allocated(Lifetime.PERSISTENT) == [kept]

    def test_persistent_cleanup_leaves_directories(self, tmp_path):
        fs = LocalFileSystem(root=tmp_path)
        kept = fs.get_temporary_directory("p_", Lifetime.PERSISTENT)

        fs.cleanup(Lifetime.PERSISTENT)

        assert kept.is_dir()
        assert fs.allocated(Lifetime.PERSISTENT) == []

    def test_cleanup_logs_directories_it_cannot_remove(self, tmp_path, caplog):
        fs = LocalFileSystem(root=tmp_path)
        gone = fs.get_temporary_directory("gone_", Lifetime.TEMPORARY)
        temp = fs.get_temporary_directory("t_", Lifetime.TEMPORARY)
        shutil.rmtree(gone)

        with caplog.at_level(logging.WARNING, logger="revsync.core.filesystem"):
            fs.cleanup()

        assert not temp.exists()
        assert fs.allocated(Lifetime.TEMPORARY) == []
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert str(gone) in warnings[0].getMessage()
