"""Tests for ProjectContext: wiring config to histories and the database.

All VCS commands go through the scripted runner, so each test spells out
exactly which commands a project operation issues and in which order.
"""

from __future__ import annotations

import json
import textwrap
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from revsync.config_loader import CONFIG_ENV_VAR
from revsync.config_schema import build_config
from revsync.core.filesystem import Lifetime, LocalFileSystem
from revsync.errors import ConfigError, UnknownRevisionError
from revsync.project import ProjectContext, load_project
from revsync.repositories.factory import LazyClone, create_repository
from revsync.repositories.git import GitRevisionHistory
from revsync.repositories.hg import METADATA_TEMPLATE, HgRevisionHistory
from revsync.repositories.models import Revision

CLONE_DIR = "/tmp/hg_clone_internal_1"
HG_URL = "/srv/hg/internal"

RAW_CONFIG = {
    "name": "myproject",
    "repositories": {
        "internal": {"type": "hg", "url": HG_URL, "branch": "default"},
        "public": {"type": "git", "url": "/srv/git/public", "branch": "main"},
    },
}

EQUIVALENCE_DB = {
    "equivalences": [
        {
            "rev1": {"revId": "2", "repositoryName": "internal"},
            "rev2": {"revId": "b2", "repositoryName": "public"},
        }
    ]
}


def _rev(rev_id: str) -> Revision:
    return Revision(rev_id=rev_id, repository_name="internal")


@pytest.fixture
def project(runner, make_filesystem) -> ProjectContext:
    return ProjectContext(
        build_config(RAW_CONFIG),
        runner=runner,
        filesystem=make_filesystem(CLONE_DIR),
    )


def _expect_clone(runner) -> None:
    runner.expect(
        "hg", ["clone", HG_URL, CLONE_DIR, "--rev=default"], "", ""
    )
    runner.expect("hg", ["branch"], CLONE_DIR, "default\n")


def _expect_highest(runner, rev_id: str, result="") -> None:
    runner.expect(
        "hg",
        [
            "log",
            "--branch=default",
            "--limit=1",
            "--template={node}",
            f"--rev={rev_id}",
        ],
        CLONE_DIR,
        result or rev_id,
    )


def _expect_metadata(runner, rev_id: str, result: str) -> None:
    runner.expect(
        "hg",
        [
            "log",
            f"--rev={rev_id}",
            "--limit=1",
            f"--template={METADATA_TEMPLATE}",
            "--debug",
        ],
        CLONE_DIR,
        result,
    )


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestProjectConstruction:
    """Tests for ProjectContext setup and repository lookup."""

    def test_histories_by_kind(self, project):
        assert isinstance(project.history("internal"), HgRevisionHistory)
        assert isinstance(project.history("public"), GitRevisionHistory)

    def test_nothing_cloned_until_first_query(self, runner, project):
        assert runner.calls == []

    def test_unknown_repository(self, project):
        with pytest.raises(ConfigError, match="nowhere"):
            project.history("nowhere")

    def test_from_config_equivalent_to_constructor(
        self, runner, make_filesystem
    ):
        config = build_config(RAW_CONFIG)
        context = ProjectContext.from_config(
            config,
            runner=runner,
            filesystem=make_filesystem(CLONE_DIR),
            lifetime=Lifetime.PERSISTENT,
        )
        assert context.config is config
        assert context.lifetime is Lifetime.PERSISTENT
        assert sorted(context.repositories) == ["internal", "public"]

    def test_default_runner_uses_command_settings(self):
        context = ProjectContext(
            build_config({"commands": {"hg": "/opt/hg", "timeout": 30}})
        )
        assert context.runner.binaries == {"hg": "/opt/hg", "git": "git"}
        assert context.runner.timeout == 30


# ---------------------------------------------------------------------------
# Database loading
# ---------------------------------------------------------------------------


class TestLoadDatabase:
    """Tests for ProjectContext.load_database()."""

    def test_empty_without_path(self, project):
        assert project.load_database().equivalences == []

    def test_loads_configured_file(self, tmp_path, runner, make_filesystem):
        db_path = tmp_path / "eq.json"
        db_path.write_text(json.dumps(EQUIVALENCE_DB))
        context = ProjectContext(
            build_config({**RAW_CONFIG, "database": {"path": str(db_path)}}),
            runner=runner,
            filesystem=make_filesystem(CLONE_DIR),
        )

        assert len(context.load_database().equivalences) == 1


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class TestFindRevisions:
    """Tests for ProjectContext.find_revisions()."""

    def test_from_given_revision(self, runner, project):
        _expect_clone(runner)
        _expect_highest(runner, "2")
        _expect_metadata(
            runner,
            "2",
            "2 < uid@google.com < 2012-07-09 06:00 -0700 < desc < 1:1",
        )
        _expect_metadata(
            runner,
            "1",
            "1 < uid@google.com < 2012-07-09 05:00 -0700 < init < -1:0",
        )

        result = project.find_revisions("internal", "public", "2")

        assert result.revisions_since_equivalence == [_rev("2"), _rev("1")]
        assert result.equivalences == []
        runner.verify()

    def test_clone_happens_once(self, runner, make_filesystem, tmp_path):
        db_path = tmp_path / "eq.json"
        db_path.write_text(json.dumps(EQUIVALENCE_DB))
        fs = make_filesystem(CLONE_DIR)
        context = ProjectContext(
            build_config({**RAW_CONFIG, "database": {"path": str(db_path)}}),
            runner=runner,
            filesystem=fs,
        )
        _expect_clone(runner)
        _expect_highest(runner, "2")
        _expect_highest(runner, "2")

        first = context.find_revisions("internal", "public", "2")
        second = context.find_revisions("internal", "public", "2")

        assert first == second
        assert first.has_equivalence
        assert len(fs.requests) == 1
        runner.verify()

    def test_unknown_target(self, project):
        with pytest.raises(ConfigError):
            project.find_revisions("internal", "mirror")

    def test_unknown_revision(self, runner, project, failure):
        _expect_clone(runner)
        _expect_highest(
            runner,
            "zzz",
            failure("hg", "abort: unknown revision 'zzz'!", 255),
        )

        with pytest.raises(UnknownRevisionError):
            project.find_revisions("internal", "public", "zzz")


class TestDetermineMetadata:
    """Tests for ProjectContext.determine_metadata()."""

    def test_concatenates_records(self, runner, project):
        _expect_clone(runner)
        _expect_highest(runner, "1")
        _expect_metadata(
            runner,
            "1",
            "1 < alice < 2012-07-09 05:00 -0700 < first < -1:0",
        )
        _expect_highest(runner, "2")
        _expect_metadata(
            runner,
            "2",
            "2 < bob < 2012-07-09 06:00 -0700 < second < 0:1",
        )

        metadata = project.determine_metadata("internal", ["1", "2"])

        assert metadata.id == "1, 2"
        assert metadata.author == "alice, bob"
        assert metadata.description == "first\n-------------\nsecond"
        assert metadata.date == datetime(
            2012, 7, 9, 6, 0, tzinfo=timezone(timedelta(hours=-7))
        )
        assert metadata.parents == [_rev("1")]
        runner.verify()

    def test_requires_ids(self, project):
        with pytest.raises(ValueError):
            project.determine_metadata("internal", [])


class TestClose:
    """Tests for temporary clone cleanup."""

    def test_close_removes_temporary_directories(self, tmp_path, runner):
        fs = LocalFileSystem(root=tmp_path)
        keep = fs.get_temporary_directory("keep_", Lifetime.PERSISTENT)

        with ProjectContext(
            build_config(RAW_CONFIG), runner=runner, filesystem=fs
        ):
            scratch = fs.get_temporary_directory("hg_", Lifetime.TEMPORARY)
            assert scratch.is_dir()

        assert not scratch.exists()
        assert keep.is_dir()


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


class TestCreateRepository:
    """Tests for create_repository() and LazyClone."""

    def test_unknown_type(self, runner, make_filesystem):
        config = build_config(RAW_CONFIG).repositories["internal"]
        bad = config.model_copy(update={"type": "svn"})

        with pytest.raises(ConfigError, match="svn"):
            create_repository(
                "internal", bad, runner, make_filesystem(CLONE_DIR)
            )

    def test_lazy_clone_supplies_same_clone(self, runner, make_filesystem):
        config = build_config(RAW_CONFIG).repositories["internal"]
        repository = create_repository(
            "internal", config, runner, make_filesystem(CLONE_DIR)
        )
        supplier = LazyClone(repository.clone, Lifetime.TEMPORARY)
        _expect_clone(runner)

        assert supplier() is repository.clone
        assert supplier() is repository.clone
        runner.verify()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


class TestLoadProject:
    """Tests for load_project(): config discovery plus logging setup."""

    @pytest.fixture
    def config_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.setenv("HG_URL", HG_URL)
        path = tmp_path / "revsync.yml"
        path.write_text(
            textwrap.dedent(
                """\
                name: myproject
                repositories:
                  internal:
                    type: hg
                    url: ${HG_URL}
                    branch: default
                logging:
                  level: WARNING
                  file: /tmp/revsync-test.log
                  format: json
                """
            )
        )
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        return path

    @patch("revsync.project.setup_logging")
    def test_builds_context_from_discovered_config(
        self, mock_setup, config_file, runner, make_filesystem
    ):
        context = load_project(
            runner=runner, filesystem=make_filesystem(CLONE_DIR)
        )

        assert context.config.name == "myproject"
        assert context.config.repositories["internal"].url == HG_URL
        assert isinstance(context.history("internal"), HgRevisionHistory)
        assert context.runner is runner
        mock_setup.assert_called_once_with(
            debug=False,
            log_file="/tmp/revsync-test.log",
            log_format="json",
            level="WARNING",
        )

    @patch("revsync.project.setup_logging")
    def test_debug_passed_through(
        self, mock_setup, config_file, runner, make_filesystem
    ):
        load_project(
            runner=runner,
            filesystem=make_filesystem(CLONE_DIR),
            debug=True,
        )

        assert mock_setup.call_args[1]["debug"] is True

    @patch("revsync.project.setup_logging")
    def test_no_config_files_gives_defaults(
        self, mock_setup, tmp_path, monkeypatch, runner, make_filesystem
    ):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path / "home"))

        context = load_project(
            runner=runner, filesystem=make_filesystem(CLONE_DIR)
        )

        assert context.config.repositories == {}
        mock_setup.assert_called_once_with(
            debug=False, log_file=None, log_format="text", level="INFO"
        )
