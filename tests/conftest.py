"""Shared pytest fixtures for revsync tests."""

from __future__ import annotations

from collections import deque
from pathlib import Path

import pytest
from dotenv import load_dotenv

from revsync.config_schema import RepositoryConfig
from revsync.core.filesystem import Lifetime
from revsync.errors import CommandError

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that invoke real hg/git executables",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring real VCS executables"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeCommandRunner:
    """Scripted CommandRunner.

    Each ``expect()`` queues one exact (cmd, args, working_directory)
    call and its canned stdout or exception.  Calls must arrive in the
    queued order; anything else fails the test.
    """

    def __init__(self) -> None:
        self._expected: deque[tuple[tuple, str | Exception]] = deque()
        self.calls: list[tuple[str, list[str], str]] = []

    def expect(
        self,
        cmd: str,
        args: list[str],
        working_directory: str,
        result: str | Exception = "",
    ) -> None:
        self._expected.append(((cmd, list(args), working_directory), result))

    def run_command(
        self, cmd: str, args: list[str], working_directory: str
    ) -> str:
        call = (cmd, list(args), working_directory)
        self.calls.append(call)
        assert self._expected, f"Unexpected command: {call}"
        expected_call, result = self._expected.popleft()
        assert call == expected_call, (
            f"Expected {expected_call}, got {call}"
        )
        if isinstance(result, Exception):
            raise result
        return result

    def verify(self) -> None:
        """Assert that every expected command was run."""
        assert not self._expected, (
            f"Commands never run: {[c for c, _ in self._expected]}"
        )


class FakeFileSystem:
    """FileSystem double that hands out fixed paths without touching disk."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)
        self.requests: list[tuple[str, Lifetime]] = []

    def get_temporary_directory(
        self, prefix: str, lifetime: Lifetime
    ) -> Path:
        self.requests.append((prefix, lifetime))
        return self.path


class FakeClone:
    """Bound ClonedRepository stand-in for RevisionHistory tests."""

    def __init__(
        self,
        repository_name: str,
        local_temp_dir: str = "/tmp/hg_tipclone_mockrepo_12345",
        branch: str = "mybranch",
    ) -> None:
        self.repository_name = repository_name
        self.local_temp_dir = Path(local_temp_dir)
        self.branch = branch
        self.config = RepositoryConfig(
            type="hg", url="http://foo/hg", branch=branch
        )


def command_failure(
    cmd: str, stderr: str, returncode: int
) -> CommandError:
    """Build a CommandError as a failing tool would produce it."""
    return CommandError(cmd, ["mock args"], "mock stdout", stderr, returncode)


@pytest.fixture
def runner() -> FakeCommandRunner:
    """A fresh scripted command runner."""
    return FakeCommandRunner()


@pytest.fixture
def make_clone():
    """Factory fixture for bound clone stand-ins."""
    return FakeClone


@pytest.fixture
def make_filesystem():
    """Factory fixture for FileSystem doubles."""
    return FakeFileSystem


@pytest.fixture
def failure():
    """Factory fixture for CommandError instances."""
    return command_failure
