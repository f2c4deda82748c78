"""Error taxonomy for revsync.

Every failure raised by the library derives from ``RevsyncError`` so that
callers driving a sync step can catch one base class and abort the step.

- ``CommandError``: an external VCS command exited non-zero.
- ``UnknownRevisionError``: the VCS reported that a revision does not exist.
- ``IllegalReuseError``: a one-shot clone was reused or read before binding.
- ``MalformedMetadataError``: ``log`` output did not have the expected shape.
- ``DatabaseFormatError``: the equivalence database text could not be read.
- ``ConfigError``: a project refers to an unknown repository or VCS kind.

None of these are retryable from inside the library.
"""

from __future__ import annotations

import shlex


class RevsyncError(Exception):
    """Base class for all revsync failures."""


class CommandError(RevsyncError):
    """An external command exited with a non-zero status.

    Attributes:
        cmd: The executable that was run (e.g. ``"hg"``).
        args: Arguments passed to the executable.
        stdout: Captured standard output.
        stderr: Captured standard error.
        returncode: Process exit status.
    """

    def __init__(
        self,
        cmd: str,
        args: list[str],
        stdout: str,
        stderr: str,
        returncode: int,
    ) -> None:
        self.cmd = cmd
        self.args_list = list(args)
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(
            f"Command failed with exit code {returncode}: "
            f"{shlex.join([cmd, *self.args_list])}\n{stderr.strip()}"
        )


class UnknownRevisionError(RevsyncError):
    """The requested revision does not exist in the repository."""

    def __init__(self, revision_id: str, repository_name: str) -> None:
        self.revision_id = revision_id
        self.repository_name = repository_name
        super().__init__(
            f"Revision '{revision_id}' not found in repository "
            f"'{repository_name}'. Check the revision id and the "
            f"configured branch."
        )


class IllegalReuseError(RevsyncError):
    """A one-shot resource was used outside its single permitted binding."""


class MalformedMetadataError(RevsyncError):
    """Revision metadata output did not match the expected record shape."""

    def __init__(self, raw: str, reason: str) -> None:
        self.raw = raw
        super().__init__(f"Malformed revision metadata ({reason}): {raw!r}")


class DatabaseFormatError(RevsyncError):
    """The persisted equivalence database could not be parsed."""


class ConfigError(RevsyncError):
    """Project configuration refers to something that does not exist."""
