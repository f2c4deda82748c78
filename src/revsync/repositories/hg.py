"""Mercurial implementation of the repository capabilities."""

from __future__ import annotations

import logging
from pathlib import Path

from revsync.errors import CommandError
from revsync.repositories.base import ClonedRepository, RevisionHistory
from revsync.repositories.models import Revision

logger = logging.getLogger(__name__)

# hg exits with 255 on "abort: unknown revision '...'".
HG_UNKNOWN_REVISION_EXIT_CODE = 255

METADATA_TEMPLATE = (
    "{node|escape} < {author|escape} < {date|isodate|escape} < "
    "{desc|escape} < {parents|stringify|escape}"
)


class HgClonedRepository(ClonedRepository):
    """A local ``hg clone`` of the configured repository."""

    vcs = "hg"

    def _clone(self, target: Path) -> str:
        args = ["clone", self.config.url, str(target)]
        if self.config.branch:
            args.append(f"--rev={self.config.branch}")
        self._runner.run_command(self.vcs, args, "")

        branch = self._runner.run_command(
            self.vcs, ["branch"], str(target)
        ).strip()
        logger.debug("Cloned %s at branch %s", self.repository_name, branch)
        return branch


class HgRevisionHistory(RevisionHistory):
    """Query a Mercurial clone with ``hg log`` and ``hg heads``."""

    vcs = "hg"

    def _highest_revision_args(
        self, clone: ClonedRepository, rev_id: str | None
    ) -> list[str]:
        args = [
            "log",
            f"--branch={clone.branch}",
            "--limit=1",
            "--template={node}",
        ]
        if rev_id is not None:
            args.append(f"--rev={rev_id}")
        return args

    def _head_revisions_args(self, clone: ClonedRepository) -> list[str]:
        return ["heads", clone.branch, "--template={node} {branch}\n"]

    def _metadata_args(self, revision: Revision) -> list[str]:
        return [
            "log",
            f"--rev={revision.rev_id}",
            "--limit=1",
            f"--template={METADATA_TEMPLATE}",
            "--debug",
        ]

    def _is_unknown_revision(self, exc: CommandError) -> bool:
        return (
            exc.returncode == HG_UNKNOWN_REVISION_EXIT_CODE
            and "unknown revision" in exc.stderr
        )
