"""Git implementation of the repository capabilities.

``git log`` cannot HTML-escape its output, so metadata is requested with
ASCII unit separators between fields and translated into the canonical
``" < "`` record before parsing.
"""

from __future__ import annotations

import logging
from pathlib import Path

from revsync.errors import (
    CommandError,
    MalformedMetadataError,
    UnknownRevisionError,
)
from revsync.repositories.base import (
    FIELD_SEPARATOR,
    ClonedRepository,
    RevisionHistory,
    escape,
)
from revsync.repositories.models import Revision

logger = logging.getLogger(__name__)

# git exits with 128 on "fatal: bad revision" / "unknown revision".
GIT_UNKNOWN_REVISION_EXIT_CODE = 128
_UNKNOWN_REVISION_MARKERS = ("unknown revision", "bad revision")
# `merge-base --is-ancestor` exits 1 when the commit is not on the branch.
GIT_NOT_ANCESTOR_EXIT_CODE = 1

UNIT_SEPARATOR = "\x1f"
METADATA_FORMAT = "%H%x1f%an <%ae>%x1f%ad%x1f%P%x1f%B"
DATE_FORMAT = "format:%Y-%m-%d %H:%M:%S %z"


class GitClonedRepository(ClonedRepository):
    """A local ``git clone`` of the configured repository."""

    vcs = "git"

    def _clone(self, target: Path) -> str:
        args = ["clone", self.config.url, str(target)]
        if self.config.branch:
            args.append(f"--branch={self.config.branch}")
        self._runner.run_command(self.vcs, args, "")

        branch = self._runner.run_command(
            self.vcs, ["rev-parse", "--abbrev-ref", "HEAD"], str(target)
        ).strip()
        logger.debug("Cloned %s at branch %s", self.repository_name, branch)
        return branch


class GitRevisionHistory(RevisionHistory):
    """Query a Git clone with ``git log`` and ``git for-each-ref``."""

    vcs = "git"

    def find_highest_revision(self, rev_id: str | None = None) -> Revision:
        """Resolve *rev_id* and check that it is on the cloned branch.

        ``git log <rev>`` resolves commits from any branch of the clone, so
        a resolved id is additionally checked with ``merge-base
        --is-ancestor`` against the branch.

        Raises:
            UnknownRevisionError: If *rev_id* does not exist or is not
                reachable from the branch.
            CommandError: For any other command failure.
        """
        revision = super().find_highest_revision(rev_id)
        if rev_id is None:
            return revision

        clone = self._clone_supplier()
        try:
            self._run(
                clone,
                [
                    "merge-base",
                    "--is-ancestor",
                    revision.rev_id,
                    clone.branch,
                ],
            )
        except CommandError as exc:
            if exc.returncode == GIT_NOT_ANCESTOR_EXIT_CODE:
                logger.debug(
                    "%s is not on branch %s", revision.rev_id, clone.branch
                )
                raise UnknownRevisionError(
                    rev_id, clone.repository_name
                ) from exc
            raise
        return revision

    def _highest_revision_args(
        self, clone: ClonedRepository, rev_id: str | None
    ) -> list[str]:
        return [
            "log",
            "--max-count=1",
            "--format=%H",
            rev_id if rev_id is not None else clone.branch,
            "--",
        ]

    def _head_revisions_args(self, clone: ClonedRepository) -> list[str]:
        return [
            "for-each-ref",
            "--format=%(objectname) %(refname:short)",
            f"refs/heads/{clone.branch}",
        ]

    def _metadata_args(self, revision: Revision) -> list[str]:
        return [
            "log",
            "--max-count=1",
            f"--date={DATE_FORMAT}",
            f"--format={METADATA_FORMAT}",
            revision.rev_id,
            "--",
        ]

    def _is_unknown_revision(self, exc: CommandError) -> bool:
        return exc.returncode == GIT_UNKNOWN_REVISION_EXIT_CODE and any(
            marker in exc.stderr for marker in _UNKNOWN_REVISION_MARKERS
        )

    def _to_canonical(self, output: str) -> str:
        fields = output.split(UNIT_SEPARATOR, 4)
        if len(fields) != 5:
            raise MalformedMetadataError(output, "expected five git fields")
        rev_id, author, date, parents, body = fields
        parent_tokens = " ".join(
            f"{index}:{parent}"
            for index, parent in enumerate(parents.split())
        )
        return FIELD_SEPARATOR.join(
            [
                escape(rev_id.strip()),
                escape(author),
                escape(date),
                escape(body.rstrip("\n")),
                parent_tokens,
            ]
        )
