"""Equivalence search over lazily fetched commit ancestry.

The commit graph is never materialised.  ``EquivalenceMatcher`` keeps a
FIFO frontier of ``Revision`` values plus a set of every revision ever
queued, and asks the ``RevisionHistory`` for metadata only when a revision
is dequeued and has no known equivalent.

Search policies
---------------
``SearchType.LINEAR``
    Follow only the first (mainline) parent of each commit.
``SearchType.BRANCHED``
    Follow every parent, breadth-first.

Either way, a revision that has an equivalent in the target repository is
a boundary: its equivalences are recorded and its ancestors are not
visited through it.  Everything visited before reaching a boundary is
"new" and reported in breadth-first order.

The walk is strictly sequential, so the result is deterministic for a
given database snapshot and commit graph.  Ancestry is assumed acyclic.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from revsync.database.file_db import EquivalenceDatabase
from revsync.database.models import Equivalence, EquivalenceMatchResult
from revsync.errors import RevsyncError
from revsync.repositories.models import Revision, SearchType

if TYPE_CHECKING:
    from revsync.repositories.base import RevisionHistory

logger = logging.getLogger(__name__)


class EquivalenceMatcher:
    """Find where one repository's history last converged with another's.

    Args:
        target_repository_name: Repository to find equivalents in.
        database: Snapshot of known equivalences.
    """

    def __init__(
        self,
        target_repository_name: str,
        database: EquivalenceDatabase,
    ) -> None:
        self.target_repository_name = target_repository_name
        self.database = database

    def match_revision(self, revision: Revision) -> list[Equivalence]:
        """Return equivalences between *revision* and the target repository."""
        return [
            Equivalence(rev1=revision, rev2=other)
            for other in self.database.find_equivalences(
                revision, self.target_repository_name
            )
        ]

    def find_revisions(
        self,
        history: RevisionHistory,
        start: Revision | None = None,
        search_type: SearchType = SearchType.BRANCHED,
    ) -> EquivalenceMatchResult:
        """Walk ancestry from *start* until equivalences bound the search.

        Args:
            history: History of the repository being walked.
            start: Revision to start from.  Defaults to the branch heads.
            search_type: ``LINEAR`` or ``BRANCHED``.

        Returns:
            The equivalences found (discovery order) and the revisions
            visited before reaching them (breadth-first order).

        Raises:
            RevsyncError: If a linear search has more than one head to
                start from.
            CommandError: If any metadata query fails; no partial result
                is returned.
        """
        if start is not None:
            starting = [start]
        else:
            starting = history.find_head_revisions()
        if search_type is SearchType.LINEAR and len(starting) > 1:
            raise RevsyncError(
                f"Found {len(starting)} heads in repository "
                f"'{history.repository_name}'; a linear search needs "
                f"exactly one starting revision"
            )

        queue: deque[Revision] = deque(starting)
        seen: set[Revision] = set(starting)
        equivalences: list[Equivalence] = []
        new_revisions: list[Revision] = []

        while queue:
            revision = queue.popleft()

            matches = self.match_revision(revision)
            if matches:
                for equivalence in matches:
                    if equivalence not in equivalences:
                        logger.debug("Found equivalence %s", equivalence)
                        equivalences.append(equivalence)
                continue

            new_revisions.append(revision)
            metadata = history.get_metadata(revision)
            parents = metadata.parents
            if search_type is SearchType.LINEAR:
                parents = parents[:1]
            for parent in parents:
                if parent not in seen:
                    seen.add(parent)
                    queue.append(parent)

        logger.info(
            "Searched %s against %s: %d new revisions, %d equivalences",
            history.repository_name,
            self.target_repository_name,
            len(new_revisions),
            len(equivalences),
        )
        return EquivalenceMatchResult(
            equivalences=equivalences,
            revisions_since_equivalence=new_revisions,
        )
