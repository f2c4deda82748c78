"""Pydantic models for equivalences and match results.

- ``Equivalence``: unordered pair of revisions from two different
  repositories that represent the same logical state.
- ``EquivalenceMatchResult``: what an ancestry walk discovered.
"""

from __future__ import annotations

from pydantic import BaseModel, model_validator

from revsync.repositories.models import Revision


class Equivalence(BaseModel):
    """Assertion that two revisions in different repositories match.

    Equality and hashing ignore which side is ``rev1`` and which is
    ``rev2``.
    """

    rev1: Revision
    rev2: Revision

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_distinct_repositories(self) -> Equivalence:
        if self.rev1.repository_name == self.rev2.repository_name:
            raise ValueError(
                "An equivalence must relate two different repositories, "
                f"got '{self.rev1.repository_name}' on both sides"
            )
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Equivalence):
            return NotImplemented
        return {self.rev1, self.rev2} == {other.rev1, other.rev2}

    def __hash__(self) -> int:
        return hash(frozenset((self.rev1, self.rev2)))

    def __str__(self) -> str:
        return f"{self.rev1} == {self.rev2}"

    def has_revision(self, revision: Revision) -> bool:
        """Return ``True`` if *revision* is either side of the pair."""
        return revision in (self.rev1, self.rev2)

    def other_than(self, revision: Revision) -> Revision:
        """Return the side of the pair that is not *revision*.

        Raises:
            ValueError: If *revision* is not part of this equivalence.
        """
        if revision == self.rev1:
            return self.rev2
        if revision == self.rev2:
            return self.rev1
        raise ValueError(f"{revision} is not part of equivalence {self}")


class EquivalenceMatchResult(BaseModel):
    """Outcome of an equivalence search.

    Attributes:
        equivalences: Equivalences found, in discovery order.
        revisions_since_equivalence: Revisions not yet matched, in
            breadth-first order from the starting point(s).
    """

    equivalences: list[Equivalence] = []
    revisions_since_equivalence: list[Revision] = []

    model_config = {"frozen": True}

    @property
    def has_equivalence(self) -> bool:
        """Whether any convergence point was found."""
        return bool(self.equivalences)
