"""Pydantic models for revisions and their metadata.

- ``Revision``: one commit in one named repository.
- ``RevisionMetadata``: parsed commit record (id, author, date,
  description, parents).
- ``SearchType``: ancestry walk policy used by the equivalence matcher.

All models are frozen (immutable) and compare structurally, so
``Revision`` values can be used in sets and as dict keys.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

DESCRIPTION_DELIMITER = "\n-------------\n"


class SearchType(str, Enum):
    """How far the ancestry walk reaches."""

    LINEAR = "linear"
    BRANCHED = "branched"


class Revision(BaseModel):
    """A commit identifier scoped to one named repository.

    Attributes:
        rev_id: Changeset hash or other VCS-specific id.
        repository_name: Name of the repository the id belongs to.
    """

    rev_id: str = Field(alias="revId")
    repository_name: str = Field(alias="repositoryName")

    model_config = {"frozen": True, "populate_by_name": True}

    def __str__(self) -> str:
        return f"{self.repository_name}{{{self.rev_id}}}"


class RevisionMetadata(BaseModel):
    """Parsed commit record.

    Attributes:
        id: Revision id as reported by the VCS.
        author: Commit author.
        date: Commit timestamp, timezone-aware.
        description: Full commit message.
        parents: Parent revisions in VCS order; the first is the mainline.
    """

    id: str
    author: str
    date: datetime
    description: str
    parents: list[Revision] = []

    model_config = {"frozen": True}

    @classmethod
    def concatenate(
        cls, records: list[RevisionMetadata]
    ) -> RevisionMetadata:
        """Summarise a range of revisions as one synthetic record.

        Ids and authors are joined with ``", "``, descriptions with a
        dashed delimiter line, parents are appended in order, and the
        latest date wins.

        Raises:
            ValueError: If *records* is empty.
        """
        if not records:
            raise ValueError("Cannot concatenate an empty list of metadata")

        parents: list[Revision] = []
        for record in records:
            parents.extend(record.parents)

        return cls(
            id=", ".join(r.id for r in records),
            author=", ".join(r.author for r in records),
            date=max(r.date for r in records),
            description=DESCRIPTION_DELIMITER.join(
                r.description for r in records
            ),
            parents=parents,
        )
