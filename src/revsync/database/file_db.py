"""Read-side equivalence database.

The persisted form is JSON::

    {
      "equivalences": [
        {"rev1": {"revId": "1002", "repositoryName": "internal"},
         "rev2": {"revId": "2", "repositoryName": "public"}}
      ]
    }

Other top-level keys written by the sync process (e.g. ``migrations``)
are ignored here.  The database is loaded once per run and treated as an
immutable snapshot.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ValidationError

from revsync.database.models import Equivalence
from revsync.errors import DatabaseFormatError
from revsync.repositories.models import Revision

logger = logging.getLogger(__name__)


class EquivalenceDatabase(Protocol):
    """Protocol for looking up known equivalences."""

    def find_equivalences(
        self, revision: Revision, other_repository: str
    ) -> list[Revision]:
        """Return revisions in *other_repository* equivalent to *revision*."""
        ...  # pragma: no cover


class _DbStorage(BaseModel):
    equivalences: list[Equivalence] = []

    model_config = {"extra": "ignore"}


class FileDb:
    """Equivalence database loaded from its JSON text form.

    Args:
        equivalences: The equivalences in the snapshot, in file order.
    """

    def __init__(self, equivalences: list[Equivalence]) -> None:
        self._equivalences: list[Equivalence] = []
        self._by_revision: dict[Revision, list[Equivalence]] = {}
        for equivalence in equivalences:
            if equivalence in self._by_revision.get(equivalence.rev1, []):
                continue
            self._equivalences.append(equivalence)
            for revision in (equivalence.rev1, equivalence.rev2):
                self._by_revision.setdefault(revision, []).append(
                    equivalence
                )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def empty(cls) -> FileDb:
        """Return a database with no equivalences."""
        return cls([])

    @classmethod
    def from_text(cls, text: str) -> FileDb:
        """Parse the JSON text form.

        Raises:
            DatabaseFormatError: If the text is not valid JSON or does not
                match the expected structure.
        """
        try:
            storage = _DbStorage.model_validate_json(text)
        except ValidationError as exc:
            raise DatabaseFormatError(
                f"Could not parse equivalence database: {exc}"
            ) from exc
        return cls(storage.equivalences)

    @classmethod
    def from_path(cls, path: Path) -> FileDb:
        """Read and parse the database file at *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            DatabaseFormatError: If the file content is malformed.
        """
        with open(path, encoding="utf-8") as fh:
            text = fh.read()
        db = cls.from_text(text)
        logger.debug(
            "Loaded %d equivalences from %s", len(db.equivalences), path
        )
        return db

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def equivalences(self) -> list[Equivalence]:
        """All equivalences in the snapshot, in file order."""
        return list(self._equivalences)

    def find_equivalences(
        self, revision: Revision, other_repository: str
    ) -> list[Revision]:
        """Return revisions in *other_repository* equivalent to *revision*.

        The lookup is symmetric: it does not matter which side of a stored
        pair *revision* was recorded on.
        """
        matches: list[Revision] = []
        for equivalence in self._by_revision.get(revision, []):
            other = equivalence.other_than(revision)
            if other.repository_name == other_repository:
                matches.append(other)
        return matches

    def no_equivalences_between(self, repo_a: str, repo_b: str) -> bool:
        """Return ``True`` if no stored pair relates *repo_a* and *repo_b*."""
        wanted = {repo_a, repo_b}
        return not any(
            {e.rev1.repository_name, e.rev2.repository_name} == wanted
            for e in self._equivalences
        )
