"""VCS-agnostic repository abstractions.

Two capabilities are implemented once per supported VCS:

- ``ClonedRepository`` -- a local working copy produced by exactly one
  clone operation.  State moves ``UNBOUND -> BOUND`` and never back.
- ``RevisionHistory`` -- queries a cloned repository for heads and commit
  metadata, and parses the canonical metadata record.

Canonical metadata record
-------------------------
Every VCS implementation hands ``parse_metadata()`` a single record of five
fields joined by ``" < "``::

    <id> < <author> < <date> < <description> < <parents>

Text fields are HTML-escaped (``&lt;``, ``&gt;``, ``&quot;``, ``&amp;``) so
that the separator cannot appear inside id, author or date.  The
description is everything between the third and the last separator.
Parents are ``index:revId`` tokens; index ``-1`` marks an absent slot.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, cast

from revsync.core.commands import CommandRunner
from revsync.core.filesystem import FileSystem, Lifetime
from revsync.errors import (
    CommandError,
    IllegalReuseError,
    MalformedMetadataError,
    UnknownRevisionError,
)
from revsync.repositories.models import (
    Revision,
    RevisionMetadata,
    SearchType,
)
from revsync.validators import validate_revision_id

if TYPE_CHECKING:
    from revsync.config_schema import RepositoryConfig
    from revsync.database.matcher import EquivalenceMatcher
    from revsync.database.models import EquivalenceMatchResult

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = " < "
NO_PARENT_INDEX = "-1"

_DATE_FORMATS = ("%Y-%m-%d %H:%M %z", "%Y-%m-%d %H:%M:%S %z")
_UNESCAPES = {"&lt;": "<", "&gt;": ">", "&quot;": '"', "&amp;": "&"}
_UNESCAPE_PATTERN = re.compile("|".join(map(re.escape, _UNESCAPES)))
_ESCAPE_PATTERN = re.compile(r'[&<>"]')
_ESCAPES = {v: k for k, v in _UNESCAPES.items()}


def unescape(text: str) -> str:
    """Undo HTML entity escaping in a single, non-recursive pass."""
    return _UNESCAPE_PATTERN.sub(lambda m: _UNESCAPES[m.group(0)], text)


def escape(text: str) -> str:
    """HTML-escape *text* the way ``hg``'s ``escape`` template filter does."""
    return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES[m.group(0)], text)


# ---------------------------------------------------------------------------
# Cloned repository
# ---------------------------------------------------------------------------


class CloneState(str, Enum):
    """Lifecycle state of a ``ClonedRepository``."""

    UNBOUND = "unbound"
    BOUND = "bound"


class ClonedRepository(ABC):
    """A local working copy of one configured repository.

    The instance represents a single clone operation: the first call to
    ``clone_locally_at_head()`` binds it to a directory and every later
    call raises ``IllegalReuseError``.  Not safe for concurrent use.

    Args:
        repository_name: Name of the repository in the project config.
        config: The repository's configuration (url, branch).
        runner: Command runner used for the clone.
        filesystem: Allocates the clone directory.
    """

    #: Executable name, also used as the temp directory prefix.
    vcs: str = ""

    def __init__(
        self,
        repository_name: str,
        config: RepositoryConfig,
        runner: CommandRunner,
        filesystem: FileSystem,
    ) -> None:
        self._repository_name = repository_name
        self._config = config
        self._runner = runner
        self._filesystem = filesystem
        self._state = CloneState.UNBOUND
        self._local_temp_dir: Path | None = None
        self._branch: str | None = None

    @property
    def repository_name(self) -> str:
        return self._repository_name

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @property
    def state(self) -> CloneState:
        return self._state

    @property
    def local_temp_dir(self) -> Path:
        """Directory of the working copy; only valid once bound."""
        self._require_bound("local_temp_dir")
        return cast(Path, self._local_temp_dir)

    @property
    def branch(self) -> str:
        """Branch resolved at clone time; only valid once bound."""
        self._require_bound("branch")
        return cast(str, self._branch)

    @property
    def temp_dir_prefix(self) -> str:
        return f"{self.vcs}_clone_{self._repository_name}_"

    def clone_locally_at_head(self, lifetime: Lifetime) -> None:
        """Clone the configured url into a fresh directory.

        Args:
            lifetime: Whether the directory is scratch space or should
                outlive the current run.

        Raises:
            IllegalReuseError: If this instance was already cloned.
            CommandError: If the clone or branch query fails.
        """
        if self._state is not CloneState.UNBOUND:
            raise IllegalReuseError(
                f"Repository '{self._repository_name}' has already been "
                f"cloned to {self._local_temp_dir}; a ClonedRepository "
                f"can only be cloned once"
            )

        target = self._filesystem.get_temporary_directory(
            self.temp_dir_prefix, lifetime
        )
        logger.info(
            "Cloning %s (%s) into %s",
            self._repository_name,
            self._config.url,
            target,
        )
        branch = self._clone(target)

        self._local_temp_dir = target
        self._branch = branch
        self._state = CloneState.BOUND

    @abstractmethod
    def _clone(self, target: Path) -> str:
        """Run the VCS clone into *target* and return the resolved branch."""

    def _require_bound(self, attribute: str) -> None:
        if self._state is not CloneState.BOUND:
            raise IllegalReuseError(
                f"Cannot read '{attribute}' of repository "
                f"'{self._repository_name}' before it has been cloned"
            )


# ---------------------------------------------------------------------------
# Revision history
# ---------------------------------------------------------------------------


class RevisionHistory(ABC):
    """Query one repository's commit graph.

    Args:
        clone_supplier: Returns the bound ``ClonedRepository`` to query.
            Called on every query so the clone can be made lazily.
        runner: Command runner used for queries.
    """

    vcs: str = ""

    def __init__(
        self,
        clone_supplier: Callable[[], ClonedRepository],
        runner: CommandRunner,
    ) -> None:
        self._clone_supplier = clone_supplier
        self._runner = runner

    @property
    def repository_name(self) -> str:
        return self._clone_supplier().repository_name

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_highest_revision(self, rev_id: str | None = None) -> Revision:
        """Resolve the latest revision on the branch, or validate *rev_id*.

        Raises:
            UnknownRevisionError: If *rev_id* does not exist on the branch.
            CommandError: For any other command failure.
        """
        clone = self._clone_supplier()
        if rev_id is not None:
            is_valid, reason = validate_revision_id(rev_id)
            if not is_valid:
                logger.warning(
                    "Rejected revision id %r: %s", rev_id, reason
                )
                raise UnknownRevisionError(rev_id, clone.repository_name)

        try:
            output = self._run(
                clone, self._highest_revision_args(clone, rev_id)
            )
        except CommandError as exc:
            if rev_id is not None and self._is_unknown_revision(exc):
                raise UnknownRevisionError(
                    rev_id, clone.repository_name
                ) from exc
            raise

        found = output.strip()
        if not found:
            raise UnknownRevisionError(
                rev_id or clone.branch, clone.repository_name
            )
        return Revision(rev_id=found, repository_name=clone.repository_name)

    def find_head_revisions(self) -> list[Revision]:
        """Return the head revision of each branch, first listing wins."""
        clone = self._clone_supplier()
        output = self._run(clone, self._head_revisions_args(clone))

        heads: dict[str, Revision] = {}
        for line in output.splitlines():
            parts = line.split()
            if not parts:
                continue
            if len(parts) < 2:
                raise MalformedMetadataError(
                    line, "expected '<revId> <branch>'"
                )
            rev_id, branch = parts[0], parts[1]
            if branch not in heads:
                heads[branch] = Revision(
                    rev_id=rev_id, repository_name=clone.repository_name
                )
        return list(heads.values())

    def get_metadata(self, revision: Revision) -> RevisionMetadata:
        """Fetch and parse the metadata of exactly one revision.

        Raises:
            ValueError: If *revision* belongs to a different repository.
        """
        clone = self._clone_supplier()
        if revision.repository_name != clone.repository_name:
            raise ValueError(
                f"Could not get metadata: revision {revision} is not in "
                f"repository '{clone.repository_name}'"
            )
        output = self._run(clone, self._metadata_args(revision))
        return self.parse_metadata(self._to_canonical(output))

    def parse_metadata(self, raw: str) -> RevisionMetadata:
        """Parse a canonical metadata record (see module docstring).

        Raises:
            MalformedMetadataError: If the record does not have five
                fields, the date is unparseable, or a parent is malformed.
        """
        record = raw.rstrip("\r\n")
        fields = record.split(FIELD_SEPARATOR, 3)
        if len(fields) < 4:
            raise MalformedMetadataError(raw, "expected five fields")
        rev_id, author, date_text, rest = fields

        if FIELD_SEPARATOR in rest:
            description, parents_text = rest.rsplit(FIELD_SEPARATOR, 1)
        elif rest.endswith(FIELD_SEPARATOR.rstrip()):
            # The tool trimmed the trailing space of an empty parent list.
            description = rest[: -len(FIELD_SEPARATOR.rstrip())]
            parents_text = ""
        else:
            raise MalformedMetadataError(raw, "expected five fields")

        repository_name = self.repository_name
        return RevisionMetadata(
            id=unescape(rev_id),
            author=unescape(author),
            date=self._parse_date(raw, unescape(date_text)),
            description=unescape(description),
            parents=[
                Revision(rev_id=parent, repository_name=repository_name)
                for parent in self._parse_parents(
                    raw, unescape(parents_text)
                )
            ],
        )

    def find_revisions(
        self,
        revision: Revision | None,
        matcher: EquivalenceMatcher,
        search_type: SearchType = SearchType.BRANCHED,
    ) -> EquivalenceMatchResult:
        """Walk ancestry from *revision* (or the heads) using *matcher*."""
        return matcher.find_revisions(self, revision, search_type)

    # ------------------------------------------------------------------
    # VCS-specific hooks
    # ------------------------------------------------------------------

    @abstractmethod
    def _highest_revision_args(
        self, clone: ClonedRepository, rev_id: str | None
    ) -> list[str]:
        """Arguments printing the highest revision id on the branch."""

    @abstractmethod
    def _head_revisions_args(self, clone: ClonedRepository) -> list[str]:
        """Arguments printing one ``<revId> <branch>`` line per head."""

    @abstractmethod
    def _metadata_args(self, revision: Revision) -> list[str]:
        """Arguments printing the metadata record of *revision*."""

    @abstractmethod
    def _is_unknown_revision(self, exc: CommandError) -> bool:
        """Whether a failed command means the revision does not exist."""

    def _to_canonical(self, output: str) -> str:
        """Translate native ``log`` output into the canonical record."""
        return output

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _run(self, clone: ClonedRepository, args: list[str]) -> str:
        return self._runner.run_command(
            self.vcs, args, str(clone.local_temp_dir)
        )

    @staticmethod
    def _parse_date(raw: str, text: str) -> datetime:
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(text.strip(), fmt)
            except ValueError:
                continue
        raise MalformedMetadataError(raw, f"unparseable date {text!r}")

    @staticmethod
    def _parse_parents(raw: str, text: str) -> list[str]:
        parents: list[str] = []
        for token in text.split():
            index, sep, rev_id = token.partition(":")
            if not sep or not rev_id:
                raise MalformedMetadataError(
                    raw, f"parent {token!r} is not 'index:revId'"
                )
            if index == NO_PARENT_INDEX:
                continue
            parents.append(rev_id)
        return parents
