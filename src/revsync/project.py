"""Project context that ties configuration to repositories and the database.

``load_project()`` is the entry point a sync step uses: it discovers the
config files, configures logging from the ``logging`` section and returns
a ``ProjectContext``.  The context:

1. Builds a command runner from the ``commands`` config section.
2. Creates one lazily cloning ``RevisionHistory`` per configured repository.
3. Loads the equivalence database snapshot.
4. Runs equivalence searches and metadata summaries.
5. Removes temporary clones on ``close()``.

Every error propagates: a failed command aborts the current operation.
"""

from __future__ import annotations

import logging
from pathlib import Path

from revsync.config_loader import load_hierarchical_config
from revsync.config_schema import UnifiedConfig, build_config
from revsync.core.commands import CommandRunner, SubprocessCommandRunner
from revsync.core.filesystem import FileSystem, Lifetime, LocalFileSystem
from revsync.database.file_db import FileDb
from revsync.database.matcher import EquivalenceMatcher
from revsync.database.models import EquivalenceMatchResult
from revsync.errors import ConfigError
from revsync.logger import setup_logging
from revsync.repositories.base import RevisionHistory
from revsync.repositories.factory import Repository, create_repository
from revsync.repositories.models import RevisionMetadata, SearchType

logger = logging.getLogger(__name__)


class ProjectContext:
    """Repositories and equivalence database for one configured project.

    Args:
        config: The validated project configuration.
        runner: Command runner; defaults to a ``SubprocessCommandRunner``
            built from ``config.commands``.
        filesystem: Directory allocator; defaults to ``LocalFileSystem``.
        lifetime: Lifetime of the clone directories.
    """

    def __init__(
        self,
        config: UnifiedConfig,
        runner: CommandRunner | None = None,
        filesystem: FileSystem | None = None,
        lifetime: Lifetime = Lifetime.TEMPORARY,
    ) -> None:
        self.config = config
        self.runner = runner or SubprocessCommandRunner(
            timeout=config.commands.timeout,
            binaries={"hg": config.commands.hg, "git": config.commands.git},
        )
        self.filesystem = filesystem or LocalFileSystem()
        self.lifetime = lifetime

        self.repositories: dict[str, Repository] = {
            name: create_repository(
                name, repo_config, self.runner, self.filesystem, lifetime
            )
            for name, repo_config in config.repositories.items()
        }

    @classmethod
    def from_config(
        cls,
        config: UnifiedConfig,
        runner: CommandRunner | None = None,
        filesystem: FileSystem | None = None,
        lifetime: Lifetime = Lifetime.TEMPORARY,
    ) -> ProjectContext:
        """Alias of the constructor, for symmetry with ``build_config()``."""
        return cls(config, runner, filesystem, lifetime)

    def __enter__(self) -> ProjectContext:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def history(self, repository_name: str) -> RevisionHistory:
        """Return the history of *repository_name*.

        Raises:
            ConfigError: If the project has no such repository.
        """
        repository = self.repositories.get(repository_name)
        if repository is None:
            raise ConfigError(
                f"No repository named '{repository_name}' in project "
                f"'{self.config.name}'. Known repositories: "
                f"{sorted(self.repositories)}"
            )
        return repository.history

    def load_database(self) -> FileDb:
        """Load the equivalence database configured for the project.

        Returns an empty database when no path is configured.
        """
        if not self.config.database.path:
            logger.debug("No database path configured, using empty database")
            return FileDb.empty()
        return FileDb.from_path(Path(self.config.database.path))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def find_revisions(
        self,
        repository_name: str,
        target_repository_name: str,
        revision_id: str | None = None,
        search_type: SearchType = SearchType.BRANCHED,
        database: FileDb | None = None,
    ) -> EquivalenceMatchResult:
        """Find revisions of one repository not yet matched in another.

        Args:
            repository_name: Repository whose history is walked.
            target_repository_name: Repository to look up equivalents in.
            revision_id: Start here instead of the branch heads.  It is
                first validated with ``find_highest_revision()``.
            search_type: ``LINEAR`` or ``BRANCHED``.
            database: Snapshot to use; loaded from config when omitted.

        Raises:
            ConfigError: If either repository is unknown.
            UnknownRevisionError: If *revision_id* does not exist.
        """
        history = self.history(repository_name)
        if target_repository_name not in self.repositories:
            raise ConfigError(
                f"No repository named '{target_repository_name}' in "
                f"project '{self.config.name}'"
            )
        if database is None:
            database = self.load_database()

        start = None
        if revision_id is not None:
            start = history.find_highest_revision(revision_id)

        matcher = EquivalenceMatcher(target_repository_name, database)
        return history.find_revisions(start, matcher, search_type)

    def determine_metadata(
        self, repository_name: str, revision_ids: list[str]
    ) -> RevisionMetadata:
        """Summarise the metadata of several revisions as one record.

        A single id yields that revision's own metadata.

        Raises:
            ValueError: If *revision_ids* is empty.
        """
        if not revision_ids:
            raise ValueError("At least one revision id is required")
        history = self.history(repository_name)
        records = [
            history.get_metadata(history.find_highest_revision(rev_id))
            for rev_id in revision_ids
        ]
        return RevisionMetadata.concatenate(records)

    def close(self) -> None:
        """Remove temporary clone directories."""
        if isinstance(self.filesystem, LocalFileSystem):
            self.filesystem.cleanup(Lifetime.TEMPORARY)


def load_project(
    runner: CommandRunner | None = None,
    filesystem: FileSystem | None = None,
    lifetime: Lifetime = Lifetime.TEMPORARY,
    debug: bool = False,
) -> ProjectContext:
    """Build a ``ProjectContext`` from the discovered config files.

    Runs ``load_hierarchical_config()`` and ``build_config()``, then
    configures logging from the ``logging`` section before any repository
    is touched.

    Args:
        runner: Command runner override (tests).
        filesystem: Directory allocator override.
        lifetime: Lifetime of the clone directories.
        debug: Force DEBUG logging regardless of config and ``LOG_LEVEL``.

    Raises:
        pydantic.ValidationError: If the merged config is invalid.
    """
    config = build_config(load_hierarchical_config())
    setup_logging(
        debug=debug,
        log_file=config.logging.file,
        log_format=config.logging.format,
        level=config.logging.level,
    )
    logger.info(
        "Loaded project %s with %d repositories",
        config.name or "<unnamed>",
        len(config.repositories),
    )
    return ProjectContext(config, runner, filesystem, lifetime)
