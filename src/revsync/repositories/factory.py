"""Build the clone/history pair for a configured repository.

``create_repository()`` maps the config ``type`` string to the VCS
implementation and wires a lazily cloning supplier into the history, so
the working copy is only created on the first query.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, NamedTuple

from revsync.core.commands import CommandRunner
from revsync.core.filesystem import FileSystem, Lifetime
from revsync.errors import ConfigError
from revsync.repositories.base import ClonedRepository, RevisionHistory
from revsync.repositories.git import GitClonedRepository, GitRevisionHistory
from revsync.repositories.hg import HgClonedRepository, HgRevisionHistory

if TYPE_CHECKING:
    from revsync.config_schema import RepositoryConfig

logger = logging.getLogger(__name__)


class Repository(NamedTuple):
    """A configured repository and the history that queries it."""

    name: str
    clone: ClonedRepository
    history: RevisionHistory


_KIND_MAP: dict[str, tuple[type[ClonedRepository], type[RevisionHistory]]] = {
    "hg": (HgClonedRepository, HgRevisionHistory),
    "git": (GitClonedRepository, GitRevisionHistory),
}


class LazyClone:
    """Supplier that clones its repository on first call, then reuses it."""

    def __init__(self, clone: ClonedRepository, lifetime: Lifetime) -> None:
        self._clone = clone
        self._lifetime = lifetime
        self._done = False

    def __call__(self) -> ClonedRepository:
        if not self._done:
            self._clone.clone_locally_at_head(self._lifetime)
            self._done = True
        return self._clone


def create_repository(
    name: str,
    config: RepositoryConfig,
    runner: CommandRunner,
    filesystem: FileSystem,
    lifetime: Lifetime = Lifetime.TEMPORARY,
) -> Repository:
    """Create the clone and history for repository *name*.

    Args:
        name: Repository name from the project config.
        config: The repository's configuration.
        runner: Command runner shared by clone and history.
        filesystem: Allocates the clone directory.
        lifetime: Lifetime of the clone directory.

    Returns:
        A ``Repository`` whose history clones on first use.

    Raises:
        ConfigError: If ``config.type`` is not a supported VCS kind.
    """
    kinds = _KIND_MAP.get(config.type)
    if kinds is None:
        raise ConfigError(
            f"Unknown repository type '{config.type}' for '{name}'. "
            f"Valid types: {sorted(_KIND_MAP.keys())}"
        )
    clone_cls, history_cls = kinds
    clone = clone_cls(name, config, runner, filesystem)
    history = history_cls(LazyClone(clone, lifetime), runner)
    logger.debug("Configured %s repository '%s'", config.type, name)
    return Repository(name=name, clone=clone, history=history)
