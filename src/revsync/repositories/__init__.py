"""Revision-history abstraction and per-VCS implementations.

Modules:

- ``models``  -- ``Revision``, ``RevisionMetadata``, ``SearchType``.
- ``base``    -- ``ClonedRepository`` and ``RevisionHistory`` base classes.
- ``hg``      -- Mercurial implementation.
- ``git``     -- Git implementation.
- ``factory`` -- ``create_repository()`` by configured type.
"""

from .base import CloneState, ClonedRepository, RevisionHistory
from .factory import Repository, create_repository
from .git import GitClonedRepository, GitRevisionHistory
from .hg import HgClonedRepository, HgRevisionHistory
from .models import Revision, RevisionMetadata, SearchType

__all__ = [
    "CloneState",
    "ClonedRepository",
    "GitClonedRepository",
    "GitRevisionHistory",
    "HgClonedRepository",
    "HgRevisionHistory",
    "Repository",
    "Revision",
    "RevisionHistory",
    "RevisionMetadata",
    "SearchType",
    "create_repository",
]
