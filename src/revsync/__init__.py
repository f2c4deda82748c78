"""revsync: find equivalent and new commits across mirrored repositories."""

__version__ = "0.1.0"

from .database import (
    Equivalence,
    EquivalenceMatcher,
    EquivalenceMatchResult,
    FileDb,
)
from .errors import (
    CommandError,
    IllegalReuseError,
    MalformedMetadataError,
    RevsyncError,
    UnknownRevisionError,
)
from .project import ProjectContext, load_project
from .repositories import Revision, RevisionMetadata, SearchType

__all__ = [
    "CommandError",
    "Equivalence",
    "EquivalenceMatchResult",
    "EquivalenceMatcher",
    "FileDb",
    "IllegalReuseError",
    "MalformedMetadataError",
    "ProjectContext",
    "Revision",
    "RevisionMetadata",
    "RevsyncError",
    "SearchType",
    "UnknownRevisionError",
    "__version__",
    "load_project",
]
