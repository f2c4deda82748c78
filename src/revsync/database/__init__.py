"""Equivalence database and ancestry matching.

Modules:

- ``models``   -- ``Equivalence``, ``EquivalenceMatchResult``.
- ``file_db``  -- ``EquivalenceDatabase`` protocol and ``FileDb`` snapshot.
- ``matcher``  -- ``EquivalenceMatcher``: LINEAR / BRANCHED search.
- ``reporter`` -- Human-readable and JSON result formatting.
"""

from .file_db import EquivalenceDatabase, FileDb
from .matcher import EquivalenceMatcher
from .models import Equivalence, EquivalenceMatchResult
from .reporter import format_match_result, match_result_to_json

__all__ = [
    "Equivalence",
    "EquivalenceDatabase",
    "EquivalenceMatchResult",
    "EquivalenceMatcher",
    "FileDb",
    "format_match_result",
    "match_result_to_json",
]
