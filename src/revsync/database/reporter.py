"""Match result formatting functions.

Provides human-readable and machine-readable output for equivalence
searches:

- ``format_match_result`` -- summary of equivalences and new revisions.
- ``match_result_to_json`` -- structured dict for JSON serialisation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import EquivalenceMatchResult

# Revisions beyond this count are summarised rather than listed.
MAX_LISTED_REVISIONS = 50


# ------------------------------------------------------------------
# Human-readable report
# ------------------------------------------------------------------


def format_match_result(
    result: EquivalenceMatchResult,
    repository_name: str,
    target_repository_name: str,
) -> str:
    """Format an equivalence search result as human-readable text.

    Args:
        result: The completed search result.
        repository_name: Repository whose history was walked.
        target_repository_name: Repository equivalents were looked up in.

    Returns:
        Multi-line formatted string.
    """
    lines: list[str] = []
    lines.append(
        f"Equivalence search: {repository_name} -> {target_repository_name}"
    )
    lines.append("")

    if result.equivalences:
        lines.append("Equivalences:")
        for equivalence in result.equivalences:
            lines.append(f"  {equivalence}")
    else:
        lines.append(
            f"No equivalence with {target_repository_name} found."
        )
    lines.append("")

    revisions = result.revisions_since_equivalence
    lines.append(f"Revisions since equivalence: {len(revisions)}")
    for revision in revisions[:MAX_LISTED_REVISIONS]:
        lines.append(f"  {revision.rev_id}")
    if len(revisions) > MAX_LISTED_REVISIONS:
        lines.append(
            f"  ... ({len(revisions) - MAX_LISTED_REVISIONS} more)"
        )

    return "\n".join(lines).rstrip()


# ------------------------------------------------------------------
# JSON output
# ------------------------------------------------------------------


def match_result_to_json(result: EquivalenceMatchResult) -> dict:
    """Convert a match result to a structured dict.

    Revisions use the persisted ``revId`` / ``repositoryName`` keys so the
    output can be compared with the equivalence database directly.

    Args:
        result: The search result.

    Returns:
        Dict with equivalences, new revisions, and counts.
    """
    return {
        "equivalences": [
            {
                "rev1": e.rev1.model_dump(by_alias=True),
                "rev2": e.rev2.model_dump(by_alias=True),
            }
            for e in result.equivalences
        ],
        "revisions_since_equivalence": [
            r.model_dump(by_alias=True)
            for r in result.revisions_since_equivalence
        ],
        "counts": {
            "equivalences": len(result.equivalences),
            "revisions_since_equivalence": len(
                result.revisions_since_equivalence
            ),
        },
    }
