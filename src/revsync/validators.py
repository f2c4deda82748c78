"""
Input validation functions for revsync.

Provides validation for revision ids and repository names before they
are interpolated into VCS command lines or used as database keys.
"""

import re

_REPOSITORY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Revision id")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_revision_id(rev_id: str) -> tuple[bool, str]:
    """
    Validate a revision id supplied by a caller.

    Args:
        rev_id: The revision id, changeset hash, or symbolic name

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain whitespace
        - Cannot start with '-' (would be read as a command option)
    """
    if not rev_id or not rev_id.strip():
        return (
            False,
            format_validation_error("Revision id", "cannot be empty"),
        )

    if any(ch.isspace() for ch in rev_id):
        return (
            False,
            format_validation_error(
                "Revision id", "cannot contain whitespace"
            ),
        )

    if rev_id.startswith("-"):
        return (
            False,
            format_validation_error(
                "Revision id", "cannot start with '-'"
            ),
        )

    return (True, "")


def validate_repository_name(name: str) -> tuple[bool, str]:
    """
    Validate a configured repository name.

    Args:
        name: The repository name used in configs and the database

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty
        - Must match ^[A-Za-z0-9][A-Za-z0-9_.-]*$ (used in temp dir names)
    """
    if not name:
        return (
            False,
            format_validation_error("Repository name", "cannot be empty"),
        )

    if not _REPOSITORY_NAME_PATTERN.match(name):
        return (
            False,
            format_validation_error(
                "Repository name",
                "may only contain letters, digits, '_', '.' and '-'",
            ),
        )

    return (True, "")
