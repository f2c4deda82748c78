"""Unified configuration schema for revsync.

Pydantic models for the project config: the repositories being kept in
sync, where the equivalence database lives, how external commands are
run, and logging.

Usage:
    from revsync.config_loader import load_hierarchical_config
    from revsync.config_schema import build_config

    config = build_config(load_hierarchical_config())
    config.repositories["internal"].url
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from .validators import validate_repository_name

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class RepositoryConfig(BaseModel):
    """One version-controlled repository of the project."""

    type: Literal["hg", "git"] = Field(description="VCS kind")
    url: str = Field(description="Clone URL or local path")
    branch: str | None = Field(
        default=None,
        description="Branch to clone and query (VCS default when unset)",
    )

    model_config = {"frozen": True}

    @field_validator("url")
    @classmethod
    def _url_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Repository url cannot be empty")
        return value.strip()


class DatabaseConfig(BaseModel):
    """Location of the persisted equivalence database."""

    path: str | None = Field(
        default=None, description="Path to the equivalence JSON file"
    )

    model_config = {"frozen": True}


class CommandsConfig(BaseModel):
    """External command settings."""

    hg: str = Field(default="hg", description="Mercurial executable")
    git: str = Field(default="git", description="Git executable")
    timeout: float | None = Field(
        default=None,
        gt=0,
        description="Per-command timeout in seconds (no limit when unset)",
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: Literal["text", "json"] = Field(
        default="text", description="Log record format"
    )

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level configuration.

    Every section has defaults, so ``UnifiedConfig()`` is valid; a project
    with no repositories simply has nothing to sync.
    """

    name: str | None = Field(default=None, description="Project name")
    repositories: dict[str, RepositoryConfig] = Field(default_factory=dict)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    commands: CommandsConfig = Field(default_factory=CommandsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}

    @field_validator("repositories")
    @classmethod
    def _valid_repository_names(
        cls, value: dict[str, RepositoryConfig]
    ) -> dict[str, RepositoryConfig]:
        for name in value:
            is_valid, reason = validate_repository_name(name)
            if not is_valid:
                raise ValueError(f"{reason}: '{name}'")
        return value


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged raw config dict.

    Missing sections get defaults.

    Raises:
        pydantic.ValidationError: If a section is invalid.
    """
    if not raw_data:
        return UnifiedConfig()

    config = UnifiedConfig(**raw_data)
    logger.debug(
        "Loaded config for project %s with repositories %s",
        config.name,
        sorted(config.repositories),
    )
    return config
