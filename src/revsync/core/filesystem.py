"""Scratch directory allocation with lifetime-scoped cleanup.

Clones live in temporary directories whose disposal depends on a
``Lifetime``:

- ``Lifetime.TEMPORARY`` -- removed by ``cleanup(Lifetime.TEMPORARY)``,
  typically at the end of a sync run.
- ``Lifetime.PERSISTENT`` -- never removed by revsync, so a later
  process can reuse the working copy.
"""

from __future__ import annotations

import logging
import shutil
import sys
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Protocol

logger = logging.getLogger(__name__)


class Lifetime(str, Enum):
    """How long an allocated directory should live."""

    TEMPORARY = "temporary"
    PERSISTENT = "persistent"


class FileSystem(Protocol):
    """Protocol for allocating scratch directories."""

    def get_temporary_directory(
        self, prefix: str, lifetime: Lifetime
    ) -> Path:
        """Allocate a new empty directory whose name starts with *prefix*."""
        ...  # pragma: no cover


class LocalFileSystem:
    """Allocate directories on the local disk.

    Args:
        root: Parent directory for allocations. Defaults to the system
            temp directory.
    """

    def __init__(self, root: Path | None = None) -> None:
        self._root = root
        self._allocated: dict[Lifetime, list[Path]] = {
            lifetime: [] for lifetime in Lifetime
        }

    def get_temporary_directory(
        self, prefix: str, lifetime: Lifetime
    ) -> Path:
        """Create and track a fresh directory for *lifetime*."""
        if self._root is not None:
            self._root.mkdir(parents=True, exist_ok=True)
        path = Path(
            tempfile.mkdtemp(
                prefix=prefix,
                dir=str(self._root) if self._root is not None else None,
            )
        )
        self._allocated[lifetime].append(path)
        logger.debug("Allocated %s directory %s", lifetime.value, path)
        return path

    def allocated(self, lifetime: Lifetime) -> list[Path]:
        """Return directories still tracked for *lifetime*."""
        return list(self._allocated[lifetime])

    def cleanup(self, lifetime: Lifetime = Lifetime.TEMPORARY) -> None:
        """Remove every directory allocated with *lifetime*.

        Persistent directories are forgotten but left on disk.
        """
        paths = self._allocated[lifetime]
        self._allocated[lifetime] = []
        if lifetime is Lifetime.PERSISTENT:
            return
        for path in paths:
            logger.debug("Removing %s", path)
            _remove_tree(path)


def _log_removal_error(
    func: Callable[..., Any], path: str, error: Any
) -> None:
    # onerror passes an exc_info tuple, onexc the exception itself.
    exc = error[1] if isinstance(error, tuple) else error
    logger.warning("Could not remove %s: %s", path, exc)


def _remove_tree(path: Path) -> None:
    """Delete *path*, logging every entry that cannot be removed."""
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_log_removal_error)
    else:
        shutil.rmtree(path, onerror=_log_removal_error)
