"""External command execution.

``RevisionHistory`` and ``ClonedRepository`` implementations never call
``subprocess`` directly; they receive a ``CommandRunner`` so tests can
substitute a scripted double.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from typing import Protocol

from revsync.errors import CommandError

logger = logging.getLogger(__name__)


class CommandRunner(Protocol):
    """Protocol for running an external tool and capturing its output."""

    def run_command(
        self, cmd: str, args: list[str], working_directory: str
    ) -> str:
        """Run *cmd* with *args* in *working_directory*.

        Args:
            cmd: Tool name, e.g. ``"hg"`` or ``"git"``.
            args: Argument list (not shell-quoted).
            working_directory: Directory to run in; ``""`` means the
                current process directory.

        Returns:
            Captured standard output.

        Raises:
            CommandError: If the command exits non-zero.
        """
        ...  # pragma: no cover


class SubprocessCommandRunner:
    """Run commands with ``subprocess.run``.

    Args:
        timeout: Optional per-command timeout in seconds.
        binaries: Optional mapping from tool name to executable path,
            e.g. ``{"hg": "/opt/hg/bin/hg"}``.
    """

    def __init__(
        self,
        timeout: float | None = None,
        binaries: dict[str, str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.binaries = dict(binaries or {})

    def run_command(
        self, cmd: str, args: list[str], working_directory: str
    ) -> str:
        """Run the command and return stdout, raising on failure."""
        executable = self.binaries.get(cmd, cmd)
        logger.debug(
            "Running %s (cwd=%s)",
            shlex.join([executable, *args]),
            working_directory or ".",
        )
        try:
            result = subprocess.run(
                [executable, *args],
                cwd=working_directory or None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise CommandError(cmd, args, "", str(exc), 127) from exc
        except subprocess.TimeoutExpired as exc:
            raise CommandError(
                cmd,
                args,
                _as_text(exc.stdout),
                f"Timed out after {self.timeout}s",
                -1,
            ) from exc

        if result.returncode != 0:
            logger.debug(
                "%s exited with %d: %s",
                cmd,
                result.returncode,
                result.stderr.strip(),
            )
            raise CommandError(
                cmd, args, result.stdout, result.stderr, result.returncode
            )
        return result.stdout


def _as_text(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
