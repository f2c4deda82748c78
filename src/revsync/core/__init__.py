"""Injected capabilities shared by every VCS implementation."""

from .commands import CommandRunner, SubprocessCommandRunner
from .filesystem import FileSystem, Lifetime, LocalFileSystem

__all__ = [
    "CommandRunner",
    "FileSystem",
    "Lifetime",
    "LocalFileSystem",
    "SubprocessCommandRunner",
]
