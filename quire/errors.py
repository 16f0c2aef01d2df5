"""Exception types raised by Quire.

Every failure that should abort a build is one of these. The CLI catches
``QuireError`` subclasses and turns them into a diagnostic and a non-zero
exit status; nothing in the core swallows them.
"""

from __future__ import annotations

from pathlib import Path


class QuireError(Exception):
    """Base class for all Quire errors."""


class ConfigError(QuireError):
    """Configuration is missing, unreadable or inconsistent."""


class FrontmatterError(QuireError):
    """A front-matter block could not be parsed into a mapping."""


class LayoutNotFoundError(QuireError):
    """A page names a layout that has no template file."""

    def __init__(self, name: str, searched: list[Path]):
        self.name = name
        self.searched = searched
        super().__init__(f"Layout '{name}' not found")


class BuildError(QuireError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
        phase: Build phase the error happened in ("read", "render" or "write").
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
        phase: str = "build",
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        self.phase = phase
        super().__init__(f"{source_path}: {message}")
