"""Protocol definitions for Quire.

These protocols describe the seams between build phases, so a loader,
page builder or Markdown renderer can be swapped out (in tests, for
instance) without touching the pipeline.
"""

from __future__ import annotations

from abc import abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Page


@runtime_checkable
class ContentLoader(Protocol):
    """Discovers content files."""

    @abstractmethod
    def iter_files(self) -> list[Path]:
        """Return every content file in a deterministic order."""
        ...


@runtime_checkable
class PageBuilder(Protocol):
    """Builds Page objects from source files."""

    @abstractmethod
    def build(self, path: Path) -> Page:
        """Build a Page object from a source file.

        Args:
            path: Path to the source file.

        Returns:
            Page object.
        """
        ...


@runtime_checkable
class MarkupRenderer(Protocol):
    """Converts a lightweight markup language to HTML."""

    @abstractmethod
    def render(self, text: str) -> str:
        ...


@runtime_checkable
class TemplateRenderer(Protocol):
    """Renders pages and template strings."""

    @abstractmethod
    def render_page(self, page: Page) -> str:
        """Render a page with its layout.

        Args:
            page: Page object to render.

        Returns:
            Rendered content.
        """
        ...

    @abstractmethod
    def render_string(self, template: str, context: dict) -> str:
        ...
