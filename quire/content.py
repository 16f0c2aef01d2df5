"""Content loading for Quire.

This module discovers source files, parses their front-matter and builds the
in-memory page list that every later phase works from.

Key classes:
- Page: Dataclass representing a site page with its metadata and raw body.
- FileContentLoader: Discovers content files in a directory.
- DefaultPageBuilder: Builds a Page from a single source file.
- ContentProcessor: Facade that loads every page under a directory.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import BuildError, FrontmatterError
from .extractors import derive_permalink, derive_title, extract_frontmatter
from .protocols import ContentLoader, PageBuilder
from .utils import iter_files

RESERVED_FIELDS = ("title", "permalink", "content", "layout", "markdown")


@dataclass
class Page:
    """Represents a site page.

    Attributes:
        title: Human-readable title of the page.
        permalink: URL path segment the page is written under.
        content: Raw body text remaining after front-matter extraction.
        layout: Name of the layout template to wrap the page in, if any.
        markdown: Whether the rendered body is converted from Markdown.
        extra: Every other front-matter key, visible to templates.
        source_path: Path to the source file.
    """

    title: str
    permalink: str
    content: str
    layout: str | None = None
    markdown: bool = False
    extra: dict[str, Any] = field(default_factory=dict)
    source_path: Path | None = None

    def __getitem__(self, key: str) -> Any:
        # Templates read page fields through this, so ``page.author`` reaches extra.
        if key in RESERVED_FIELDS:
            return getattr(self, key)
        return self.extra[key]

    def __contains__(self, key: object) -> bool:
        return key in RESERVED_FIELDS or key in self.extra

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return self[key]
        except KeyError:
            return default

    def as_dict(self) -> dict[str, Any]:
        """Return the page as a flat mapping of every template-visible field."""
        data = dict(self.extra)
        for name in RESERVED_FIELDS:
            data[name] = getattr(self, name)
        return data


class FileContentLoader:
    """Discovers content files in a directory.

    Every regular file is content; no extension is required. Hidden files
    are skipped.

    Attributes:
        source_dir: Directory containing content files.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def iter_files(self) -> list[Path]:
        """Return every content file, sorted by relative path."""
        return iter_files(self.source_dir)


class DefaultPageBuilder:
    """Builds Page objects from source files.

    Attributes:
        source_dir: Directory the page's relative path is computed against.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def build(self, path: Path) -> Page:
        """Build a Page object from a source file.

        Args:
            path: Path to the source file.

        Returns:
            Page object.

        Raises:
            OSError: If the file cannot be read.
            UnicodeDecodeError: If the file is not valid UTF-8.
            FrontmatterError: If the front-matter block is malformed.
        """
        rel = path.relative_to(self.source_dir)
        raw = path.read_text(encoding="utf-8")
        frontmatter, body = extract_frontmatter(raw)

        title = derive_title(frontmatter, rel)
        permalink = derive_permalink(frontmatter, title)
        layout = frontmatter.get("layout")

        return Page(
            title=title,
            permalink=permalink,
            content=body,
            layout=str(layout) if layout else None,
            markdown=bool(frontmatter.get("markdown", False)),
            extra={
                key: value
                for key, value in frontmatter.items()
                if key not in RESERVED_FIELDS
            },
            source_path=path,
        )


class ContentProcessor:
    """Facade for loading every page under a content directory.

    Files are read on a thread pool. The returned list follows the sorted
    enumeration order regardless of which read finishes first.

    Attributes:
        source_dir: Directory containing site content.
    """

    def __init__(
        self,
        source_dir: Path,
        content_loader: ContentLoader | None = None,
        page_builder: PageBuilder | None = None,
    ):
        self.source_dir = source_dir
        self._content_loader = content_loader or FileContentLoader(source_dir)
        self._page_builder = page_builder or DefaultPageBuilder(source_dir)

    def load(self, max_workers: int | None = None) -> list[Page]:
        """Load all content files and create Page objects.

        Args:
            max_workers: Thread pool size; None lets the executor decide.

        Returns:
            List of Page objects in enumeration order.

        Raises:
            BuildError: If the directory cannot be listed, or on the first
                file that cannot be read or parsed.
        """
        try:
            paths = self._content_loader.iter_files()
        except OSError as exc:
            raise BuildError(
                Path(exc.filename) if exc.filename else self.source_dir,
                f"Cannot list files: {exc.strerror or exc}",
                exc,
                phase="read",
            ) from exc
        if not paths:
            return []
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self._build_page, paths))

    def _build_page(self, path: Path) -> Page:
        try:
            return self._page_builder.build(path)
        except FrontmatterError as exc:
            raise BuildError(path, str(exc), exc, phase="read") from exc
        except UnicodeDecodeError as exc:
            raise BuildError(
                path, f"File is not valid UTF-8: {exc}", exc, phase="read"
            ) from exc
        except OSError as exc:
            raise BuildError(
                path, f"Cannot read file: {exc.strerror or exc}", exc, phase="read"
            ) from exc
