"""Template rendering engine for Quire.

This module uses Jinja2 to render pages and layouts.

Every page goes through the same fixed pipeline:

1. its raw ``content`` is compiled as a template and rendered against
   ``{"site": ..., "page": ...}``;
2. if ``page.markdown`` is truthy the result is converted to HTML;
3. if ``page.layout`` is set the named layout is rendered against
   ``{"site": ..., "page": ..., "content": <rendered body>}``.

Key classes:
- ContextBuilder: Builds the template context for a page.
- LayoutResolver: Finds layout template files by name.
- TemplateEngine: Renders pages through the pipeline above.
- RenderedPage: One output unit, a destination path and its final content.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from jinja2 import Environment, Template

from .content import Page
from .errors import LayoutNotFoundError
from .partials import TEMPLATE_SUFFIXES, PartialRegistry
from .protocols import MarkupRenderer
from .renderers import MarkdownRenderer

__all__ = [
    "ContextBuilder",
    "PageEnvironment",
    "LayoutResolver",
    "RenderedPage",
    "TemplateEngine",
    "output_path",
]

LAYOUT_SUFFIXES = TEMPLATE_SUFFIXES + ("",)


@dataclass(frozen=True)
class RenderedPage:
    """A rendered page ready to be written.

    Attributes:
        path: Destination file path.
        content: Final rendered content.
        page: The page this output was rendered from.
    """

    path: Path
    content: str
    page: Page


def output_path(public_dir: Path, page: Page) -> Path:
    """Return the file a page is written to.

    Every page becomes ``<public_dir>/<permalink>/index.html``. A permalink
    of ``/`` (or one that is empty after trimming slashes) maps to the
    output root.

    Args:
        public_dir: Output directory.
        page: Page to place.

    Returns:
        Destination path.
    """
    permalink = page.permalink.strip("/")
    if not permalink:
        return public_dir / "index.html"
    return public_dir / permalink / "index.html"


class PageEnvironment(Environment):
    """Jinja environment that reads page fields by key.

    ``page.author`` on a Page resolves through ``Page.__getitem__`` before
    attributes, so a front-matter key such as ``extra`` or ``get`` yields
    its metadata value rather than a dataclass member.
    """

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Page):
            try:
                return obj[attribute]
            except KeyError:
                return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


class ContextBuilder:
    """Builds template contexts from the site config and page list.

    The ``site`` mapping is built once and shared by every context. It holds
    ``pages``, the full page list in load order, plus every configuration
    key. A configuration key named ``pages`` replaces the page list.

    Attributes:
        site: The shared ``site`` mapping.
    """

    def __init__(self, config: dict[str, Any], pages: Sequence[Page]):
        self.site: dict[str, Any] = {"pages": tuple(pages), **config}

    def page_context(self, page: Page) -> dict[str, Any]:
        """Context for rendering a page's own content."""
        return {"site": self.site, "page": page}

    def layout_context(self, page: Page, content: str) -> dict[str, Any]:
        """Context for rendering a layout around already-rendered content."""
        return {"site": self.site, "page": page, "content": content}


class LayoutResolver:
    """Finds layout template files by name.

    A layout named ``base`` is looked up as ``base.html.jinja``,
    ``base.jinja``, ``base.html`` and finally ``base`` under the templates
    directory.

    Attributes:
        templates_dir: Directory containing layout templates.
    """

    def __init__(self, templates_dir: Path):
        self.templates_dir = templates_dir

    def candidates(self, name: str) -> list[Path]:
        return [self.templates_dir / f"{name}{suffix}" for suffix in LAYOUT_SUFFIXES]

    def resolve(self, name: str) -> Path:
        """Return the path of the named layout.

        Raises:
            LayoutNotFoundError: If no candidate file exists.
        """
        candidates = self.candidates(name)
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        raise LayoutNotFoundError(name, candidates)


class TemplateEngine:
    """Template rendering engine using Jinja2.

    One engine is created per build. Compiled layouts are cached by name
    for the engine's lifetime, since layout files do not change mid-build.

    Attributes:
        templates_dir: Directory containing layouts.
        partials: Registry of partial templates.
        context_builder: Builds page and layout contexts.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        templates_dir: Path,
        partials: PartialRegistry,
        context_builder: ContextBuilder,
        markdown_renderer: MarkupRenderer | None = None,
        layout_resolver: LayoutResolver | None = None,
    ):
        self.templates_dir = templates_dir
        self.partials = partials
        self.context_builder = context_builder
        self.markdown_renderer = markdown_renderer or MarkdownRenderer()
        self.layout_resolver = layout_resolver or LayoutResolver(templates_dir)
        self.env = PageEnvironment(
            loader=partials.loader(),
            autoescape=False,
            keep_trailing_newline=True,
        )
        self._layouts: dict[str, Template] = {}

    def render_page(self, page: Page) -> str:
        """Render a page's content, Markdown conversion and layout.

        Args:
            page: Page object to render.

        Returns:
            Final rendered content.

        Raises:
            LayoutNotFoundError: If the page's layout does not exist.
            jinja2.TemplateError: If a template fails to compile or render.
        """
        rendered = self.render_string(
            page.content, self.context_builder.page_context(page)
        )
        if page.markdown:
            rendered = self.markdown_renderer.render(rendered)
        if page.layout:
            layout = self.get_layout(page.layout)
            rendered = layout.render(
                self.context_builder.layout_context(page, rendered)
            )
        return rendered

    def get_layout(self, name: str) -> Template:
        """Return the compiled layout template for ``name``."""
        template = self._layouts.get(name)
        if template is None:
            path = self.layout_resolver.resolve(name)
            source = path.read_text(encoding="utf-8")
            template = self.env.from_string(source)
            self._layouts[name] = template
        return template

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string.

        Args:
            template: Template string to render.
            context: Variables to make available in the template.

        Returns:
            Rendered string.
        """
        tmpl = self.env.from_string(template)
        return tmpl.render(context)
