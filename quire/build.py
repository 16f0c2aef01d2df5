"""Site building functionality for Quire.

This module contains the core logic for building a static site from source
files. A build runs four strictly sequential phases, each consuming the
complete output of the one before:

- reset: remove and recreate the output directory;
- read: copy static assets, register partials, load pages;
- render: render every page to an output unit;
- write: persist every output unit.

Key functions:
- build_site: Load configuration and build the entire site.
- load_config: Load site configuration from quire.yaml.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateNotFound, TemplateSyntaxError

from .content import ContentProcessor, Page
from .errors import BuildError, ConfigError, LayoutNotFoundError
from .partials import PartialRegistry
from .templates import ContextBuilder, RenderedPage, TemplateEngine, output_path
from .utils import copy_tree, ensure_clean_dir, is_relative_to
from .writer import OutputWriter, find_collisions

CONFIG_FILENAME = "quire.yaml"

DEFAULT_CONFIG = {
    "public": "public",
    "static": None,
    "source": "src",
    "templates": "templates",
    "partials": "templates/partials",
}


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        pages: List of all pages in the site.
        output_dir: Directory where the site was built.
        config: Configuration the site was built with.
        outputs: Rendered pages that were written.
        collisions: Output paths claimed by more than one page.
        duration: Wall-clock build time in seconds.
    """

    pages: list[Page]
    output_dir: Path
    config: dict[str, Any]
    outputs: list[RenderedPage] = field(default_factory=list)
    collisions: dict[Path, list[Path]] = field(default_factory=dict)
    duration: float = 0.0


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from quire.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file cannot be read or parsed, or lacks an
            output directory.
    """
    config_path = project_root / CONFIG_FILENAME
    config: dict[str, Any] = DEFAULT_CONFIG.copy()
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigError(f"Cannot read {config_path}: {exc}") from exc
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        config.update(loaded or {})
    public = config.get("public")
    if not isinstance(public, str) or not public.strip():
        raise ConfigError("Configuration must set 'public' to an output directory")
    return config


def resolve_path(project_root: Path, value: str | Path) -> Path:
    """Resolve a configured path against the project root."""
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = project_root / path
    return path.resolve()


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if isinstance(exc, TemplateNotFound):
        return f"Template not found: {exc.name}"
    if isinstance(exc, LayoutNotFoundError):
        searched = ", ".join(p.name for p in exc.searched)
        return f"Layout '{exc.name}' not found (looked for {searched})"
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


class Site:
    """A single build of a site.

    A Site is used for one build only: its page and output lists start
    empty, are filled once by their phase and never mutated afterwards.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration; every key is template data under ``site``.
        output_dir: Directory the site is built into.
        source_dir: Directory containing content files.
        templates_dir: Directory containing layouts.
        partials_dir: Directory containing partials.
        static_dir: Directory copied verbatim into the output, if configured.
        pages: Pages loaded by the read phase.
        output: Rendered pages produced by the render phase.
    """

    def __init__(
        self,
        project_root: Path,
        config: dict[str, Any],
        output_dir: Path | None = None,
        max_workers: int | None = None,
    ):
        self.project_root = project_root.resolve()
        self.config = config
        self.max_workers = max_workers
        self.output_dir = (
            output_dir.resolve()
            if output_dir is not None
            else resolve_path(self.project_root, config["public"])
        )
        self.source_dir = resolve_path(self.project_root, config.get("source") or "src")
        self.templates_dir = resolve_path(
            self.project_root, config.get("templates") or "templates"
        )
        self.partials_dir = resolve_path(
            self.project_root, config.get("partials") or "templates/partials"
        )
        static = config.get("static")
        self.static_dir = resolve_path(self.project_root, static) if static else None
        self.partials = PartialRegistry()
        self.pages: list[Page] = []
        self.output: list[RenderedPage] = []

    def build(self) -> BuildResult:
        """Run every phase in order.

        Returns:
            BuildResult describing the finished build.

        Raises:
            ConfigError: If the directory layout is unusable.
            BuildError: On the first read, render or write failure.
        """
        start = time.perf_counter()
        self.validate()
        self.reset()
        self.read()
        self.render()
        written = self.write()
        return BuildResult(
            pages=self.pages,
            output_dir=self.output_dir,
            config=self.config,
            outputs=written,
            collisions=find_collisions(self.output),
            duration=time.perf_counter() - start,
        )

    def validate(self) -> None:
        """Check the directory layout before anything is touched on disk."""
        if not self.source_dir.is_dir():
            raise ConfigError(f"Expected source directory at {self.source_dir}")
        out = self.output_dir
        if is_relative_to(self.project_root, out):
            raise ConfigError(f"Output directory {out} would remove the project")
        for protected in (self.source_dir, self.templates_dir):
            if is_relative_to(protected, out):
                raise ConfigError(
                    f"Output directory {out} would remove {protected}"
                )
        if self.static_dir is not None and is_relative_to(self.static_dir, out):
            raise ConfigError(f"Output directory {out} would remove {self.static_dir}")

    def reset(self) -> None:
        """Remove the output directory and recreate it empty."""
        try:
            ensure_clean_dir(self.output_dir)
        except OSError as exc:
            raise BuildError(
                self.output_dir, f"Cannot reset output directory: {exc}", exc, "reset"
            ) from exc

    def read(self) -> None:
        """Copy static assets, register partials and load every page."""
        if self.static_dir is not None:
            if not self.static_dir.is_dir():
                raise BuildError(
                    self.static_dir, "Static directory not found", phase="read"
                )
            try:
                copy_tree(self.static_dir, self.output_dir)
            except OSError as exc:
                raise BuildError(
                    self.static_dir, f"Cannot copy static files: {exc}", exc, "read"
                ) from exc

        self.partials.load(self.partials_dir)
        self.pages = ContentProcessor(self.source_dir).load(self.max_workers)

    def render(self) -> None:
        """Render every page, in page-list order."""
        engine = TemplateEngine(
            self.templates_dir,
            self.partials,
            ContextBuilder(self.config, self.pages),
        )
        for page in self.pages:
            try:
                rendered = engine.render_page(page)
            except Exception as exc:
                raise BuildError(
                    page.source_path or Path(page.permalink),
                    _format_error_message(exc),
                    exc,
                    phase="render",
                ) from exc
            path = output_path(self.output_dir, page)
            if not is_relative_to(path.resolve(), self.output_dir):
                raise BuildError(
                    page.source_path or Path(page.permalink),
                    f"Permalink '{page.permalink}' points outside {self.output_dir}",
                    phase="render",
                )
            self.output.append(RenderedPage(path=path, content=rendered, page=page))

    def write(self) -> list[RenderedPage]:
        """Write every rendered page to disk."""
        return OutputWriter(self.max_workers).write(self.output)


def build_site(
    project_root: Path,
    output_dir_override: Path | None = None,
    max_workers: int | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        output_dir_override: Optional path to write the build output instead
            of the configured ``public`` directory.
        max_workers: Thread pool size for reads and writes.

    Returns:
        BuildResult containing all pages, output directory and config.
    """
    config = load_config(project_root)
    site = Site(
        project_root,
        config,
        output_dir=output_dir_override,
        max_workers=max_workers,
    )
    return site.build()
