"""Partial template registry for Quire.

Partials are reusable template fragments stored as files under a partials
directory. Each file is registered under its relative path with the template
suffix removed, so ``partials/nav/main.jinja`` becomes ``nav/main`` and is
included with ``{% include "nav/main" %}``.

A registry is built once per build and handed to the template engine; there
is no module-level registry.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import DictLoader

from .errors import BuildError
from .utils import iter_files, strip_suffix

TEMPLATE_SUFFIXES = (".html.jinja", ".jinja", ".html")


class PartialRegistry:
    """Maps partial names to raw template text."""

    def __init__(self) -> None:
        self._partials: dict[str, str] = {}

    def register(self, name: str, source: str) -> None:
        """Register a partial, replacing any earlier one with the same name."""
        self._partials[name] = source

    def get(self, name: str) -> str | None:
        return self._partials.get(name)

    def names(self) -> list[str]:
        return sorted(self._partials)

    def __contains__(self, name: object) -> bool:
        return name in self._partials

    def __len__(self) -> int:
        return len(self._partials)

    def load(self, partials_dir: Path) -> int:
        """Register every file under a partials directory.

        A missing directory is not an error; nothing is registered.

        Args:
            partials_dir: Directory containing partial templates.

        Returns:
            Number of partials registered.

        Raises:
            BuildError: If the directory cannot be listed or a partial file
                cannot be read.
        """
        if not partials_dir.is_dir():
            return 0
        try:
            paths = iter_files(partials_dir)
        except OSError as exc:
            raise BuildError(
                Path(exc.filename) if exc.filename else partials_dir,
                f"Cannot list partials: {exc.strerror or exc}",
                exc,
                phase="read",
            ) from exc
        count = 0
        for path in paths:
            rel = path.relative_to(partials_dir).as_posix()
            try:
                source = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise BuildError(
                    path, f"Cannot read partial: {exc}", exc, phase="read"
                ) from exc
            self.register(strip_suffix(rel, TEMPLATE_SUFFIXES), source)
            count += 1
        return count

    def loader(self) -> DictLoader:
        """Return a Jinja loader serving the registered partials.

        The loader shares the registry's mapping, so partials registered
        later are still visible.
        """
        return DictLoader(self._partials)
