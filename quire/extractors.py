"""Metadata extraction for Quire.

This module splits a source file into its YAML front-matter and body and
derives the two fields every page must have: a title and a permalink.

Key functions:
- extract_frontmatter: Split raw text into (metadata, body).
- derive_title: Title from metadata, else from the relative path.
- derive_permalink: Permalink from metadata, else a slug of the title.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import yaml

from .errors import FrontmatterError
from .utils import slugify, strip_extension

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content). Without a
        frontmatter block the dict is empty and the content is unchanged.

    Raises:
        FrontmatterError: If the block is not valid YAML or is not a mapping.
    """
    text = text.lstrip("\ufeff")
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1))
    except yaml.YAMLError as exc:
        raise FrontmatterError(f"Invalid YAML in front-matter: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise FrontmatterError(
            f"Front-matter must be a mapping, got {type(data).__name__}"
        )
    body = text[match.end() :]
    return {str(key): value for key, value in data.items()}, body


def _present(value: Any) -> bool:
    return value is not None and str(value) != ""


def derive_title(frontmatter: dict[str, Any], rel_path: Path) -> str:
    """Return the page title.

    Args:
        frontmatter: Parsed front-matter.
        rel_path: Source path relative to the content root.

    Returns:
        The ``title`` field, or the relative path without its final extension.
    """
    title = frontmatter.get("title")
    if _present(title):
        return str(title)
    return strip_extension(rel_path.as_posix())


def derive_permalink(frontmatter: dict[str, Any], title: str) -> str:
    """Return the page permalink.

    Args:
        frontmatter: Parsed front-matter.
        title: The already derived title.

    Returns:
        The ``permalink`` field, or a slug of the title.
    """
    permalink = frontmatter.get("permalink")
    if _present(permalink):
        return str(permalink)
    return slugify(title)
