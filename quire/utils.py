"""Utility functions for Quire.

Key functions:
    slugify: Convert arbitrary text to a URL slug.
    strip_suffix: Remove the first matching suffix from a name.
    iter_files: Enumerate regular files under a directory in a stable order.
    ensure_clean_dir: Ensure a directory exists and is empty.
    copy_tree: Copy a directory's contents into another, merging.
    is_relative_to: Path containment check.
"""

from __future__ import annotations

import re
import shutil
import unicodedata
from collections.abc import Iterable
from pathlib import Path

SLUG_SEPARATOR_RE = re.compile(r"[^a-zA-Z0-9]+")


def slugify(text: str) -> str:
    """Convert text to a lowercase, URL-safe slug.

    Non-ASCII characters are folded to their closest ASCII form first, then
    every run of non-alphanumeric characters becomes a single hyphen.

    Args:
        text: Text to slugify, typically a page title.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("Hello World")
        'hello-world'

        >>> slugify("notes/my-post")
        'notes-my-post'
    """
    folded = unicodedata.normalize("NFKD", str(text))
    folded = folded.encode("ascii", "ignore").decode("ascii")
    cleaned = SLUG_SEPARATOR_RE.sub("-", folded)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def strip_suffix(name: str, suffixes: Iterable[str]) -> str:
    """Remove the first suffix in ``suffixes`` that ``name`` ends with.

    Args:
        name: File name or relative path.
        suffixes: Candidate suffixes, most specific first.

    Returns:
        The name without the suffix, or the name unchanged.
    """
    for suffix in suffixes:
        if suffix and name.endswith(suffix) and len(name) > len(suffix):
            return name[: -len(suffix)]
    return name


def strip_extension(rel_path: str) -> str:
    """Remove the final extension from the last segment of a POSIX path.

    Examples:
        >>> strip_extension("notes/my-post.md")
        'notes/my-post'

        >>> strip_extension("archive.tar.gz")
        'archive.tar'
    """
    head, sep, tail = rel_path.rpartition("/")
    stem, dot, ext = tail.rpartition(".")
    if not dot or not stem or not ext:
        return rel_path
    return f"{head}{sep}{stem}"


def is_hidden(rel: Path) -> bool:
    """Check if any component of a relative path starts with a dot."""
    return any(part.startswith(".") for part in rel.parts)


def iter_files(root: Path) -> list[Path]:
    """List every regular file under ``root``, recursively.

    Hidden files and anything inside hidden directories are skipped. The
    result is sorted by relative POSIX path so builds do not depend on
    filesystem enumeration order.

    Args:
        root: Directory to search.

    Returns:
        Sorted list of absolute file paths.
    """
    files: list[Path] = []
    for path in root.rglob("*"):
        if not path.is_file():
            continue
        if is_hidden(path.relative_to(root)):
            continue
        files.append(path)
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)


def copy_tree(source: Path, dest: Path) -> None:
    """Copy the contents of ``source`` into ``dest`` verbatim.

    Existing files at colliding paths are overwritten.

    Args:
        source: Directory to copy from.
        dest: Directory to copy into.
    """
    shutil.copytree(source, dest, dirs_exist_ok=True)


def is_relative_to(path: Path, other: Path) -> bool:
    """Return True if ``path`` equals ``other`` or lies inside it."""
    try:
        path.relative_to(other)
    except ValueError:
        return False
    return True
