"""Output writing for Quire.

Rendered pages are written on a thread pool. Writes are independent, so the
phase only finishes once every write has either completed or failed.

Pages that resolve to the same path are detected up front. The last one in
page-list order is the one written, which keeps rebuilds deterministic.
"""

from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from .errors import BuildError
from .templates import RenderedPage


def find_collisions(outputs: Sequence[RenderedPage]) -> dict[Path, list[Path]]:
    """Map each destination shared by several pages to their source files.

    Args:
        outputs: Rendered pages in page-list order.

    Returns:
        Destination path to the list of source paths, only for collisions.
    """
    by_path: dict[Path, list[RenderedPage]] = {}
    for output in outputs:
        by_path.setdefault(output.path, []).append(output)
    return {
        path: [o.page.source_path or Path(o.page.permalink) for o in group]
        for path, group in by_path.items()
        if len(group) > 1
    }


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


class OutputWriter:
    """Writes rendered pages to disk concurrently.

    Attributes:
        max_workers: Thread pool size; None lets the executor decide.
    """

    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers

    def write(self, outputs: Sequence[RenderedPage]) -> list[RenderedPage]:
        """Write every output, creating parent directories as needed.

        Args:
            outputs: Rendered pages in page-list order.

        Returns:
            The outputs actually written, one per distinct path.

        Raises:
            BuildError: For the first failed write in page-list order, after
                all writes have settled.
        """
        last: dict[Path, RenderedPage] = {}
        for output in outputs:
            last[output.path] = output
        winners = [o for o in outputs if last[o.path] is o]
        if not winners:
            return []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(_write_file, o.path, o.content) for o in winners
            ]
            wait(futures)

        for output, future in zip(winners, futures):
            exc = future.exception()
            if exc is not None:
                source = output.page.source_path or output.path
                raise BuildError(
                    source,
                    f"Cannot write {output.path}: {exc}",
                    exc,
                    phase="write",
                ) from exc
        return winners
