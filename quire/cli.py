"""Command-line interface for Quire.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the site into the output directory.
"""

from __future__ import annotations

from pathlib import Path

import click

from . import __version__


@click.group()
@click.version_option(version=__version__, prog_name="quire")
def cli():
    """Quire static site generator."""


@cli.command()
@click.option(
    "--project",
    "project",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Project root containing quire.yaml",
)
@click.option(
    "--output",
    "output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build into this directory instead of the configured one",
)
def build(project: Path, output: Path | None):
    """Build the site into the output directory."""
    from .build import build_site
    from .errors import BuildError, ConfigError

    project_root = project.resolve()
    try:
        result = build_site(project_root, output_dir_override=output)
    except ConfigError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style("  Phase: config", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc}", fg="white"), err=True)
        raise SystemExit(1) from None
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        location = _display_path(exc.source_path, project_root)
        click.echo(click.style(f"  File: {location}", fg="yellow"), err=True)
        click.echo(click.style(f"  Phase: {exc.phase}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None

    for path, sources in result.collisions.items():
        names = ", ".join(_display_path(s, project_root) for s in sources)
        click.echo(
            click.style(
                f"Warning: {_display_path(path, project_root)} is claimed by {names}; "
                "the last one wins",
                fg="yellow",
            ),
            err=True,
        )
    click.echo(
        f"Built {len(result.pages)} pages into {result.output_dir} "
        f"in {result.duration:.2f}s"
    )


def _display_path(path: Path, project_root: Path) -> str:
    """Show a path relative to the project root when it lies inside it."""
    try:
        return str(path.relative_to(project_root))
    except ValueError:
        return str(path)


def main():
    """Entry point for the CLI application."""
    cli()
