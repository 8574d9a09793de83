"""Command-line interface for Inkwell.

This module defines the CLI commands using the Click framework.

Commands:
- build: Render every post in a source directory into an output directory.
- new-post: Create a new post with front matter interactively.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .frontmatter import dump_frontmatter, parse_tags
from .utils import is_markdown, slugify, strip_date_prefix


@click.group()
@click.version_option(version=__version__, prog_name="inkwell")
def cli():
    """Inkwell static blog generator."""


@cli.command()
@click.argument(
    "source_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.option(
    "--layouts",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Layout directory (default: SOURCE_DIR/_layouts)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file (default: SOURCE_DIR/inkwell.yaml)",
)
@click.option(
    "--continue-on-error",
    is_flag=True,
    help="Keep building other posts when one fails",
)
@click.option("--drafts", is_flag=True, help="Include posts with published: false")
@click.option("-v", "--verbose", is_flag=True, help="List every file written")
def build(
    source_dir: Path,
    output_dir: Path,
    layouts: Path | None,
    config_path: Path | None,
    continue_on_error: bool,
    drafts: bool,
    verbose: bool,
):
    """Build the site from SOURCE_DIR into OUTPUT_DIR."""
    from .build import BuildError, build_site, load_config

    try:
        config = load_config(source_dir, config_path)
    except (OSError, yaml.YAMLError) as exc:
        raise click.ClickException(f"Could not read configuration: {exc}") from exc
    if layouts is not None:
        config["layouts_dir"] = str(layouts.resolve())

    try:
        result = build_site(
            source_dir,
            output_dir,
            config=config,
            fail_fast=not continue_on_error,
            include_drafts=drafts,
        )
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        _echo_failure(exc, source_dir)
        raise SystemExit(1) from None
    except (OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    if verbose:
        for path in result.written:
            click.echo(f"  wrote {path}")

    if result.failures:
        click.echo(
            click.style(
                f"{len(result.failures)} document(s) failed:", fg="red", bold=True
            ),
            err=True,
        )
        for failure in result.failures:
            _echo_failure(failure, source_dir)
        click.echo(
            f"Built {len(result.documents)} documents into {result.output_dir}"
        )
        raise SystemExit(1)

    click.echo(f"Built {len(result.documents)} documents into {result.output_dir}")


def _echo_failure(exc, source_dir: Path) -> None:
    """Print one build failure with its file and reason."""
    try:
        shown = exc.source_path.relative_to(source_dir)
    except ValueError:
        shown = exc.source_path
    click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)


@cli.command("new-post")
@click.argument(
    "source_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option("--title", help="Post title (prompted if omitted)")
@click.option("--tags", help="Space or comma separated tags (prompted if omitted)")
@click.option("--layout", default="post", show_default=True, help="Layout name")
@click.option("--draft", is_flag=True, help="Mark the post as unpublished")
def new_post(
    source_dir: Path,
    title: str | None,
    tags: str | None,
    layout: str,
    draft: bool,
):
    """Create a new dated post in SOURCE_DIR."""
    if title is None:
        title = questionary.text(
            "Title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
        if tags is None:
            tags = questionary.text(
                "Tags (space separated, optional):",
                style=_questionary_style(),
            ).ask()
            if tags is None:
                raise click.Abort()
    title = title.strip()
    if not title:
        raise click.ClickException("Title cannot be empty")

    now = datetime.now().replace(microsecond=0)
    slug = slugify(title)
    existing = _get_existing_slugs(source_dir)
    if slug in existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[slug].name}"
        )

    frontmatter = {"layout": layout, "title": title, "date": now}
    tag_list = list(parse_tags(tags or ""))
    if tag_list:
        frontmatter["tags"] = tag_list
    if draft:
        frontmatter["published"] = False

    target = source_dir / f"{now:%Y-%m-%d}-{slug}.md"
    target.write_text(dump_frontmatter(frontmatter, "\n"), encoding="utf-8")
    click.echo(f"Created {target}")


def _get_existing_slugs(folder: Path) -> dict[str, Path]:
    """Map the slug of every Markdown file in ``folder`` to its path."""
    slugs = {}
    for f in folder.iterdir():
        if f.is_file() and is_markdown(f):
            slugs[slugify(strip_date_prefix(f.stem))] = f
    return slugs


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
