"""Site building for Inkwell.

This module runs the load → render → write pipeline for every document
in a source directory, then writes optional index pages and feeds.

Key functions:
- build_site: Build the whole site.
- load_config: Load site configuration from inkwell.yaml.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError, UndefinedError

from .collections import DocumentCollection
from .content import (
    DEFAULT_PERMALINK,
    Document,
    FileContentLoader,
    PermalinkDeriver,
    load_file,
)
from .feeds import create_default_feed_registry
from .frontmatter import ParseError
from .layouts import FileLayoutResolver, LayoutNotFoundError, render_document, render_listing
from .protocols import LayoutResolver
from .utils import ensure_clean_dir, slugify

CONFIG_FILENAME = "inkwell.yaml"

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "url": "",
    "permalink": DEFAULT_PERMALINK,
    "layouts_dir": "_layouts",
    "feeds": True,
}


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        documents: Documents that were rendered, oldest first.
        output_dir: Directory where the site was built.
        written: Every file written, in write order.
        failures: Errors collected when continuing past failures.
    """

    documents: DocumentCollection
    output_dir: Path
    written: list[Path] = field(default_factory=list)
    failures: list[BuildError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def load_config(source_dir: Path, config_path: Path | None = None) -> dict[str, Any]:
    """Load site configuration.

    Args:
        source_dir: Directory holding the posts; ``inkwell.yaml`` is read
            from here unless ``config_path`` is given.
        config_path: Optional explicit configuration file.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        OSError: If an explicit configuration file cannot be read.
        yaml.YAMLError: If the configuration file is not valid YAML.
    """
    path = config_path or source_dir / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path is not None or path.exists():
        with open(path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if isinstance(loaded, dict):
            config.update(loaded)
    return config


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    if isinstance(exc, ParseError):
        return f"Parse error: {exc.message}"
    if isinstance(exc, LayoutNotFoundError):
        return str(exc)
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if isinstance(exc, UndefinedError):
        return f"Undefined variable: {exc}"
    if isinstance(exc, OSError):
        return f"I/O error: {exc.strerror or exc}"
    return f"{type(exc).__name__}: {exc}"


def _write_page(output_dir: Path, url: str, rendered: str) -> Path:
    """Write a rendered page to ``<output_dir>/<url>/index.html``.

    Args:
        output_dir: Base output directory.
        url: URL path of the page.
        rendered: Rendered HTML content.

    Returns:
        Path of the written file.
    """
    url_path = url.strip("/")
    target_dir = output_dir / url_path if url_path else output_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    html_path = target_dir / "index.html"
    with open(html_path, "w", encoding="utf-8") as f:
        f.write(rendered)
    return html_path


def _check_dirs(source_dir: Path, output_dir: Path) -> None:
    source = source_dir.resolve()
    output = output_dir.resolve()
    if output == source or output in source.parents:
        raise ValueError(
            f"Output directory {output_dir} would overwrite source directory {source_dir}"
        )


def build_site(
    source_dir: Path,
    output_dir: Path,
    config: dict[str, Any] | None = None,
    layout_resolver: LayoutResolver | None = None,
    fail_fast: bool = False,
    include_drafts: bool = False,
    clean_output: bool = True,
) -> BuildResult:
    """Build the static site.

    Each document is loaded, rendered and written independently. A failing
    document is recorded in ``BuildResult.failures`` while the other
    documents are still built, unless ``fail_fast`` asks to stop at once.

    Args:
        source_dir: Directory holding the posts.
        output_dir: Directory to write the site into.
        config: Site configuration; loaded from ``source_dir`` if None.
        layout_resolver: Source of layouts; defaults to the configured
            layouts directory inside ``source_dir``.
        fail_fast: Raise on the first failing document.
        include_drafts: Also build documents with ``published: false``.
        clean_output: Whether to wipe the output directory first.

    Returns:
        BuildResult describing what was built and what failed.

    Raises:
        BuildError: On the first failure when ``fail_fast`` is set.
        FileNotFoundError: If the source directory does not exist.
        ValueError: If the output directory contains the source directory.
    """
    if config is None:
        config = load_config(source_dir)
    else:
        config = {**DEFAULT_CONFIG, **config}
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Source directory not found: {source_dir}")
    _check_dirs(source_dir, output_dir)

    if layout_resolver is None:
        layout_resolver = FileLayoutResolver(source_dir / config["layouts_dir"])
    deriver = PermalinkDeriver(str(config["permalink"]))

    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    failures: list[BuildError] = []

    def fail(path: Path, exc: Exception) -> None:
        failure = BuildError(path, _format_error_message(exc), exc)
        if fail_fast:
            raise failure from exc
        failures.append(failure)

    documents: list[Document] = []
    for path in FileContentLoader(source_dir).iter_files():
        try:
            document = load_file(path)
        except (ParseError, OSError, UnicodeDecodeError) as exc:
            fail(path, exc)
            continue
        if document.published or include_drafts:
            documents.append(document)

    written: list[Path] = []
    entries: list[tuple[Document, str]] = []
    claimed: dict[str, Path] = {}
    for document in DocumentCollection(documents).sorted():
        path = document.path
        try:
            url = deriver.derive(document)
            if url in claimed:
                raise ValueError(f"Permalink {url} is already used by {claimed[url]}")
            rendered = render_document(document, layout_resolver, site=config, url=url)
            written.append(_write_page(output_dir, url, rendered))
        except Exception as exc:
            fail(path, exc)
            continue
        claimed[url] = path
        entries.append((document, url))

    built = DocumentCollection(document for document, _ in entries)
    layout_dir = source_dir / str(config["layouts_dir"])
    try:
        written.extend(_write_indexes(output_dir, entries, layout_resolver, config))
        if config.get("feeds", True):
            feed_entries = [(d, url) for d, url in entries if d.published]
            written.extend(
                create_default_feed_registry().generate_all(
                    output_dir, feed_entries, config
                )
            )
    except Exception as exc:
        fail(layout_dir, exc)

    return BuildResult(
        documents=built, output_dir=output_dir, written=written, failures=failures
    )


def _write_indexes(
    output_dir: Path,
    entries: list[tuple[Document, str]],
    layout_resolver: LayoutResolver,
    config: dict[str, Any],
) -> list[Path]:
    """Write the home index and per-tag pages when their layouts exist.

    The ``index`` layout renders to ``/`` and the ``tag`` layout to
    ``/tags/<slug>/``, both listing published documents newest first.
    Tags whose slugs match, such as ``Ruby`` and ``ruby``, share one page;
    ``tag`` is the first of their spellings and ``tag_names`` lists them all.
    """
    newest_first = sorted(
        (e for e in entries if e[0].published),
        key=lambda e: e[0].sort_key,
        reverse=True,
    )
    written: list[Path] = []
    if layout_resolver.exists("index"):
        rendered = render_listing("index", layout_resolver, newest_first, site=config)
        written.append(_write_page(output_dir, "/", rendered))
    if layout_resolver.exists("tag"):
        # Tags that share a slug share a page
        by_slug: dict[str, tuple[list[str], list[tuple[Document, str]]]] = {}
        for entry in newest_first:
            seen: set[str] = set()
            for tag in dict.fromkeys(entry[0].tags):
                slug = slugify(tag)
                names, tagged = by_slug.setdefault(slug, ([], []))
                if tag not in names:
                    names.append(tag)
                if slug not in seen:
                    seen.add(slug)
                    tagged.append(entry)
        for slug in sorted(by_slug):
            names, tagged = by_slug[slug]
            rendered = render_listing(
                "tag",
                layout_resolver,
                tagged,
                site=config,
                tag=sorted(names)[0],
                tag_names=sorted(names),
            )
            written.append(_write_page(output_dir, f"/tags/{slug}/", rendered))
    return written
