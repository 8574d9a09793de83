"""Content loading for Inkwell.

This module turns source text into immutable Document objects and finds
the content files in a source directory.

Key classes:
- Document: Dataclass representing one post with its normalised metadata.
- FileContentLoader: Discovers content files in a source directory.
- DocumentListing: Lazy, restartable iterable of loaded documents.
- PermalinkDeriver: Derives output URLs from a permalink pattern.

Key functions:
- load_document: Parse source text into a Document.
- load_file: Read and parse a file.
- dump_document: Serialise a Document back to source text.
- list_documents: Iterate over every document under a directory.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .frontmatter import (
    ParseError,
    dump_frontmatter,
    optional_string,
    parse_date,
    parse_tags,
    split_frontmatter,
)
from .utils import (
    extract_date_from_name,
    first_heading,
    first_paragraph,
    is_internal_path,
    is_markdown,
    slugify,
    titleize,
)

DEFAULT_LAYOUT = "default"
DEFAULT_PERMALINK = "/{year}/{month}/{day}/{slug}/"


@dataclass(frozen=True)
class Document:
    """A loaded source document.

    ``frontmatter`` and ``body`` are exactly what the source contained; the
    remaining attributes are normalised from them when the document is
    loaded and never change afterwards.

    Attributes:
        path: Source file, or None for text loaded without a file.
        frontmatter: Read-only front matter mapping as parsed by YAML.
        body: Raw Markdown following the front matter block.
        title: Front matter title, else the first ``#`` heading, else
            the titleized filename.
        date: Publication date.
        tags: Tags in source order; duplicates are kept.
        layout: Name of the layout to render with.
        slug: URL-safe identifier, explicit or derived from the title.
        published: False for drafts (``published: false``).
        description: Front matter description, else first paragraph.
    """

    path: Path | None
    frontmatter: Mapping[str, Any]
    body: str
    title: str
    date: datetime
    tags: tuple[str, ...]
    layout: str
    slug: str
    published: bool
    description: str

    @property
    def sort_key(self) -> tuple[datetime, str, str]:
        """Key giving a total, stable date order.

        Naive dates are read as UTC so that they compare with aware ones.
        Ties on date fall back to slug, then source path.
        """
        moment = self.date
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return (moment, self.slug, str(self.path or ""))


def _clean_slug(value: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "-", value).strip("-").lower()
    if not cleaned:
        raise ParseError(f"slug {value!r} has no URL-safe characters")
    return cleaned


def _build_document(source_text: str, path: Path | None) -> Document:
    frontmatter, body = split_frontmatter(source_text)

    if frontmatter.get("date") is not None:
        date = parse_date(frontmatter["date"])
    else:
        date = extract_date_from_name(path.stem) if path is not None else None
        if date is None:
            raise ParseError("missing required field: date")

    title = (
        optional_string(frontmatter, "title")
        or first_heading(body)
        or (titleize(path.name) if path is not None else "Untitled")
    )
    explicit_slug = optional_string(frontmatter, "slug")
    slug = _clean_slug(explicit_slug) if explicit_slug else slugify(title)

    published = frontmatter.get("published", True)
    if not isinstance(published, bool):
        raise ParseError(f"published must be true or false, got {published!r}")

    return Document(
        path=path,
        frontmatter=MappingProxyType(frontmatter),
        body=body,
        title=title,
        date=date,
        tags=parse_tags(frontmatter.get("tags")),
        layout=optional_string(frontmatter, "layout") or DEFAULT_LAYOUT,
        slug=slug,
        published=published,
        description=optional_string(frontmatter, "description")
        or first_paragraph(body),
    )


def load_document(source_text: str, path: Path | None = None) -> Document:
    """Parse source text into a Document.

    Args:
        source_text: Full text of the document, front matter first.
        path: Optional source path, used for error messages and as a
            fallback for the title and date.

    Returns:
        The loaded Document.

    Raises:
        ParseError: If the front matter is malformed or the date is
            missing or unparsable.
    """
    try:
        return _build_document(source_text, path)
    except ParseError as exc:
        if path is not None and exc.path is None:
            raise exc.with_path(path) from exc
        raise


def load_file(path: Path) -> Document:
    """Read a UTF-8 file and load it as a Document.

    Raises:
        ParseError: If the content is malformed.
        OSError: If the file cannot be read.
    """
    return load_document(path.read_text(encoding="utf-8"), path)


def dump_document(document: Document) -> str:
    """Serialise a Document back to front matter plus body text."""
    return dump_frontmatter(document.frontmatter, document.body)


class FileContentLoader:
    """Discovers content files in a source directory.

    Markdown files (``.md``, ``.markdown``) are content unless any part of
    their path relative to the source directory starts with ``_``.

    Attributes:
        source_dir: Directory containing the posts.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def iter_files(self) -> list[Path]:
        """Return all content files, sorted by path.

        Raises:
            FileNotFoundError: If the source directory does not exist.
        """
        if not self.source_dir.is_dir():
            raise FileNotFoundError(f"Source directory not found: {self.source_dir}")
        files: list[Path] = []
        for path in self.source_dir.rglob("*"):
            if not path.is_file() or not is_markdown(path):
                continue
            if is_internal_path(path.relative_to(self.source_dir)):
                continue
            files.append(path)
        return sorted(files)


class DocumentListing:
    """Lazy, finite and restartable sequence of documents in a directory.

    Nothing is read until iteration starts, and every new iteration
    rescans the directory and reloads the files.
    """

    def __init__(self, source_dir: Path, loader: FileContentLoader | None = None):
        self.source_dir = source_dir
        self._loader = loader or FileContentLoader(source_dir)

    def __iter__(self) -> Iterator[Document]:
        for path in self._loader.iter_files():
            yield load_file(path)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"DocumentListing({self.source_dir})"


def list_documents(source_dir: Path) -> DocumentListing:
    """Return a lazy listing of every document under ``source_dir``."""
    return DocumentListing(source_dir)


class PermalinkDeriver:
    """Derives URL paths for documents from a permalink pattern.

    The pattern may use ``{year}``, ``{month}``, ``{day}`` (zero padded)
    and ``{slug}``.
    """

    def __init__(self, pattern: str = DEFAULT_PERMALINK):
        self.pattern = pattern

    def derive(self, document: Document) -> str:
        """Return the URL path for a document, always ``/``-terminated.

        Raises:
            ValueError: If the pattern names an unknown placeholder.
        """
        date = document.date
        try:
            path = self.pattern.format(
                year=f"{date.year:04d}",
                month=f"{date.month:02d}",
                day=f"{date.day:02d}",
                slug=document.slug,
            )
        except (KeyError, IndexError) as exc:
            raise ValueError(
                f"Unknown placeholder in permalink pattern {self.pattern!r}: {exc}"
            ) from exc
        segments = [s for s in path.split("/") if s and s not in (".", "..")]
        return "/" + "/".join(segments) + "/" if segments else "/"


def permalink(document: Document, pattern: str = DEFAULT_PERMALINK) -> str:
    """Return the URL path for ``document`` under ``pattern``."""
    return PermalinkDeriver(pattern).derive(document)
