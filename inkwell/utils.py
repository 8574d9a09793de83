"""Utility functions for Inkwell.

String and path helpers shared by the loader, the renderer and the build.

Key functions:
    slugify: Convert a title or filename to a URL slug.
    titleize: Convert a filename to a human-readable title.
    strip_date_prefix: Drop a YYYY-MM-DD- prefix from a filename stem.
    extract_date_from_name: Extract date from filename prefix.
    first_paragraph: Plain-text first paragraph of a Markdown body.
    is_markdown: Check if a path is a Markdown file.
    is_internal_path: Check if a path lives under an underscore directory.
    ensure_clean_dir: Ensure a directory exists and is empty.
    build_tags_index: Build index of documents by tag.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

MARKDOWN_SUFFIXES = (".md", ".markdown")


def strip_date_prefix(name: str) -> str:
    """Remove a leading ``YYYY-MM-DD-`` from a filename stem.

    Args:
        name: Filename stem.

    Returns:
        The stem without its date prefix, or unchanged if there is none.
    """
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert a title or filename stem to a slug.

    Leading digits are kept, so strip a filename date prefix with
    ``strip_date_prefix`` first.

    Args:
        name: Title or filename stem.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("Bundler & You")
        'bundler-you'
        >>> slugify("3-2-1 backup rule")
        '3-2-1-backup-rule'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        datetime object if a valid date prefix is found, None otherwise.
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def first_heading(text: str) -> str | None:
    """Return the text of the first level-1 ATX heading, if any."""
    in_fence = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(("```", "~~~")):
            in_fence = not in_fence
            continue
        if not in_fence and stripped.startswith("# "):
            return stripped[2:].strip().rstrip("#").strip() or None
    return None


def first_paragraph(text: str, limit: int = 160) -> str:
    """Extract and clean the first prose paragraph from Markdown text.

    Skips headings, images, fenced code and rules. Strips HTML tags and
    inline Markdown markers, collapses whitespace and truncates.

    Args:
        text: Markdown text.
        limit: Maximum character length of result.

    Returns:
        Cleaned first paragraph, truncated to limit characters.
    """
    paragraphs = [p.strip() for p in re.split(r"\n\s*\n", text) if p.strip()]
    for para in paragraphs:
        if para.startswith(("#", "![", "```", "~~~", "---", "    ")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        para = re.sub(r"!?\[([^\]]*)\]\([^)]*\)", r"\1", para)
        para = re.sub(r"[*_`]", "", para)
        collapsed = " ".join(para.split())
        return collapsed[:limit]
    return ""


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has a .md or .markdown extension (case-insensitive).
    """
    return path.suffix.lower() in MARKDOWN_SUFFIXES


def is_internal_path(path: Path) -> bool:
    """Check if a path is internal (contains components starting with _).

    Internal paths include layouts and drafts.

    Args:
        path: Path to check, relative to the source directory.

    Returns:
        True if any path component starts with underscore.
    """
    return any(part.startswith("_") for part in path.parts)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def build_tags_index(documents: Iterable) -> dict[str, list]:
    """Build an index mapping tags to the documents carrying them.

    A tag repeated on one document lists that document once.

    Args:
        documents: Iterable of objects with a ``tags`` attribute.

    Returns:
        Dictionary mapping tag names to lists of documents, tags sorted.
    """
    tags: dict[str, list] = {}
    for document in documents:
        for tag in dict.fromkeys(document.tags):
            tags.setdefault(tag, []).append(document)
    return dict(sorted(tags.items()))
