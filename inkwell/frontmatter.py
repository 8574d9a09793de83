"""Front matter parsing for Inkwell.

A source document starts with a block of YAML bounded by two lines that
contain only ``---``. This module splits that block from the Markdown body,
parses it with PyYAML and normalises the fields Inkwell relies on.

Key functions:
- split_frontmatter: Separate the YAML block from the body.
- parse_date: Coerce a front matter ``date`` value to a datetime.
- parse_tags: Coerce a front matter ``tags`` value to a tuple of strings.
- dump_frontmatter: Serialise front matter and body back to source text.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

import yaml

DELIMITER = "---"

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z",
    "%Y-%m-%d %H:%M %z",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)
_TAG_SPLIT_RE = re.compile(r"[\s,]+")


class ParseError(ValueError):
    """Malformed front matter or an unusable required field.

    Attributes:
        message: Human-readable description of the problem.
        path: Source file the text came from, when known.
    """

    def __init__(self, message: str, path: Path | None = None):
        self.message = message
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)

    def with_path(self, path: Path) -> ParseError:
        """Return a copy of this error attributed to ``path``."""
        return ParseError(self.message, path)


def _is_delimiter(line: str) -> bool:
    return line.rstrip("\r\n").rstrip() == DELIMITER


def split_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Split source text into its front matter mapping and Markdown body.

    Args:
        text: Full source text of a document.

    Returns:
        Tuple of (front matter dict, body text).

    Raises:
        ParseError: If either delimiter line is missing, the YAML is
            invalid, or it does not describe a mapping with string keys.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or not _is_delimiter(lines[0]):
        raise ParseError("front matter must start with a '---' line")

    for index in range(1, len(lines)):
        if _is_delimiter(lines[index]):
            closing = index
            break
    else:
        raise ParseError("front matter is missing its closing '---' line")

    block = "".join(lines[1:closing])
    body = "".join(lines[closing + 1 :])
    try:
        data = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid YAML in front matter: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ParseError(
            f"front matter must be a mapping, got {type(data).__name__}"
        )
    bad_keys = [key for key in data if not isinstance(key, str)]
    if bad_keys:
        raise ParseError(f"front matter keys must be strings, got {bad_keys[0]!r}")
    return data, body


def parse_date(value: Any) -> datetime:
    """Coerce a front matter ``date`` value to a datetime.

    Accepts YAML timestamps, YAML dates (taken as midnight) and strings in
    ISO 8601 form or ``YYYY-MM-DD HH:MM[:SS] +HHMM``.

    Raises:
        ParseError: If the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            pass
        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(text, fmt)
            except ValueError:
                continue
    raise ParseError(f"unparsable date: {value!r}")


def parse_tags(value: Any) -> tuple[str, ...]:
    """Coerce a front matter ``tags`` value to a tuple of strings.

    A string is split on whitespace and commas, so ``tags: ruby`` and
    ``tags: ruby, bundler`` both work. Order and duplicates are kept.

    Raises:
        ParseError: If the value is neither a string nor a list of scalars.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(tag for tag in _TAG_SPLIT_RE.split(value) if tag)
    if isinstance(value, list):
        tags = []
        for item in value:
            if isinstance(item, (dict, list)) or item is None:
                raise ParseError(f"tags must be short tokens, got {item!r}")
            tags.append(str(item))
        return tuple(tags)
    raise ParseError(f"tags must be a string or a list, got {type(value).__name__}")


def optional_string(frontmatter: Mapping[str, Any], key: str) -> str | None:
    """Return ``frontmatter[key]`` as a string, or None when absent.

    Numbers are accepted and converted. Anything else is a ParseError.
    """
    value = frontmatter.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise ParseError(f"{key} must be a string, got {type(value).__name__}")
    return str(value)


def dump_frontmatter(frontmatter: Mapping[str, Any], body: str) -> str:
    """Serialise front matter and body back to source text.

    Args:
        frontmatter: Front matter mapping.
        body: Markdown body.

    Returns:
        Text that ``split_frontmatter`` parses back to the same values.
    """
    block = yaml.safe_dump(
        dict(frontmatter),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
    return f"{DELIMITER}\n{block}{DELIMITER}\n{body}"
