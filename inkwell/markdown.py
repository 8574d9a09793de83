"""Markdown rendering for Inkwell.

Converts a document body to HTML with mistune, giving every heading an
anchor id and highlighting fenced code blocks with Pygments.

Key classes:
- Heading: A heading collected during rendering, for tables of contents.
- RenderedBody: HTML output plus the collected headings.
- MarkdownRenderer: Stateless Markdown to HTML converter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .html_utils import escape_html

DEFAULT_PLUGINS = ("strikethrough", "footnotes", "table", "url")


@dataclass(frozen=True)
class Heading:
    """A heading extracted from Markdown content for TOC generation.

    Attributes:
        id: Anchor ID for the heading (URL-friendly slug).
        text: The rendered inner HTML of the heading.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


@dataclass(frozen=True)
class RenderedBody:
    """Result of rendering a Markdown body.

    Attributes:
        html: Rendered HTML fragment.
        toc: Headings in document order.
    """

    html: str
    toc: tuple[Heading, ...] = field(default_factory=tuple)


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly containing inline HTML.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and Pygments code blocks.

    One instance renders one body; heading ids are de-duplicated within it.

    Attributes:
        headings: Headings collected during rendering.
    """

    def __init__(self):
        super().__init__(escape=False)
        self.headings: list[Heading] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Info string after the opening fence (e.g. ``ruby``).

        Returns:
            HTML for the code block.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown text to HTML.

    Each call builds a fresh mistune parser, so rendering holds no state
    between documents and the same input always gives the same output.
    """

    def __init__(self, plugins: tuple[str, ...] = DEFAULT_PLUGINS):
        self.plugins = plugins

    def render(self, text: str) -> RenderedBody:
        """Render Markdown to HTML.

        Args:
            text: Markdown source.

        Returns:
            RenderedBody with the HTML and collected headings.
        """
        renderer = _HighlightRenderer()
        markdown = mistune.create_markdown(
            renderer=renderer, plugins=list(self.plugins)
        )
        html = markdown(text)
        return RenderedBody(html=html, toc=tuple(renderer.headings))


def pygments_css(style: str = "default") -> str:
    """Return Pygments CSS rules for the ``.highlight`` class."""
    return HtmlFormatter(style=style).get_style_defs(".highlight")


default_markdown_renderer = MarkdownRenderer()
