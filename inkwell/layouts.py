"""Layout resolution and page rendering for Inkwell.

Layouts are Jinja2 templates. A document names its layout in front
matter; the rendered Markdown body is substituted into that layout.

Key classes:
- LayoutNotFoundError: Raised when a named layout does not exist.
- FileLayoutResolver: Looks layouts up in a directory.
- DictLayoutResolver: Holds layouts in memory.

Key functions:
- render_body: Convert a document's Markdown body to HTML.
- render_document: Render a document into its layout.
- render_listing: Render an index layout over several documents.
- render_toc: Nested HTML list from a document's headings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import (
    BaseLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from .content import DEFAULT_LAYOUT, Document
from .html_utils import escape_html, join_root_url
from .markdown import Heading, MarkdownRenderer, RenderedBody, default_markdown_renderer
from .protocols import LayoutResolver

__all__ = [
    "DictLayoutResolver",
    "FileLayoutResolver",
    "LayoutNotFoundError",
    "render_body",
    "render_document",
    "render_listing",
    "render_toc",
]

LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html", "")

BUILTIN_DEFAULT_LAYOUT = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{{ page.title }}{% if site.title %} | {{ site.title }}{% endif %}</title>
</head>
<body>
<article>
<header>
<h1>{{ page.title }}</h1>
<time datetime="{{ page.date.isoformat() }}">{{ page.date.strftime('%Y-%m-%d') }}</time>
</header>
{{ content }}
</article>
</body>
</html>
"""


class LayoutNotFoundError(LookupError):
    """A document references a layout that does not exist.

    Attributes:
        layout: The layout name that was requested.
        searched: Template names that were tried.
    """

    def __init__(self, layout: str, searched: Iterable[str] = ()):
        self.layout = layout
        self.searched = tuple(searched)
        message = f"Layout not found: {layout!r}"
        if self.searched:
            message += f" (tried {', '.join(self.searched)})"
        super().__init__(message)


class _JinjaLayoutResolver:
    """Shared lookup logic over a Jinja2 loader.

    A layout name ``post`` is looked up as ``post.html.jinja``,
    ``post.jinja``, ``post.html`` and ``post``, in that order. When no
    ``default`` layout is provided, a built-in page is used instead.
    """

    def __init__(self, loader: BaseLoader):
        self.env = Environment(
            loader=loader,
            autoescape=select_autoescape(["html", "xml", "jinja"], default=True),
            keep_trailing_newline=True,
        )

    def candidates(self, name: str) -> list[str]:
        return [f"{name}{suffix}" for suffix in LAYOUT_SUFFIXES]

    def exists(self, name: str) -> bool:
        """Return True if a layout file named ``name`` is available."""
        for candidate in self.candidates(name):
            try:
                self.env.get_template(candidate)
            except TemplateNotFound:
                continue
            return True
        return False

    def resolve(self, name: str) -> Template:
        """Return the template for layout ``name``.

        Raises:
            LayoutNotFoundError: If no candidate template exists.
        """
        candidates = self.candidates(name)
        for candidate in candidates:
            try:
                return self.env.get_template(candidate)
            except TemplateNotFound:
                continue
        if name == DEFAULT_LAYOUT:
            return self.env.from_string(BUILTIN_DEFAULT_LAYOUT)
        raise LayoutNotFoundError(name, candidates)


class FileLayoutResolver(_JinjaLayoutResolver):
    """Resolves layouts from template files in a directory.

    Attributes:
        layout_dir: Directory holding the layout templates. It may be
            missing, in which case only the built-in default exists.
    """

    def __init__(self, layout_dir: Path):
        self.layout_dir = layout_dir
        super().__init__(FileSystemLoader(str(layout_dir)))


class DictLayoutResolver(_JinjaLayoutResolver):
    """Resolves layouts from an in-memory mapping of name to source."""

    def __init__(self, layouts: Mapping[str, str]):
        super().__init__(DictLoader(dict(layouts)))


def render_toc(headings: Iterable[Heading]) -> Markup:
    """Render headings as a nested HTML list.

    Generates ``<ul><li><a href="#id">text</a></li></ul>`` nested by
    heading level.

    Args:
        headings: Headings in document order.

    Returns:
        Markup-safe HTML, or empty Markup if there are no headings.
    """
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        # Close nested lists if going to a shallower level
        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        else:
            html_parts.append("<ul>")
            level_stack.append(level)

        # Heading text is already rendered inline HTML
        html_parts.append(f'<li><a href="#{escape_html(heading.id)}">{heading.text}</a>')

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


def render_body(
    document: Document, markdown_renderer: MarkdownRenderer | None = None
) -> RenderedBody:
    """Convert a document's Markdown body to HTML.

    Args:
        document: Document to render.
        markdown_renderer: Optional custom Markdown renderer.

    Returns:
        RenderedBody with the HTML fragment and its headings.
    """
    renderer = markdown_renderer or default_markdown_renderer
    return renderer.render(document.body)


def _url_for(site: Mapping[str, Any]):
    base = str(site.get("url") or "")

    def url_for(path: str) -> str:
        if path.startswith(("http://", "https://", "//")):
            return path
        if base:
            return join_root_url(base, path)
        return path if path.startswith("/") else f"/{path}"

    return url_for


def render_document(
    document: Document,
    layout_resolver: LayoutResolver,
    site: Mapping[str, Any] | None = None,
    markdown_renderer: MarkdownRenderer | None = None,
    url: str | None = None,
) -> str:
    """Render a document into its layout.

    Output depends only on the document, the layout and ``site``, so the
    same inputs always produce byte-identical text.

    Args:
        document: Document to render.
        layout_resolver: Source of layout templates.
        site: Site configuration exposed to layouts as ``site``.
        markdown_renderer: Optional custom Markdown renderer.
        url: The document's URL path, exposed as ``url``.

    Returns:
        The complete page text.

    Raises:
        LayoutNotFoundError: If the document's layout does not exist.
    """
    template = layout_resolver.resolve(document.layout)
    body = render_body(document, markdown_renderer)
    site = site or {}
    content = Markup(body.html)
    return template.render(
        content=content,
        page_content=content,
        page=document,
        frontmatter=document.frontmatter,
        toc=render_toc(body.toc),
        site=site,
        url=url,
        url_for=_url_for(site),
    )


def render_listing(
    layout: str,
    layout_resolver: LayoutResolver,
    entries: Iterable[tuple[Document, str]],
    site: Mapping[str, Any] | None = None,
    **context: Any,
) -> str:
    """Render an index layout over several documents.

    Args:
        layout: Name of the index layout.
        layout_resolver: Source of layout templates.
        entries: Pairs of (document, URL path) in display order.
        site: Site configuration exposed as ``site``.
        **context: Extra template variables, such as ``tag``.

    Returns:
        The rendered page text.

    Raises:
        LayoutNotFoundError: If the layout does not exist.
    """
    template = layout_resolver.resolve(layout)
    site = site or {}
    return template.render(
        entries=list(entries),
        site=site,
        url_for=_url_for(site),
        **context,
    )
