"""Inkwell static blog generator.

Inkwell turns a directory of Markdown posts with YAML front matter into a
static HTML site, rendering each post into a Jinja2 layout.

The main entry point is the CLI module; the loading and rendering
functions are also usable directly:

    from inkwell import list_documents, render_document, FileLayoutResolver
"""

from .content import Document, dump_document, list_documents, load_document, load_file
from .frontmatter import ParseError
from .layouts import (
    DictLayoutResolver,
    FileLayoutResolver,
    LayoutNotFoundError,
    render_body,
    render_document,
)

__all__ = [
    "DictLayoutResolver",
    "Document",
    "FileLayoutResolver",
    "LayoutNotFoundError",
    "ParseError",
    "__version__",
    "dump_document",
    "list_documents",
    "load_document",
    "load_file",
    "render_body",
    "render_document",
]
__version__ = "0.1.0"
