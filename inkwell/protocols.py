"""Protocol definitions for Inkwell.

Rendering depends on these small interfaces rather than on concrete
classes, so tests and callers can supply their own implementations.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from jinja2 import Template


@runtime_checkable
class LayoutResolver(Protocol):
    """Protocol for looking up layout templates by name."""

    @abstractmethod
    def resolve(self, name: str) -> Template:
        """Return the template for a layout.

        Args:
            name: Layout name from a document's front matter.

        Returns:
            A Jinja2 template.

        Raises:
            LayoutNotFoundError: If the layout does not exist.
        """
        ...

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return True if a layout named ``name`` is provided."""
        ...

