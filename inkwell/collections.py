from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .content import Document
from .utils import build_tags_index


class DocumentCollection(Sequence[Document]):
    """Lightweight helper for working with lists of Documents."""

    def __init__(self, documents: Iterable[Document]):
        self._documents = list(documents)

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        return self._documents[item]

    def with_tag(self, tag: str) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if tag in d.tags)

    def drafts(self) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if not d.published)

    def published(self) -> DocumentCollection:
        return DocumentCollection(d for d in self._documents if d.published)

    def sorted(self, reverse: bool = False) -> DocumentCollection:
        """Sort documents by date, then slug, then source path.

        The key is total, so the result does not depend on the order the
        documents were found in.

        Args:
            reverse: If True, newest first. Oldest first by default.

        Returns:
            A new DocumentCollection with sorted documents.
        """
        return DocumentCollection(
            sorted(self._documents, key=lambda d: d.sort_key, reverse=reverse)
        )

    def latest(self, count: int = 5) -> DocumentCollection:
        return DocumentCollection(self.sorted(reverse=True)[:count])

    def tags(self) -> TagCollection:
        return TagCollection(build_tags_index(self._documents))

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"DocumentCollection({len(self._documents)} documents)"


class TagCollection(Mapping[str, DocumentCollection]):
    """Mapping of tag name to DocumentCollection."""

    def __init__(self, mapping: Mapping[str, Iterable[Document]]):
        self._mapping = {k: DocumentCollection(v) for k, v in mapping.items()}

    def __getitem__(self, key: str) -> DocumentCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
