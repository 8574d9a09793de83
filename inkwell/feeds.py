"""Feed generation for Inkwell.

Generates sitemap.xml and an RSS 2.0 feed from the built documents. Both
need an absolute site ``url`` in the configuration and are skipped
without one.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml files.
    RSSGenerator: Generates RSS feed files.
    FeedRegistry: Registry for managing feed generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from email.utils import format_datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html, join_root_url

if TYPE_CHECKING:
    from .content import Document

Entry = tuple["Document", str]


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


class FeedGenerator(ABC):
    """Abstract base class for feed generators.

    Subclasses implement one feed format each.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename for this feed."""
        ...

    @abstractmethod
    def generate(
        self, entries: Iterable[Entry], site: Mapping[str, Any]
    ) -> str | None:
        """Generate feed content.

        Args:
            entries: Pairs of (document, URL path).
            site: Site configuration containing ``url``.

        Returns:
            Feed content as a string, or None if the feed cannot be
            generated (no base URL configured).
        """
        ...

    def write(
        self, output_dir: Path, entries: Iterable[Entry], site: Mapping[str, Any]
    ) -> Path | None:
        """Generate and write the feed to the output directory.

        Returns:
            Path of the written file, or None if skipped.
        """
        content = self.generate(entries, site)
        if content is None:
            return None
        output_path = output_dir / self.filename
        output_path.write_text(content, encoding="utf-8")
        return output_path


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(
        self, entries: Iterable[Entry], site: Mapping[str, Any]
    ) -> str | None:
        base_url = str(site.get("url") or "")
        if not base_url:
            return None

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for document, url in entries:
            loc = escape_html(join_root_url(base_url, url))
            lastmod = document.date.strftime("%Y-%m-%d")
            lines.append(f"  <url><loc>{loc}</loc><lastmod>{lastmod}</lastmod></url>")
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed, newest documents first.

    The channel's build date is the newest document's date, so rebuilding
    unchanged content produces an identical feed.
    """

    def __init__(self, limit: int = 20):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(
        self, entries: Iterable[Entry], site: Mapping[str, Any]
    ) -> str | None:
        base_url = str(site.get("url") or "")
        if not base_url:
            return None
        title = escape_html(str(site.get("title") or "Inkwell Feed"))

        ordered = sorted(entries, key=lambda e: e[0].sort_key, reverse=True)
        ordered = ordered[: self.limit]
        items = []
        for document, url in ordered:
            link = escape_html(join_root_url(base_url, url))
            pub_date = format_datetime(_as_utc(document.date))
            description = escape_html(document.description or document.title)
            categories = "".join(
                f"<category>{escape_html(tag)}</category>"
                for tag in dict.fromkeys(document.tags)
            )
            items.append(
                f"<item><title>{escape_html(document.title)}</title>"
                f"<link>{link}</link><guid>{link}</guid>"
                f"<description>{description}</description>{categories}"
                f"<pubDate>{pub_date}</pubDate></item>"
            )

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}</link>",
            f"<description>{title}</description>",
        ]
        if ordered:
            build_date = format_datetime(_as_utc(ordered[0][0].date))
            rss.append(f"<lastBuildDate>{build_date}</lastBuildDate>")
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, entries: Iterable[Entry], site: Mapping[str, Any]
    ) -> list[Path]:
        """Generate all registered feeds.

        Returns:
            Paths of the feed files that were written.
        """
        entries_list = list(entries)
        written = []
        for generator in self._generators:
            path = generator.write(output_dir, entries_list, site)
            if path is not None:
                written.append(path)
        return written


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
