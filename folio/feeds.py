"""Feed generation for Folio.

This module generates the machine-readable files published next to the
site: ``sitemap.xml``, ``robots.txt`` and ``rss.xml``. Every generator pulls
posts from a ``PostRepository`` so drafts never leak into a feed.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml, with a minimal fallback.
    RobotsGenerator: Generates robots.txt.
    RSSGenerator: Generates an RSS 2.0 feed.
    FeedRegistry: Registry for running several generators.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, time, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any
from xml.sax.saxutils import escape

from .utils import join_root_url

if TYPE_CHECKING:
    from .collections import PostRepository
    from .content import Post

logger = logging.getLogger(__name__)

DEFAULT_SITE_URL = "https://your-domain.com"

# (path, changefreq, priority)
STATIC_PAGES = [
    ("/", "weekly", "1.0"),
    ("/about/", "monthly", "0.8"),
    ("/tags/", "weekly", "0.7"),
]
POST_CHANGEFREQ = "monthly"
POST_PRIORITY = "0.9"

ROBOTS_DISALLOW = ["/api/", "/.git/", "/.env*"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _post_timestamp(post: Post) -> datetime:
    return datetime.combine(post.published, time.min, tzinfo=timezone.utc)


def site_url(data: dict[str, Any]) -> str:
    return str(data.get("url") or DEFAULT_SITE_URL).rstrip("/")


class FeedGenerator(ABC):
    """Abstract base class for feed generators.

    Subclasses implement one output format each.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Return the output filename, such as 'sitemap.xml'."""
        ...

    @abstractmethod
    def generate(self, repository: PostRepository, data: dict[str, Any]) -> str:
        """Generate feed content.

        Args:
            repository: Source of published posts.
            data: Site settings; ``url`` and ``title`` are used.

        Returns:
            Feed content as a string.
        """
        ...

    def write(
        self, output_dir: Path, repository: PostRepository, data: dict[str, Any]
    ) -> Path:
        """Generate and write the feed into ``output_dir``.

        Returns:
            Path of the written file.
        """
        output_path = output_dir / self.filename
        output_path.write_text(self.generate(repository, data), encoding="utf-8")
        return output_path


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol.

    Static pages are stamped with the build time and posts with their
    publication date. If the post listing fails, a minimal sitemap holding
    only the home page is produced instead of failing the build.
    """

    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        self.clock = clock

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    @staticmethod
    def _url_entry(loc: str, lastmod: datetime, changefreq: str, priority: str) -> str:
        return (
            "  <url>\n"
            f"    <loc>{escape(loc)}</loc>\n"
            f"    <lastmod>{lastmod.isoformat()}</lastmod>\n"
            f"    <changefreq>{changefreq}</changefreq>\n"
            f"    <priority>{priority}</priority>\n"
            "  </url>"
        )

    def _document(self, entries: list[str]) -> str:
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *entries,
            "</urlset>",
        ]
        return "\n".join(lines) + "\n"

    def fallback(self, data: dict[str, Any]) -> str:
        """Return the single-entry sitemap used when posts cannot be listed."""
        base_url = site_url(data)
        return self._document(
            [self._url_entry(join_root_url(base_url, "/"), self.clock(), "weekly", "1.0")]
        )

    def generate(self, repository: PostRepository, data: dict[str, Any]) -> str:
        base_url = site_url(data)
        try:
            posts = repository.get_all_posts()
        except Exception:
            logger.exception("Error generating sitemap; writing minimal fallback")
            return self.fallback(data)

        now = self.clock()
        entries = [
            self._url_entry(join_root_url(base_url, path), now, freq, priority)
            for path, freq, priority in STATIC_PAGES
        ]
        entries.extend(
            self._url_entry(
                join_root_url(base_url, post.url),
                _post_timestamp(post),
                POST_CHANGEFREQ,
                POST_PRIORITY,
            )
            for post in posts
        )
        return self._document(entries)


class RobotsGenerator(FeedGenerator):
    """Generates robots.txt pointing crawlers at the sitemap."""

    @property
    def filename(self) -> str:
        return "robots.txt"

    def generate(self, repository: PostRepository, data: dict[str, Any]) -> str:
        lines = ["User-agent: *", "Allow: /", ""]
        lines.append("# Block access to sensitive files")
        lines.extend(f"Disallow: {path}" for path in ROBOTS_DISALLOW)
        lines.extend(
            [
                "",
                "# Sitemap location",
                f"Sitemap: {join_root_url(site_url(data), '/sitemap.xml')}",
                "",
                "Crawl-delay: 1",
            ]
        )
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of published posts, newest first."""

    def __init__(self, clock: Callable[[], datetime] = _utc_now):
        self.clock = clock

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, repository: PostRepository, data: dict[str, Any]) -> str:
        base_url = site_url(data)
        title = data.get("title") or "Folio"
        description = data.get("description") or title

        items = []
        for post in repository.get_all_posts():
            link = join_root_url(base_url, post.url)
            pub_date = _post_timestamp(post).strftime("%a, %d %b %Y %H:%M:%S +0000")
            items.append(
                f"<item><title>{escape(post.title)}</title><link>{escape(link)}</link>"
                f"<guid>{escape(link)}</guid>"
                f"<description>{escape(post.description)}</description>"
                f"<pubDate>{pub_date}</pubDate></item>"
            )

        build_date = self.clock().strftime("%a, %d %b %Y %H:%M:%S +0000")
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape(str(title))}</title>",
            f"<link>{escape(base_url)}</link>",
            f"<description>{escape(str(description))}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry for managing feed generators.

    Attributes:
        _generators: List of registered feed generators.
    """

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, repository: PostRepository, data: dict[str, Any]
    ) -> list[str]:
        """Generate all registered feeds.

        Returns:
            List of filenames that were generated.
        """
        generated = []
        for generator in self._generators:
            generator.write(output_dir, repository, data)
            generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    """Create a registry with sitemap, robots and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RobotsGenerator())
    registry.register(RSSGenerator())
    return registry
