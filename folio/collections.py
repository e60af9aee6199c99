"""Post collections and aggregate views for Folio.

``PostRepository`` is the read side used by page rendering and feeds: it
re-reads the content directory on every call and derives all listing views
from the same ``get_all_posts`` result. ``PostCollection`` is a lightweight
sequence wrapper for templates.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from .content import Post, PostLoader
from .protocols import ContentRenderer, PostSource
from .utils import tag_slug

logger = logging.getLogger(__name__)

FEATURED_LIMIT = 3
RECENT_LIMIT = 5


@dataclass(frozen=True)
class Tag:
    """A tag with the number of published posts carrying it.

    Attributes:
        name: Lower-cased tag name.
        count: Number of posts.
    """

    name: str
    count: int

    @property
    def slug(self) -> str:
        return tag_slug(self.name)

    @property
    def url(self) -> str:
        return f"/tags/{self.slug}/"


def _same_tag(left: str, right: str) -> bool:
    return left.lower() == right.lower()


class PostCollection(Sequence[Post]):
    """Lightweight helper for working with lists of Posts in templates and code."""

    def __init__(self, posts: Iterable[Post]):
        self._posts = list(posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return PostCollection(self._posts[item])
        return self._posts[item]

    def __eq__(self, other) -> bool:
        if isinstance(other, PostCollection):
            return self._posts == other._posts
        if isinstance(other, list):
            return self._posts == other
        return NotImplemented

    def with_tag(self, tag: str) -> PostCollection:
        return PostCollection(
            p for p in self._posts if any(_same_tag(t, tag) for t in p.tags)
        )

    def featured(self) -> PostCollection:
        return PostCollection(p for p in self._posts if p.featured)

    def drafts(self) -> PostCollection:
        return PostCollection(p for p in self._posts if p.draft)

    def published(self) -> PostCollection:
        return PostCollection(p for p in self._posts if not p.draft)

    def sorted(self, reverse: bool = True) -> PostCollection:
        """Sort posts by publication date.

        Python's sort is stable, so posts sharing a date keep their current
        relative order in both directions.

        Args:
            reverse: If True (default), newest first.

        Returns:
            A new PostCollection.
        """
        return PostCollection(
            sorted(self._posts, key=lambda p: p.published, reverse=reverse)
        )

    def latest(self, count: int = RECENT_LIMIT) -> PostCollection:
        return PostCollection(self._posts[: max(count, 0)])

    def tag_counts(self) -> list[Tag]:
        """Count tags case-insensitively.

        Returns:
            Tags sorted by count descending, then name ascending.
        """
        counts = Counter(tag.lower() for post in self._posts for tag in post.tags)
        return [
            Tag(name=name, count=count)
            for name, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"


class PostRepository:
    """Aggregate views over a directory of posts.

    Nothing is cached between calls: each view re-enumerates and reloads the
    directory, so results always reflect the files on disk.

    Attributes:
        source: PostSource used to enumerate and load posts.
        max_workers: Thread pool size for parallel loads; 1 loads sequentially.
    """

    def __init__(
        self,
        content_dir: Path | None = None,
        renderer: ContentRenderer | None = None,
        source: PostSource | None = None,
        max_workers: int | None = None,
    ):
        """Initialize the repository.

        Args:
            content_dir: Directory holding ``.mdx`` posts.
            renderer: Optional renderer passed to the default loader.
            source: Optional custom PostSource; replaces the default loader.
            max_workers: Optional thread pool size.
        """
        if source is None:
            if content_dir is None:
                raise ValueError("Either content_dir or source is required")
            source = PostLoader(content_dir, renderer=renderer)
        self.source = source
        self.max_workers = max_workers

    def _load_many(self, slugs: list[str]) -> list[Post | None]:
        if not slugs:
            return []
        if self.max_workers == 1:
            return [self._safe_load(slug) for slug in slugs]
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            return list(pool.map(self._safe_load, slugs))

    def _safe_load(self, slug: str) -> Post | None:
        try:
            return self.source.load(slug)
        except Exception:
            logger.exception("Error loading post %s", slug)
            return None

    def get_all_posts(self) -> PostCollection:
        """Return every valid, non-draft post, newest first.

        Posts sharing a date keep their enumeration order.
        """
        loaded = self._load_many(self.source.slugs())
        posts = PostCollection(p for p in loaded if p is not None)
        return posts.published().sorted()

    def get_post_by_slug(self, slug: str) -> Post | None:
        """Return one post by slug, drafts included; None if not found or invalid."""
        return self._safe_load(slug)

    def get_posts_by_tag(self, tag: str) -> PostCollection:
        return self.get_all_posts().with_tag(tag)

    def get_all_tags(self) -> list[Tag]:
        return self.get_all_posts().tag_counts()

    def get_featured_posts(self) -> PostCollection:
        return self.get_all_posts().featured()[:FEATURED_LIMIT]

    def get_recent_posts(self, limit: int = RECENT_LIMIT) -> PostCollection:
        return self.get_all_posts().latest(limit)
