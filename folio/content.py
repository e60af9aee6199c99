"""Content loading for Folio.

This module discovers post files in a content directory and turns each one
into a validated ``Post``.

Key classes:
- Post: Dataclass representing one loaded post.
- PostLoader: Lists candidate slugs and loads single posts from disk.

Loading a post is strict (``PostLoader.parse`` raises ``PostLoadError``) or
lenient (``PostLoader.load`` logs and returns None). Aggregate views only use
the lenient form so one bad file never hides the others.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .frontmatter import (
    Frontmatter,
    FrontmatterError,
    PostLoadError,
    load_frontmatter,
    split_frontmatter,
    validate_frontmatter,
)
from .protocols import ContentRenderer
from .renderers import default_renderer, render_html
from .utils import is_valid_slug, reading_time

logger = logging.getLogger(__name__)

POST_EXTENSION = ".mdx"

__all__ = [
    "FrontmatterError",
    "Post",
    "PostLoadError",
    "PostLoader",
    "PostNotFoundError",
]


class PostNotFoundError(PostLoadError):
    """No post file exists for the requested slug."""


@dataclass
class Post:
    """Represents a loaded, validated post.

    Attributes:
        slug: Identifier derived from the file name.
        frontmatter: Validated metadata.
        content: Trimmed markdown body.
        content_html: Rendered HTML of ``content``.
        reading_time: Estimate such as ``"3 min read"``.
    """

    slug: str
    frontmatter: Frontmatter
    content: str
    content_html: str
    reading_time: str

    @property
    def url(self) -> str:
        return f"/posts/{self.slug}/"

    @property
    def title(self) -> str:
        return self.frontmatter.title

    @property
    def description(self) -> str:
        return self.frontmatter.description

    @property
    def date(self) -> str:
        return self.frontmatter.date

    @property
    def published(self) -> datetime.date:
        return self.frontmatter.published

    @property
    def tags(self) -> list[str]:
        return self.frontmatter.tags

    @property
    def draft(self) -> bool:
        return self.frontmatter.draft

    @property
    def featured(self) -> bool:
        return self.frontmatter.featured


class PostLoader:
    """Loads posts from a directory of ``<slug>.mdx`` files.

    The directory is only ever read. Each ``load`` call touches exactly one
    file and no shared state, so loads may run concurrently.

    Attributes:
        content_dir: Directory holding post files.
        renderer: Markdown renderer used for ``content_html``.
    """

    def __init__(self, content_dir: Path, renderer: ContentRenderer | None = None):
        """Initialize the loader.

        Args:
            content_dir: Directory holding post files.
            renderer: Optional custom renderer; defaults to MarkdownRenderer.
        """
        self.content_dir = Path(content_dir)
        self.renderer = renderer or default_renderer

    def path_for(self, slug: str) -> Path:
        return self.content_dir / f"{slug}{POST_EXTENSION}"

    def slugs(self) -> list[str]:
        """List candidate slugs in directory enumeration order.

        A missing directory or an I/O failure yields an empty list; file
        names that are not valid slugs are skipped with a warning.

        Returns:
            Candidate slugs.
        """
        try:
            if not self.content_dir.exists():
                logger.warning("Posts directory not found: %s", self.content_dir)
                return []

            slugs: list[str] = []
            for path in self.content_dir.iterdir():
                if not path.name.endswith(POST_EXTENSION) or not path.is_file():
                    continue
                slug = path.name[: -len(POST_EXTENSION)]
                if not is_valid_slug(slug):
                    logger.warning("Skipping post with invalid slug: %s", slug)
                    continue
                slugs.append(slug)
            return slugs
        except OSError as exc:
            logger.error("Error reading posts directory %s: %s", self.content_dir, exc)
            return []

    def parse(self, slug: str) -> Post:
        """Load one post, raising on any problem.

        Args:
            slug: Post slug.

        Returns:
            The validated Post.

        Raises:
            PostNotFoundError: If the slug is empty, malformed or has no file.
            FrontmatterError: If required front matter fields are invalid.
            PostLoadError: For unreadable files, empty files, unparseable or
                non-mapping front matter, or an empty body.
        """
        if not slug or not is_valid_slug(slug):
            raise PostNotFoundError(slug, "Invalid slug provided")

        path = self.path_for(slug)
        if not path.is_file():
            raise PostNotFoundError(slug, f"Post file not found: {path}")

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise PostLoadError(slug, f"Could not read {path}: {exc}") from exc

        if not text.strip():
            raise PostLoadError(slug, "Empty post file")

        source, body = split_frontmatter(text)
        if source is None:
            raise PostLoadError(slug, "Missing front matter block")
        try:
            data = load_frontmatter(source)
        except yaml.YAMLError as exc:
            raise PostLoadError(slug, f"Invalid front matter YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise PostLoadError(slug, "Front matter is not a mapping")

        frontmatter = validate_frontmatter(data, slug)

        content = body.strip()
        if not content:
            raise PostLoadError(slug, "Post has no content")

        return Post(
            slug=slug,
            frontmatter=frontmatter,
            content=content,
            content_html=render_html(self.renderer, content, slug),
            reading_time=reading_time(content),
        )

    def load(self, slug: str) -> Post | None:
        """Load one post, returning None when it is missing or invalid.

        Args:
            slug: Post slug.

        Returns:
            The validated Post, or None. The reason is logged.
        """
        try:
            return self.parse(slug)
        except PostNotFoundError as exc:
            logger.warning("%s", exc)
        except PostLoadError as exc:
            logger.error("Error reading post %s", exc)
        return None
