"""Front matter parsing and validation for Folio posts.

A post file starts with a YAML block between ``---`` markers followed by the
markdown body. This module splits the two, parses the YAML and validates it
into a normalized ``Frontmatter`` value.

Validation is asymmetric: ``title``, ``description`` and
``date`` are required and every problem with them is collected into one
``FrontmatterError``; ``tags`` and the optional fields only ever degrade to
defaults.
"""

from __future__ import annotations

import datetime
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

from .utils import DATE_RE, parse_post_date

logger = logging.getLogger(__name__)

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)


class _FrontmatterLoader(yaml.SafeLoader):
    """SafeLoader that keeps ``2024-01-15`` style scalars as strings."""


_FrontmatterLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class PostLoadError(Exception):
    """A post file could not be turned into a Post.

    Attributes:
        slug: Slug of the offending post.
        message: Human-readable reason.
    """

    def __init__(self, slug: str, message: str):
        self.slug = slug
        self.message = message
        super().__init__(f"{slug}: {message}")


class FrontmatterError(PostLoadError):
    """Required front matter fields are missing or invalid.

    Attributes:
        errors: One message per violated rule.
        fields: Names of the violated fields, in check order.
    """

    def __init__(self, slug: str, errors: list[str], fields: list[str]):
        self.errors = list(errors)
        self.fields = list(fields)
        super().__init__(
            slug, "Frontmatter validation failed:\n" + "\n".join(self.errors)
        )


@dataclass
class Frontmatter:
    """Validated metadata of a post.

    Attributes:
        title: Trimmed title.
        description: Trimmed description.
        date: Publication date as ``YYYY-MM-DD``.
        tags: Non-blank tag strings in source order.
        author: Trimmed author, or None.
        draft: Excluded from listings when True.
        featured: Eligible for the featured list when True.
    """

    title: str
    description: str
    date: str
    tags: list[str] = field(default_factory=list)
    author: str | None = None
    draft: bool = False
    featured: bool = False

    @property
    def published(self) -> datetime.date:
        parsed = parse_post_date(self.date)
        if parsed is None:
            raise ValueError(f"Invalid post date: {self.date!r}")
        return parsed


def split_frontmatter(text: str) -> tuple[str | None, str]:
    """Split raw file text into the YAML block and the body.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (YAML source or None when there is no block, body).
    """
    text = text.lstrip("\ufeff")
    match = FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    return match.group(1), text[match.end() :]


def load_frontmatter(source: str) -> Any:
    """Parse a YAML front matter block.

    Date-like scalars are left as strings. An empty block yields ``{}``.

    Raises:
        yaml.YAMLError: If the block is not valid YAML.
    """
    data = yaml.load(source, Loader=_FrontmatterLoader)  # noqa: S506 - SafeLoader subclass
    return {} if data is None else data


def normalize_tags(value: Any, slug: str = "") -> list[str]:
    """Normalize the ``tags`` field to a list of non-blank strings.

    Missing or non-list values become ``[]`` with a warning; invalid entries
    in a list are dropped silently.
    """
    if not isinstance(value, list):
        logger.warning("Missing or invalid tags in %s, using empty array", slug)
        return []
    return [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]


def _is_text(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_frontmatter(data: Mapping[str, Any], slug: str) -> Frontmatter:
    """Validate and normalize parsed front matter.

    Args:
        data: Parsed YAML mapping.
        slug: Post slug, used in error messages.

    Returns:
        Normalized Frontmatter.

    Raises:
        FrontmatterError: If any required field is missing or invalid. All
            violations are reported together.
    """
    errors: list[str] = []
    fields: list[str] = []

    if not _is_text(data.get("title")):
        errors.append(f"Missing or invalid title in {slug}")
        fields.append("title")

    if not _is_text(data.get("description")):
        errors.append(f"Missing or invalid description in {slug}")
        fields.append("description")

    raw_date = data.get("date")
    if not _is_text(raw_date):
        errors.append(f"Missing or invalid date in {slug}")
        fields.append("date")
    elif not DATE_RE.match(raw_date):
        errors.append(f"Invalid date format in {slug}. Expected YYYY-MM-DD format")
        fields.append("date")
    elif parse_post_date(raw_date) is None:
        errors.append(f"Invalid date value in {slug}")
        fields.append("date")

    tags = normalize_tags(data.get("tags"), slug)

    if errors:
        raise FrontmatterError(slug, errors, fields)

    author = data.get("author")
    return Frontmatter(
        title=data["title"].strip(),
        description=data["description"].strip(),
        date=raw_date,
        tags=tags,
        author=author.strip() if _is_text(author) else None,
        draft=data.get("draft") is True,
        featured=data.get("featured") is True,
    )
