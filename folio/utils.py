"""Utility functions for Folio.

This module contains small helpers shared across the package: slug checks,
date parsing, reading time estimation, HTML escaping and path handling.

Key functions:
    is_valid_slug: Check a candidate slug against the allowed character set.
    slugify: Turn a post title into a file-name slug.
    tag_slug: URL segment for a tag page.
    url_to_path: Output directory for a site URL.
    parse_post_date: Parse a ``YYYY-MM-DD`` string into a date.
    reading_time: Estimate reading time for a markdown body.
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import math
import re
import shutil
from datetime import date, datetime
from pathlib import Path
from urllib.parse import quote, unquote

SLUG_RE = re.compile(r"^[a-zA-Z0-9_-]+$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Latin-ish words plus single CJK ideographs / kana / hangul, each counted once
WORD_RE = re.compile(
    r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]"
    r"|[^\s\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]+"
)

WORDS_PER_MINUTE = 200


def is_valid_slug(slug: str) -> bool:
    """Return True when ``slug`` only holds letters, digits, ``-`` and ``_``."""
    return bool(slug) and SLUG_RE.match(slug) is not None


def slugify(title: str) -> str:
    """Convert a post title to a slug usable as a file name.

    Args:
        title: Human-readable title.

    Returns:
        Lower-case slug with hyphens, or an empty string when nothing is left.

    Examples:
        >>> slugify("Hello, World!")
        'hello-world'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", title)
    return cleaned.strip("-").lower()


def tag_slug(tag: str) -> str:
    """Return the URL segment for a tag page.

    The lower-cased tag is percent-encoded as a whole, so every distinct tag
    gets a distinct segment.

    Examples:
        >>> tag_slug("Machine Learning")
        'machine%20learning'

        >>> tag_slug("C++")
        'c%2B%2B'
    """
    return quote(tag.lower(), safe="")


def url_to_path(root: Path, url: str) -> Path | None:
    """Map a site URL to the directory its index.html is written to.

    Percent-encoded segments are decoded the way an HTTP server decodes the
    request path.

    Args:
        root: Output directory.
        url: Site-relative URL such as ``/tags/c%2B%2B/``.

    Returns:
        Directory inside ``root``, or None if a segment would leave it.
    """
    parts = unquote(url).strip("/").split("/")
    if any(part in (".", "..") for part in parts):
        return None
    return root.joinpath(*[part for part in parts if part])


def parse_post_date(value: str) -> date | None:
    """Parse a ``YYYY-MM-DD`` string into a calendar date.

    Args:
        value: Date string from front matter.

    Returns:
        date object, or None if the pattern or the calendar date is invalid.

    Examples:
        >>> parse_post_date("2024-02-29")
        datetime.date(2024, 2, 29)

        >>> parse_post_date("2024-13-40") is None
        True
    """
    if not DATE_RE.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def count_words(text: str) -> int:
    """Count words in text, treating each CJK character as a word."""
    return len(WORD_RE.findall(text))


def reading_time(text: str, words_per_minute: int = WORDS_PER_MINUTE) -> str:
    """Estimate the reading time of a markdown body.

    Args:
        text: Markdown body.
        words_per_minute: Assumed reading speed.

    Returns:
        Human-readable estimate such as ``"3 min read"``.
    """
    words = count_words(text)
    if not words:
        return "0 min read"
    minutes = math.ceil(round(words / words_per_minute, 2))
    return f"{max(minutes, 1)} min read"


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Examples:
        >>> escape_html('<b>"Tom" & Jerry</b>')
        '&lt;b&gt;&quot;Tom&quot; &amp; Jerry&lt;/b&gt;'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)
