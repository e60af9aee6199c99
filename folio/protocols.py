"""Protocol definitions for Folio.

This module defines the interfaces used at the seams of the content pipeline,
so that tests and alternative implementations can be swapped in without
touching the loader or the aggregator.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Post


@runtime_checkable
class ContentRenderer(Protocol):
    """Protocol for turning a markdown body into HTML.

    Implementations may raise on malformed input; callers are expected to
    degrade to an escaped fallback rather than propagate the failure.
    """

    @abstractmethod
    def render(self, markdown: str) -> str:
        """Render markdown to HTML.

        Args:
            markdown: Trimmed markdown body of a post.

        Returns:
            Rendered HTML string.
        """
        ...


@runtime_checkable
class PostSource(Protocol):
    """Protocol for loading posts from a content store.

    This separates slug discovery and single-post loading from aggregation.
    """

    @abstractmethod
    def slugs(self) -> list[str]:
        """Return candidate slugs in enumeration order."""
        ...

    @abstractmethod
    def load(self, slug: str) -> Post | None:
        """Load one validated post, or None when it is missing or invalid."""
        ...
