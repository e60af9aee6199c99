"""Folio markdown blog generator.

This package loads ``.mdx`` posts (YAML front matter plus a markdown body)
from a content directory, validates and renders them, derives listing views
(all posts, posts by tag, featured posts, tag counts) and writes a static
site with a sitemap, robots.txt and an RSS feed.

The main entry point is the CLI module, which provides commands for
scaffolding a blog, creating posts, checking content and building or
previewing the site.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
