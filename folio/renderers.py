"""Markdown rendering for Folio.

This module turns post bodies into HTML using mistune with the GitHub-flavoured
extensions posts rely on (tables, strikethrough, task lists, autolinks) plus
footnotes. Fenced code blocks are highlighted with Pygments when the language
is known.

Key classes and functions:
- MarkdownRenderer: Default ContentRenderer implementation.
- render_html: Render through any ContentRenderer with an escaped fallback.
"""

from __future__ import annotations

import logging
import re

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .protocols import ContentRenderer
from .utils import escape_html

logger = logging.getLogger(__name__)

GFM_PLUGINS = ["strikethrough", "table", "task_lists", "url", "footnotes"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly containing inline HTML.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _PostHTMLRenderer(mistune.HTMLRenderer):
    """HTML renderer adding heading anchors and syntax highlighting."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text) or "section"

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders post markdown to HTML with mistune.

    A fresh mistune parser is created per call so heading ids never leak
    between posts, which keeps concurrent loads independent.
    """

    def __init__(self, plugins: list[str] | None = None):
        self.plugins = list(plugins) if plugins is not None else list(GFM_PLUGINS)

    def render(self, markdown: str) -> str:
        """Render markdown to HTML.

        Args:
            markdown: Markdown source.

        Returns:
            Rendered HTML.
        """
        parser = mistune.create_markdown(
            renderer=_PostHTMLRenderer(), plugins=self.plugins
        )
        return parser(markdown)


def render_fallback(markdown: str) -> str:
    """Return the escaped error-state HTML used when rendering fails."""
    return f'<div class="markdown-error"><p>{escape_html(markdown)}</p></div>'


def render_html(renderer: ContentRenderer, markdown: str, slug: str = "") -> str:
    """Render markdown, degrading to escaped text if the renderer fails.

    Args:
        renderer: Renderer to use.
        markdown: Trimmed markdown body.
        slug: Post slug, used for the log message only.

    Returns:
        Rendered HTML, or the escaped fallback wrapped in a markdown-error div.
    """
    try:
        return renderer.render(markdown)
    except Exception as exc:
        logger.error("Error processing markdown for %s: %s", slug or "<unknown>", exc)
        return render_fallback(markdown)


def pygments_css() -> str:
    """Return Pygments CSS styles for the ``.highlight`` class."""
    return HtmlFormatter().get_style_defs(".highlight")


default_renderer = MarkdownRenderer()
