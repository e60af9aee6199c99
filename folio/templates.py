"""Template rendering engine for Folio.

This module uses Jinja2 to render the site's pages from the bundled theme,
optionally overridden by templates in the project's own ``theme/`` folder.

Key class:
- TemplateEngine: Loads templates and provides filters and globals to them.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .renderers import pygments_css
from .utils import join_root_url, parse_post_date, tag_slug

THEME_DIR = Path(__file__).parent / "theme"


def format_date(value: str) -> str:
    """Format a ``YYYY-MM-DD`` string as ``January 15, 2024``.

    Unparseable values are returned unchanged.
    """
    parsed = parse_post_date(value)
    if parsed is None:
        return value
    return f"{parsed.strftime('%B')} {parsed.day}, {parsed.year}"


def tag_url(tag: str) -> str:
    return f"/tags/{tag_slug(tag)}/"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        data: Site settings exposed to templates as ``site``.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        data: dict[str, Any],
        theme_dir: Path | None = None,
        root_url: str = "",
    ):
        """Initialize the template engine.

        Args:
            data: Site settings (title, description, author, url, ...).
            theme_dir: Optional folder whose templates override the bundled ones.
            root_url: Optional base URL prepended by ``url_for``.
        """
        self.data = data
        self.root_url = root_url
        search_path = [THEME_DIR]
        if theme_dir is not None and theme_dir.exists():
            search_path.insert(0, theme_dir)
        self.env = Environment(
            loader=FileSystemLoader(search_path),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self.env.filters["format_date"] = format_date
        self.env.filters["tag_url"] = tag_url
        self.env.globals["site"] = self.data
        self.env.globals["url_for"] = self._url_for
        self.env.globals["absolute_url"] = self._absolute_url
        self.env.globals["pygments_css"] = lambda: Markup(pygments_css())
        self.env.globals["now"] = datetime.now

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(self.root_url, path if path.startswith("/") else f"/{path}")

    def _absolute_url(self, path: str) -> str:
        """Return ``path`` on the public site URL, for canonical and share links."""
        return join_root_url(str(self.data.get("url") or ""), path)

    def render(self, template_name: str, **context: Any) -> str:
        """Render a named template.

        Args:
            template_name: Template file name, such as ``post.html.jinja``.
            **context: Variables to make available in the template.

        Returns:
            Rendered HTML string.
        """
        return self.env.get_template(template_name).render(**context)

