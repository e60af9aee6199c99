"""Site building functionality for Folio.

This module loads the project configuration, reads posts through a
``PostRepository``, renders every page with the template engine and writes
the feeds.

Key functions:
- build_site: Build the entire site.
- load_config: Load site configuration from folio.yaml.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateError, TemplateSyntaxError

from .collections import FEATURED_LIMIT, PostRepository
from .content import Post
from .feeds import DEFAULT_SITE_URL, create_default_feed_registry
from .renderers import default_renderer, render_html
from .templates import TemplateEngine
from .utils import ensure_clean_dir, url_to_path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "folio.yaml"
SITE_URL_ENV = "FOLIO_SITE_URL"
HOME_RECENT_LIMIT = 6

DEFAULT_CONFIG: dict[str, Any] = {
    "content_dir": "content/posts",
    "about_file": "content/about.md",
    "theme_dir": "theme",
    "output_dir": "output",
    "port": 4000,
    "url": "",
    "title": "My Blog",
    "description": "Notes on development, learning and projects.",
    "author": "",
    "language": "en",
}


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file or template that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        posts: Published posts, newest first.
        pages: URLs of every page written.
        output_dir: Directory where the site was built.
        feeds: Feed file names written.
        drafts: Slugs of draft posts that got a detail page.
    """

    posts: list[Post]
    pages: list[str]
    output_dir: Path
    feeds: list[str] = field(default_factory=list)
    drafts: list[str] = field(default_factory=list)


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = project_root / CONFIG_FILENAME
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
        if isinstance(loaded, dict):
            config.update(loaded)
        else:
            logger.warning("Ignoring %s: expected a mapping", config_path)
    if not config.get("url"):
        config["url"] = os.environ.get(SITE_URL_ENV) or DEFAULT_SITE_URL
    return config


def create_repository(project_root: Path, config: dict[str, Any]) -> PostRepository:
    """Create the repository for the configured content directory."""
    return PostRepository(project_root / config["content_dir"])


def _write_page(output_dir: Path, url: str, rendered: str) -> bool:
    target_dir = url_to_path(output_dir, url)
    if target_dir is None:
        logger.warning("Skipping page with unsafe path: %s", url)
        return False
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / "index.html").write_text(rendered, encoding="utf-8")
    return True


def _render_about(project_root: Path, config: dict[str, Any]) -> str:
    about_path = project_root / config["about_file"]
    if not about_path.is_file():
        return ""
    text = about_path.read_text(encoding="utf-8").strip()
    if not text:
        return ""
    return render_html(default_renderer, text, about_path.name)


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
    repository: PostRepository | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to write detail pages for draft posts. Drafts
            never appear in listings or feeds.
        root_url: Optional base URL for links in templates.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Optional output directory instead of config output_dir.
        repository: Optional repository; defaults to the configured content_dir.

    Returns:
        BuildResult describing what was written.

    Raises:
        BuildError: If a template fails to render.
    """
    config = load_config(project_root)
    output_dir = output_dir_override or (project_root / config["output_dir"])
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    repository = repository or create_repository(project_root, config)
    engine = TemplateEngine(
        config, theme_dir=project_root / config["theme_dir"], root_url=root_url or ""
    )

    posts = repository.get_all_posts()
    tags = posts.tag_counts()
    logger.info("Loaded %d published posts and %d tags", len(posts), len(tags))

    pages: list[tuple[str, str, dict[str, Any]]] = [
        (
            "/",
            "home.html.jinja",
            {
                "featured": posts.featured()[:FEATURED_LIMIT],
                "recent": posts.latest(HOME_RECENT_LIMIT),
                "total": len(posts),
            },
        ),
        ("/posts/", "posts.html.jinja", {"posts": posts}),
        ("/tags/", "tags.html.jinja", {"tags": tags}),
        (
            "/about/",
            "about.html.jinja",
            {"about_html": _render_about(project_root, config)},
        ),
    ]
    pages.extend((post.url, "post.html.jinja", {"post": post}) for post in posts)
    pages.extend(
        (tag.url, "tag.html.jinja", {"tag": tag, "posts": posts.with_tag(tag.name)})
        for tag in tags
    )

    drafts: list[str] = []
    if include_drafts:
        published = {post.slug for post in posts}
        for slug in repository.source.slugs():
            if slug in published:
                continue
            post = repository.get_post_by_slug(slug)
            if post is not None and post.draft:
                drafts.append(slug)
                pages.append((post.url, "post.html.jinja", {"post": post}))

    written: list[str] = []
    for url, template_name, context in pages:
        rendered = _render(engine, template_name, context)
        if _write_page(output_dir, url, rendered):
            written.append(url)

    (output_dir / "404.html").write_text(
        _render(engine, "404.html.jinja", {}), encoding="utf-8"
    )

    feeds = create_default_feed_registry().generate_all(output_dir, repository, config)
    return BuildResult(
        posts=list(posts),
        pages=written,
        output_dir=output_dir,
        feeds=feeds,
        drafts=drafts,
    )


def _render(engine: TemplateEngine, template_name: str, context: dict[str, Any]) -> str:
    try:
        return engine.render(template_name, **context)
    except TemplateSyntaxError as exc:
        raise BuildError(
            Path(exc.filename or template_name),
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except TemplateError as exc:
        raise BuildError(Path(template_name), _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {exc}"
    return f"{error_type}: {exc}"
