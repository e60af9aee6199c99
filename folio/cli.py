"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold a new Folio blog.
- post: Create a new post interactively.
- check: Validate every post and report problems.
- build: Build the site into the output directory.
- serve: Preview the site locally, rebuilding on change.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .build import CONFIG_FILENAME, DEFAULT_CONFIG, load_config
from .utils import is_valid_slug, slugify

SAMPLE_POST = """\
---
title: Hello, World
description: The first post on this blog.
date: "{today}"
tags: [meta]
featured: true
---

# Hello, World

Posts live in `{content_dir}` as `.mdx` files. Each one starts with a YAML
front matter block; `title`, `description` and `date` are required.

- [x] Create the blog
- [ ] Write the second post
"""

SAMPLE_ABOUT = """\
I write about software I build and things I learn along the way.
"""


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Folio markdown blog generator."""
    _configure_logging(verbose)


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Folio blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Folio blog created at {target}")


@cli.command()
def post():
    """Create a new post interactively."""
    project_root = Path.cwd()
    config = load_config(project_root)
    content_dir = project_root / config["content_dir"]

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()

    slug = questionary.text(
        "Slug:",
        default=slugify(title),
        validate=lambda x: is_valid_slug(x.strip())
        or "Use letters, digits, - and _ only",
        style=_questionary_style(),
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slug.strip()

    description = questionary.text(
        "Description:",
        validate=lambda x: len(x.strip()) > 0 or "Description cannot be empty",
        style=_questionary_style(),
    ).ask()
    if description is None:
        raise click.Abort()

    tags = questionary.text(
        "Tags (comma separated):", style=_questionary_style()
    ).ask()
    if tags is None:
        raise click.Abort()

    featured = questionary.confirm(
        "Feature this post?", default=False, style=_questionary_style()
    ).ask()
    if featured is None:
        raise click.Abort()

    if not is_valid_slug(slug):
        raise click.ClickException(f"Invalid slug: {slug!r}")

    target_path = content_dir / f"{slug}.mdx"
    if target_path.exists():
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {target_path.relative_to(project_root)}"
        )

    frontmatter = {
        "title": title.strip(),
        "description": description.strip(),
        "date": date.today().isoformat(),
        "tags": [t.strip() for t in tags.split(",") if t.strip()],
        "draft": True,
        "featured": bool(featured),
    }
    content_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(_render_post(frontmatter), encoding="utf-8")
    click.echo(f"Created {target_path.relative_to(project_root)} (draft)")


@cli.command()
def check():
    """Validate every post and report problems."""
    project_root = Path.cwd()
    from .content import PostLoader, PostLoadError
    from .frontmatter import FrontmatterError

    config = load_config(project_root)
    loader = PostLoader(project_root / config["content_dir"])
    slugs = loader.slugs()
    failures = 0
    drafts = 0
    for slug in slugs:
        try:
            post = loader.parse(slug)
        except FrontmatterError as exc:
            failures += 1
            click.echo(click.style(f"invalid: {slug}", fg="red", bold=True), err=True)
            for message in exc.errors:
                click.echo(f"    {message}", err=True)
        except PostLoadError as exc:
            failures += 1
            click.echo(click.style(f"invalid: {slug}", fg="red", bold=True), err=True)
            click.echo(f"    {exc.message}", err=True)
        else:
            drafts += post.draft
    valid = len(slugs) - failures
    click.echo(f"Checked {len(slugs)} posts: {valid} valid ({drafts} drafts), {failures} invalid")
    if failures:
        raise SystemExit(1)


@cli.command()
@click.option("--drafts", is_flag=True, help="Also write pages for draft posts")
def build(drafts: bool):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(project_root, include_drafts=drafts)
    except BuildError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {exc.source_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.pages)} pages from {len(result.posts)} posts "
        f"into {result.output_dir}"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Also write pages for draft posts")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the preview server (overrides folio.yaml)",
)
def serve(drafts: bool, port: int | None):
    """Preview the site locally, rebuilding on change."""
    project_root = Path.cwd()
    from .server import PreviewServer

    server = PreviewServer(project_root, http_port=port)
    server.start(include_drafts=drafts)


def _render_post(frontmatter: dict) -> str:
    header = yaml.safe_dump(frontmatter, allow_unicode=True, sort_keys=False)
    return f"---\n{header}---\n\n# {frontmatter['title']}\n\n"


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new Folio blog.

    Args:
        root: Root directory for the new project.
    """
    config = {
        "title": root.name.replace("-", " ").title(),
        "description": DEFAULT_CONFIG["description"],
        "author": "",
        "url": "",
        "content_dir": DEFAULT_CONFIG["content_dir"],
        "output_dir": DEFAULT_CONFIG["output_dir"],
        "port": DEFAULT_CONFIG["port"],
    }
    root.mkdir(parents=True, exist_ok=True)
    (root / CONFIG_FILENAME).write_text(
        yaml.safe_dump(config, sort_keys=False), encoding="utf-8"
    )
    content_dir = root / DEFAULT_CONFIG["content_dir"]
    content_dir.mkdir(parents=True, exist_ok=True)
    (content_dir / "hello-world.mdx").write_text(
        SAMPLE_POST.format(
            today=date.today().isoformat(), content_dir=DEFAULT_CONFIG["content_dir"]
        ),
        encoding="utf-8",
    )
    (root / DEFAULT_CONFIG["about_file"]).write_text(SAMPLE_ABOUT, encoding="utf-8")
