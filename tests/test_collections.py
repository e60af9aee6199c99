import logging

import pytest

from folio.collections import PostCollection, PostRepository, Tag
from folio.content import Post
from folio.frontmatter import Frontmatter


def make_post(slug, date="2024-01-01", tags=None, draft=False, featured=False):
    return Post(
        slug=slug,
        frontmatter=Frontmatter(
            title=slug.title(),
            description=f"About {slug}",
            date=date,
            tags=list(tags or []),
            draft=draft,
            featured=featured,
        ),
        content="body",
        content_html="<p>body</p>",
        reading_time="1 min read",
    )


class FakeSource:
    """In-memory PostSource; ``None`` marks an invalid post."""

    def __init__(self, posts, failing=()):
        self.posts = posts
        self.failing = set(failing)
        self.loads = []

    def slugs(self):
        return list(self.posts)

    def load(self, slug):
        self.loads.append(slug)
        if slug in self.failing:
            raise RuntimeError(f"cannot load {slug}")
        return self.posts.get(slug)


@pytest.fixture
def source():
    return FakeSource(
        {
            "old": make_post("old", "2023-05-01", tags=["Python"]),
            "newest": make_post("newest", "2024-06-01", tags=["python", "Rust"], featured=True),
            "mid-a": make_post("mid-a", "2024-03-01", tags=["rust"], featured=True),
            "mid-b": make_post("mid-b", "2024-03-01", tags=["go"], featured=True),
            "draft": make_post("draft", "2025-01-01", tags=["secret"], draft=True, featured=True),
            "broken": None,
            "older": make_post("older", "2022-01-01", featured=True),
        }
    )


@pytest.fixture(params=[1, None], ids=["sequential", "threaded"])
def repository(request, source):
    return PostRepository(source=source, max_workers=request.param)


def slugs_of(posts):
    return [post.slug for post in posts]


def test_all_posts_sorted_newest_first_and_stable(repository):
    posts = repository.get_all_posts()
    assert slugs_of(posts) == ["newest", "mid-a", "mid-b", "old", "older"]
    dates = [p.published for p in posts]
    assert dates == sorted(dates, reverse=True)


def test_drafts_and_invalid_posts_are_excluded(repository):
    slugs = slugs_of(repository.get_all_posts())
    assert "draft" not in slugs
    assert "broken" not in slugs


def test_post_by_slug_includes_drafts(repository):
    assert repository.get_post_by_slug("draft").draft is True
    assert repository.get_post_by_slug("broken") is None
    assert repository.get_post_by_slug("missing") is None


def test_posts_by_tag_is_case_insensitive(repository):
    assert slugs_of(repository.get_posts_by_tag("RUST")) == ["newest", "mid-a"]
    assert slugs_of(repository.get_posts_by_tag("python")) == ["newest", "old"]
    assert repository.get_posts_by_tag("secret") == []


def test_tags_are_counted_case_insensitively(repository):
    tags = repository.get_all_tags()
    assert tags == [Tag("python", 2), Tag("rust", 2), Tag("go", 1)]
    assert sum(t.count for t in tags) == sum(len(p.tags) for p in repository.get_all_posts())
    assert tags[1].url == "/tags/rust/"


def test_featured_posts_are_capped(repository):
    featured = repository.get_featured_posts()
    assert slugs_of(featured) == ["newest", "mid-a", "mid-b"]
    assert all(p.featured and not p.draft for p in featured)


def test_recent_posts_is_a_prefix(repository):
    everything = repository.get_all_posts()
    assert repository.get_recent_posts() == everything[:5]
    assert slugs_of(repository.get_recent_posts(2)) == ["newest", "mid-a"]
    assert repository.get_recent_posts(0) == []


def test_load_exception_skips_only_that_post(caplog):
    source = FakeSource(
        {"good": make_post("good"), "bad": make_post("bad")}, failing={"bad"}
    )
    with caplog.at_level(logging.ERROR):
        posts = PostRepository(source=source).get_all_posts()
    assert slugs_of(posts) == ["good"]
    assert "Error loading post bad" in caplog.text


def test_no_caching_between_calls(source):
    repository = PostRepository(source=source, max_workers=1)
    repository.get_all_posts()
    source.posts["fresh"] = make_post("fresh", "2030-01-01")
    assert slugs_of(repository.get_recent_posts(1)) == ["fresh"]


def test_repository_requires_a_source():
    with pytest.raises(ValueError):
        PostRepository()


def test_repository_reads_from_disk(tmp_path):
    (tmp_path / "hello.mdx").write_text(
        '---\ntitle: Hello\ndescription: D\ndate: "2024-01-15"\ntags: [a]\n---\nHi there.\n',
        encoding="utf-8",
    )
    (tmp_path / "broken.mdx").write_text("no front matter", encoding="utf-8")
    repository = PostRepository(tmp_path)
    assert slugs_of(repository.get_all_posts()) == ["hello"]
    assert repository.get_all_tags() == [Tag("a", 1)]


def test_empty_directory_views(tmp_path):
    repository = PostRepository(tmp_path / "missing")
    assert repository.get_all_posts() == []
    assert repository.get_all_tags() == []
    assert repository.get_featured_posts() == []
    assert repository.get_recent_posts() == []


def test_post_collection_helpers():
    posts = PostCollection(
        [
            make_post("a", "2024-01-01", draft=True),
            make_post("b", "2024-02-01", featured=True),
            make_post("c", "2024-01-01"),
        ]
    )
    assert slugs_of(posts.drafts()) == ["a"]
    assert slugs_of(posts.published()) == ["b", "c"]
    assert slugs_of(posts.featured()) == ["b"]
    assert slugs_of(posts.sorted()) == ["b", "a", "c"]
    assert slugs_of(posts.sorted(reverse=False)) == ["a", "c", "b"]
    assert isinstance(posts[:2], PostCollection)
    assert posts[0].slug == "a"
    assert len(posts.latest(10)) == 3


def test_tag_counts_merge_case_variants():
    source = FakeSource(
        {
            "a": make_post("a", "2024-01-02", tags=["Go", "go"]),
            "b": make_post("b", "2024-01-01", tags=["Rust"]),
        }
    )
    assert PostRepository(source=source).get_all_tags() == [Tag("go", 2), Tag("rust", 1)]


def test_repeated_calls_are_identical(repository):
    first = slugs_of(repository.get_all_posts())
    assert slugs_of(repository.get_all_posts()) == first
    assert repository.get_all_tags() == repository.get_all_tags()
