from folio.templates import TemplateEngine, format_date, tag_url


def engine_with(tmp_path, source, data=None, **kwargs):
    theme = tmp_path / "theme"
    theme.mkdir(exist_ok=True)
    (theme / "snippet.html.jinja").write_text(source, encoding="utf-8")
    return TemplateEngine(data or {}, theme_dir=theme, **kwargs)


def test_format_date():
    assert format_date("2024-01-15") == "January 15, 2024"
    assert format_date("2024-12-01") == "December 1, 2024"
    assert format_date("soon") == "soon"


def test_tag_url():
    assert tag_url("Python") == "/tags/python/"
    assert tag_url("Machine Learning") == "/tags/machine%20learning/"
    assert tag_url("C++") != tag_url("c")


def test_engine_exposes_site_and_helpers(tmp_path):
    engine = engine_with(
        tmp_path,
        "{{ site.title }}|{{ url_for('posts/') }}|{{ 'Go' | tag_url }}|{{ '2024-02-03' | format_date }}",
        {"title": "Notes"},
        root_url="https://cdn.example/",
    )
    assert engine.render("snippet.html.jinja") == (
        "Notes|https://cdn.example/posts/|/tags/go/|February 3, 2024"
    )


def test_url_for_leaves_absolute_urls_alone(tmp_path):
    engine = engine_with(tmp_path, "{{ url_for(target) }}")
    assert engine.render("snippet.html.jinja", target="https://x.dev/a") == "https://x.dev/a"
    assert engine.render("snippet.html.jinja", target="/about/") == "/about/"


def test_autoescape(tmp_path):
    engine = engine_with(tmp_path, "{{ value }}")
    assert engine.render("snippet.html.jinja", value="<b>") == "&lt;b&gt;"


def test_project_theme_overrides_bundled(tmp_path):
    theme = tmp_path / "theme"
    theme.mkdir()
    (theme / "404.html.jinja").write_text("custom {{ site.title }}", encoding="utf-8")

    engine = TemplateEngine({"title": "Mine"}, theme_dir=theme)
    assert engine.render("404.html.jinja") == "custom Mine"
    assert "<h1>Tags</h1>" in engine.render("tags.html.jinja", tags=[])


def test_missing_theme_dir_uses_bundled(tmp_path):
    engine = TemplateEngine({"title": "Blog"}, theme_dir=tmp_path / "nope")
    assert "Post not found" in engine.render("404.html.jinja")
