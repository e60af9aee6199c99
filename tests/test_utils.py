from datetime import date

from folio import utils


def test_slug_helpers():
    assert utils.is_valid_slug("hello-world_2")
    assert not utils.is_valid_slug("")
    assert not utils.is_valid_slug("hello world")
    assert not utils.is_valid_slug("../up")
    assert utils.slugify("Hello, World!") == "hello-world"
    assert utils.slugify("!!!") == ""
    assert utils.tag_slug("Machine Learning") == "machine%20learning"
    assert utils.tag_slug("C++") == "c%2B%2B"
    assert utils.tag_slug("ci/cd") == "ci%2Fcd"
    assert utils.tag_slug("파이썬") == "%ED%8C%8C%EC%9D%B4%EC%8D%AC"


def test_parse_post_date():
    assert utils.parse_post_date("2024-02-29") == date(2024, 2, 29)
    assert utils.parse_post_date("2023-02-29") is None
    assert utils.parse_post_date("2024-13-40") is None
    assert utils.parse_post_date("2024-1-5") is None


def test_reading_time():
    assert utils.reading_time("") == "0 min read"
    assert utils.reading_time("one") == "1 min read"
    assert utils.reading_time("word " * 200) == "1 min read"
    assert utils.reading_time("word " * 250) == "2 min read"
    assert utils.reading_time("word " * 600) == "3 min read"


def test_count_words_treats_cjk_characters_as_words():
    assert utils.count_words("hello \u4e16\u754c") == 3
    assert utils.count_words("  spaced   out  ") == 2


def test_escape_and_urls(tmp_path):
    assert utils.escape_html('<a href="x">&</a>') == "&lt;a href=&quot;x&quot;&gt;&amp;&lt;/a&gt;"
    assert utils.join_root_url("https://example.com/", "about") == "https://example.com/about"
    assert utils.join_root_url("", "/about") == "/about"

    target = tmp_path / "build"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "old.txt").write_text("old", encoding="utf-8")
    utils.ensure_clean_dir(target)
    assert list(target.iterdir()) == []


def test_url_to_path_decodes_segments(tmp_path):
    assert utils.url_to_path(tmp_path, "/") == tmp_path
    assert utils.url_to_path(tmp_path, "/tags/c%2B%2B/") == tmp_path / "tags" / "c++"
    assert utils.url_to_path(tmp_path, "/tags/ci%2Fcd/") == tmp_path / "tags" / "ci" / "cd"
    assert utils.url_to_path(tmp_path, "/tags/%2E%2E/") is None
