import pytest

from inkwell.content import load_document
from inkwell.layouts import (
    DictLayoutResolver,
    FileLayoutResolver,
    LayoutNotFoundError,
    render_body,
    render_document,
    render_listing,
    render_toc,
)
from inkwell.markdown import Heading, MarkdownRenderer, generate_heading_id, pygments_css
from inkwell.protocols import LayoutResolver

RUBY_POST = "---\nlayout: post\ntitle: Ruby & Rails\ndate: 2013-01-05\ntags: ruby\n---\n`code`\n"


def test_inline_code_renders_code_element():
    doc = load_document(RUBY_POST)
    resolver = DictLayoutResolver({"post.html": "<main>{{ content }}</main>"})
    html = render_document(doc, resolver)
    assert "<code>code</code>" in html
    assert html.startswith("<main><p>")


def test_rendering_is_idempotent():
    doc = load_document(
        "---\ntitle: Twice\ndate: 2013-01-05\n---\n# Twice\n\n```ruby\nputs 1\n```\n"
    )
    resolver = DictLayoutResolver({})
    assert render_document(doc, resolver) == render_document(doc, resolver)


def test_missing_layout_raises():
    doc = load_document("---\nlayout: nope\ndate: 2013-01-05\n---\nBody\n")
    with pytest.raises(LayoutNotFoundError) as excinfo:
        render_document(doc, DictLayoutResolver({"post.html": "{{ content }}"}))
    assert excinfo.value.layout == "nope"
    assert "nope.html.jinja" in excinfo.value.searched
    assert "nope" in str(excinfo.value)


def test_builtin_default_layout_escapes_title():
    doc = load_document("---\ntitle: Ruby & Rails\ndate: 2013-01-05\n---\n*hi*\n")
    html = render_document(doc, DictLayoutResolver({}), site={"title": "Blog"})
    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Ruby &amp; Rails | Blog</title>" in html
    assert "<em>hi</em>" in html
    assert '<time datetime="2013-01-05T00:00:00">2013-01-05</time>' in html


def test_extensionless_layout_is_autoescaped(tmp_path):
    doc = load_document(RUBY_POST)
    resolver = DictLayoutResolver({"post": "<h1>{{ page.title }}</h1>{{ content }}"})
    assert render_document(doc, resolver) == "<h1>Ruby &amp; Rails</h1><p><code>code</code></p>\n"

    layouts = tmp_path / "_layouts"
    layouts.mkdir()
    (layouts / "post").write_text("{{ page.title }}", encoding="utf-8")
    assert render_document(doc, FileLayoutResolver(layouts)) == "Ruby &amp; Rails"


def test_provided_default_layout_wins_over_builtin():
    doc = load_document("---\ndate: 2013-01-05\n---\nBody\n")
    resolver = DictLayoutResolver({"default.jinja": "[{{ content }}]"})
    assert render_document(doc, resolver) == "[<p>Body</p>\n]"


def test_file_layout_resolver(tmp_path):
    layouts = tmp_path / "_layouts"
    layouts.mkdir()
    (layouts / "post.html.jinja").write_text(
        "<h1>{{ page.title }}</h1>{{ content }}{% for tag in page.tags %}#{{ tag }}{% endfor %}"
        "|{{ frontmatter.layout }}|{{ url }}|{{ url_for('feed.xml') }}",
        encoding="utf-8",
    )
    resolver = FileLayoutResolver(layouts)
    assert isinstance(resolver, LayoutResolver)
    assert resolver.exists("post")
    assert not resolver.exists("index")

    doc = load_document(RUBY_POST)
    html = render_document(
        doc, resolver, site={"url": "https://blog.example.com/"}, url="/2013/01/05/x/"
    )
    assert "<h1>Ruby &amp; Rails</h1>" in html
    assert "<code>code</code>" in html
    assert "#ruby" in html
    assert "|post|/2013/01/05/x/|https://blog.example.com/feed.xml" in html


def test_file_layout_resolver_without_directory(tmp_path):
    resolver = FileLayoutResolver(tmp_path / "missing")
    doc = load_document("---\ndate: 2013-01-05\n---\nBody\n")
    assert "<p>Body</p>" in render_document(doc, resolver)
    with pytest.raises(LayoutNotFoundError):
        resolver.resolve("post")


def test_markdown_commonmark_features():
    body = (
        "# Title\n\n"
        "Some *emphasis*, **strong** and a [link](https://example.com).\n\n"
        "- one\n- two\n\n"
        "1. first\n2. second\n\n"
        "```\na < b\n```\n\n"
        "```nolang\nx & y\n```\n"
    )
    html = MarkdownRenderer().render(body).html
    assert '<h1 id="title">Title</h1>' in html
    assert "<em>emphasis</em>" in html
    assert "<strong>strong</strong>" in html
    assert '<a href="https://example.com">link</a>' in html
    assert "<li>one</li>" in html
    assert "<ol>" in html
    assert "<pre><code>a &lt; b\n</code></pre>" in html
    assert '<pre><code class="language-nolang">x &amp; y\n</code></pre>' in html


def test_fenced_code_is_highlighted():
    html = MarkdownRenderer().render("```ruby\nputs 'hi'\n```\n").html
    assert '<div class="highlight">' in html
    assert "puts" in html
    assert ".highlight" in pygments_css()


def test_headings_get_unique_ids_and_toc():
    doc = load_document("---\ndate: 2013-01-05\n---\n# Intro\n\n## Setup\n\n## Setup\n")
    body = render_body(doc)
    assert [h.id for h in body.toc] == ["intro", "setup", "setup-1"]
    assert '<h2 id="setup-1">Setup</h2>' in body.html
    assert render_toc(body.toc) == (
        '<ul><li><a href="#intro">Intro</a>'
        '<ul><li><a href="#setup">Setup</a></li>'
        '<li><a href="#setup-1">Setup</a></li></ul></li></ul>'
    )
    assert render_toc([]) == ""


def test_toc_closes_deeper_levels():
    headings = [
        Heading(id="a", text="A", level=2),
        Heading(id="b", text="B", level=3),
        Heading(id="c", text="C", level=2),
    ]
    assert render_toc(headings) == (
        '<ul><li><a href="#a">A</a><ul><li><a href="#b">B</a></li></ul>'
        '</li><li><a href="#c">C</a></li></ul>'
    )


def test_generate_heading_id():
    assert generate_heading_id("Hello, World!") == "hello-world"
    assert generate_heading_id("Using <code>Gemfile</code>") == "using-gemfile"
    assert generate_heading_id("???") == "section"


def test_render_listing():
    first = load_document("---\ntitle: First\ndate: 2013-01-05\n---\n")
    second = load_document("---\ntitle: Second\ndate: 2013-02-05\n---\n")
    resolver = DictLayoutResolver(
        {"tag.html": "{{ tag }}:{% for doc, url in entries %}{{ doc.title }}@{{ url }};{% endfor %}"}
    )
    html = render_listing(
        "tag", resolver, [(second, "/b/"), (first, "/a/")], tag="ruby"
    )
    assert html == "ruby:Second@/b/;First@/a/;"
