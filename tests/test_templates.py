from pathlib import Path

import pytest
from jinja2 import TemplateNotFound, TemplateSyntaxError

from quire.content import Page
from quire.errors import BuildError, LayoutNotFoundError
from quire.partials import PartialRegistry
from quire.protocols import MarkupRenderer, TemplateRenderer
from quire.renderers import MarkdownRenderer, _generate_heading_id
from quire.templates import (
    ContextBuilder,
    LayoutResolver,
    TemplateEngine,
    output_path,
)


def make_engine(
    templates: Path,
    pages: list[Page],
    config: dict | None = None,
    partials: PartialRegistry | None = None,
) -> TemplateEngine:
    return TemplateEngine(
        templates,
        partials or PartialRegistry(),
        ContextBuilder(config or {"title": "My Site"}, pages),
    )


def test_page_content_is_rendered_as_template(tmp_path):
    page = Page(
        title="About",
        permalink="about",
        content="{{ page.title }} on {{ site.title }} by {{ page.author }}",
        extra={"author": "Ada"},
    )
    engine = make_engine(tmp_path, [page])
    assert engine.render_page(page) == "About on My Site by Ada"


def test_missing_fields_render_empty(tmp_path):
    page = Page(title="T", permalink="t", content="[{{ page.nope }}][{{ site.nope }}]")
    assert make_engine(tmp_path, [page]).render_page(page) == "[][]"


def test_pages_can_enumerate_the_site(tmp_path):
    home = Page(
        title="Home",
        permalink="/",
        content="{% for p in site.pages %}<a href='/{{ p.permalink }}/'>{{ p.title }}</a>{% endfor %}",
    )
    about = Page(title="About", permalink="about", content="")
    engine = make_engine(tmp_path, [home, about])
    assert engine.render_page(home) == (
        "<a href='///'>Home</a><a href='/about/'>About</a>"
    )


def test_markdown_gating(tmp_path):
    plain = Page(title="Plain", permalink="plain", content="**bold**")
    marked = Page(title="Marked", permalink="marked", content="**bold**", markdown=True)
    engine = make_engine(tmp_path, [plain, marked])

    assert engine.render_page(plain) == "**bold**"
    html = engine.render_page(marked)
    assert "<strong>bold</strong>" in html
    assert "**" not in html


def test_markdown_runs_after_template_evaluation(tmp_path):
    page = Page(
        title="Doc",
        permalink="doc",
        content="# {{ page.title }}\n\n{{ page.body_text }}",
        markdown=True,
        extra={"body_text": "*emphasis*"},
    )
    html = make_engine(tmp_path, [page]).render_page(page)
    assert '<h1 id="doc">Doc</h1>' in html
    assert "<em>emphasis</em>" in html


def test_layout_wraps_rendered_content(tmp_path):
    (tmp_path / "base.hbs").write_text("unused", encoding="utf-8")
    (tmp_path / "base.jinja").write_text("<body>{{content}}</body>", encoding="utf-8")
    page = Page(title="Hi", permalink="hi", content="{{ page.title | lower }}", layout="base")
    assert make_engine(tmp_path, [page]).render_page(page) == "<body>hi</body>"


def test_layout_sees_page_and_site_and_raw_content(tmp_path):
    (tmp_path / "main.html.jinja").write_text(
        "<title>{{ page.title }} | {{ site.title }}</title>{{ content }}|{{ page.content }}\n",
        encoding="utf-8",
    )
    page = Page(
        title="Post",
        permalink="post",
        content="Hello *there*",
        layout="main",
        markdown=True,
    )
    out = make_engine(tmp_path, [page]).render_page(page)
    assert out == (
        "<title>Post | My Site</title><p>Hello <em>there</em></p>\n|Hello *there*\n"
    )


def test_layout_lookup_order_and_missing_layout(tmp_path):
    (tmp_path / "base.html").write_text("html", encoding="utf-8")
    (tmp_path / "base.jinja").write_text("jinja", encoding="utf-8")
    (tmp_path / "plain").write_text("bare", encoding="utf-8")
    resolver = LayoutResolver(tmp_path)
    assert resolver.resolve("base").name == "base.jinja"
    assert resolver.resolve("plain").name == "plain"

    with pytest.raises(LayoutNotFoundError) as excinfo:
        resolver.resolve("missing")
    assert excinfo.value.name == "missing"
    assert [p.name for p in excinfo.value.searched] == [
        "missing.html.jinja",
        "missing.jinja",
        "missing.html",
        "missing",
    ]


def test_layouts_are_cached_per_engine(tmp_path):
    layout = tmp_path / "base.jinja"
    layout.write_text("v1 {{ content }}", encoding="utf-8")
    page = Page(title="P", permalink="p", content="x", layout="base")
    engine = make_engine(tmp_path, [page])

    assert engine.render_page(page) == "v1 x"
    layout.write_text("v2 {{ content }}", encoding="utf-8")
    assert engine.get_layout("base") is engine.get_layout("base")
    assert engine.render_page(page) == "v1 x"
    assert make_engine(tmp_path, [page]).render_page(page) == "v2 x"


def test_partials_are_available_by_name(tmp_path):
    partials_dir = tmp_path / "partials"
    (partials_dir / "nav").mkdir(parents=True)
    (partials_dir / "header.hbs.html").write_text("oops", encoding="utf-8")
    (partials_dir / "header.jinja").write_text("<h1>{{ site.title }}</h1>", encoding="utf-8")
    (partials_dir / "nav" / "main.html.jinja").write_text(
        "{% for p in site.pages %}[{{ p.title }}]{% endfor %}", encoding="utf-8"
    )
    registry = PartialRegistry()
    assert registry.load(partials_dir) == 3
    assert registry.names() == ["header", "header.hbs", "nav/main"]

    page = Page(
        title="Home",
        permalink="home",
        content='{% include "header" %}{% include "nav/main" %}',
    )
    engine = make_engine(tmp_path, [page], partials=registry)
    assert engine.render_page(page) == "<h1>My Site</h1>[Home]"


def test_partial_registry_missing_dir_is_noop(tmp_path):
    registry = PartialRegistry()
    assert registry.load(tmp_path / "nope") == 0
    assert len(registry) == 0
    registry.register("late", "added later")
    assert "late" in registry
    assert registry.get("late") == "added later"
    assert registry.loader().get_source(None, "late")[0] == "added later"


def test_partial_registry_unreadable_file(tmp_path):
    (tmp_path / "bad.jinja").write_bytes(b"\xff\xfe\x81")
    with pytest.raises(BuildError) as excinfo:
        PartialRegistry().load(tmp_path)
    assert excinfo.value.phase == "read"


def test_unregistered_partial_raises(tmp_path):
    page = Page(title="P", permalink="p", content='{% include "nope" %}')
    with pytest.raises(TemplateNotFound):
        make_engine(tmp_path, [page]).render_page(page)


def test_template_syntax_error_raises(tmp_path):
    page = Page(title="P", permalink="p", content="{% if %}")
    with pytest.raises(TemplateSyntaxError):
        make_engine(tmp_path, [page]).render_page(page)


def test_context_builder_shares_site_with_page_list():
    pages = [Page(title="A", permalink="a", content="")]
    builder = ContextBuilder({"title": "S"}, pages)
    ctx = builder.page_context(pages[0])
    assert ctx["site"]["title"] == "S"
    assert ctx["site"]["pages"] == tuple(pages)
    assert ctx["page"] is pages[0]
    assert builder.layout_context(pages[0], "body")["site"] is ctx["site"]
    assert builder.layout_context(pages[0], "body")["content"] == "body"


def test_output_path_convention(tmp_path):
    def page(permalink):
        return Page(title="t", permalink=permalink, content="")

    assert output_path(tmp_path, page("about")) == tmp_path / "about" / "index.html"
    assert output_path(tmp_path, page("/docs/intro/")) == (
        tmp_path / "docs" / "intro" / "index.html"
    )
    assert output_path(tmp_path, page("/")) == tmp_path / "index.html"


def test_markdown_renderer_headings_and_code():
    renderer = MarkdownRenderer()
    html = renderer.render("# Hi\n\n# Hi\n\n```python\nprint(1)\n```\n\n```nosuchlang\na < b\n```\n")
    assert '<h1 id="hi">Hi</h1>' in html
    assert '<h1 id="hi-1">Hi</h1>' in html
    assert 'class="highlight"' in html
    assert '<pre><code class="language-nosuchlang">a &lt; b' in html

    assert "<div>raw</div>" in renderer.render("<div>raw</div>\n")
    assert _generate_heading_id("Hello, World!") == "hello-world"


def test_components_satisfy_protocols(tmp_path):
    assert isinstance(MarkdownRenderer(), MarkupRenderer)
    assert isinstance(make_engine(tmp_path, []), TemplateRenderer)


def test_config_key_named_pages_replaces_page_list(tmp_path):
    page = Page(title="A", permalink="a", content="{{ site.pages }}")
    builder = ContextBuilder({"title": "S", "pages": "clobbered"}, [page])
    assert builder.site["pages"] == "clobbered"
    engine = make_engine(tmp_path, [page], {"pages": "mine"})
    assert engine.render_page(page) == "mine"


def test_metadata_keys_shadow_page_members(tmp_path):
    fields = "{{ page.extra }}|{{ page.source_path }}|{{ page.get }}|{{ page.as_dict }}"
    page = Page(
        title="T",
        permalink="t",
        content=fields,
        extra={"extra": "mine", "source_path": "mine2", "get": "g", "as_dict": "d"},
    )
    listing = Page(
        title="L",
        permalink="l",
        content="{% for p in site.pages %}" + fields.replace("page.", "p.") + "{% endfor %}",
    )
    engine = make_engine(tmp_path, [page, listing])
    assert engine.render_page(page) == "mine|mine2|g|d"
    assert engine.render_page(listing) == "mine|mine2|g|d|||"


def test_page_members_are_not_template_fields(tmp_path):
    page = Page(
        title="T",
        permalink="t",
        content="[{{ page.source_path }}][{{ page.extra }}]",
        source_path=tmp_path / "t.md",
    )
    assert make_engine(tmp_path, [page]).render_page(page) == "[][]"


def test_templates_dir_is_not_an_include_source(tmp_path):
    (tmp_path / "base.jinja").write_text("layout body", encoding="utf-8")
    page = Page(title="P", permalink="p", content='{% include "base.jinja" %}')
    with pytest.raises(TemplateNotFound):
        make_engine(tmp_path, [page]).render_page(page)


def test_partial_registry_unlistable_dir(tmp_path, monkeypatch):
    def deny(root):
        raise PermissionError(13, "Permission denied", str(root / "sub"))

    monkeypatch.setattr("quire.partials.iter_files", deny)
    with pytest.raises(BuildError) as excinfo:
        PartialRegistry().load(tmp_path)
    assert excinfo.value.phase == "read"
    assert excinfo.value.source_path == tmp_path / "sub"
    assert "Permission denied" in excinfo.value.message
