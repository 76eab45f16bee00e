"""Rendering of the listing and article pages through the page store."""

import pytest
from conftest import make_article_doc, make_page, make_post_doc

from spacetraveling.engine.generation import PageState
from spacetraveling.engine.pages import LOAD_MORE_URL, create_page_store, make_templates

NEXT = "https://spacetraveling.cdn.prismic.io/api/v2/documents/search?ref=YF-master-ref&page=2&pageSize=5"


@pytest.fixture
def store(fake_cms, config):
    return create_page_store(fake_cms, config)


def test_listing_shows_first_page_and_load_more_button(fake_cms, store):
    fake_cms.first_page = make_page([make_post_doc(f"post-{i}") for i in range(1, 9)], next_page=NEXT)

    response = store.request("/")

    assert response.status_code == 200
    html = response.html
    assert html.count('class="post"') == 5
    assert 'href="/post/post-1"' in html
    assert 'href="/post/post-6"' not in html
    assert "15 mar 2021" in html
    assert "Joseph Oliveira" in html
    assert 'id="load-more"' in html
    assert "Carregar mais posts" in html
    assert f"{LOAD_MORE_URL}?cursor=" in html
    assert fake_cms.queries[0]["page_size"] == 5
    assert fake_cms.queries[0]["fetch"] == ["posts.title", "posts.subtitle", "posts.author", "posts.content"]


def test_listing_without_cursor_has_no_button(fake_cms, store):
    fake_cms.first_page = make_page([make_post_doc("only")])

    html = store.request("/").html

    assert 'href="/post/only"' in html
    assert 'id="load-more"' not in html


def test_listing_escapes_cms_text(fake_cms, store):
    fake_cms.first_page = make_page([make_post_doc("xss", title="<script>alert(1)</script>")])

    html = store.request("/").html

    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_article_page_renders_header_and_blocks(fake_cms, store):
    blocks = [
        {
            "heading": "Introdução",
            "body": [{"type": "paragraph", "text": "Olá mundo", "spans": [{"start": 0, "end": 3, "type": "strong"}]}],
        },
    ]
    fake_cms.articles["como-utilizar-hooks"] = make_article_doc(blocks=blocks)

    response = store.request("/post/como-utilizar-hooks")

    assert response.status_code == 200
    html = response.html
    assert "<title>Como utilizar Hooks | SpaceTraveling</title>" in html
    assert "25 mar 2021" in html
    assert "1 min" in html
    assert 'src="https://images.prismic.io/spacetraveling/banner.png"' in html
    assert 'id="introducao"' in html
    assert "<p><strong>Olá</strong> mundo</p>" in html


def test_article_read_time_uses_body_words(fake_cms, store):
    text = " ".join(["palavra"] * 401)
    blocks = [{"heading": "Longo", "body": [{"type": "paragraph", "text": text, "spans": []}]}]
    fake_cms.articles["longo"] = make_article_doc("longo", blocks=blocks)

    assert "3 min" in store.request("/post/longo").html


def test_unknown_article_is_404(store):
    response = store.request("/post/nao-existe")

    assert response.status_code == 404
    assert "Página não encontrada." in response.html
    assert store.state("/post/nao-existe") is PageState.NOT_FOUND


def test_build_pregenerates_one_article(fake_cms, store):
    fake_cms.first_page = make_page([make_post_doc("first"), make_post_doc("second")])
    fake_cms.articles["first"] = make_article_doc("first")
    fake_cms.articles["second"] = make_article_doc("second")

    built = store.build()

    assert built == ["/", "/post/first"]
    paths_query = fake_cms.queries[-1]
    assert paths_query["fetch"] == ["posts.uid"]
    assert paths_query["page_size"] == 1
    assert store.state("/post/second") is PageState.NOT_GENERATED


def test_paths_page_size_is_configurable(fake_cms, config):
    config.cms.paths_page_size = 20
    fake_cms.first_page = make_page([make_post_doc("first"), make_post_doc("second")])
    fake_cms.articles["first"] = make_article_doc("first")
    fake_cms.articles["second"] = make_article_doc("second")

    built = create_page_store(fake_cms, config).build()

    assert built == ["/", "/post/first", "/post/second"]


def test_fallback_and_not_found_pages(config):
    templates = make_templates(config)

    assert "Carregando..." in templates.render_template("fallback.html.jinja2")
    assert "http-equiv" not in templates.render_template("not_found.html.jinja2")
    assert "404" in templates.render_template("not_found.html.jinja2")
