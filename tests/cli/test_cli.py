"""Tests for the spacetraveling command line."""

import httpx
import pytest
import respx
from conftest import CMS_ENDPOINT, make_article_doc, make_page, make_post_doc
from typer.testing import CliRunner

from spacetraveling.cli.app import app

runner = CliRunner()

SEARCH_URL = f"{CMS_ENDPOINT}/documents/search"
NEXT = f"{SEARCH_URL}?ref=YF-master-ref&page=2&pageSize=5"
API_ROOT = {"refs": [{"id": "master", "ref": "YF-master-ref", "label": "Master", "isMasterRef": True}]}


@pytest.fixture
def site_root(tmp_path, monkeypatch):
    monkeypatch.delenv("SPACETRAVELING_CMS__ENDPOINT", raising=False)
    (tmp_path / ".spacetraveling.toml").write_text(
        '[cms]\nendpoint = "%s"\n\n[site]\ntimezone = "UTC"\noutput_dir = "public"\n' % CMS_ENDPOINT,
        encoding="utf-8",
    )
    return tmp_path


@pytest.fixture
def prismic():
    with respx.mock(assert_all_called=False) as mock:
        mock.get(CMS_ENDPOINT).mock(return_value=httpx.Response(200, json=API_ROOT))
        yield mock


def serve_search(prismic, handler):
    prismic.get(SEARCH_URL).mock(side_effect=handler)


def test_read_prints_article(prismic, site_root):
    serve_search(prismic, lambda request: httpx.Response(200, json=make_page([make_article_doc()])))

    result = runner.invoke(app, ["read", "como-utilizar-hooks", "--site-root", str(site_root)])

    assert result.exit_code == 0, result.output
    assert "Como utilizar Hooks" in result.output
    assert "25 mar 2021" in result.output
    assert "1 min" in result.output
    assert "Lorem ipsum dolor sit amet" in result.output


def test_read_unknown_post_exits_1(prismic, site_root):
    serve_search(prismic, lambda request: httpx.Response(200, json=make_page([])))

    result = runner.invoke(app, ["read", "nao-existe", "--site-root", str(site_root)])

    assert result.exit_code == 1
    assert "Post not found" in result.output


def test_read_cms_error_exits_1(prismic, site_root):
    serve_search(prismic, lambda request: httpx.Response(500))

    result = runner.invoke(app, ["read", "como-utilizar-hooks", "--site-root", str(site_root)])

    assert result.exit_code == 1
    assert "Could not load post" in result.output


def test_build_writes_static_site(prismic, site_root):
    serve_search(prismic, lambda request: httpx.Response(200, json=make_page([make_article_doc()])))

    result = runner.invoke(app, ["build", "--site-root", str(site_root)])

    assert result.exit_code == 0, result.output
    out = site_root / "public"
    assert 'href="/post/como-utilizar-hooks"' in (out / "index.html").read_text(encoding="utf-8")
    article = (out / "post" / "como-utilizar-hooks" / "index.html").read_text(encoding="utf-8")
    assert "Como utilizar Hooks" in article
    assert (out / "404.html").exists()


def test_build_failure_exits_1(prismic, site_root):
    serve_search(prismic, lambda request: httpx.Response(503))

    result = runner.invoke(app, ["build", "--site-root", str(site_root)])

    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert not (site_root / "public").exists()


def test_browse_loads_more_on_confirmation(prismic, site_root):
    def search(request: httpx.Request) -> httpx.Response:
        if request.url.params.get("page") == "2":
            return httpx.Response(200, json=make_page([make_post_doc("sixth", subtitle=None)]))
        first_page = [make_post_doc(f"post-{i}", subtitle=None) for i in range(1, 6)]
        return httpx.Response(200, json=make_page(first_page, next_page=NEXT))

    serve_search(prismic, search)

    result = runner.invoke(app, ["browse", "--site-root", str(site_root)], input="y\n")

    assert result.exit_code == 0, result.output
    assert "Post post-1" in result.output
    assert "Post sixth" in result.output
    assert "6 posts" in result.output


def test_browse_stops_when_declined(prismic, site_root):
    page = make_page([make_post_doc("first", subtitle=None)], next_page=NEXT)
    serve_search(prismic, lambda request: httpx.Response(200, json=page))

    result = runner.invoke(app, ["browse", "--site-root", str(site_root)], input="n\n")

    assert result.exit_code == 0, result.output
    assert "1 posts" in result.output


def test_serve_runs_uvicorn(mocker, site_root):
    run = mocker.patch("uvicorn.run")

    result = runner.invoke(app, ["serve", "--site-root", str(site_root), "--port", "8080"])

    assert result.exit_code == 0, result.output
    run.assert_called_once()
    assert run.call_args.kwargs["host"] == "127.0.0.1"
    assert run.call_args.kwargs["port"] == 8080
