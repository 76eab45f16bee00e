"""Shared fixtures: raw CMS documents and an in-memory CMS."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import pytest

from spacetraveling.core.config import CMSSettings, SiteSettings, SpaceTravelingConfig

CMS_ENDPOINT = "https://spacetraveling.cdn.prismic.io/api/v2"


def make_post_doc(
    uid: str,
    title: str | None = None,
    subtitle: str | None = "Pensando em sincronização em vez de ciclos de vida.",
    author: str | None = "Joseph Oliveira",
    first_publication_date: str | None = "2021-03-15T19:25:28+0000",
) -> dict[str, Any]:
    data: dict[str, Any] = {
        "title": title if title is not None else f"Post {uid}",
        "author": author,
    }
    if subtitle is not None:
        data["subtitle"] = subtitle
    return {
        "id": f"id-{uid}",
        "uid": uid,
        "type": "posts",
        "first_publication_date": first_publication_date,
        "data": data,
    }


def make_article_doc(
    uid: str = "como-utilizar-hooks",
    blocks: list[dict[str, Any]] | None = None,
    title: str = "Como utilizar Hooks",
) -> dict[str, Any]:
    if blocks is None:
        blocks = [
            {
                "heading": "Proin et varius",
                "body": [
                    {"type": "paragraph", "text": "Lorem ipsum dolor sit amet", "spans": []},
                    {"type": "paragraph", "text": "consectetur adipiscing elit", "spans": []},
                ],
            },
            {
                "heading": "Cras laoreet mi",
                "body": [{"type": "paragraph", "text": "Nulla auctor sit amet quam vitae", "spans": []}],
            },
        ]
    return {
        "id": f"id-{uid}",
        "uid": uid,
        "type": "posts",
        "first_publication_date": "2021-03-25T19:27:35+0000",
        "data": {
            "title": title,
            "subtitle": "Pensando em sincronização em vez de ciclos de vida",
            "author": "Joseph Oliveira",
            "banner": {"url": "https://images.prismic.io/spacetraveling/banner.png", "alt": None},
            "content": blocks,
        },
    }


def make_page(docs: Sequence[dict[str, Any]], next_page: str | None = None) -> dict[str, Any]:
    return {
        "page": 1,
        "results_per_page": len(docs),
        "results_size": len(docs),
        "next_page": next_page,
        "prev_page": None,
        "results": list(docs),
    }


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCMS:
    """In-memory ContentRepository and PageFetcher."""

    def __init__(self) -> None:
        self.first_page: dict[str, Any] = make_page([])
        self.pages: dict[str, dict[str, Any] | Exception] = {}
        self.articles: dict[str, dict[str, Any]] = {}
        self.queries: list[dict[str, Any]] = []
        self.fetched: list[str] = []
        self.query_error: Exception | None = None

    def query(self, predicates, *, fetch=None, page_size=20, page=1):
        self.queries.append({"predicates": list(predicates), "fetch": fetch, "page_size": page_size})
        if self.query_error is not None:
            raise self.query_error
        payload = dict(self.first_page)
        payload["results"] = payload["results"][:page_size]
        return payload

    def get_by_uid(self, document_type, uid):
        if self.query_error is not None:
            raise self.query_error
        return self.articles.get(uid)

    def get_page(self, url):
        self.fetched.append(url)
        page = self.pages[url]
        if isinstance(page, Exception):
            raise page
        return page


@pytest.fixture
def fake_cms() -> FakeCMS:
    return FakeCMS()


@pytest.fixture
def config(tmp_path) -> SpaceTravelingConfig:
    return SpaceTravelingConfig(
        cms=CMSSettings(endpoint=CMS_ENDPOINT),
        site=SiteSettings(output_dir=tmp_path / "out", timezone="UTC"),
    )
