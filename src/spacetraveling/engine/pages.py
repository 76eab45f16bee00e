"""The site's routes: the post listing (``/``) and the article page (``/post/{uid}``)."""

import logging
import time
from collections.abc import Callable
from concurrent.futures import Executor

from spacetraveling.core.config import SpaceTravelingConfig
from spacetraveling.core.ports import ContentRepository
from spacetraveling.core.types import NotFound
from spacetraveling.engine.article import compute_read_time, fetch_article, heading_anchors
from spacetraveling.engine.generation import PageStore, Route
from spacetraveling.engine.listing import initialize
from spacetraveling.engine.template_loader import TemplateLoader
from spacetraveling.infra.adapters.prismic import at

logger = logging.getLogger(__name__)

LOAD_MORE_URL = "/api/posts"


def make_templates(config: SpaceTravelingConfig) -> TemplateLoader:
    return TemplateLoader(
        site_title=config.site.title,
        timezone=config.site.timezone,
        load_more_url=LOAD_MORE_URL,
    )


def listing_route(cms: ContentRepository, templates: TemplateLoader, config: SpaceTravelingConfig) -> Route:
    def render() -> str:
        listing = initialize(cms, config.cms)
        return templates.render_template("home.html.jinja2", listing=listing)

    return Route(
        name="home",
        pattern="/",
        render=render,
        paths=lambda: ["/"],
        revalidate=config.site.listing_revalidate,
    )


def article_route(cms: ContentRepository, templates: TemplateLoader, config: SpaceTravelingConfig) -> Route:
    document_type = config.cms.document_type

    def render(uid: str) -> str | NotFound:
        article = fetch_article(cms, uid, document_type)
        if isinstance(article, NotFound):
            return article
        return templates.render_template(
            "post.html.jinja2",
            post=article,
            read_time=compute_read_time(article, config.site.words_per_minute),
            anchors=heading_anchors(article),
        )

    def paths() -> list[str]:
        # paths_page_size defaults to 1: only one article is pre-generated,
        # the rest go through the fallback on first request.
        payload = cms.query(
            [at("document.type", document_type)],
            fetch=[f"{document_type}.uid"],
            page_size=config.cms.paths_page_size,
        )
        uids = [doc["uid"] for doc in payload["results"] if doc.get("uid")]
        logger.debug("Pre-generating %d article paths", len(uids))
        return [f"/post/{uid}" for uid in uids]

    return Route(
        name="post",
        pattern=r"/post/(?P<uid>[^/]+)",
        render=render,
        paths=paths,
        revalidate=config.site.article_revalidate,
        fallback=True,
    )


def create_page_store(
    cms: ContentRepository,
    config: SpaceTravelingConfig,
    *,
    executor: Executor | None = None,
    templates: TemplateLoader | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> PageStore:
    """Wire both routes, the placeholder and the not-found page into a PageStore."""
    templates = templates or make_templates(config)
    return PageStore(
        [listing_route(cms, templates, config), article_route(cms, templates, config)],
        fallback_html=templates.render_template("fallback.html.jinja2"),
        not_found_html=templates.render_template("not_found.html.jinja2"),
        clock=clock,
        executor=executor,
    )
