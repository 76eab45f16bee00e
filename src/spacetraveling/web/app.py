"""
FastAPI application serving the generated pages.
"""

import logging
from collections.abc import AsyncIterator, Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from urllib.parse import urlsplit

from anyio import to_thread
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import HTMLResponse

from spacetraveling.core.config import SpaceTravelingConfig
from spacetraveling.core.exceptions import FetchFailure, GenerationFailure
from spacetraveling.core.ports import PageFetcher
from spacetraveling.engine.generation import PageResponse, PageStore
from spacetraveling.engine.listing import fetch_post_page
from spacetraveling.engine.pages import LOAD_MORE_URL, create_page_store, make_templates
from spacetraveling.engine.template_loader import TemplateLoader
from spacetraveling.infra.adapters.prismic import PrismicClient

logger = logging.getLogger(__name__)


def _html_response(response: PageResponse) -> HTMLResponse:
    headers = {}
    if response.fallback:
        headers["Cache-Control"] = "no-store"
    elif response.revalidate is not None:
        headers["Cache-Control"] = f"s-maxage={response.revalidate}, stale-while-revalidate"
    return HTMLResponse(response.html, status_code=response.status_code, headers=headers)


def create_app(
    store: PageStore,
    fetcher: PageFetcher,
    templates: TemplateLoader,
    cms_host: str,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[None]] | None = None,
) -> FastAPI:
    """
    Create the site application.

    Args:
        store: Page store applying the regeneration contract
        fetcher: Follows pagination cursors for the load more endpoint
        templates: Template loader used to render appended posts
        cms_host: Only cursors pointing at this host are followed

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(title="SpaceTraveling", docs_url=None, redoc_url=None, lifespan=lifespan)

    @app.exception_handler(GenerationFailure)
    async def generation_failure_handler(request: Request, exc: GenerationFailure) -> HTMLResponse:
        logger.error("Generation failed for %s: %s", exc.path, exc.reason)
        return HTMLResponse("<h1>500</h1>", status_code=500)

    @app.get("/", response_class=HTMLResponse)
    def home() -> HTMLResponse:
        return _html_response(store.request("/"))

    @app.get("/post/{uid}", response_class=HTMLResponse)
    def post(uid: str) -> HTMLResponse:
        return _html_response(store.request(f"/post/{uid}"))

    @app.get(LOAD_MORE_URL)
    def more_posts(cursor: str = Query(..., min_length=1)) -> dict[str, str | None]:
        if urlsplit(cursor).netloc != cms_host:
            raise HTTPException(status_code=400, detail="Cursor does not point at the CMS")
        try:
            page = fetch_post_page(fetcher, cursor)
        except FetchFailure as e:
            logger.warning("Unexpected Error: %s", e.reason)
            raise HTTPException(status_code=502, detail="Could not load more posts") from e

        html = templates.render_template("posts_fragment.html.jinja2", posts=page.results)
        return {"html": html, "next_page": page.next_page}

    return app


def create_site_app(config: SpaceTravelingConfig, max_workers: int = 4) -> FastAPI:
    """Build the production app: Prismic client, background regeneration, startup build."""
    client = PrismicClient(
        config.cms.endpoint,
        config.cms.access_token,
        timeout=config.cms.timeout,
        ref_ttl=config.cms.ref_ttl,
    )
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="regenerate")
    templates = make_templates(config)
    store = create_page_store(client, config, executor=executor, templates=templates)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("SpaceTraveling starting up")
        await to_thread.run_sync(store.build)
        yield
        logger.info("SpaceTraveling shutting down")
        executor.shutdown(wait=False, cancel_futures=True)
        client.close()

    return create_app(store, client, templates, urlsplit(config.cms.endpoint).netloc, lifespan=lifespan)
