"""Listing aggregation: first page at generation time, more pages on demand."""

import logging
import threading

import httpx

from spacetraveling.core.config import CMSSettings
from spacetraveling.core.exceptions import CMSError, FetchFailure, MalformedFieldError
from spacetraveling.core.ports import ContentRepository, PageFetcher
from spacetraveling.core.types import ListingState, PostPage
from spacetraveling.infra.adapters.prismic import at

logger = logging.getLogger(__name__)

LISTING_FIELDS = ("title", "subtitle", "author", "content")


def initialize(cms: ContentRepository, settings: CMSSettings) -> ListingState:
    """Query the first listing page.

    CMS and normalization errors are not handled here: they decide whether
    generation of the listing page fails.
    """
    document_type = settings.document_type
    payload = cms.query(
        [at("document.type", document_type)],
        fetch=[f"{document_type}.{field}" for field in LISTING_FIELDS],
        page_size=settings.listing_page_size,
    )
    state = ListingState.from_page(PostPage.from_response(payload))
    logger.info("Listing initialized with %d posts (more: %s)", len(state.posts), state.has_more)
    return state


def fetch_post_page(fetcher: PageFetcher, cursor: str) -> PostPage:
    """Fetch and normalize the page behind an opaque cursor.

    Raises:
        FetchFailure: On network, HTTP, decode or normalization errors.

    """
    try:
        return PostPage.from_response(fetcher.get_page(cursor))
    except (httpx.HTTPError, ValueError, CMSError, MalformedFieldError) as e:
        raise FetchFailure(cursor, str(e)) from e


class ListingAggregator:
    """Single writer of a ListingState for one page view.

    ``load_more`` never mutates the current state: each successful fetch
    replaces it with a new value.
    """

    def __init__(self, state: ListingState, fetcher: PageFetcher) -> None:
        self._state = state
        self._fetcher = fetcher
        self._in_flight = threading.Lock()

    @property
    def state(self) -> ListingState:
        return self._state

    @property
    def has_more(self) -> bool:
        """Whether the "load more" trigger should be offered."""
        return self._state.has_more

    @property
    def in_flight(self) -> bool:
        return self._in_flight.locked()

    def load_more(self) -> ListingState:
        """Append the next page to the listing.

        Returns the current state unchanged when there is no next page, when
        another call is still in flight, or when the fetch fails.
        """
        if not self._state.has_more:
            logger.debug("No next page to load")
            return self._state

        if not self._in_flight.acquire(blocking=False):
            logger.debug("Load more already in flight, ignoring")
            return self._state

        try:
            cursor = self._state.next_page
            try:
                page = fetch_post_page(self._fetcher, cursor)
            except FetchFailure as e:
                logger.warning("Unexpected Error: %s", e.reason)
                return self._state

            self._state = self._state.extend(page)
            logger.debug("Loaded %d more posts (more: %s)", len(page.results), self._state.has_more)
            return self._state
        finally:
            self._in_flight.release()
