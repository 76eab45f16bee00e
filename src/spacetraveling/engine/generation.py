"""Incremental static generation.

Each page path moves through::

    NOT_GENERATED -> GENERATING -> READY -> STALE -> REGENERATING -> READY

Paths enumerated at build time are generated up front. Other paths of a
route with ``fallback`` are generated on first request while a placeholder
is served. A READY page older than its route's ``revalidate`` window is
STALE: the next request still gets it, and schedules a regeneration.
"""

import logging
import re
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from concurrent.futures import Executor
from dataclasses import dataclass, field
from enum import Enum

import httpx
from jinja2 import TemplateError

from spacetraveling.core.exceptions import GenerationFailure, SpaceTravelingError
from spacetraveling.core.types import NotFound

logger = logging.getLogger(__name__)


class PageState(str, Enum):
    NOT_GENERATED = "not_generated"
    GENERATING = "generating"
    READY = "ready"
    STALE = "stale"
    REGENERATING = "regenerating"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class GeneratedPage:
    path: str
    html: str
    generated_at: float
    revalidate: int

    def is_stale(self, now: float) -> bool:
        return now - self.generated_at >= self.revalidate


@dataclass(frozen=True)
class _Miss:
    """A path that resolved to no document, retried after the route's window."""

    found_at: float
    revalidate: int

    def is_stale(self, now: float) -> bool:
        return now - self.found_at >= self.revalidate


@dataclass(frozen=True)
class PageResponse:
    status_code: int
    html: str
    state: PageState
    fallback: bool = False
    revalidate: int | None = None


@dataclass
class Route:
    """A family of pages sharing one renderer.

    ``render`` receives the named groups of ``pattern`` and returns the page
    HTML, or NotFound when the path does not resolve to a document.
    """

    name: str
    pattern: str
    render: Callable[..., str | NotFound]
    paths: Callable[[], list[str]]
    revalidate: int
    fallback: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._regex = re.compile(self.pattern)

    def match(self, path: str) -> dict[str, str] | None:
        found = self._regex.fullmatch(path)
        return found.groupdict() if found else None


@dataclass
class _Entry:
    state: PageState
    page: GeneratedPage | None = None


class PageStore:
    """Holds generated pages and applies the regeneration contract.

    With ``executor=None`` generation runs inline in the calling thread,
    which is how the build works. Pass an Executor to regenerate in the
    background while serving requests.

    Paths that resolved to no document are kept apart from pages: they
    answer 404 until their route's window passes, then are generated again.
    At most ``max_not_found`` of them are remembered, oldest dropped first.
    """

    def __init__(
        self,
        routes: list[Route],
        *,
        fallback_html: str,
        not_found_html: str,
        clock: Callable[[], float] = time.monotonic,
        executor: Executor | None = None,
        max_not_found: int = 1024,
    ) -> None:
        self.routes = routes
        self.fallback_html = fallback_html
        self.not_found_html = not_found_html
        self.max_not_found = max_not_found
        self._clock = clock
        self._executor = executor
        self._entries: dict[str, _Entry] = {}
        self._misses: OrderedDict[str, _Miss] = OrderedDict()
        self._lock = threading.Lock()

    def resolve(self, path: str) -> tuple[Route, dict[str, str]] | None:
        for route in self.routes:
            params = route.match(path)
            if params is not None:
                return route, params
        return None

    def build(self) -> list[str]:
        """Generate every path the routes enumerate.

        Returns:
            The paths that were generated.

        Raises:
            GenerationFailure: If any page fails; the build stops there.

        """
        built = []
        for route in self.routes:
            try:
                paths = route.paths()
            except (httpx.HTTPError, ValueError, SpaceTravelingError) as e:
                raise GenerationFailure(route.pattern, str(e)) from e

            for path in paths:
                params = route.match(path)
                if params is None:
                    msg = f"route {route.name!r} enumerated a path it does not match"
                    raise GenerationFailure(path, msg)
                self._generate(route, path, params)
                built.append(path)
        logger.info("Built %d pages", len(built))
        return built

    def state(self, path: str) -> PageState:
        with self._lock:
            now = self._clock()
            entry = self._entries.get(path)
            if entry is None:
                miss = self._misses.get(path)
                if miss is not None and not miss.is_stale(now):
                    return PageState.NOT_FOUND
                return PageState.NOT_GENERATED
            if entry.state is PageState.READY and entry.page.is_stale(now):
                return PageState.STALE
            return entry.state

    def ready_pages(self) -> dict[str, GeneratedPage]:
        """Snapshot of every path that currently has content."""
        with self._lock:
            return {path: entry.page for path, entry in self._entries.items() if entry.page is not None}

    def not_found_paths(self) -> list[str]:
        with self._lock:
            return list(self._misses)

    def request(self, path: str) -> PageResponse:
        """Serve a path according to its current state."""
        resolved = self.resolve(path)
        if resolved is None:
            return self._not_found()
        route, params = resolved

        with self._lock:
            now = self._clock()
            entry = self._entries.get(path)
            if entry is None:
                miss = self._misses.get(path)
                if miss is not None and not miss.is_stale(now):
                    return self._not_found()
                if miss is None and not route.fallback:
                    return self._not_found()
                self._misses.pop(path, None)
                entry = self._entries[path] = _Entry(PageState.GENERATING)
                stale_page = None
            elif entry.state is PageState.READY and entry.page.is_stale(now):
                entry.state = PageState.REGENERATING
                stale_page = entry.page
            else:
                return self._respond(entry)

        if stale_page is None:
            logger.info("Generating %s on demand", path)
            self._schedule(route, path, params)
            with self._lock:
                # Inline generation may already be done.
                if path in self._misses:
                    return self._not_found()
                return self._respond(self._entries.get(path, entry))

        logger.info("Regenerating stale %s", path)
        self._schedule(route, path, params)
        return PageResponse(200, stale_page.html, PageState.STALE, revalidate=stale_page.revalidate)

    def _respond(self, entry: _Entry) -> PageResponse:
        if entry.page is None:
            return PageResponse(200, self.fallback_html, entry.state, fallback=True)
        return PageResponse(200, entry.page.html, entry.state, revalidate=entry.page.revalidate)

    def _not_found(self) -> PageResponse:
        return PageResponse(404, self.not_found_html, PageState.NOT_FOUND)

    def _schedule(self, route: Route, path: str, params: dict[str, str]) -> None:
        if self._executor is None:
            self._run(route, path, params)
        else:
            self._executor.submit(self._run, route, path, params)

    def _run(self, route: Route, path: str, params: dict[str, str]) -> None:
        try:
            self._generate(route, path, params)
        except GenerationFailure:
            with self._lock:
                entry = self._entries.get(path)
                had_page = entry is not None and entry.page is not None
                if had_page:
                    entry.state = PageState.READY
                else:
                    self._entries.pop(path, None)
            if had_page:
                logger.exception("Regeneration of %s failed, keeping the previous page", path)
                return
            logger.exception("Generation of %s failed", path)
            if self._executor is None:
                raise

    def _generate(self, route: Route, path: str, params: dict[str, str]) -> None:
        try:
            result = route.render(**params)
        except (httpx.HTTPError, ValueError, SpaceTravelingError, TemplateError) as e:
            raise GenerationFailure(path, str(e)) from e

        with self._lock:
            now = self._clock()
            if isinstance(result, NotFound):
                self._entries.pop(path, None)
                self._remember_miss(path, _Miss(found_at=now, revalidate=route.revalidate))
                logger.info("%s resolved to no document", path)
                return
            self._misses.pop(path, None)
            page = GeneratedPage(path=path, html=result, generated_at=now, revalidate=route.revalidate)
            self._entries[path] = _Entry(PageState.READY, page)
        logger.debug("Generated %s", path)

    def _remember_miss(self, path: str, miss: _Miss) -> None:
        self._misses[path] = miss
        self._misses.move_to_end(path)
        while len(self._misses) > self.max_not_found:
            dropped, _ = self._misses.popitem(last=False)
            logger.debug("Forgetting not-found path %s", dropped)
