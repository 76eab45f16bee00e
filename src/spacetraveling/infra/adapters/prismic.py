"""Prismic REST API v2 client.

Implements the query side the site needs:
- repository refs (``GET {endpoint}``)
- document search (``GET {endpoint}/documents/search``)
- opaque pagination URLs returned as ``next_page``
"""

import json
import logging
import time
from collections.abc import Callable, Sequence
from types import TracebackType
from typing import Any

import httpx

from spacetraveling.core.exceptions import CMSError

logger = logging.getLogger(__name__)


def at(path: str, value: str) -> str:
    """Build an ``at`` predicate, e.g. ``[at(document.type, "posts")]``."""
    return f"[at({path}, {json.dumps(value)})]"


class PrismicClient:
    """Queries a Prismic repository over HTTP.

    Usage:
        with PrismicClient("https://my-repo.cdn.prismic.io/api/v2") as client:
            payload = client.query([at("document.type", "posts")], page_size=5)
    """

    def __init__(
        self,
        endpoint: str,
        access_token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
        ref_ttl: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the client.

        Args:
            endpoint: Repository API endpoint (``https://<repo>.cdn.prismic.io/api/v2``)
            access_token: Token for private repositories
            timeout: HTTP request timeout in seconds (default: 30.0)
            http_client: Preconfigured client, mainly for tests
            ref_ttl: Seconds a fetched master ref is reused. Publishing moves the master ref.
            clock: Monotonic time source for ref_ttl

        """
        self.endpoint = endpoint.rstrip("/")
        self.access_token = access_token
        self._http_client = http_client or httpx.Client(timeout=timeout)
        self.ref_ttl = ref_ttl
        self._clock = clock
        self._master_ref: str | None = None
        self._ref_fetched_at = 0.0

    def __enter__(self) -> "PrismicClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close HTTP client and release resources."""
        self._http_client.close()

    def master_ref(self) -> str:
        """Return the repository master ref, refetched once it is older than ref_ttl."""
        now = self._clock()
        if self._master_ref is None or now - self._ref_fetched_at >= self.ref_ttl:
            api = self._get_json(self.endpoint, params=self._auth_params())
            refs = api.get("refs") or []
            master = next((ref for ref in refs if ref.get("isMasterRef")), None)
            if master is None or not master.get("ref"):
                msg = f"No master ref advertised by {self.endpoint}"
                raise CMSError(msg)
            if master["ref"] != self._master_ref:
                logger.debug("Master ref is now %s", master["ref"])
            self._master_ref = master["ref"]
            self._ref_fetched_at = now
        return self._master_ref

    def query(
        self,
        predicates: Sequence[str],
        *,
        fetch: Sequence[str] | None = None,
        page_size: int = 20,
        page: int = 1,
    ) -> dict[str, Any]:
        """Search documents matching all predicates.

        Returns:
            The raw response payload (``results``, ``next_page``, ``total_results_size``...)

        Raises:
            httpx.HTTPStatusError: If the CMS answers 4xx/5xx
            httpx.TransportError: If the CMS cannot be reached
            CMSError: If the response is not a search payload

        """
        params: dict[str, Any] = {
            "ref": self.master_ref(),
            "q": f"[{''.join(predicates)}]",
            "pageSize": page_size,
            "page": page,
        }
        if fetch:
            params["fetch"] = ",".join(fetch)
        params.update(self._auth_params())

        logger.debug("Querying %s with %s", self.endpoint, params["q"])
        payload = self._get_json(f"{self.endpoint}/documents/search", params=params)
        if not isinstance(payload.get("results"), list):
            msg = f"Search response from {self.endpoint} has no results list"
            raise CMSError(msg)
        return payload

    def get_by_uid(self, document_type: str, uid: str) -> dict[str, Any] | None:
        """Return the document of this type with this uid, or None."""
        payload = self.query([at(f"my.{document_type}.uid", uid)], page_size=1)
        results = payload["results"]
        return results[0] if results else None

    def get_page(self, url: str) -> dict[str, Any]:
        """Fetch an opaque pagination URL exactly as handed out by the CMS."""
        return self._get_json(url)

    def _auth_params(self) -> dict[str, str]:
        return {"access_token": self.access_token} if self.access_token else {}

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        response = self._http_client.get(url, params=params)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            msg = f"Expected a JSON object from {url}, got {type(payload).__name__}"
            raise CMSError(msg)
        return payload
