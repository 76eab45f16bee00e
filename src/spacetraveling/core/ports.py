from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ContentRepository(Protocol):
    """Query side of the headless CMS."""

    def query(
        self,
        predicates: Sequence[str],
        *,
        fetch: Sequence[str] | None = None,
        page_size: int = 20,
        page: int = 1,
    ) -> dict[str, Any]:
        """Returns the raw paginated payload: ``{"results": [...], "next_page": url | None}``."""
        ...

    def get_by_uid(self, document_type: str, uid: str) -> dict[str, Any] | None:
        """Returns the raw document with this uid, or None when there is none."""
        ...


@runtime_checkable
class PageFetcher(Protocol):
    """Follows opaque pagination URLs handed out by the CMS."""

    def get_page(self, url: str) -> dict[str, Any]: ...
