"""Core data types for SpaceTraveling.

Raw CMS documents look like::

    {
        "uid": "como-utilizar-hooks",
        "first_publication_date": "2021-03-15T19:25:28+0000",
        "data": {"title": "...", "subtitle": "...", "author": "...", ...},
    }

The models below normalize those documents into immutable values.
"""

import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from spacetraveling.core.exceptions import MalformedFieldError

# Prismic emits offsets as "+0000"; ISO 8601 parsers want "+00:00".
_COMPACT_OFFSET = re.compile(r"([+-]\d{2})(\d{2})$")

RichTextNode = dict[str, Any]


def parse_cms_datetime(value: Any) -> Any:
    """Normalize CMS timestamps so pydantic can parse them."""
    if isinstance(value, str):
        return _COMPACT_OFFSET.sub(r"\1:\2", value.strip())
    return value


def _first_error_field(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "document"
    return ".".join(str(part) for part in errors[0]["loc"]) or "document"


def _document_data(doc: dict[str, Any]) -> dict[str, Any]:
    data = doc.get("data")
    if not isinstance(data, dict):
        raise MalformedFieldError("data", doc.get("uid"))
    return data


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Listing Domain ---
class PostSummary(_Frozen):
    uid: str = Field(min_length=1)
    first_publication_date: datetime | None = None
    title: str
    subtitle: str = ""
    author: str

    @field_validator("first_publication_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_cms_datetime(value)

    @field_validator("subtitle", mode="before")
    @classmethod
    def _default_subtitle(cls, value: Any) -> Any:
        return "" if value is None else value

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "PostSummary":
        """Build a summary from a raw CMS document.

        Raises:
            MalformedFieldError: If uid, title or author are missing.

        """
        data = _document_data(doc)
        try:
            return cls(
                uid=doc.get("uid"),
                first_publication_date=doc.get("first_publication_date"),
                title=data.get("title"),
                subtitle=data.get("subtitle"),
                author=data.get("author"),
            )
        except ValidationError as e:
            raise MalformedFieldError(_first_error_field(e), doc.get("uid")) from e


class PostPage(_Frozen):
    """One page of post summaries as returned by the CMS."""

    results: tuple[PostSummary, ...] = ()
    next_page: str | None = None

    @field_validator("next_page", mode="before")
    @classmethod
    def _empty_cursor_is_none(cls, value: Any) -> Any:
        return value or None

    @classmethod
    def from_response(cls, payload: dict[str, Any]) -> "PostPage":
        """Normalize a paginated CMS response.

        Raises:
            MalformedFieldError: If the payload or any of its documents is malformed.

        """
        if not isinstance(payload, dict):
            raise MalformedFieldError("results")
        results = payload.get("results")
        if not isinstance(results, list):
            raise MalformedFieldError("results")
        summaries = tuple(PostSummary.from_document(doc) for doc in results)
        return cls(results=summaries, next_page=payload.get("next_page"))


class ListingState(_Frozen):
    """Posts shown on the listing page plus the cursor to the next page.

    The sequence is append-only: later pages are concatenated in fetch order,
    without reordering or deduplication by uid.
    """

    posts: tuple[PostSummary, ...] = ()
    next_page: str | None = None

    @field_validator("next_page", mode="before")
    @classmethod
    def _empty_cursor_is_none(cls, value: Any) -> Any:
        return value or None

    @property
    def has_more(self) -> bool:
        return self.next_page is not None

    @classmethod
    def from_page(cls, page: PostPage) -> "ListingState":
        return cls(posts=page.results, next_page=page.next_page)

    def extend(self, page: PostPage) -> "ListingState":
        """Return a new state with the page appended and the cursor replaced."""
        return ListingState(posts=self.posts + page.results, next_page=page.next_page)


# --- Article Domain ---
class Banner(_Frozen):
    url: str
    alt: str | None = None


class ContentBlock(_Frozen):
    heading: str
    body: tuple[RichTextNode, ...] = ()


class ArticleContent(_Frozen):
    uid: str = Field(min_length=1)
    first_publication_date: datetime | None = None
    title: str
    banner: Banner
    author: str
    content: tuple[ContentBlock, ...] = ()

    @field_validator("first_publication_date", mode="before")
    @classmethod
    def _parse_date(cls, value: Any) -> Any:
        return parse_cms_datetime(value)

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> "ArticleContent":
        """Build an article from a raw CMS document.

        Block bodies are carried through unmodified, in source order.

        Raises:
            MalformedFieldError: If a required field is missing.

        """
        data = _document_data(doc)
        try:
            return cls(
                uid=doc.get("uid"),
                first_publication_date=doc.get("first_publication_date"),
                title=data.get("title"),
                banner=data.get("banner"),
                author=data.get("author"),
                content=data.get("content") or (),
            )
        except ValidationError as e:
            raise MalformedFieldError(_first_error_field(e), doc.get("uid")) from e


class NotFound(_Frozen):
    """Outcome of looking up an identifier that has no matching document."""

    uid: str
