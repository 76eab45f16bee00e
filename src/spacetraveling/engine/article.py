"""Article lookup, reading time estimate and block rendering."""

import logging
import math
from collections.abc import Sequence
from typing import Any

from markupsafe import Markup

from spacetraveling.core.ports import ContentRepository
from spacetraveling.core.richtext import as_html, as_text
from spacetraveling.core.types import ArticleContent, NotFound
from spacetraveling.core.utils import count_words, slugify

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200


def fetch_article(cms: ContentRepository, uid: str, document_type: str = "posts") -> ArticleContent | NotFound:
    """Look up an article by uid.

    Returns:
        The normalized article, or NotFound when no document has this uid.

    Raises:
        ValueError: If uid is empty.
        MalformedFieldError: If the document lacks a required field.

    """
    if not uid:
        msg = "Article uid must be a non-empty string"
        raise ValueError(msg)

    doc = cms.get_by_uid(document_type, uid)
    if doc is None:
        logger.info("No %s document with uid %r", document_type, uid)
        return NotFound(uid=uid)
    return ArticleContent.from_document(doc)


def minutes_for_words(word_count: int, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Round a word count up to whole reading minutes. Zero words read in zero minutes."""
    return math.ceil(word_count / words_per_minute)


def compute_read_time(content: ArticleContent, words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """Estimate the reading time of an article body in minutes.

    Only block bodies are counted, headings are not.
    """
    total_words = sum(count_words(as_text(block.body)) for block in content.content)
    return minutes_for_words(total_words, words_per_minute)


def render_block_html(body: Sequence[dict[str, Any]]) -> Markup:
    """Render a block body for direct insertion into a page.

    The output is not sanitized: CMS markup is trusted.
    """
    return Markup(as_html(body))


def heading_anchors(content: ArticleContent) -> list[str]:
    """Derive one unique anchor id per block, in block order.

    Repeated headings get ``-2``, ``-3``... suffixes.
    """
    used: set[str] = set()
    anchors = []
    for block in content.content:
        base = slugify(block.heading)
        candidate, n = base, 1
        while candidate in used:
            n += 1
            candidate = f"{base}-{n}"
        used.add(candidate)
        anchors.append(candidate)
    return anchors
