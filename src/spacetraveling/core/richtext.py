"""Rendering of Prismic structured text.

A rich text field is an ordered list of nodes::

    {"type": "paragraph", "text": "Hello world", "spans": [{"start": 0, "end": 5, "type": "strong"}]}

``as_text`` flattens it for word counting, ``as_html`` produces the markup
inserted verbatim into article pages.
"""

import logging
from collections.abc import Sequence
from typing import Any, NamedTuple

from markupsafe import escape

logger = logging.getLogger(__name__)

BLOCK_TAGS = {
    "heading1": "h1",
    "heading2": "h2",
    "heading3": "h3",
    "heading4": "h4",
    "heading5": "h5",
    "heading6": "h6",
    "paragraph": "p",
    "preformatted": "pre",
}
LIST_TAGS = {"list-item": "ul", "o-list-item": "ol"}
SPAN_TYPES = frozenset({"strong", "em", "hyperlink", "label"})


class _Span(NamedTuple):
    start: int
    end: int
    type: str
    data: dict[str, Any]


def as_text(body: Sequence[dict[str, Any]], separator: str = " ") -> str:
    """Join the text of every node that carries some. Images and embeds are skipped."""
    return separator.join(node["text"] for node in body if node.get("text"))


def as_html(body: Sequence[dict[str, Any]]) -> str:
    """Render structured text to HTML.

    Consecutive list items are grouped into a single ``<ul>``/``<ol>``.
    Unknown node types are dropped.
    """
    parts: list[str] = []
    open_list: str | None = None

    for node in body:
        list_tag = LIST_TAGS.get(node.get("type", ""))
        if list_tag != open_list:
            if open_list:
                parts.append(f"</{open_list}>")
            if list_tag:
                parts.append(f"<{list_tag}>")
            open_list = list_tag

        html = _render_node(node)
        if html is not None:
            parts.append(html)

    if open_list:
        parts.append(f"</{open_list}>")

    return "".join(parts)


def _render_node(node: dict[str, Any]) -> str | None:
    node_type = node.get("type", "")

    if node_type in BLOCK_TAGS:
        tag = BLOCK_TAGS[node_type]
        return f"<{tag}>{_render_spans(node.get('text') or '', node.get('spans') or [])}</{tag}>"
    if node_type in LIST_TAGS:
        return f"<li>{_render_spans(node.get('text') or '', node.get('spans') or [])}</li>"
    if node_type == "image":
        src = escape(node.get("url") or "")
        alt = escape(node.get("alt") or "")
        return f'<p class="block-img"><img src="{src}" alt="{alt}" /></p>'
    if node_type == "embed":
        oembed = node.get("oembed") or {}
        # Provider markup is trusted, like the rest of the CMS output.
        return (
            f'<div data-oembed="{escape(oembed.get("embed_url") or "")}" '
            f'data-oembed-type="{escape(oembed.get("type") or "")}" '
            f'data-oembed-provider="{escape(oembed.get("provider_name") or "")}">'
            f"{oembed.get('html') or ''}</div>"
        )

    logger.debug("Skipping unsupported rich text node: %s", node_type)
    return None


def _normalize_spans(text: str, spans: Sequence[dict[str, Any]]) -> list[_Span]:
    normalized = []
    for span in spans:
        span_type = span.get("type")
        if span_type not in SPAN_TYPES:
            logger.debug("Skipping unsupported rich text span: %s", span_type)
            continue
        start = max(0, min(int(span.get("start", 0)), len(text)))
        end = max(0, min(int(span.get("end", 0)), len(text)))
        if end <= start:
            continue
        normalized.append(_Span(start, end, span_type, span.get("data") or {}))
    # Outer spans first: earlier start, then longer extent.
    normalized.sort(key=lambda s: (s.start, -s.end))
    return normalized


def _render_spans(text: str, spans: Sequence[dict[str, Any]]) -> str:
    """Apply inline spans by character offsets.

    Overlapping spans are closed and reopened at segment boundaries so the
    output is always well nested.
    """
    active_spans = _normalize_spans(text, spans)
    if not active_spans:
        return _escape_text(text)

    boundaries = sorted({0, len(text), *(s.start for s in active_spans), *(s.end for s in active_spans)})
    out: list[str] = []
    stack: list[_Span] = []

    for seg_start, seg_end in zip(boundaries, boundaries[1:]):
        covering = [s for s in active_spans if s.start <= seg_start and s.end >= seg_end]

        keep = 0
        while keep < len(stack) and keep < len(covering) and stack[keep] is covering[keep]:
            keep += 1
        out.extend(_close_tag(span) for span in reversed(stack[keep:]))
        out.extend(_open_tag(span) for span in covering[keep:])
        stack = covering

        out.append(_escape_text(text[seg_start:seg_end]))

    out.extend(_close_tag(span) for span in reversed(stack))
    return "".join(out)


def _open_tag(span: _Span) -> str:
    if span.type == "hyperlink":
        href = escape(span.data.get("url") or "#")
        if span.data.get("target"):
            return f'<a href="{href}" target="{escape(span.data["target"])}" rel="noopener noreferrer">'
        return f'<a href="{href}">'
    if span.type == "label":
        return f'<span class="{escape(span.data.get("label") or "")}">'
    return f"<{span.type}>"


def _close_tag(span: _Span) -> str:
    if span.type == "hyperlink":
        return "</a>"
    if span.type == "label":
        return "</span>"
    return f"</{span.type}>"


def _escape_text(text: str) -> str:
    return str(escape(text)).replace("\n", "<br />")
