"""Small text helpers shared across the site."""

import re
from unicodedata import normalize

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str, max_len: int = 60) -> str:
    """Anchor-safe slug: accents folded to ASCII, runs of anything else become one ``-``.

    ``"Introdução ao React"`` gives ``"introducao-ao-react"``. Text with no
    letters or digits gives ``"untitled"``.
    """
    ascii_text = normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    slug = _NON_ALNUM.sub("-", ascii_text.lower()).strip("-")
    return slug[:max_len].rstrip("-") or "untitled"


def count_words(text: str) -> int:
    """Count whitespace-separated tokens. Empty or blank text has no words."""
    return len(text.split())
