"""Text normalization utilities for scraping and similarity comparisons."""

import re
import unicodedata

_WS_RE = re.compile(r"\s+", re.UNICODE)
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")


def clean_text(value):
    """Collapse runs of whitespace and trim; non-strings become ``""``."""
    if not isinstance(value, str):
        return ""
    return _WS_RE.sub(" ", value).strip()


def normalize_compare_text(value):
    """Normalize text for similarity comparisons.

    Lowercases, strips every character that is not ``a-z``/``0-9``/whitespace
    and collapses whitespace, so ``"Sci-Fi"`` and ``"SciFi"`` become equal.
    """
    if value is None:
        return ""
    text = str(value)
    if not text.strip():
        return ""
    text = unicodedata.normalize("NFKC", text).lower()
    text = _NON_ALNUM_RE.sub("", text)
    return _WS_RE.sub(" ", text).strip()


def dedupe_preserving_order(values):
    """Drop empty and repeated strings, keeping first-seen order."""
    deduped = []
    seen = set()
    for raw in values:
        text = clean_text(raw)
        if not text or text in seen:
            continue
        seen.add(text)
        deduped.append(text)
    return deduped
