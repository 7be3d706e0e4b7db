"""Field extractors for series metadata.

Every extractor takes a :class:`~services.document.RawDocument` plus the
layout-specific selectors of the active scraper and returns a best-effort
value. Missing markup yields an empty string, empty list or ``None``; nothing
here raises for absent data.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin

from services.document import RawDocument, compile_label
from services.models import UNKNOWN_TITLE
from utils.text import clean_text

_TITLE_SUFFIX_RE = re.compile(r"\s+-\s+Read\s+Free.*$", re.IGNORECASE)
_SEPARATOR_RE = re.compile(r"^[\s,/|·•\-]+$")
_LABEL_TAGS = ("b", "strong", "span", "div", "h4", "h5", "label")
_GENRE_LABEL_RE = compile_label("genres?")
_TYPE_LABEL_RE = compile_label("(?:type|original type)")
_LANGUAGE_LABEL_RE = re.compile(r"^\s*(?:tr\s+from|translated\s+from|original\s+language)\s*:?\s*$", re.IGNORECASE)
_HAS_LETTER_RE = re.compile(r"[^\W\d_]", re.UNICODE)

# Checked in order: "manhua"/"manhwa" must win before the shorter "manga".
SERIES_TYPE_LANGUAGES = (
    ("manhwa", "Korean"),
    ("manhua", "Chinese"),
    ("manga", "Japanese"),
)


def strip_title_suffix(title: str) -> str:
    return _TITLE_SUFFIX_RE.sub("", clean_text(title)).strip()


def _first_text(document: RawDocument, selectors: Iterable[str]) -> str:
    for selector in selectors:
        node = document.select_one(selector)
        if node is None:
            continue
        text = node.text()
        if text:
            return text
    return ""


def extract_title(document: RawDocument, heading_selectors: Sequence[str] = ()) -> str:
    title = _first_text(document, heading_selectors)
    if title:
        return title

    og_title = strip_title_suffix(document.meta_content("og:title"))
    if og_title:
        return og_title

    raw_title = strip_title_suffix(document.title_text())
    if raw_title:
        return raw_title
    return UNKNOWN_TITLE


def extract_description(document: RawDocument, description_selectors: Sequence[str] = ()) -> str:
    description = _first_text(document, description_selectors)
    if description:
        return description
    return document.meta_content("og:description") or document.meta_content("description")


def absolutize_url(value: str, base_url: str) -> str:
    """Rewrite a root-relative path (``/img/x.jpg``) against ``base_url``."""
    if value.startswith("/"):
        return urljoin(base_url.rstrip("/") + "/", value)
    return value


def extract_cover_image(
    document: RawDocument,
    image_selectors: Sequence[str] = (),
    base_url: str = "",
) -> Optional[str]:
    image = document.meta_content("og:image")
    if not image:
        for selector in image_selectors:
            node = document.select_one(selector)
            src = clean_text(node.attr("src") or "") if node is not None else ""
            if src:
                image = src
                break
    if not image:
        return None
    return absolutize_url(image, base_url) if base_url else image


def _collect_unique(texts: Iterable[str], excluded: Iterable[str] = ()) -> List[str]:
    excluded_keys = {text.lower() for text in excluded if text}
    seen = set()
    ordered: List[str] = []
    for raw in texts:
        text = clean_text(raw)
        if not text or _SEPARATOR_RE.match(text):
            continue
        if text.lower() in excluded_keys or _GENRE_LABEL_RE.match(text):
            continue
        if text in seen:
            continue
        seen.add(text)
        ordered.append(text)
    return ordered


def extract_genres(
    document: RawDocument,
    item_selector: str = "span",
    direct_selectors: Sequence[str] = (),
) -> List[str]:
    """Collect genre chips, de-duplicated in first-seen order.

    Genres are read from the container of a ``Genres:`` label. Layouts that
    render genres without a label provide ``direct_selectors`` instead.
    """
    for label in document.find_labels(_LABEL_TAGS, _GENRE_LABEL_RE):
        container = label if label.select(item_selector) else label.parent()
        if container is None:
            continue
        texts = [node.text() for node in container.select(item_selector) if node != label]
        genres = _collect_unique(texts, excluded=[label.text()])
        if genres:
            return genres

    for selector in direct_selectors:
        genres = _collect_unique(node.text() for node in document.select(selector))
        if genres:
            return genres
    return []


def _language_from_series_type(document: RawDocument) -> Optional[str]:
    for label in document.find_labels(_LABEL_TAGS, _TYPE_LABEL_RE):
        container = label.parent()
        if container is None:
            continue
        type_text = " ".join(label.following_sibling_texts()).lower()
        if not type_text:
            type_text = container.text().lower()
        for keyword, language in SERIES_TYPE_LANGUAGES:
            if keyword in type_text:
                return language
    return None


def extract_original_language(document: RawDocument) -> Optional[str]:
    """Read the language next to a "Tr From" label, else infer it from the series type."""
    for label in document.find_labels(_LABEL_TAGS, _LANGUAGE_LABEL_RE):
        # Flag glyphs between the label and the language carry no letters.
        for text in label.following_sibling_texts():
            if _HAS_LETTER_RE.search(text):
                return text
    return _language_from_series_type(document)
