#scrapers/base_scraper.py
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence, Tuple

import config
from services.document import Node, RawDocument
from services.metadata_extractor import (
    extract_cover_image,
    extract_description,
    extract_genres,
    extract_original_language,
    extract_title,
)
from services.models import ChapterUpdate, MetadataRecord
from services.site_profile import SiteProfile
from utils.time import from_epoch_millis, parse_iso_utc

TIME_ATTRIBUTES = ("time", "data-time", "datetime")
_CHAPTERS_HEADING_RE = re.compile(r"^\s*chapters\b", re.IGNORECASE)
_FIRST_INT_RE = re.compile(r"(\d+)")
_NUMERIC_RE = re.compile(r"^-?\d+(?:\.\d+)?$")


def parse_time_node(node: Optional[Node]) -> Optional[datetime]:
    """Read a machine-readable timestamp from a ``<time>`` element.

    Attributes are tried as ``time`` (epoch ms), ``data-time`` (epoch ms), then
    ``datetime`` (ISO); a numeric value is epoch milliseconds wherever it
    appears.
    """
    if node is None:
        return None
    for attribute in TIME_ATTRIBUTES:
        raw = (node.attr(attribute) or "").strip()
        if not raw:
            continue
        parsed = from_epoch_millis(raw) if _NUMERIC_RE.match(raw) else parse_iso_utc(raw)
        if parsed is not None:
            return parsed
    return None


def parse_chapters_heading(document: RawDocument) -> Optional[int]:
    """Parse ``N`` out of a "Chapters (N)" heading, or ``None``."""
    for label in document.find_labels(("b", "strong", "h2", "h3", "h4", "span", "div"), _CHAPTERS_HEADING_RE):
        candidates = []
        sibling = label.next_element_sibling()
        if sibling is not None and sibling.name == "span":
            candidates.append(sibling.text())
        candidates.append(label.own_text())
        for text in candidates:
            match = _FIRST_INT_RE.search(text)
            if match and int(match.group(1)) > 0:
                return int(match.group(1))
    return None


class SiteScraper(ABC):
    """
    Base class for a site layout's extraction rules.

    Subclasses declare the layout-specific selectors used by the generic field
    extractors and implement their own latest-chapter strategy. A scraper
    never looks at the hostname; the registry keys each class by its ``PROFILE``.
    """

    PROFILE: SiteProfile
    CANONICAL_BASE_URL: str = config.BATO_BASE_URL
    TITLE_SELECTORS: Tuple[str, ...] = ()
    DESCRIPTION_SELECTORS: Tuple[str, ...] = ()
    COVER_IMAGE_SELECTORS: Tuple[str, ...] = ()
    GENRE_ITEM_SELECTOR: str = "span"
    GENRE_DIRECT_SELECTORS: Sequence[str] = ()

    def extract_metadata(self, document: RawDocument) -> MetadataRecord:
        return MetadataRecord(
            title=extract_title(document, self.TITLE_SELECTORS),
            description=extract_description(document, self.DESCRIPTION_SELECTORS),
            cover_image_url=extract_cover_image(document, self.COVER_IMAGE_SELECTORS, self.CANONICAL_BASE_URL),
            genres=extract_genres(document, self.GENRE_ITEM_SELECTOR, self.GENRE_DIRECT_SELECTORS),
            original_language=extract_original_language(document),
        )

    @abstractmethod
    def extract_latest(self, document: RawDocument) -> ChapterUpdate:
        """
        Extract the latest chapter label, upload instant and chapter count.
        """
        raise NotImplementedError
