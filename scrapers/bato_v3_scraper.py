import re

import config
from services.document import RawDocument
from services.models import ChapterUpdate
from services.site_profile import SiteProfile
from utils.time import to_iso_z
from .base_scraper import SiteScraper, parse_chapters_heading, parse_time_node


class BatoV3Scraper(SiteScraper):
    """
    Generic aggregator layout (Bato v3 and look-alikes).

    Chapter lists may run in either direction, so the newest chapter is the
    candidate with the greatest timestamp rather than the first or last row.
    """

    PROFILE = SiteProfile.BATO_V3
    CANONICAL_BASE_URL = config.BATO_BASE_URL
    TITLE_SELECTORS = ("h3.font-bold a",)
    DESCRIPTION_SELECTORS = (".limit-html-p",)
    COVER_IMAGE_SELECTORS = ("div.w-24 img",)

    CHAPTER_AREA_SELECTORS = ('[name="chapter-list"]', ".scrollable-panel")
    CANDIDATE_SELECTOR = '[name="chapter-list"] a, .scrollable-panel a'
    TITLE_HREF_RE = re.compile(r"/title/")

    def _candidates(self, document: RawDocument):
        candidates = []
        for anchor in document.select(self.CANDIDATE_SELECTOR):
            if anchor.text() and self.TITLE_HREF_RE.search(anchor.attr("href") or ""):
                candidates.append(anchor)
        return candidates

    def _fallback_time(self, document: RawDocument):
        for area_selector in self.CHAPTER_AREA_SELECTORS:
            for time_node in reversed(document.select(f"{area_selector} time")):
                timestamp = parse_time_node(time_node)
                if timestamp is not None:
                    return timestamp
        page_times = document.select("time")
        return parse_time_node(page_times[-1]) if page_times else None

    def extract_latest(self, document: RawDocument) -> ChapterUpdate:
        candidates = self._candidates(document)

        best_label = ""
        best_timestamp = None
        for anchor in candidates:
            row = anchor.closest("div")
            timestamp = parse_time_node(row.select_one("time") if row is not None else None)
            if timestamp is not None and (best_timestamp is None or timestamp > best_timestamp):
                best_timestamp = timestamp
                best_label = anchor.text()

        if best_timestamp is None and candidates:
            best_label = candidates[-1].text()

        unique_keys = set()
        for anchor in candidates:
            key = (anchor.attr("href") or "").strip() or anchor.text()
            if key:
                unique_keys.add(key)

        uploaded = best_timestamp if best_timestamp is not None else self._fallback_time(document)
        count = len(unique_keys) or parse_chapters_heading(document)

        return ChapterUpdate(
            latest_chapter_label=best_label,
            last_uploaded_at=to_iso_z(uploaded) if uploaded else None,
            chapter_count=count,
        )
