import re
from datetime import timedelta
from typing import Optional

import config
from services.document import RawDocument
from services.models import ChapterUpdate
from services.site_profile import SiteProfile
from utils.time import midday_utc, parse_month_day_year, to_iso_z
from .base_scraper import SiteScraper

_EPISODE_NO_RE = re.compile(r"#?(\d+)")


class WebtoonsScraper(SiteScraper):
    """webtoons.com series pages (desktop list, mobile list as fallback)."""

    PROFILE = SiteProfile.WEBTOONS
    CANONICAL_BASE_URL = config.WEBTOONS_BASE_URL
    TITLE_SELECTORS = ("div.info h1.subj", "h1.subj")
    DESCRIPTION_SELECTORS = ("p.summary",)
    COVER_IMAGE_SELECTORS = ("div.detail_header span.thmb img", "span.thmb img")
    GENRE_DIRECT_SELECTORS = ("div.info h2.genre", "div.info p.genre", "h2.genre", "p.genre")

    EPISODE_ITEM_SELECTOR = "ul#_listUl li._episodeItem"
    MOBILE_ITEM_SELECTOR = "ul#_episodeList li.item"
    # webtoons.com shows dates one day behind for the negative-offset
    # timezones this service targets.
    UPLOAD_DATE_SHIFT = timedelta(days=1)

    @staticmethod
    def _episode_number(item) -> Optional[int]:
        raw = (item.attr("data-episode-no") or "").strip()
        if raw.isdigit():
            return int(raw)
        aux = item.select_one("span.tx")
        match = _EPISODE_NO_RE.search(aux.text()) if aux is not None else None
        return int(match.group(1)) if match else None

    def parse_upload_date(self, text: str) -> Optional[str]:
        day = parse_month_day_year(text)
        if day is None:
            return None
        return to_iso_z(midday_utc(day + self.UPLOAD_DATE_SHIFT))

    def extract_latest(self, document: RawDocument) -> ChapterUpdate:
        items = document.select(self.EPISODE_ITEM_SELECTOR)
        mobile_items = document.select(self.MOBILE_ITEM_SELECTOR)
        latest = (items or mobile_items or [None])[0]
        if latest is None:
            return ChapterUpdate()

        label_node = latest.select_one("span.subj") or latest.select_one(".sub_title")
        label = label_node.text() if label_node is not None else ""

        date_node = latest.select_one("span.date")
        uploaded_at = self.parse_upload_date(date_node.text()) if date_node is not None else None

        episode_no = self._episode_number(latest)
        visible_count = len(items) or len(mobile_items)
        best_count = max(visible_count, episode_no or 0)

        return ChapterUpdate(
            latest_chapter_label=label,
            last_uploaded_at=uploaded_at,
            chapter_count=best_count if best_count > 0 else None,
        )
