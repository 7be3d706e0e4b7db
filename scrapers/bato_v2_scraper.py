import config
from services.document import RawDocument
from services.models import ChapterUpdate
from services.site_profile import SiteProfile
from utils.time import to_iso_z
from .base_scraper import SiteScraper, parse_chapters_heading, parse_time_node


class BatoV2Scraper(SiteScraper):
    """bato.ing / bato.si: the first row of the chapter list is the newest."""

    PROFILE = SiteProfile.BATO_V2
    CANONICAL_BASE_URL = config.BATO_BASE_URL
    TITLE_SELECTORS = ("h3.font-bold a", "h3.item-title a")
    DESCRIPTION_SELECTORS = (".limit-html-p", "#limit-height-body-summary .limit-html")
    COVER_IMAGE_SELECTORS = ("div.w-24 img", "div.attr-cover img")

    CHAPTER_LIST_SELECTOR = ".group.flex.flex-col"
    CHAPTER_LINK_SELECTORS = ("a.link-hover", "a.chapt", "a")

    def extract_latest(self, document: RawDocument) -> ChapterUpdate:
        chapter_list = document.select_one(self.CHAPTER_LIST_SELECTOR)
        rows = chapter_list.children() if chapter_list is not None else []

        label = ""
        uploaded_at = None
        if rows:
            first_row = rows[0]
            for selector in self.CHAPTER_LINK_SELECTORS:
                link = first_row.select_one(selector)
                if link is not None and link.text():
                    label = link.text()
                    break
            timestamp = parse_time_node(first_row.select_one("time"))
            uploaded_at = to_iso_z(timestamp) if timestamp else None

        count = len(rows) or parse_chapters_heading(document)
        return ChapterUpdate(latest_chapter_label=label, last_uploaded_at=uploaded_at, chapter_count=count)
