"""Per-layout extraction strategies and the single profile dispatch point."""

from services.site_profile import SiteProfile

from .base_scraper import SiteScraper
from .bato_v2_scraper import BatoV2Scraper
from .bato_v3_scraper import BatoV3Scraper
from .webtoons_scraper import WebtoonsScraper

SCRAPERS = {scraper.PROFILE: scraper for scraper in (WebtoonsScraper, BatoV2Scraper, BatoV3Scraper)}
# Unknown hosts get the newest generic layout.
SCRAPERS[SiteProfile.UNRECOGNIZED] = BatoV3Scraper


def get_scraper(profile: SiteProfile) -> SiteScraper:
    return SCRAPERS[profile]()


__all__ = ["SCRAPERS", "SiteScraper", "get_scraper"]
