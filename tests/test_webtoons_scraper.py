from scrapers.webtoons_scraper import WebtoonsScraper
from services.document import RawDocument

DESKTOP_PAGE = """
<html><head><meta property="og:image" content="https://swebtoon-phinf.pstatic.net/tog.jpg"></head>
<body>
  <div class="info"><h2 class="genre">Fantasy</h2><h1 class="subj">Tower of God</h1></div>
  <p class="summary">What do you desire?</p>
  <ul id="_listUl">
    <li class="_episodeItem" data-episode-no="640">
      <a><span class="subj"><span>Episode 640</span></span><span class="date">January 1, 2025</span><span class="tx">#640</span></a>
    </li>
    <li class="_episodeItem" data-episode-no="639">
      <a><span class="subj"><span>Episode 639</span></span><span class="date">Dec 25, 2024</span><span class="tx">#639</span></a>
    </li>
  </ul>
</body></html>
"""

MOBILE_PAGE = """
<ul id="_episodeList">
  <li class="item"><span class="sub_title">Ep. 5</span><span class="date">Mar 3, 2024</span></li>
</ul>
"""


def test_latest_from_desktop_list_shifts_date_one_day():
    latest = WebtoonsScraper().extract_latest(RawDocument(DESKTOP_PAGE))

    assert latest.latest_chapter_label == "Episode 640"
    assert latest.last_uploaded_at == "2025-01-02T12:00:00.000Z"
    assert latest.chapter_count == 640


def test_latest_falls_back_to_mobile_list():
    latest = WebtoonsScraper().extract_latest(RawDocument(MOBILE_PAGE))

    assert latest.latest_chapter_label == "Ep. 5"
    assert latest.last_uploaded_at == "2024-03-04T12:00:00.000Z"
    assert latest.chapter_count == 1


def test_latest_empty_page():
    latest = WebtoonsScraper().extract_latest(RawDocument("<html></html>"))

    assert latest.is_empty


def test_metadata_from_desktop_page():
    metadata = WebtoonsScraper().extract_metadata(RawDocument(DESKTOP_PAGE))

    assert metadata.title == "Tower of God"
    assert metadata.description == "What do you desire?"
    assert metadata.cover_image_url == "https://swebtoon-phinf.pstatic.net/tog.jpg"
    assert metadata.genres == ["Fantasy"]
