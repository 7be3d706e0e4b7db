from scrapers.bato_v2_scraper import BatoV2Scraper
from scrapers.bato_v3_scraper import BatoV3Scraper
from services.document import RawDocument

V2_PAGE = """
<html><body>
  <div class="w-24"><img src="/media/cover.jpg"></div>
  <h3 class="font-bold"><a href="/title/1">Solo Max-Level Newbie</a></h3>
  <div class="limit-html-p">A gamer dives in.</div>
  <div><b>Genres:</b><span>Action</span><span>Fantasy</span></div>
  <div><span>Tr From</span><span>Korean</span></div>
  <div class="group flex flex-col">
    <div><a class="link-hover" href="/title/1/ch-200">Chapter 200</a><time time="1735732800000"></time></div>
    <div><a class="link-hover" href="/title/1/ch-199">Chapter 199</a><time time="1735128000000"></time></div>
  </div>
</body></html>
"""


def test_v2_first_row_is_latest():
    latest = BatoV2Scraper().extract_latest(RawDocument(V2_PAGE))

    assert latest.latest_chapter_label == "Chapter 200"
    assert latest.last_uploaded_at == "2025-01-01T12:00:00.000Z"
    assert latest.chapter_count == 2


def test_v2_metadata():
    metadata = BatoV2Scraper().extract_metadata(RawDocument(V2_PAGE))

    assert metadata.title == "Solo Max-Level Newbie"
    assert metadata.description == "A gamer dives in."
    assert metadata.cover_image_url == "https://bato.ing/media/cover.jpg"
    assert metadata.genres == ["Action", "Fantasy"]
    assert metadata.original_language == "Korean"


def test_v2_count_from_chapters_heading_without_list():
    latest = BatoV2Scraper().extract_latest(RawDocument("<div><b>Chapters</b><span>(152)</span></div>"))

    assert latest.latest_chapter_label == ""
    assert latest.last_uploaded_at is None
    assert latest.chapter_count == 152


def _v3_page(rows):
    return '<div name="chapter-list">' + "".join(rows) + "</div>"


def test_v3_picks_greatest_timestamp_and_counts_unique_links():
    page = _v3_page([
        '<div><a href="/title/9/c1">Chapter 1</a><time data-time="1000"></time></div>',
        '<div><a href="/title/9/c2">Chapter 2</a><time data-time="2000"></time></div>',
        '<div><a href="/title/9/c2">Chapter 2</a></div>',
        '<div><a href="/title/9/c3">Chapter 3</a></div>',
        '<div><a href="/title/9/c4">Chapter 4</a></div>',
        '<div><a href="/title/9/comments">  </a></div>',
        '<div><a href="/user/5">Uploader</a></div>',
    ])

    latest = BatoV3Scraper().extract_latest(RawDocument(page))

    assert latest.latest_chapter_label == "Chapter 2"
    assert latest.last_uploaded_at == "1970-01-01T00:00:02.000Z"
    assert latest.chapter_count == 4


def test_v3_descending_list_still_picks_newest():
    page = _v3_page([
        '<div><a href="/title/9/c3">Chapter 3</a><time datetime="2025-03-01T00:00:00Z"></time></div>',
        '<div><a href="/title/9/c2">Chapter 2</a><time datetime="2025-02-01T00:00:00Z"></time></div>',
    ])

    latest = BatoV3Scraper().extract_latest(RawDocument(page))

    assert latest.latest_chapter_label == "Chapter 3"
    assert latest.last_uploaded_at == "2025-03-01T00:00:00.000Z"


def test_v3_without_timestamps_takes_last_candidate():
    page = _v3_page([
        '<div><a href="/title/9/c1">Chapter 1</a></div>',
        '<div><a href="/title/9/c2">Chapter 2</a></div>',
        '<div><a href="/title/9/c3">Chapter 3</a></div>',
    ])

    latest = BatoV3Scraper().extract_latest(RawDocument(page))

    assert latest.latest_chapter_label == "Chapter 3"
    assert latest.last_uploaded_at is None
    assert latest.chapter_count == 3


def test_v3_empty_page_is_empty_update():
    assert BatoV3Scraper().extract_latest(RawDocument("<html></html>")).is_empty
