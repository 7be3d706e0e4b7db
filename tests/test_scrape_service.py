import asyncio

from services import scrape_service
from services.html_fetcher import FetchError, FetchedPage

BATO_PAGE = """
<html><head><meta property="og:title" content="Nano Machine - Read Free Manga Online"></head>
<body>
  <div><b>Genres:</b><span>Action</span><span>Martial Arts</span></div>
  <div class="group flex flex-col">
    <div><a class="link-hover" href="/title/nano/ch-200">Chapter 200</a><time time="1735732800000"></time></div>
  </div>
</body></html>
"""


def _fake_fetch(html, final_url):
    async def fake_fetch_html(url, session=None):
        return FetchedPage(requested_url=url, final_url=final_url, status=200, html=html)

    return fake_fetch_html


def test_fetch_metadata_combines_metadata_and_latest(monkeypatch):
    monkeypatch.setattr(scrape_service, "fetch_html", _fake_fetch(BATO_PAGE, "https://bato.ing/title/nano"))

    result = asyncio.run(scrape_service.fetch_metadata("https://dto.to/title/nano"))

    metadata = result["metadata"]
    assert metadata["title"] == "Nano Machine"
    assert metadata["genres"] == ["Action", "Martial Arts"]
    assert metadata["latest_chapter"] == "Chapter 200"
    assert metadata["last_uploaded_at"] == "2025-01-01T12:00:00.000Z"
    assert metadata["chapter_count"] == 1
    assert metadata["image"] is None


def test_fetch_latest_payload(monkeypatch):
    monkeypatch.setattr(scrape_service, "fetch_html", _fake_fetch(BATO_PAGE, "https://bato.ing/title/nano"))

    result = asyncio.run(scrape_service.fetch_latest("https://bato.ing/title/nano"))

    assert result == {
        "latest_chapter": "Chapter 200",
        "last_uploaded_at": "2025-01-01T12:00:00.000Z",
        "chapter_count": 1,
    }


def test_missing_url_is_an_error():
    assert asyncio.run(scrape_service.fetch_metadata("")) == {"error": "No URL provided"}
    assert asyncio.run(scrape_service.fetch_latest("   ")) == {"error": "No URL provided"}


def test_fetch_failure_becomes_error_payload(monkeypatch):
    async def failing_fetch(url, session=None):
        raise FetchError(500, "Failed to fetch site: 500")

    monkeypatch.setattr(scrape_service, "fetch_html", failing_fetch)

    assert asyncio.run(scrape_service.fetch_latest("https://bato.ing/title/x")) == {"error": "Failed to fetch site: 500"}
    assert asyncio.run(scrape_service.fetch_metadata("https://bato.ing/title/x")) == {"error": "Failed to fetch site: 500"}


def test_unparseable_page_still_returns_defaults(monkeypatch):
    monkeypatch.setattr(scrape_service, "fetch_html", _fake_fetch("<html></html>", "https://example.org/x"))

    result = asyncio.run(scrape_service.fetch_metadata("https://example.org/x"))

    assert result["metadata"]["title"] == "Unknown Title"
    assert result["metadata"]["genres"] == []
    assert result["metadata"]["chapter_count"] is None
