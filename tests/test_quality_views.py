import pytest

import views.quality as quality_view
from app import app as flask_app
from database import create_standalone_connection, setup_database
from repositories.books_repo import get_book, upsert_book
from services.update_sweep import SweepItem, SweepReport


@pytest.fixture
def conn(monkeypatch):
    connection = create_standalone_connection(":memory:")
    setup_database(connection)
    monkeypatch.setattr(quality_view, "get_db", lambda: connection)
    flask_app.extensions.pop("scan_caches", None)
    yield connection
    flask_app.extensions.pop("scan_caches", None)
    connection.close()


def _client():
    flask_app.config["TESTING"] = True
    return flask_app.test_client()


def test_duplicates_endpoint_is_cached(conn):
    upsert_book(conn, "a", {"title": "Solo Leveling"})
    upsert_book(conn, "b", {"title": "Solo Leveling: Ragnarok"})
    client = _client()

    first = client.get("/api/quality/duplicates").get_json()
    upsert_book(conn, "c", {"title": "Solo Leveling Side Story"})
    second = client.get("/api/quality/duplicates").get_json()
    refreshed = client.get("/api/quality/duplicates?refresh=1").get_json()

    assert len(first["pairs"]) == 1
    assert first["cached"] is False
    assert second == {"pairs": first["pairs"], "cached": True}
    assert len(refreshed["pairs"]) == 2


def test_similar_genres_endpoint(conn):
    upsert_book(conn, "a", {"title": "A", "genres": ["SciFi"]})
    upsert_book(conn, "b", {"title": "B", "genres": ["SciFi", "Sci-Fi"]})

    payload = _client().get("/api/quality/similar-genres").get_json()

    assert payload["pairs"][0]["keep_genre"] == "SciFi"
    assert payload["pairs"][0]["merge_genre"] == "Sci-Fi"
    assert payload["pairs"][0]["keep_count"] == 2


def test_merge_genres_endpoint_validates_and_merges(conn):
    upsert_book(conn, "a", {"title": "A", "genres": ["Sci-Fi", "Drama"]})
    client = _client()

    bad = client.post("/api/quality/genres/merge", json={"pairs": [{"keep_genre": "SciFi"}]})
    good = client.post(
        "/api/quality/genres/merge",
        json={"pairs": [{"keep_genre": "SciFi", "merge_genre": "Sci-Fi"}]},
    )

    assert bad.status_code == 400
    assert good.status_code == 200
    assert good.get_json()["updated_books"] == 1
    assert get_book(conn, "a")["genres"] == ["SciFi", "Drama"]


def test_merge_genres_endpoint_failure_keeps_books_and_clears_caches(conn, monkeypatch):
    upsert_book(conn, "a", {"title": "A", "genres": ["Sci-Fi"]})
    client = _client()
    client.get("/api/quality/duplicates")
    assert "duplicates" in flask_app.extensions["scan_caches"]
    monkeypatch.setattr(
        quality_view,
        "list_books",
        lambda _conn, status=None: [get_book(conn, "a"), {"id": "gone", "genres": ["Sci-Fi"]}],
    )

    response = client.post(
        "/api/quality/genres/merge",
        json={"pairs": [{"keep_genre": "SciFi", "merge_genre": "Sci-Fi"}]},
    )

    assert response.status_code == 500
    assert response.get_json() == {"error": "Failed to merge genres"}
    assert get_book(conn, "a")["genres"] == ["Sci-Fi"]
    assert flask_app.extensions["scan_caches"] == {}


def test_stale_waiting_endpoint(conn):
    upsert_book(conn, "done", {"title": "Done", "status": "waiting", "latest_chapter": "Chapter 99 [END]"})
    upsert_book(conn, "fresh", {"title": "Fresh", "status": "waiting", "latest_chapter": "Chapter 3"})

    payload = _client().get("/api/quality/stale-waiting").get_json()

    assert [book["id"] for book in payload["books"]] == ["done"]


def test_check_waiting_endpoint_invalidates_caches(conn, monkeypatch):
    async def fake_sweep(_conn, books):
        return SweepReport(items=[SweepItem(book_id="x", title="X", outcome="updated", changes=["Chapters: 1 → 2"])])

    monkeypatch.setattr(quality_view, "check_waiting_updates", fake_sweep)
    client = _client()
    client.get("/api/quality/stale-waiting")
    assert "stale_waiting" in flask_app.extensions["scan_caches"]

    response = client.post("/api/books/check-waiting")

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["summary"] == "Checked 1 waiting books; updated 1; skipped 0; errors 0."
    assert flask_app.extensions["scan_caches"] == {}


def test_quality_endpoint_does_not_leak_exception_details(monkeypatch):
    def exploding_db():
        raise RuntimeError("secret-details")

    monkeypatch.setattr(quality_view, "get_db", exploding_db)

    response = _client().get("/api/quality/similar-genres")

    assert response.status_code == 500
    assert "secret-details" not in response.get_data(as_text=True)
