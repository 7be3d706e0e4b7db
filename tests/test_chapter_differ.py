from services.chapter_differ import (
    FIELD_CHAPTER,
    FIELD_COUNT,
    FIELD_UPLOAD,
    SKIP_EMPTY_PAYLOAD,
    SKIP_NO_CHANGE,
    PreviousChapterState,
    diff_latest,
    diff_payload,
)
from services.models import ChapterUpdate, normalize_count


def test_empty_payload_is_skipped():
    previous = PreviousChapterState("Chapter 10", "2025-01-01T00:00:00.000Z", 10)

    decision = diff_latest(previous, ChapterUpdate())

    assert decision.has_change is False
    assert decision.skip_reason == SKIP_EMPTY_PAYLOAD
    assert decision.field_updates() == {}


def test_same_day_upload_is_not_a_change():
    previous = PreviousChapterState("Chapter 10", "2025-01-01T03:00:00.000Z", 10)
    fetched = ChapterUpdate("Chapter 10", "2025-01-01T22:45:00.000Z", 10)

    decision = diff_latest(previous, fetched)

    assert decision.has_change is False
    assert decision.skip_reason == SKIP_NO_CHANGE


def test_labels_are_compared_after_trimming():
    previous = PreviousChapterState("  Chapter 10 ", None, None)

    assert diff_latest(previous, ChapterUpdate("Chapter 10")).has_change is False


def test_only_changed_fields_are_persisted():
    previous = PreviousChapterState("Chapter 10", "2025-01-01T00:00:00.000Z", 10)
    fetched = ChapterUpdate("Chapter 11", "2025-01-01T18:00:00.000Z", 11)

    decision = diff_latest(previous, fetched)

    assert decision.changed_fields == frozenset({FIELD_CHAPTER, FIELD_COUNT})
    assert decision.field_updates() == {"latest_chapter": "Chapter 11", "chapter_count": 11}
    assert decision.describe_changes() == ["Latest: Chapter 10 → Chapter 11", "Chapters: 10 → 11"]


def test_absent_fetched_fields_never_overwrite():
    previous = PreviousChapterState("Chapter 10", "2025-01-01T00:00:00.000Z", 10)
    fetched = ChapterUpdate("", "2025-02-01T00:00:00.000Z", None)

    decision = diff_latest(previous, fetched)

    assert decision.changed_fields == frozenset({FIELD_UPLOAD})
    assert decision.field_updates() == {"last_uploaded_at": "2025-02-01T00:00:00.000Z"}


def test_first_fetch_against_empty_book():
    decision = diff_payload(
        {"latest_chapter": None, "last_uploaded_at": None, "chapter_count": None},
        {"latest_chapter": "Ch. 1", "last_uploaded_at": "2025-05-05T12:00:00.000Z", "chapter_count": 1},
    )

    assert decision.has_change is True
    assert decision.describe_changes() == [
        "Latest: — → Ch. 1",
        "Upload: — → 2025-05-05T12:00:00.000Z",
        "Chapters: — → 1",
    ]


def test_unparseable_upload_counts_as_absent():
    decision = diff_payload(
        {"latest_chapter": "Ch. 1", "last_uploaded_at": None, "chapter_count": 1},
        {"latest_chapter": "Ch. 1", "last_uploaded_at": "yesterday", "chapter_count": 1},
    )

    assert decision.has_change is False
    assert decision.skip_reason == SKIP_NO_CHANGE


def test_counts_must_be_positive_whole_numbers():
    assert normalize_count(12) == 12
    assert normalize_count("12") == 12
    assert normalize_count(3.0) == 3
    assert normalize_count(2.5) is None
    assert normalize_count(2.6) is None
    assert normalize_count("7.2") is None
    assert normalize_count(0) is None
    assert normalize_count(-4) is None
    assert normalize_count(True) is None
    assert normalize_count("n/a") is None
