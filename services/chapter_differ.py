"""Decide whether freshly scraped chapter fields are a material update.

Upload timestamps are compared on their UTC calendar day only, so re-fetching
the same day with a different time-of-day never counts as a change. Fields
that did not change are never part of the persisted update.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from services.models import ChapterUpdate, normalize_count
from utils.record import read_field
from utils.time import parse_iso_utc, utc_calendar_date

FIELD_CHAPTER = "chapter"
FIELD_UPLOAD = "upload"
FIELD_COUNT = "count"

SKIP_NO_CHANGE = "no_change"
SKIP_EMPTY_PAYLOAD = "empty_payload"
SKIP_NO_URL = "no_url"

# Changed field → persisted book column.
FIELD_COLUMNS = {
    FIELD_CHAPTER: "latest_chapter",
    FIELD_UPLOAD: "last_uploaded_at",
    FIELD_COUNT: "chapter_count",
}


def normalize_label(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


@dataclass(frozen=True)
class PreviousChapterState:
    chapter_label: Optional[str] = None
    uploaded_at: Optional[str] = None
    chapter_count: Optional[int] = None

    @classmethod
    def from_book(cls, book: Any) -> "PreviousChapterState":
        return cls(
            chapter_label=read_field(book, "latest_chapter"),
            uploaded_at=read_field(book, "last_uploaded_at"),
            chapter_count=read_field(book, "chapter_count"),
        )


@dataclass(frozen=True)
class ChangeDecision:
    has_change: bool
    changed_fields: FrozenSet[str] = frozenset()
    previous_values: Dict[str, Any] = field(default_factory=dict)
    new_values: Dict[str, Any] = field(default_factory=dict)
    skip_reason: Optional[str] = None

    def field_updates(self) -> Dict[str, Any]:
        """Columns to persist: only the fields flagged as changed."""
        return {
            FIELD_COLUMNS[name]: self.new_values[name]
            for name in (FIELD_CHAPTER, FIELD_UPLOAD, FIELD_COUNT)
            if name in self.changed_fields
        }

    def describe_changes(self) -> List[str]:
        lines = []
        if FIELD_CHAPTER in self.changed_fields:
            lines.append(
                f"Latest: {self.previous_values.get(FIELD_CHAPTER) or '—'} → {self.new_values[FIELD_CHAPTER] or '—'}"
            )
        if FIELD_UPLOAD in self.changed_fields:
            lines.append(
                f"Upload: {self.previous_values.get(FIELD_UPLOAD) or '—'} → {self.new_values[FIELD_UPLOAD] or '—'}"
            )
        if FIELD_COUNT in self.changed_fields:
            previous_count = self.previous_values.get(FIELD_COUNT)
            lines.append(f"Chapters: {previous_count if previous_count is not None else '—'} → {self.new_values[FIELD_COUNT]}")
        return lines


def diff_latest(previous: PreviousChapterState, fetched: ChapterUpdate) -> ChangeDecision:
    previous_label = normalize_label(previous.chapter_label)
    previous_count = normalize_count(previous.chapter_count)
    previous_values = {
        FIELD_CHAPTER: previous_label,
        FIELD_UPLOAD: previous.uploaded_at,
        FIELD_COUNT: previous_count,
    }

    fetched_label = normalize_label(fetched.latest_chapter_label)
    fetched_upload = fetched.last_uploaded_at if parse_iso_utc(fetched.last_uploaded_at) else None
    fetched_count = normalize_count(fetched.chapter_count)
    new_values = {
        FIELD_CHAPTER: fetched_label,
        FIELD_UPLOAD: fetched_upload,
        FIELD_COUNT: fetched_count,
    }

    if not fetched_label and fetched_upload is None and fetched_count is None:
        return ChangeDecision(
            has_change=False,
            previous_values=previous_values,
            new_values=new_values,
            skip_reason=SKIP_EMPTY_PAYLOAD,
        )

    changed = set()
    if fetched_label and fetched_label != previous_label:
        changed.add(FIELD_CHAPTER)
    if fetched_upload is not None and utc_calendar_date(fetched_upload) != utc_calendar_date(previous.uploaded_at):
        changed.add(FIELD_UPLOAD)
    if fetched_count is not None and fetched_count != previous_count:
        changed.add(FIELD_COUNT)

    return ChangeDecision(
        has_change=bool(changed),
        changed_fields=frozenset(changed),
        previous_values=previous_values,
        new_values=new_values,
        skip_reason=None if changed else SKIP_NO_CHANGE,
    )


def diff_payload(book: Mapping[str, Any], payload: Mapping[str, Any]) -> ChangeDecision:
    """Convenience wrapper: stored book row vs a ``fetch_latest`` payload."""
    return diff_latest(PreviousChapterState.from_book(book), ChapterUpdate.from_payload(payload))
