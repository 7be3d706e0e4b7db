"""Structured records produced by the extraction engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from utils.text import clean_text
from utils.time import parse_iso_utc, to_iso_z

UNKNOWN_TITLE = "Unknown Title"


def normalize_count(value: Any) -> Optional[int]:
    """Coerce a scraped/stored chapter count into a positive int or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")) or number <= 0:
        return None
    if not number.is_integer():
        return None
    return int(number)


def normalize_timestamp(value: Any) -> Optional[str]:
    """Return ``value`` as a canonical ISO instant, or ``None`` if unusable."""
    parsed = parse_iso_utc(value) if isinstance(value, str) else None
    return to_iso_z(parsed) if parsed else None


@dataclass
class MetadataRecord:
    title: str = UNKNOWN_TITLE
    description: str = ""
    cover_image_url: Optional[str] = None
    genres: List[str] = field(default_factory=list)
    original_language: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "image": self.cover_image_url,
            "genres": list(self.genres),
            "original_language": self.original_language,
        }


@dataclass
class ChapterUpdate:
    """Latest-chapter fields scraped from a series page.

    ``chapter_count`` is either a positive int or ``None``; ``last_uploaded_at``
    is either a canonical ISO instant or ``None``.
    """

    latest_chapter_label: str = ""
    last_uploaded_at: Optional[str] = None
    chapter_count: Optional[int] = None

    def __post_init__(self):
        self.latest_chapter_label = clean_text(self.latest_chapter_label)
        self.last_uploaded_at = normalize_timestamp(self.last_uploaded_at)
        self.chapter_count = normalize_count(self.chapter_count)

    @property
    def is_empty(self) -> bool:
        return not self.latest_chapter_label and self.last_uploaded_at is None and self.chapter_count is None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ChapterUpdate":
        label = payload.get("latest_chapter")
        return cls(
            latest_chapter_label=label if isinstance(label, str) else ("" if label is None else str(label)),
            last_uploaded_at=payload.get("last_uploaded_at"),
            chapter_count=payload.get("chapter_count"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "latest_chapter": self.latest_chapter_label,
            "last_uploaded_at": self.last_uploaded_at,
            "chapter_count": self.chapter_count,
        }
