"""Bulk sweeps over the bookshelf: waiting-shelf update check and chapter-count backfill.

Both sweeps fetch in fixed batches (``config.UPDATE_SWEEP_BATCH_SIZE`` items
at a time, ``config.BATCH_DELAY_SECONDS`` between batches) and record one
outcome per book. A failure for one book never aborts the rest.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import aiohttp

import config
from repositories.books_repo import MaterializationError, update_book_fields
from services.chapter_differ import SKIP_NO_URL, diff_payload
from services.html_fetcher import build_timeout
from services.models import normalize_count
from services.scrape_service import fetch_latest, fetch_metadata
from utils.batching import run_in_batches
from utils.record import first_source_url, read_field
from utils.time import now_utc, to_iso_z

LOGGER = logging.getLogger(__name__)

STATUS_WAITING = "waiting"

OUTCOME_UPDATED = "updated"
OUTCOME_SKIPPED = "skipped"
OUTCOME_ERROR = "error"

SKIP_NO_CHAPTER_COUNT = "No chapter count in metadata"


@dataclass
class SweepItem:
    book_id: Any
    title: str
    outcome: str
    reason: Optional[str] = None
    changes: List[str] = field(default_factory=list)
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "book_id": self.book_id,
            "title": self.title,
            "outcome": self.outcome,
            "reason": self.reason,
            "changes": list(self.changes),
            "error": self.error,
        }


@dataclass
class SweepReport:
    items: List[SweepItem] = field(default_factory=list)
    cancelled: bool = False

    def _count(self, outcome: str) -> int:
        return sum(1 for item in self.items if item.outcome == outcome)

    @property
    def checked(self) -> int:
        return len(self.items)

    @property
    def updated(self) -> int:
        return self._count(OUTCOME_UPDATED)

    @property
    def skipped(self) -> int:
        return self._count(OUTCOME_SKIPPED)

    @property
    def errors(self) -> int:
        return self._count(OUTCOME_ERROR)

    def summary(self) -> str:
        return (
            f"Checked {self.checked} waiting books; updated {self.updated}; "
            f"skipped {self.skipped}; errors {self.errors}."
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "checked": self.checked,
            "updated": self.updated,
            "skipped": self.skipped,
            "errors": self.errors,
            "cancelled": self.cancelled,
            "summary": self.summary(),
            "items": [item.to_payload() for item in self.items],
        }


class BackfillReport(SweepReport):
    def summary(self) -> str:
        return (
            f"Processed {self.checked} books: {self.updated} updated, "
            f"{self.skipped} skipped, {self.errors} errors."
        )


@asynccontextmanager
async def _session_scope(session):
    if session is not None:
        yield session
        return
    async with aiohttp.ClientSession(timeout=build_timeout()) as owned:
        yield owned


def _title_of(book) -> str:
    return str(read_field(book, "title") or "")


def _error_item(book, error) -> SweepItem:
    return SweepItem(
        book_id=read_field(book, "id"),
        title=_title_of(book),
        outcome=OUTCOME_ERROR,
        error=str(error) or type(error).__name__,
    )


def _collect(report: SweepReport, results) -> None:
    for book, result in results:
        if result is None:
            # Fetched after cancellation; nothing applied.
            continue
        if isinstance(result, BaseException):
            LOGGER.warning("Sweep failed for book %s: %r", read_field(book, "id"), result)
            report.items.append(_error_item(book, result))
        else:
            report.items.append(result)


async def check_waiting_updates(
    conn,
    books: Sequence[Any],
    *,
    fetch: Callable[..., Awaitable[Dict[str, Any]]] = fetch_latest,
    session=None,
    now: Optional[Callable[[], Any]] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    is_cancelled: Optional[Callable[[], bool]] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> SweepReport:
    """Re-scrape every waiting book and persist only the fields that changed."""
    clock = now or now_utc
    waiting = [book for book in books if read_field(book, "status") == STATUS_WAITING]
    report = SweepReport()
    LOGGER.info("Checking %d waiting books", len(waiting))

    async with _session_scope(session) as http:

        async def check_one(book) -> Optional[SweepItem]:
            book_id = read_field(book, "id")
            url = first_source_url(book)
            if not url:
                return SweepItem(book_id=book_id, title=_title_of(book), outcome=OUTCOME_SKIPPED, reason=SKIP_NO_URL)

            payload = await fetch(url, session=http)
            if is_cancelled is not None and is_cancelled():
                return None
            if payload.get("error"):
                return SweepItem(book_id=book_id, title=_title_of(book), outcome=OUTCOME_ERROR, error=payload["error"])

            decision = diff_payload(book, payload)
            if not decision.has_change:
                return SweepItem(
                    book_id=book_id,
                    title=_title_of(book),
                    outcome=OUTCOME_SKIPPED,
                    reason=decision.skip_reason,
                )

            updates = decision.field_updates()
            updates["last_fetched_at"] = to_iso_z(clock())
            try:
                update_book_fields(conn, book_id, updates)
            except MaterializationError as e:
                return SweepItem(book_id=book_id, title=_title_of(book), outcome=OUTCOME_ERROR, error=e.message)
            return SweepItem(
                book_id=book_id,
                title=_title_of(book),
                outcome=OUTCOME_UPDATED,
                changes=decision.describe_changes(),
            )

        results = await run_in_batches(
            waiting,
            check_one,
            batch_size=config.UPDATE_SWEEP_BATCH_SIZE,
            delay_seconds=config.BATCH_DELAY_SECONDS,
            sleep=sleep,
            is_cancelled=is_cancelled,
            on_progress=on_progress,
        )

    _collect(report, results)
    report.cancelled = bool(is_cancelled and is_cancelled())
    LOGGER.info(report.summary())
    return report


async def backfill_chapter_counts(
    conn,
    books: Sequence[Any],
    *,
    fetch: Callable[..., Awaitable[Dict[str, Any]]] = fetch_metadata,
    session=None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    is_cancelled: Optional[Callable[[], bool]] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> BackfillReport:
    """Fill ``chapter_count`` for books that have a source link but no count yet."""
    targets = [
        book for book in books
        if normalize_count(read_field(book, "chapter_count")) is None and first_source_url(book)
    ]
    report = BackfillReport()
    LOGGER.info("Backfilling chapter counts for %d books", len(targets))

    async with _session_scope(session) as http:

        async def backfill_one(book) -> Optional[SweepItem]:
            book_id = read_field(book, "id")
            result = await fetch(first_source_url(book), session=http)
            if is_cancelled is not None and is_cancelled():
                return None
            if result.get("error"):
                return SweepItem(book_id=book_id, title=_title_of(book), outcome=OUTCOME_ERROR, error=result["error"])

            count = normalize_count((result.get("metadata") or {}).get("chapter_count"))
            if count is None:
                return SweepItem(
                    book_id=book_id,
                    title=_title_of(book),
                    outcome=OUTCOME_SKIPPED,
                    reason=SKIP_NO_CHAPTER_COUNT,
                )
            try:
                update_book_fields(conn, book_id, {"chapter_count": count})
            except MaterializationError as e:
                return SweepItem(book_id=book_id, title=_title_of(book), outcome=OUTCOME_ERROR, error=e.message)
            return SweepItem(
                book_id=book_id,
                title=_title_of(book),
                outcome=OUTCOME_UPDATED,
                changes=[f"Chapters: — → {count}"],
            )

        results = await run_in_batches(
            targets,
            backfill_one,
            batch_size=config.UPDATE_SWEEP_BATCH_SIZE,
            delay_seconds=config.BATCH_DELAY_SECONDS,
            sleep=sleep,
            is_cancelled=is_cancelled,
            on_progress=on_progress,
        )

    _collect(report, results)
    report.cancelled = bool(is_cancelled and is_cancelled())
    LOGGER.info(report.summary())
    return report
