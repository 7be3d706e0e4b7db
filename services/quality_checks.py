"""Collection-wide quality checks for the bookshelf."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

import aiohttp

import config
from repositories.books_repo import MaterializationError, update_book_fields, update_many_book_fields
from services.image_proxy import is_proxied, process_cover_url
from services.similarity import GenreMergeCandidate, SimilarityCandidate, find_duplicate_titles
from utils.batching import run_in_batches
from utils.record import read_field
from utils.text import dedupe_preserving_order
from utils.time import months_before, now_utc, parse_iso_utc

LOGGER = logging.getLogger(__name__)

_SEASON_END_RE = re.compile(r"season\s*\d+\s*end|s\d+\s*end", re.IGNORECASE)
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def duplicate_pairs_payload(pairs: Iterable[SimilarityCandidate]) -> List[Dict[str, Any]]:
    return [
        {
            "book_a": {"id": read_field(pair.item_a, "id"), "title": read_field(pair.item_a, "title")},
            "book_b": {"id": read_field(pair.item_b, "id"), "title": read_field(pair.item_b, "title")},
            "score": pair.score,
        }
        for pair in pairs
    ]


def scan_duplicate_titles(books, related_pairs=(), threshold=None) -> List[Dict[str, Any]]:
    return duplicate_pairs_payload(find_duplicate_titles(books, threshold=threshold, related_pairs=related_pairs))


def is_series_ended(label) -> bool:
    """Whether a chapter label marks a finished series ("Season 2 End" does not)."""
    text = str(label or "").lower()
    return "end" in text and not _SEASON_END_RE.search(text)


def find_stale_waiting(books: Sequence[Any], now: Optional[datetime] = None, months: Optional[int] = None) -> List[Any]:
    """Waiting books that have ended or have not had an upload for ``months`` months.

    Sorted by last upload, oldest first; books without an upload come first.
    """
    now = now or now_utc()
    months = config.STALE_WAITING_MONTHS if months is None else months
    cutoff = months_before(now, months)

    stale = []
    for book in books:
        if read_field(book, "status") != "waiting":
            continue
        uploaded = parse_iso_utc(read_field(book, "last_uploaded_at"))
        if is_series_ended(read_field(book, "latest_chapter")) or (uploaded is not None and uploaded < cutoff):
            stale.append(book)

    stale.sort(key=lambda book: parse_iso_utc(read_field(book, "last_uploaded_at")) or _EPOCH)
    return stale


def replace_genre(genres: Iterable[str], merge_genre: str, keep_genre: str) -> List[str]:
    return dedupe_preserving_order(keep_genre if genre == merge_genre else genre for genre in genres)


def merge_genre_pairs(conn, books: Sequence[Any], pairs: Sequence[GenreMergeCandidate]) -> int:
    """Fold each pair's merge genre into its keep genre; returns how many books changed.

    Pairs are applied in order against the running genre lists, so chained
    merges (A→B, B→C) end up consistent. All books are written in one
    transaction.
    """
    current = {read_field(book, "id"): list(read_field(book, "genres") or []) for book in books}
    changed = set()
    for pair in pairs:
        for book_id, genres in current.items():
            if pair.merge_genre not in genres:
                continue
            current[book_id] = replace_genre(genres, pair.merge_genre, pair.keep_genre)
            changed.add(book_id)

    update_many_book_fields(
        conn,
        {book_id: {"genres": genres} for book_id, genres in current.items() if book_id in changed},
    )
    LOGGER.info("Merged %d genre pairs across %d books", len(pairs), len(changed))
    return len(changed)


@dataclass
class CoverCheckResult:
    failed: List[Any] = field(default_factory=list)
    uploadable: List[Any] = field(default_factory=list)

    def message(self) -> str:
        if not self.failed and not self.uploadable:
            return "All covers are accessible and already mirrored"
        return (
            f"Found {len(self.failed)} failed cover{'s' if len(self.failed) != 1 else ''} "
            f"and {len(self.uploadable)} uploadable cover{'s' if len(self.uploadable) != 1 else ''}"
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "failed": [_cover_entry(book) for book in self.failed],
            "uploadable": [_cover_entry(book) for book in self.uploadable],
            "message": self.message(),
        }


def _cover_entry(book) -> Dict[str, Any]:
    return {
        "id": read_field(book, "id"),
        "title": read_field(book, "title"),
        "cover_url": read_field(book, "cover_url"),
    }


async def cover_is_reachable(session, url: str) -> bool:
    try:
        async with session.get(url, headers=config.CRAWLER_HEADERS, allow_redirects=True) as response:
            return 200 <= response.status < 300
    except (aiohttp.ClientError, asyncio.TimeoutError):
        return False


async def check_covers(
    books: Sequence[Any],
    *,
    session=None,
    probe: Callable[[Any, str], Awaitable[bool]] = cover_is_reachable,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> CoverCheckResult:
    with_covers = [book for book in books if read_field(book, "cover_url")]
    result = CoverCheckResult()

    async def run(http):
        async def check_one(book):
            return await probe(http, read_field(book, "cover_url"))

        return await run_in_batches(
            with_covers,
            check_one,
            batch_size=config.COVER_CHECK_BATCH_SIZE,
            delay_seconds=config.BATCH_DELAY_SECONDS,
            sleep=sleep,
        )

    if session is not None:
        outcomes = await run(session)
    else:
        timeout = aiohttp.ClientTimeout(total=config.COVER_CHECK_TIMEOUT_SECONDS)
        async with aiohttp.ClientSession(timeout=timeout) as owned:
            outcomes = await run(owned)

    for book, reachable in outcomes:
        if reachable is not True:
            result.failed.append(book)
        elif not is_proxied(read_field(book, "cover_url")):
            result.uploadable.append(book)
    LOGGER.info(result.message())
    return result


@dataclass
class CoverUploadResult:
    uploaded: int = 0
    failed_titles: List[str] = field(default_factory=list)

    def message(self) -> str:
        text = f"Uploaded {self.uploaded} cover{'s' if self.uploaded != 1 else ''}."
        if self.failed_titles:
            text += f" {len(self.failed_titles)} failed: {', '.join(self.failed_titles)}"
        return text

    def to_payload(self) -> Dict[str, Any]:
        return {"uploaded": self.uploaded, "failed": list(self.failed_titles), "message": self.message()}


async def upload_covers(
    conn,
    books: Sequence[Any],
    *,
    upload: Callable[[str], Awaitable[str]] = process_cover_url,
) -> CoverUploadResult:
    """Mirror each cover through the image proxy and store the new URL."""
    result = CoverUploadResult()
    for book in books:
        title = str(read_field(book, "title") or read_field(book, "id"))
        cover_url = read_field(book, "cover_url")
        try:
            new_url = await upload(cover_url)
        except ValueError:
            result.failed_titles.append(title)
            continue
        if not new_url or new_url == cover_url:
            result.failed_titles.append(title)
            continue
        try:
            update_book_fields(conn, read_field(book, "id"), {"cover_url": new_url})
        except MaterializationError as e:
            LOGGER.warning("Storing mirrored cover failed for %s: %s", title, e.message)
            result.failed_titles.append(title)
            continue
        result.uploaded += 1
    return result
