"""String-similarity primitives and the two collection scans built on them.

* Levenshtein similarity clusters near-duplicate genre names.
* The Dice bigram coefficient (OR'd with substring containment) flags likely
  duplicate titles.

Both scans compare every pair, which is fine for a single user's shelf
(hundreds of books). Thresholds come from ``config`` and can be overridden
per call.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import config
from utils.record import read_field
from utils.text import normalize_compare_text


@dataclass(frozen=True)
class SimilarityCandidate:
    item_a: Any
    item_b: Any
    score: float


@dataclass(frozen=True)
class GenreMergeCandidate(SimilarityCandidate):
    """``item_a`` is the genre to keep, ``item_b`` the one to merge into it."""

    keep_count: int = 0
    merge_count: int = 0

    @property
    def keep_genre(self) -> str:
        return self.item_a

    @property
    def merge_genre(self) -> str:
        return self.item_b

    def to_payload(self) -> Dict[str, Any]:
        return {
            "keep_genre": self.keep_genre,
            "merge_genre": self.merge_genre,
            "keep_count": self.keep_count,
            "merge_count": self.merge_count,
            "similarity": self.score,
        }


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(current[j - 1] + 1, previous[j] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def _levenshtein_normalized(a: str, b: str) -> float:
    if a == b:
        return 1.0
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def levenshtein_similarity(a: str, b: str) -> float:
    """``1 - distance / max(len)`` over normalized strings, in ``[0, 1]``."""
    return _levenshtein_normalized(normalize_compare_text(a), normalize_compare_text(b))


def bigrams(text: str) -> List[str]:
    if not text:
        return []
    if len(text) == 1:
        return [text]
    return [text[i:i + 2] for i in range(len(text) - 1)]


def _dice_normalized(a: str, b: str) -> float:
    a_grams = bigrams(a)
    b_grams = bigrams(b)
    if not a_grams or not b_grams:
        return 0.0
    # Multiset intersection: a bigram seen twice on both sides counts twice.
    overlap = sum((Counter(a_grams) & Counter(b_grams)).values())
    return 2.0 * overlap / (len(a_grams) + len(b_grams))


def dice_coefficient(a: str, b: str) -> float:
    return _dice_normalized(normalize_compare_text(a), normalize_compare_text(b))


def genre_usage_counts(books: Iterable[Any]) -> Dict[str, int]:
    """How many books carry each exact (trimmed) genre string."""
    counts: Dict[str, int] = {}
    for book in books:
        unique = {str(genre).strip() for genre in (read_field(book, "genres") or []) if str(genre).strip()}
        for genre in unique:
            counts[genre] = counts.get(genre, 0) + 1
    return counts


def _distinct_genres(books: Iterable[Any]) -> List[str]:
    ordered: List[str] = []
    seen: Set[str] = set()
    for book in books:
        for genre in read_field(book, "genres") or []:
            key = str(genre).strip()
            if key and key not in seen:
                seen.add(key)
                ordered.append(key)
    return ordered


def find_similar_genres(
    books: Sequence[Any],
    threshold: Optional[float] = None,
) -> List[GenreMergeCandidate]:
    """Pair up genre names that look like spellings of the same genre.

    The more widely used genre of a pair is kept; on a tie, the one seen first.
    """
    threshold = config.GENRE_SIMILARITY_THRESHOLD if threshold is None else threshold
    counts = genre_usage_counts(books)
    genres = _distinct_genres(books)
    normalized = [normalize_compare_text(genre) for genre in genres]

    pairs: List[GenreMergeCandidate] = []
    for i in range(len(genres)):
        for j in range(i + 1, len(genres)):
            if not normalized[i] or not normalized[j]:
                continue
            similarity = _levenshtein_normalized(normalized[i], normalized[j])
            if similarity < threshold:
                continue
            first, second = genres[i], genres[j]
            first_count, second_count = counts.get(first, 0), counts.get(second, 0)
            if first_count >= second_count:
                keep, merge, keep_count, merge_count = first, second, first_count, second_count
            else:
                keep, merge, keep_count, merge_count = second, first, second_count, first_count
            pairs.append(
                GenreMergeCandidate(
                    item_a=keep,
                    item_b=merge,
                    score=similarity,
                    keep_count=keep_count,
                    merge_count=merge_count,
                )
            )

    pairs.sort(key=lambda pair: pair.score, reverse=True)
    return pairs


def pair_key(id_a: Any, id_b: Any) -> Tuple[str, str]:
    """Order-independent key for a pair of book ids."""
    a, b = str(id_a), str(id_b)
    return (a, b) if a < b else (b, a)


def find_duplicate_titles(
    books: Sequence[Mapping[str, Any]],
    threshold: Optional[float] = None,
    related_pairs: Iterable[Tuple[Any, Any]] = (),
) -> List[SimilarityCandidate]:
    """Flag book pairs whose titles are near-identical or contain one another.

    Pairs already linked as related books are skipped.
    """
    threshold = config.TITLE_SIMILARITY_THRESHOLD if threshold is None else threshold
    skip = {pair_key(a, b) for a, b in related_pairs}

    normalized = []
    for book in books:
        norm = normalize_compare_text(read_field(book, "title") or "")
        if norm:
            normalized.append((book, norm))

    pairs: List[SimilarityCandidate] = []
    for i in range(len(normalized)):
        book_a, norm_a = normalized[i]
        for j in range(i + 1, len(normalized)):
            book_b, norm_b = normalized[j]
            if pair_key(read_field(book_a, "id"), read_field(book_b, "id")) in skip:
                continue
            similarity = _dice_normalized(norm_a, norm_b)
            contains = norm_a in norm_b or norm_b in norm_a
            if similarity >= threshold or contains:
                score = max(similarity, threshold) if contains else similarity
                pairs.append(SimilarityCandidate(item_a=book_a, item_b=book_b, score=score))

    pairs.sort(key=lambda pair: pair.score, reverse=True)
    return pairs
