# views/quality.py

import asyncio
import time

from flask import Blueprint, current_app, jsonify, request

import config
from database import get_db
from repositories.books_repo import MaterializationError, list_books, list_related_pairs
from services.quality_checks import (
    check_covers,
    find_stale_waiting,
    merge_genre_pairs,
    scan_duplicate_titles,
    upload_covers,
)
from services.scan_cache import cached_scan, cached_scan_async
from services.similarity import GenreMergeCandidate, find_similar_genres
from services.update_sweep import STATUS_WAITING, backfill_chapter_counts, check_waiting_updates

quality_bp = Blueprint('quality', __name__)

SCAN_DUPLICATES = 'duplicates'
SCAN_STALE = 'stale_waiting'
SCAN_COVERS = 'covers'


def _error_response(status_code, message):
    return jsonify({'error': message}), status_code


def _scan_caches():
    return current_app.extensions.setdefault('scan_caches', {})


def _invalidate_scans(*names):
    caches = _scan_caches()
    for name in names or tuple(caches):
        caches.pop(name, None)


def _wants_refresh():
    return (request.args.get('refresh') or '').strip().lower() in {'1', 'true', 'yes'}


def _run_cached(name, compute):
    caches = _scan_caches()
    if _wants_refresh():
        caches.pop(name, None)
    previous = caches.get(name)
    now = time.time()
    data, cache = cached_scan(previous, compute, now=now, ttl_seconds=config.SCAN_CACHE_TTL_SECONDS)
    caches[name] = cache
    return data, cache is previous


def _stale_entry(book):
    return {
        'id': book.get('id'),
        'title': book.get('title'),
        'latest_chapter': book.get('latest_chapter'),
        'last_uploaded_at': book.get('last_uploaded_at'),
    }


@quality_bp.route('/api/quality/duplicates', methods=['GET'])
def get_duplicate_titles():
    try:
        conn = get_db()

        def compute():
            books = list_books(conn)
            return scan_duplicate_titles(books, related_pairs=list_related_pairs(conn))

        pairs, cached = _run_cached(SCAN_DUPLICATES, compute)
        return jsonify({'pairs': pairs, 'cached': cached}), 200
    except Exception:
        current_app.logger.exception("Unhandled error in get_duplicate_titles")
        return _error_response(500, 'Internal Server Error')


@quality_bp.route('/api/quality/similar-genres', methods=['GET'])
def get_similar_genres():
    try:
        pairs = find_similar_genres(list_books(get_db()))
        return jsonify({'pairs': [pair.to_payload() for pair in pairs]}), 200
    except Exception:
        current_app.logger.exception("Unhandled error in get_similar_genres")
        return _error_response(500, 'Internal Server Error')


@quality_bp.route('/api/quality/genres/merge', methods=['POST'])
def merge_genres():
    data = request.get_json(silent=True) or {}
    raw_pairs = data.get('pairs') if isinstance(data, dict) else None
    if not isinstance(raw_pairs, list) or not raw_pairs:
        return _error_response(400, 'pairs are required')

    pairs = []
    for raw in raw_pairs:
        keep = (raw.get('keep_genre') or '').strip() if isinstance(raw, dict) else ''
        merge = (raw.get('merge_genre') or '').strip() if isinstance(raw, dict) else ''
        if not keep or not merge or keep == merge:
            return _error_response(400, 'each pair needs distinct keep_genre and merge_genre')
        pairs.append(GenreMergeCandidate(item_a=keep, item_b=merge, score=1.0))

    try:
        conn = get_db()
        updated = merge_genre_pairs(conn, list_books(conn), pairs)
    except MaterializationError as e:
        current_app.logger.warning("Genre merge failed for book %s: %s", e.book_id, e.message)
        return _error_response(500, 'Failed to merge genres')
    except Exception:
        current_app.logger.exception("Unhandled error in merge_genres")
        return _error_response(500, 'Internal Server Error')
    finally:
        _invalidate_scans()

    return jsonify({
        'updated_books': updated,
        'message': f"Successfully merged {len(pairs)} genre pair{'s' if len(pairs) != 1 else ''}.",
    }), 200


@quality_bp.route('/api/quality/stale-waiting', methods=['GET'])
def get_stale_waiting():
    try:
        conn = get_db()
        books, cached = _run_cached(
            SCAN_STALE,
            lambda: [_stale_entry(book) for book in find_stale_waiting(list_books(conn, status=STATUS_WAITING))],
        )
        return jsonify({'books': books, 'cached': cached}), 200
    except Exception:
        current_app.logger.exception("Unhandled error in get_stale_waiting")
        return _error_response(500, 'Internal Server Error')


@quality_bp.route('/api/quality/covers', methods=['GET'])
def get_cover_check():
    try:
        conn = get_db()
        caches = _scan_caches()
        if _wants_refresh():
            caches.pop(SCAN_COVERS, None)
        previous = caches.get(SCAN_COVERS)
        result, cache = asyncio.run(
            cached_scan_async(
                previous,
                lambda: check_covers(list_books(conn)),
                now=time.time(),
                ttl_seconds=config.SCAN_CACHE_TTL_SECONDS,
            )
        )
        caches[SCAN_COVERS] = cache
        payload = result.to_payload()
        payload['cached'] = cache is previous
        return jsonify(payload), 200
    except Exception:
        current_app.logger.exception("Unhandled error in get_cover_check")
        return _error_response(500, 'Internal Server Error')


@quality_bp.route('/api/quality/covers/upload', methods=['POST'])
def upload_uploadable_covers():
    try:
        conn = get_db()
        cache = _scan_caches().get(SCAN_COVERS)
        if cache is None or not cache.is_fresh(time.time(), config.SCAN_CACHE_TTL_SECONDS):
            return _error_response(409, 'Run the cover check first')
        result = asyncio.run(upload_covers(conn, cache.data.uploadable))
    except Exception:
        current_app.logger.exception("Unhandled error in upload_uploadable_covers")
        return _error_response(500, 'Internal Server Error')

    _invalidate_scans(SCAN_COVERS)
    return jsonify(result.to_payload()), 200


@quality_bp.route('/api/books/check-waiting', methods=['POST'])
def check_waiting():
    try:
        conn = get_db()
        report = asyncio.run(check_waiting_updates(conn, list_books(conn, status=STATUS_WAITING)))
    except Exception:
        current_app.logger.exception("Unhandled error in check_waiting")
        return _error_response(500, 'Internal Server Error')

    if report.updated:
        _invalidate_scans()
    return jsonify(report.to_payload()), 200


@quality_bp.route('/api/books/backfill-chapter-counts', methods=['POST'])
def backfill_counts():
    try:
        conn = get_db()
        report = asyncio.run(backfill_chapter_counts(conn, list_books(conn)))
    except Exception:
        current_app.logger.exception("Unhandled error in backfill_counts")
        return _error_response(500, 'Internal Server Error')

    return jsonify(report.to_payload()), 200
