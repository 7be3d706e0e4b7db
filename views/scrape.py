# views/scrape.py

import asyncio

from flask import Blueprint, current_app, jsonify, request

from services.scrape_service import NO_URL_ERROR, fetch_latest, fetch_metadata

scrape_bp = Blueprint('scrape', __name__)


def _error_response(status_code, message):
    return jsonify({'error': message}), status_code


def _requested_url():
    data = request.get_json(silent=True) or {}
    url = data.get('url') if isinstance(data, dict) else None
    if not isinstance(url, str) or not url.strip():
        return None
    return url.strip()


@scrape_bp.route('/api/fetch-metadata', methods=['POST'])
def fetch_metadata_view():
    url = _requested_url()
    if url is None:
        return _error_response(400, NO_URL_ERROR)

    try:
        result = asyncio.run(fetch_metadata(url))
    except Exception:
        current_app.logger.exception("Unhandled error in fetch_metadata")
        return _error_response(500, 'Internal Server Error')

    if 'error' in result:
        current_app.logger.warning("fetch-metadata failed for %s: %s", url, result['error'])
        return _error_response(400, result['error'])
    return jsonify(result), 200


@scrape_bp.route('/api/fetch-latest', methods=['POST'])
def fetch_latest_view():
    url = _requested_url()
    if url is None:
        return _error_response(400, NO_URL_ERROR)

    try:
        result = asyncio.run(fetch_latest(url))
    except Exception:
        current_app.logger.exception("Unhandled error in fetch_latest")
        return _error_response(500, 'Internal Server Error')

    if 'error' in result:
        current_app.logger.warning("fetch-latest failed for %s: %s", url, result['error'])
        return _error_response(400, result['error'])
    return jsonify(result), 200
