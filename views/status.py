# views/status.py

from flask import Blueprint, current_app, jsonify
from database import get_db, get_cursor

status_bp = Blueprint('status', __name__)

@status_bp.route('/api/status', methods=['GET'])
def get_status():
    """
    Returns the current status of the application and the bookshelf store.
    """
    cursor = None
    try:
        conn = get_db()
        cursor = get_cursor(conn)
        cursor.execute("SELECT status, COUNT(*) FROM books GROUP BY status")
        by_status = {row[0]: row[1] for row in cursor.fetchall()}

        return jsonify({
            'status': 'ok',
            'book_count': sum(by_status.values()),
            'books_by_status': by_status,
        })
    except Exception:
        current_app.logger.exception("Unhandled error in get_status")
        return jsonify({
            'status': 'error',
            'message': 'internal error'
        }), 500
    finally:
        if cursor is not None:
            cursor.close()
