"""Repository for book records (metadata and chapter-tracking fields)."""

import json
import sqlite3

from database import get_cursor

BOOK_COLUMNS = (
    "title",
    "status",
    "description",
    "cover_url",
    "genres",
    "original_language",
    "latest_chapter",
    "last_uploaded_at",
    "chapter_count",
    "last_fetched_at",
)


class MaterializationError(Exception):
    """The store rejected a write for a book."""

    def __init__(self, book_id, message):
        super().__init__(message)
        self.book_id = book_id
        self.message = message


def _decode_genres(raw):
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return []
    return [str(genre) for genre in parsed] if isinstance(parsed, list) else []


def _encode_value(column, value):
    if column == "genres":
        return json.dumps(list(value or []), ensure_ascii=False)
    return value


def _row_to_book(row, links):
    book = {key: row[key] for key in row.keys()}
    book["genres"] = _decode_genres(book.get("genres"))
    book["sources"] = [{"url": url} for url in links.get(book["id"], [])]
    return book


def _load_links(cursor, book_ids):
    links = {}
    if not book_ids:
        return links
    placeholders = ", ".join("?" for _ in book_ids)
    cursor.execute(
        f"SELECT book_id, url FROM book_links WHERE book_id IN ({placeholders}) ORDER BY position ASC, id ASC",
        tuple(book_ids),
    )
    for row in cursor.fetchall():
        links.setdefault(row["book_id"], []).append(row["url"])
    return links


def list_books(conn, status=None):
    """Return every book (optionally only one status) with genres and sources decoded."""
    cursor = get_cursor(conn)
    if status:
        cursor.execute("SELECT * FROM books WHERE status = ? ORDER BY created_at ASC, id ASC", (status,))
    else:
        cursor.execute("SELECT * FROM books ORDER BY created_at ASC, id ASC")
    rows = cursor.fetchall()
    links = _load_links(cursor, [row["id"] for row in rows])
    cursor.close()
    return [_row_to_book(row, links) for row in rows]


def get_book(conn, book_id):
    cursor = get_cursor(conn)
    cursor.execute("SELECT * FROM books WHERE id = ?", (book_id,))
    row = cursor.fetchone()
    if row is None:
        cursor.close()
        return None
    links = _load_links(cursor, [book_id])
    cursor.close()
    return _row_to_book(row, links)


def upsert_book(conn, book_id, fields, source_urls=None):
    """Insert or update a book; only the given columns are written on update."""
    columns = [column for column in BOOK_COLUMNS if column in fields]
    values = [_encode_value(column, fields[column]) for column in columns]
    try:
        cursor = get_cursor(conn)
        if columns:
            assignments = ", ".join(f"{column} = excluded.{column}" for column in columns)
            cursor.execute(
                f"""
                INSERT INTO books (id, {", ".join(columns)})
                VALUES (?, {", ".join("?" for _ in columns)})
                ON CONFLICT (id) DO UPDATE SET {assignments}
                """,
                (book_id, *values),
            )
        else:
            cursor.execute("INSERT OR IGNORE INTO books (id) VALUES (?)", (book_id,))

        if source_urls is not None:
            cursor.execute("DELETE FROM book_links WHERE book_id = ?", (book_id,))
            for position, url in enumerate(source_urls):
                cursor.execute(
                    "INSERT INTO book_links (book_id, url, position) VALUES (?, ?, ?)",
                    (book_id, url, position),
                )
        conn.commit()
        cursor.close()
    except sqlite3.Error as e:
        conn.rollback()
        raise MaterializationError(book_id, str(e)) from e


def _apply_update(cursor, book_id, fields):
    unknown = [column for column in fields if column not in BOOK_COLUMNS]
    if unknown:
        raise MaterializationError(book_id, f"unknown columns: {', '.join(sorted(unknown))}")
    if not fields:
        return

    columns = list(fields)
    assignments = ", ".join(f"{column} = ?" for column in columns)
    values = [_encode_value(column, fields[column]) for column in columns]
    try:
        cursor.execute(f"UPDATE books SET {assignments} WHERE id = ?", (*values, book_id))
    except sqlite3.Error as e:
        raise MaterializationError(book_id, str(e)) from e
    if cursor.rowcount == 0:
        raise MaterializationError(book_id, "book not found")


def update_book_fields(conn, book_id, fields):
    """Update only ``fields`` of an existing book.

    Raises:
        MaterializationError: unknown column, missing book, or a store error.
    """
    update_many_book_fields(conn, {book_id: fields})


def update_many_book_fields(conn, updates):
    """Apply ``{book_id: fields}`` in one transaction; nothing is kept if any book fails."""
    cursor = get_cursor(conn)
    try:
        for book_id, fields in updates.items():
            _apply_update(cursor, book_id, fields)
        conn.commit()
    except MaterializationError:
        conn.rollback()
        raise
    except sqlite3.Error as e:
        conn.rollback()
        raise MaterializationError(None, str(e)) from e
    finally:
        cursor.close()


def list_related_pairs(conn, book_ids=None):
    """Return ``(book_id, related_book_id)`` links touching ``book_ids`` (all when ``None``)."""
    cursor = get_cursor(conn)
    if book_ids is None:
        cursor.execute("SELECT book_id, related_book_id FROM related_books")
    else:
        ids = list(book_ids)
        if not ids:
            cursor.close()
            return []
        placeholders = ", ".join("?" for _ in ids)
        cursor.execute(
            f"""
            SELECT book_id, related_book_id FROM related_books
            WHERE book_id IN ({placeholders}) OR related_book_id IN ({placeholders})
            """,
            (*ids, *ids),
        )
    pairs = [(row["book_id"], row["related_book_id"]) for row in cursor.fetchall()]
    cursor.close()
    return pairs


def add_related_pair(conn, book_id, related_book_id):
    cursor = get_cursor(conn)
    cursor.execute(
        "INSERT OR IGNORE INTO related_books (book_id, related_book_id) VALUES (?, ?)",
        (book_id, related_book_id),
    )
    conn.commit()
    cursor.close()
