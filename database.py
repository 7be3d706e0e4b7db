# database.py

import sqlite3

from flask import g

import config

SCHEMA = """
CREATE TABLE IF NOT EXISTS books (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'plan_to_read',
    description TEXT NOT NULL DEFAULT '',
    cover_url TEXT,
    genres TEXT NOT NULL DEFAULT '[]',
    original_language TEXT,
    latest_chapter TEXT,
    last_uploaded_at TEXT,
    chapter_count INTEGER,
    last_fetched_at TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS book_links (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    url TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0
);

CREATE TABLE IF NOT EXISTS related_books (
    book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    related_book_id TEXT NOT NULL REFERENCES books(id) ON DELETE CASCADE,
    PRIMARY KEY (book_id, related_book_id)
);

CREATE INDEX IF NOT EXISTS idx_books_status ON books(status);
CREATE INDEX IF NOT EXISTS idx_book_links_book_id ON book_links(book_id);
"""


def create_standalone_connection(path=None):
    """Flask 컨텍스트 밖(스크립트/스윕)에서 사용할 독립 연결을 만듭니다."""
    conn = sqlite3.connect(path or config.DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def get_db():
    """Application Context 내에서 유일한 DB 연결을 가져옵니다."""
    if 'db' not in g:
        g.db = create_standalone_connection()
    return g.db


def get_cursor(conn):
    return conn.cursor()


def close_db(exception=None):
    """요청(request)이 끝나면 자동으로 호출되어 DB 연결을 닫습니다."""
    db = g.pop('db', None)
    if db is not None:
        db.close()


def setup_database(conn):
    conn.executescript(SCHEMA)
    conn.commit()
