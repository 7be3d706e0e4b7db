"""Prepare the sqlite database if needed, then hand the process to gunicorn."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import List

from dotenv import load_dotenv

sys.path.append(str(Path(__file__).resolve().parents[1]))

import config
from database import create_standalone_connection, setup_database

LOGGER = logging.getLogger("start_web")

_TRUTHY = {"1", "true", "yes", "y", "on"}
_GUNICORN_DEFAULTS = (
    ("--workers", "WEB_CONCURRENCY", "2"),
    ("--timeout", "GUNICORN_TIMEOUT", "120"),
)


def _flag(name: str) -> bool:
    return (os.getenv(name) or "").strip().lower() in _TRUTHY


def needs_database_init(path: str | None = None) -> bool:
    """SKIP_DB_INIT wins over RUN_DB_INIT; otherwise init only when the file is missing."""
    if _flag("SKIP_DB_INIT"):
        return False
    if _flag("RUN_DB_INIT"):
        return True
    return not Path(path or config.DATABASE_PATH).exists()


def init_database(path: str | None = None) -> None:
    conn = create_standalone_connection(path)
    try:
        setup_database(conn)
    finally:
        conn.close()


def gunicorn_command() -> List[str]:
    port = (os.getenv("PORT") or "5000").strip()
    command = ["gunicorn", "app:app", "--bind", (os.getenv("GUNICORN_BIND") or f"0.0.0.0:{port}").strip()]
    for option, env_name, default in _GUNICORN_DEFAULTS:
        command += [option, (os.getenv(env_name) or default).strip()]
    return command


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")

    if needs_database_init():
        LOGGER.info("Initializing sqlite database at %s", config.DATABASE_PATH)
        init_database()
    else:
        LOGGER.info("Using existing database at %s", config.DATABASE_PATH)

    command = gunicorn_command()
    LOGGER.info("Starting web server: %s", " ".join(command))
    os.execvp(command[0], command)


if __name__ == "__main__":
    main()
