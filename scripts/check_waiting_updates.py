"""Re-scrape every book on the waiting shelf and store new chapter fields."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

sys.path.append(str(Path(__file__).resolve().parents[1]))

from database import create_standalone_connection
from repositories.books_repo import list_books
from services.update_sweep import OUTCOME_ERROR, OUTCOME_UPDATED, STATUS_WAITING, check_waiting_updates


def _setup_logging(level: str) -> None:
    numeric = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def _make_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check waiting books for new chapters.")
    parser.add_argument("--database", default=None, help="Path to the sqlite database (defaults to DATABASE_PATH).")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR).")
    return parser


def _print_progress(done: int, total: int) -> None:
    print(f"LOG: {done}/{total} books processed")


async def _async_main(args: argparse.Namespace) -> int:
    conn = create_standalone_connection(args.database)
    try:
        books = list_books(conn, status=STATUS_WAITING)
        print(f"LOG: Checking {len(books)} waiting books...")
        report = await check_waiting_updates(conn, books, on_progress=_print_progress)
    finally:
        conn.close()

    for item in report.items:
        if item.outcome == OUTCOME_UPDATED:
            print(f"LOG: [{item.title}] updated")
            for line in item.changes:
                print(f"      {line}")
        elif item.outcome == OUTCOME_ERROR:
            print(f"WARNING: [{item.title}] {item.error}", file=sys.stderr)

    print(report.summary())
    return 1 if report.errors else 0


def main() -> int:
    load_dotenv()
    args = _make_arg_parser().parse_args()
    _setup_logging(args.log_level)
    try:
        return asyncio.run(_async_main(args))
    except Exception as e:
        print(f"FATAL: waiting-shelf check failed: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
