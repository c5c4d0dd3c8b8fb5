"""CLI to list users that receive the news digest.

Usage:
  poetry run news-recipients
  poetry run news-recipients --database-url sqlite:///watchlist.db
"""
import argparse
import json
import sys

from stock_watchlist.db import Database
from stock_watchlist.services import UsersService
from stock_watchlist.settings import Settings


def print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="news-recipients",
        description="Print users with an email and a name as JSON.",
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: DATABASE_URL env var)",
    )
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    database = Database(args.database_url or settings.database_url, echo=settings.sql_echo)
    database.init(create_tables=False)
    try:
        recipients = UsersService(database).get_all_users_for_news_delivery()
    finally:
        database.close()
    print_json([r.model_dump() for r in recipients])
    return 0


def run() -> None:
    sys.exit(main())
