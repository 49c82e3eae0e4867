"""Prepare the PostgreSQL ``team_stores`` table for one or more logical team stores."""

from __future__ import annotations

import argparse
import logging

from teamsaver.backend.config import load_settings
from teamsaver.backend.logs import configure_logging
from teamsaver.backend.store import PostgresRecordStore

log = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    settings = load_settings()
    parser = argparse.ArgumentParser(description="Create the team_stores table used by the Postgres team store")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument(
        "--store-name",
        action="append",
        dest="store_names",
        help="logical store to seed with an empty team list (repeatable)",
    )
    args = parser.parse_args(argv)
    if not args.store_names:
        args.store_names = [settings.store_name]
    return args


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    if not args.database_url:
        raise RuntimeError("TEAMSAVER_DATABASE_URL or --database-url is required for migration")

    configure_logging()
    for store_name in args.store_names:
        PostgresRecordStore(database_url=args.database_url, store_name=store_name).ensure_schema()
    log.info("Prepared %d team stores", len(args.store_names))


if __name__ == "__main__":
    main()
