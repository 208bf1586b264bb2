#!/usr/bin/env python
"""
scripts/run_migrations.py
--------------------------
Applies itinerary_engine/db/schema.sql to the configured Postgres database.

Usage:
    python -m itinerary_engine.scripts.run_migrations [--dry-run]

Exit codes:
    0: schema applied (or dry-run listed)
    1: connection failed or SQL error

Connection settings come from DATABASE_URL or the POSTGRES_* variables
(see db/connection.py).  Every statement in the schema is idempotent
(IF NOT EXISTS), and all of them run in one transaction.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path

import psycopg2

from itinerary_engine.db.connection import build_dsn

logger = logging.getLogger(__name__)

SCHEMA_FILE = Path(__file__).resolve().parent.parent / "db" / "schema.sql"


def strip_comments(sql: str) -> str:
    """Drop /* block */ and -- line comments."""
    sql = re.sub(r"/\*.*?\*/", "", sql, flags=re.DOTALL)
    return re.sub(r"--[^\n]*", "", sql)


def split_statements(sql: str) -> list[str]:
    return [s.strip() for s in sql.split(";") if s.strip()]


def load_statements(path: Path = SCHEMA_FILE) -> list[str]:
    if not path.exists():
        raise FileNotFoundError(f"schema file not found: {path}")
    return split_statements(strip_comments(path.read_text(encoding="utf-8")))


def run(dry_run: bool = False, path: Path = SCHEMA_FILE) -> int:
    """Apply the schema; returns the number of statements."""
    statements = load_statements(path)
    logger.info("[migrations] %d statements from %s", len(statements), path)

    if dry_run:
        for i, stmt in enumerate(statements, 1):
            logger.info("  [%03d] %s", i, stmt[:80].replace("\n", " "))
        return len(statements)

    conn = psycopg2.connect(build_dsn())
    try:
        with conn.cursor() as cur:
            for i, stmt in enumerate(statements, 1):
                try:
                    cur.execute(stmt)
                except psycopg2.Error as exc:
                    logger.error("  statement %d failed: %s", i, exc.pgerror or exc)
                    raise
        conn.commit()
        logger.info("[migrations] applied %d statements", len(statements))
    except Exception:
        conn.rollback()
        logger.error("[migrations] rolled back")
        raise
    finally:
        conn.close()
    return len(statements)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    parser = argparse.ArgumentParser(description="Apply the place-store schema.")
    parser.add_argument("--dry-run", action="store_true", help="List statements without executing them.")
    args = parser.parse_args(argv)
    try:
        run(dry_run=args.dry_run)
    except Exception as exc:  # noqa: BLE001
        logger.error("[migrations] ERROR: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
