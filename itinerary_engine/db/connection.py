"""
db/connection.py
-----------------
Process-wide psycopg2 ThreadedConnectionPool for the place store.

Usage:
    from itinerary_engine.db.connection import get_conn

    with get_conn() as conn:
        with conn.cursor() as cur:          # RealDictCursor: rows are dicts
            cur.execute("SELECT id, name FROM place LIMIT 1")
            row = cur.fetchone()            # {"id": ..., "name": ...}

The connection is committed when the block exits cleanly and rolled back
when it raises; either way it goes back to the pool.

DATABASE_URL, when set, wins over the individual POSTGRES_* settings.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Generator

import psycopg2
import psycopg2.extras
import psycopg2.pool

from itinerary_engine import config

_pool: psycopg2.pool.ThreadedConnectionPool | None = None


def build_dsn() -> str:
    """libpq connection string from DATABASE_URL or the POSTGRES_* settings."""
    url = os.getenv("DATABASE_URL", "")
    if url:
        return url
    return (
        f"host={config.POSTGRES_HOST} port={config.POSTGRES_PORT} "
        f"dbname={config.POSTGRES_DB} user={config.POSTGRES_USER} "
        f"password={config.POSTGRES_PASSWORD}"
    )


def get_pool() -> psycopg2.pool.ThreadedConnectionPool:
    """Return the shared pool, (re)creating it if missing or closed."""
    global _pool
    if _pool is None or _pool.closed:
        _pool = psycopg2.pool.ThreadedConnectionPool(
            config.POSTGRES_MIN_CONN,
            config.POSTGRES_MAX_CONN,
            dsn=build_dsn(),
            cursor_factory=psycopg2.extras.RealDictCursor,
        )
    return _pool


@contextmanager
def get_conn() -> Generator:
    """Borrow a pooled connection for one unit of work (see module docstring)."""
    pool = get_pool()
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


def close_pool() -> None:
    """Close every pooled connection; used on application shutdown."""
    global _pool
    if _pool is not None and not _pool.closed:
        _pool.closeall()
    _pool = None
