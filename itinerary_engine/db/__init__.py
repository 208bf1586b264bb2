"""
db/
----
Storage layer for the itinerary engine.

  PostgreSQL (psycopg2): persistent place catalogue
    table:  place
    schema: itinerary_engine/db/schema.sql
    apply:  python -m itinerary_engine.scripts.run_migrations

  Redis (redis-py): optional text-search response cache
    placesearch:{sha1}   TTL = SEARCH_CACHE_TTL (24 h)

  InMemoryPlaceStore: process-local PlaceStore for development and tests.

Public exports:
    from itinerary_engine.db import get_conn, get_redis, InMemoryPlaceStore
    from itinerary_engine.db.repositories.place_repo import PostgresPlaceStore
"""

from itinerary_engine.db.connection import close_pool, get_conn
from itinerary_engine.db.place_store import InMemoryPlaceStore, PlaceStore
from itinerary_engine.db.redis_client import get_redis

__all__ = ["get_conn", "close_pool", "get_redis", "InMemoryPlaceStore", "PlaceStore"]
