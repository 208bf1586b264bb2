"""
db/redis_client.py
-------------------
redis-py client: singleton plus helpers for the text-search cache.

Key schema:

  placesearch:{sha1(query|min_rating)}
       Type : String (JSON list of candidate dicts)
       TTL  : SEARCH_CACHE_TTL (default 86,400 s = 24 hours)

Environment variables (set in config.py):
    REDIS_HOST             default: localhost
    REDIS_PORT             default: 6379
    REDIS_DB               default: 0
    REDIS_PASSWORD         default: ""  (empty = no auth)
    SEARCH_CACHE_ENABLED   default: false
    SEARCH_CACHE_TTL       default: 86400
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Optional

import redis

from itinerary_engine import config

# Module-level singleton; initialised lazily on first call to get_redis()
_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Return the singleton Redis client, creating it on first call."""
    global _client
    if _client is None:
        kwargs: dict[str, Any] = {
            "host":             config.REDIS_HOST,
            "port":             config.REDIS_PORT,
            "db":               config.REDIS_DB,
            "decode_responses": True,
            "socket_timeout":   2,
        }
        if config.REDIS_PASSWORD:
            kwargs["password"] = config.REDIS_PASSWORD
        _client = redis.Redis(**kwargs)
    return _client


# ── Text-search cache ──────────────────────────────────────────────────────────

def search_cache_key(query: str, min_rating: Optional[float]) -> str:
    digest = hashlib.sha1(f"{query}|{min_rating}".encode("utf-8")).hexdigest()
    return f"placesearch:{digest}"


def get_cached_search(query: str, min_rating: Optional[float]) -> list[dict] | None:
    """Cached candidate dicts for this query, or None on a miss."""
    raw = get_redis().get(search_cache_key(query, min_rating))
    return json.loads(raw) if raw is not None else None


def set_cached_search(
    query: str,
    min_rating: Optional[float],
    candidates: list[dict],
) -> None:
    """Write one search response with SEARCH_CACHE_TTL expiry."""
    get_redis().setex(
        search_cache_key(query, min_rating),
        config.SEARCH_CACHE_TTL,
        json.dumps(candidates),
    )
