"""
modules/tool_usage/places_search.py
------------------------------------
External place search used to augment a thin pool, find a hotel when the
store has none nearby, and fill meal slots the store could not.

Real API:  GET https://maps.googleapis.com/maps/api/place/textsearch/json
Auth:      key query parameter (config.GOOGLE_PLACES_API_KEY)

With no API key configured every search returns an empty SearchResult,
so generation degrades to store-only data.

Responses are optionally cached in Redis (config.SEARCH_CACHE_ENABLED);
a Redis failure is logged and the live API is used instead.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Optional, Protocol

import redis
import requests

from itinerary_engine import config
from itinerary_engine.db import redis_client
from itinerary_engine.errors import PlaceSearchError
from itinerary_engine.schemas.places import CandidatePlace, SearchResult

logger = logging.getLogger(__name__)

TEXT_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/textsearch/json"
PHOTO_URL = "https://maps.googleapis.com/maps/api/place/photo"

_OK_STATUSES = ("OK", "ZERO_RESULTS")


class PlaceSearchProvider(Protocol):
    def search_by_text(self, query: str, min_rating: Optional[float] = None) -> SearchResult:
        """Candidates matching *query* rated at least *min_rating*."""
        ...


def _photo_url(reference: str, api_key: str, max_width: int = 800) -> str:
    return f"{PHOTO_URL}?maxwidth={max_width}&photo_reference={reference}&key={api_key}"


def parse_text_search(data: dict, api_key: str = "") -> list[CandidatePlace]:
    """Convert a Text Search JSON body into CandidatePlace records."""
    places: list[CandidatePlace] = []
    for item in data.get("results", []):
        location = (item.get("geometry") or {}).get("location") or {}
        if "lat" not in location or "lng" not in location or not item.get("place_id"):
            continue
        photos = [
            _photo_url(p["photo_reference"], api_key)
            for p in item.get("photos", [])[:3]
            if p.get("photo_reference")
        ]
        places.append(CandidatePlace(
            source_id=item["place_id"],
            name=item.get("name", ""),
            lat=float(location["lat"]),
            lng=float(location["lng"]),
            rating=float(item.get("rating") or 0.0),
            total_ratings=int(item.get("user_ratings_total") or 0),
            price_tier=item.get("price_level"),
            photos=photos,
            website_url=item.get("website"),
            formatted_address=item.get("formatted_address", ""),
            types=list(item.get("types", [])),
        ))
    return places


class GooglePlacesSearch:
    """PlaceSearchProvider backed by the Places Text Search endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        max_results: Optional[int] = None,
        use_cache: Optional[bool] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = config.GOOGLE_PLACES_API_KEY if api_key is None else api_key
        self.timeout = timeout or config.GOOGLE_PLACES_TIMEOUT_S
        self.max_results = max_results or config.GOOGLE_PLACES_MAX_RESULTS
        self.use_cache = config.SEARCH_CACHE_ENABLED if use_cache is None else use_cache
        self._session = session or requests.Session()

    def search_by_text(self, query: str, min_rating: Optional[float] = None) -> SearchResult:
        if not self.api_key:
            logger.debug("[places] no API key; skipping search %r", query)
            return SearchResult()

        candidates = self._cache_get(query, min_rating)
        if candidates is None:
            candidates = self._fetch(query)
            self._cache_set(query, min_rating, candidates)

        if min_rating is not None:
            candidates = [c for c in candidates if c.rating >= min_rating]
        return SearchResult(places=candidates[: self.max_results])

    # ── HTTP ─────────────────────────────────────────────────────────────

    def _fetch(self, query: str) -> list[CandidatePlace]:
        params = {"query": query, "key": self.api_key}
        try:
            res = self._session.get(TEXT_SEARCH_URL, params=params, timeout=self.timeout)
        except requests.RequestException as exc:
            raise PlaceSearchError(f"text search failed for {query!r}: {exc}") from exc

        if res.status_code != 200:
            raise PlaceSearchError(f"text search HTTP {res.status_code} for {query!r}")

        try:
            data = res.json()
        except ValueError as exc:
            raise PlaceSearchError(f"text search returned a non-JSON body for {query!r}") from exc
        status = data.get("status", "")
        if status not in _OK_STATUSES:
            raise PlaceSearchError(
                f"text search status {status} for {query!r}: {data.get('error_message', '')}"
            )
        return parse_text_search(data, self.api_key)

    # ── Redis cache ──────────────────────────────────────────────────────

    def _cache_get(self, query: str, min_rating: Optional[float]) -> list[CandidatePlace] | None:
        if not self.use_cache:
            return None
        try:
            cached = redis_client.get_cached_search(query, min_rating)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("[places] cache read failed, bypassing: %s", exc)
            return None
        if cached is None:
            return None
        try:
            return [CandidatePlace(**c) for c in cached]
        except (TypeError, ValueError) as exc:
            logger.warning("[places] unusable cache entry for %r, refetching: %s", query, exc)
            return None

    def _cache_set(
        self,
        query: str,
        min_rating: Optional[float],
        candidates: list[CandidatePlace],
    ) -> None:
        if not self.use_cache:
            return
        try:
            redis_client.set_cached_search(query, min_rating, [asdict(c) for c in candidates])
        except redis.RedisError as exc:
            logger.warning("[places] cache write failed: %s", exc)
