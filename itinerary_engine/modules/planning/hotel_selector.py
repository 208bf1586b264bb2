"""
modules/planning/hotel_selector.py
------------------------------------
Pick one base hotel for the whole trip.

Search order:
  1. Stored HOTEL / ACCOMMODATION places within 15 km of the pool centroid
     (nearest wins).
  2. Text search "hotel near <destination>" (rating >= 4.0), nearest hit
     within the same radius.  The hit is NOT persisted; it is returned as
     an external Place with id "external-<source_id>".
  3. Steps 1-2 again at the first activity's coordinates with no stored
     candidates and a 20 km radius.

No hotel at all is a valid outcome: days then start from the trip origin
or the previous day's last stop.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from itinerary_engine import config
from itinerary_engine.db.place_store import PlaceStore
from itinerary_engine.errors import PlaceSearchError
from itinerary_engine.modules.tool_usage.distance_tool import centroid, haversine_km
from itinerary_engine.modules.tool_usage.places_search import PlaceSearchProvider
from itinerary_engine.schemas.places import (
    HOTEL_CATEGORIES,
    CandidatePlace,
    Classification,
    LocationCategory,
    Place,
    price_tier_to_level,
)

logger = logging.getLogger(__name__)

HOTEL_RADIUS_KM:          float = 15.0
FALLBACK_RADIUS_KM:       float = 20.0
HOTEL_CANDIDATE_LIMIT:    int   = 20
HOTEL_SEARCH_MIN_RATING:  float = 4.0


def external_hotel(candidate: CandidatePlace, country: str, city: Optional[str]) -> Place:
    """Wrap a search hit as an unpersisted hotel Place."""
    return Place(
        id=f"external-{candidate.source_id}",
        name=candidate.name,
        lat=candidate.lat,
        lng=candidate.lng,
        category=LocationCategory.HOTEL.value,
        rating=candidate.rating,
        total_ratings=candidate.total_ratings,
        price_level=price_tier_to_level(candidate.price_tier),
        source_id=candidate.source_id,
        city=city or country,
        country=country,
        address=candidate.formatted_address,
        classification=Classification.MUST_SEE,
        description=f"{candidate.rating}★ hotel with {candidate.total_ratings} reviews",
        image_urls=tuple(candidate.photos),
        website_url=candidate.website_url,
        is_external=True,
    )


class HotelSelector:
    def __init__(
        self,
        store: PlaceStore,
        search: PlaceSearchProvider,
        radius_km: float = HOTEL_RADIUS_KM,
        fallback_radius_km: float = FALLBACK_RADIUS_KM,
    ) -> None:
        self.store = store
        self.search = search
        self.radius_km = radius_km
        self.fallback_radius_km = fallback_radius_km

    def select(
        self,
        pool: Sequence[Place],
        country: str,
        city: Optional[str],
        destination_label: str,
    ) -> Optional[Place]:
        if pool:
            anchor_lat, anchor_lng = centroid(pool)
        else:
            anchor_lat, anchor_lng = config.DEFAULT_CENTER_LAT, config.DEFAULT_CENTER_LNG

        stored = self.store.query_places(
            [c.value for c in HOTEL_CATEGORIES], country, city, HOTEL_CANDIDATE_LIMIT,
        )
        hotel = self.find_near(
            anchor_lat, anchor_lng, stored, destination_label, self.radius_km, country, city,
        )
        if hotel is None and pool:
            logger.info("[hotel] retrying around first activity %r", pool[0].name)
            hotel = self.find_near(
                pool[0].lat, pool[0].lng, [], destination_label,
                self.fallback_radius_km, country, city,
            )
        if hotel is None:
            logger.warning("[hotel] no hotel found for %s", destination_label)
        return hotel

    def find_near(
        self,
        lat: float,
        lng: float,
        stored: Sequence[Place],
        destination_label: str,
        radius_km: float,
        country: str = "",
        city: Optional[str] = None,
    ) -> Optional[Place]:
        """Nearest stored hotel within *radius_km*, else nearest search hit."""
        in_range = [
            (haversine_km(h.lat, h.lng, lat, lng), idx, h)
            for idx, h in enumerate(stored)
        ]
        in_range = [t for t in in_range if t[0] <= radius_km]
        if in_range:
            dist, _, hotel = min(in_range, key=lambda t: (t[0], t[1]))
            logger.info("[hotel] stored hotel %r %.1f km from anchor", hotel.name, dist)
            return hotel

        query = f"hotel near {destination_label}"
        try:
            result = self.search.search_by_text(query, HOTEL_SEARCH_MIN_RATING)
        except PlaceSearchError as exc:
            logger.warning("[hotel] search %r failed: %s", query, exc)
            return None

        hits = [
            (haversine_km(c.lat, c.lng, lat, lng), idx, c)
            for idx, c in enumerate(result.places)
        ]
        hits = [t for t in hits if t[0] <= radius_km]
        if not hits:
            return None
        dist, _, best = min(hits, key=lambda t: (t[0], t[1]))
        logger.info("[hotel] external hotel %r (%.1f★) %.1f km from anchor", best.name, best.rating, dist)
        return external_hotel(best, country, city)
