"""
modules/planning/meal_planner.py
----------------------------------
Attach breakfast, lunch and dinner to a routed day.

Anchors: breakfast near the first stop, lunch near the middle stop
(index len // 2), dinner near the last stop.  A day without stops uses
its start point for all three.

Stored candidates for the three slots are fetched concurrently, one
country-wide query each (10 rows, request price level, globally used ids
excluded).  Slots are then filled in breakfast → lunch → dinner order with
no place repeated within the day.  A slot with no stored match falls back
to a text search; the hit is persisted before it is attached.  A slot may
stay empty.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Sequence

from itinerary_engine.db.place_store import PlaceStore
from itinerary_engine.errors import PlaceSearchError
from itinerary_engine.modules.planning.pool_builder import PlacePoolBuilder
from itinerary_engine.modules.tool_usage.distance_tool import haversine_km
from itinerary_engine.modules.tool_usage.places_search import PlaceSearchProvider
from itinerary_engine.schemas.itinerary import MealSlots
from itinerary_engine.schemas.places import (
    CandidatePlace,
    Classification,
    LocationCategory,
    Place,
    PlaceDraft,
    PriceLevel,
    price_tier_to_level,
)

logger = logging.getLogger(__name__)

MEAL_CANDIDATE_LIMIT:  int   = 10
MEAL_SEARCH_MIN_RATING: float = 3.5


@dataclass(frozen=True)
class MealSlotSpec:
    slot: str
    categories: tuple[LocationCategory, ...]
    radius_km: float
    query_prefix: str


MEAL_SLOTS: tuple[MealSlotSpec, ...] = (
    MealSlotSpec("breakfast", (LocationCategory.CAFE, LocationCategory.RESTAURANT), 15.0,
                 "restaurant OR cafe near"),
    MealSlotSpec("lunch", (LocationCategory.RESTAURANT,), 15.0,
                 "restaurant near"),
    MealSlotSpec("dinner", (LocationCategory.RESTAURANT, LocationCategory.BAR), 20.0,
                 "restaurant OR bar near"),
)


@dataclass(frozen=True)
class MealAnchor:
    lat: float
    lng: float
    name: Optional[str] = None


def meal_anchors(
    day_places: Sequence[Place],
    start_lat: float,
    start_lng: float,
) -> tuple[MealAnchor, MealAnchor, MealAnchor]:
    """(morning, midday, evening) anchors for a routed day."""
    if not day_places:
        start = MealAnchor(start_lat, start_lng)
        return start, start, start
    first = day_places[0]
    mid = day_places[len(day_places) // 2]
    last = day_places[-1]
    return (
        MealAnchor(first.lat, first.lng, first.name),
        MealAnchor(mid.lat, mid.lng, mid.name),
        MealAnchor(last.lat, last.lng, last.name),
    )


class MealAssigner:
    def __init__(
        self,
        store: PlaceStore,
        search: PlaceSearchProvider,
        places: Optional[PlacePoolBuilder] = None,
        max_workers: int = 3,
    ) -> None:
        self.store = store
        self.search = search
        self.places = places or PlacePoolBuilder(store, search)
        self.max_workers = max_workers

    def assign(
        self,
        day_places: Sequence[Place],
        start_lat: float,
        start_lng: float,
        country: str,
        city: Optional[str],
        price_level: Optional[PriceLevel],
        used_ids: set[str],
        day_number: int = 0,
    ) -> tuple[MealSlots, set[str]]:
        """Return (filled meal slots, used ids including the chosen meals)."""
        anchors = meal_anchors(day_places, start_lat, start_lng)
        exclude = sorted(used_ids)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures = [
                pool.submit(self._stored_candidates, spec, anchor, country, price_level, exclude)
                for spec, anchor in zip(MEAL_SLOTS, anchors)
            ]
            candidates = [f.result() for f in futures]

        meals = MealSlots()
        day_ids: set[str] = set()
        for spec, options in zip(MEAL_SLOTS, candidates):
            choice = next((p for p in options if p.id not in day_ids), None)
            if choice is not None:
                setattr(meals, spec.slot, choice)
                day_ids.add(choice.id)

        for spec, anchor in zip(MEAL_SLOTS, anchors):
            if getattr(meals, spec.slot) is not None:
                continue
            found = self._search_fallback(spec, anchor, country, city, day_ids | used_ids)
            if found is not None:
                setattr(meals, spec.slot, found)
                day_ids.add(found.id)

        for spec in MEAL_SLOTS:
            chosen = getattr(meals, spec.slot)
            if chosen is not None:
                logger.info("[meals] day %d %s: %s", day_number, spec.slot, chosen.name)
            else:
                logger.info("[meals] day %d: no %s found", day_number, spec.slot)

        return meals, used_ids | set(meals.ids())

    # ── stored candidates ────────────────────────────────────────────────────

    def _stored_candidates(
        self,
        spec: MealSlotSpec,
        anchor: MealAnchor,
        country: str,
        price_level: Optional[PriceLevel],
        exclude: list[str],
    ) -> list[Place]:
        rows = self.places.fetch_places(
            spec.categories, country, None, MEAL_CANDIDATE_LIMIT,
            exclude_ids=exclude, price_level=price_level,
        )
        nearby = [
            p for p in rows
            if haversine_km(p.lat, p.lng, anchor.lat, anchor.lng) < spec.radius_km
        ]
        logger.debug(
            "[meals] %s: %d candidates, %d within %.0f km",
            spec.slot, len(rows), len(nearby), spec.radius_km,
        )
        return nearby

    # ── text-search fallback ─────────────────────────────────────────────────

    def _search_fallback(
        self,
        spec: MealSlotSpec,
        anchor: MealAnchor,
        country: str,
        city: Optional[str],
        taken_ids: set[str],
    ) -> Optional[Place]:
        query = f"{spec.query_prefix} {anchor.name or country}"
        try:
            result = self.search.search_by_text(query, MEAL_SEARCH_MIN_RATING)
        except PlaceSearchError as exc:
            logger.warning("[meals] %s search %r failed: %s", spec.slot, query, exc)
            return None

        for candidate in result.places:
            if haversine_km(candidate.lat, candidate.lng, anchor.lat, anchor.lng) >= spec.radius_km:
                continue
            existing = self.store.find_by_source_id(candidate.source_id)
            if existing is not None:
                if existing.id in taken_ids:
                    continue
                return existing
            return self.store.create_place(self._draft(candidate, spec.slot, country, city))
        return None

    @staticmethod
    def _draft(candidate: CandidatePlace, slot: str, country: str, city: Optional[str]) -> PlaceDraft:
        return PlaceDraft(
            source_id=candidate.source_id,
            name=candidate.name,
            lat=candidate.lat,
            lng=candidate.lng,
            category=LocationCategory.RESTAURANT.value,
            country=country,
            city=city or country,
            address=candidate.formatted_address,
            rating=candidate.rating,
            total_ratings=candidate.total_ratings,
            price_level=price_tier_to_level(candidate.price_tier),
            classification=Classification.HIDDEN_GEM,
            description=f"{candidate.rating}★ {slot} spot",
            image_urls=list(candidate.photos),
            website_url=candidate.website_url,
        )
