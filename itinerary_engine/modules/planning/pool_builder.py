"""
modules/planning/pool_builder.py
----------------------------------
Assemble the candidate activity pool for a trip.

  1. Stored places first, ordered by classification priority
     (MUST_SEE / HIDDEN_GEM, then CONDITIONAL, then TOURIST_TRAP), then
     rating, then review count.  A city-level query that comes up short is
     topped up country-wide.
  2. If still below target, text-search one category at a time
     ("Best <category> in <city or country>", rating >= 4.0), persisting
     each new hit through the store before adding it to the pool.

A failed search skips its category.  A pool that ends below target is not
an error: build() returns a "Limited data" warning for the itinerary.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from itinerary_engine.db.place_store import PlaceStore
from itinerary_engine.errors import PlaceSearchError
from itinerary_engine.modules.tool_usage.places_search import PlaceSearchProvider
from itinerary_engine.schemas.places import (
    ACTIVITY_CATEGORIES,
    DEFAULT_ACTIVITY_CATEGORIES,
    DEFAULT_POI_COST_USD,
    FOOD_CATEGORIES,
    CandidatePlace,
    Classification,
    LocationCategory,
    Place,
    PlaceDraft,
    PriceLevel,
    TravelStyle,
    price_tier_to_level,
)

logger = logging.getLogger(__name__)

ACTIVITIES_PER_DAY:   int   = 4
POOL_OVERSAMPLE:      float = 2.0
AUGMENT_MIN_RATING:   float = 4.0

_CLASSIFICATION_PRIORITY: dict[Classification, int] = {
    Classification.MUST_SEE:     0,
    Classification.HIDDEN_GEM:   0,
    Classification.CONDITIONAL:  1,
    Classification.TOURIST_TRAP: 2,
}


def classification_priority(classification: Optional[Classification]) -> int:
    return _CLASSIFICATION_PRIORITY.get(classification, 3)


def is_food_category(categories: Iterable) -> bool:
    """True when any category is a restaurant, cafe or bar."""
    food = {c.value for c in FOOD_CATEGORIES}
    return any(str(getattr(c, "value", c)) in food for c in categories)


def categories_for_styles(styles: Sequence[TravelStyle]) -> list[LocationCategory]:
    """
    Union of the categories each travel style maps to, first-seen order.
    Falls back to DEFAULT_ACTIVITY_CATEGORIES when nothing maps.
    """
    seen: list[LocationCategory] = []
    for style in styles:
        for cat in ACTIVITY_CATEGORIES.get(style, []):
            if cat not in seen:
                seen.append(cat)
    if not seen:
        logger.warning(
            "[pool] no categories match travel styles %s; using general interest",
            [getattr(s, "value", s) for s in styles],
        )
        return list(DEFAULT_ACTIVITY_CATEGORIES)
    return seen


def target_pool_size(number_of_days: int) -> int:
    return math.ceil(number_of_days * ACTIVITIES_PER_DAY * POOL_OVERSAMPLE)


def _priority_key(place: Place) -> tuple:
    return (
        classification_priority(place.classification),
        -(place.rating or 0.0),
        -(place.total_ratings or 0),
    )


def limited_data_warning(found: int, requested: int, label: str) -> dict:
    return {
        "title": "Limited data",
        "description": (
            f"Only {found} of {requested} requested activities were found for "
            f"{label}. Some days may be shorter than usual."
        ),
    }


@dataclass
class PoolResult:
    places: list[Place] = field(default_factory=list)
    target: int = 0
    warning: Optional[dict] = None


class PlacePoolBuilder:
    def __init__(self, store: PlaceStore, search: PlaceSearchProvider) -> None:
        self.store = store
        self.search = search

    # ── stored places ────────────────────────────────────────────────────────

    def fetch_places(
        self,
        categories: Sequence,
        country: str,
        city: Optional[str],
        limit: int,
        exclude_ids: Iterable[str] = (),
        price_level: Optional[PriceLevel] = None,
    ) -> list[Place]:
        """Stored places for *categories*, best first, at most *limit*."""
        if limit <= 0:
            return []
        exclude = list(exclude_ids)
        exclude_traps = not is_food_category(categories)

        places = self.store.query_places(
            categories, country, city, limit * 2,
            exclude_ids=exclude,
            price_level=price_level,
            exclude_tourist_traps=exclude_traps,
        )
        places = sorted(places, key=_priority_key)[:limit]

        if city and len(places) < limit:
            taken = exclude + [p.id for p in places]
            extra = self.store.query_places(
                categories, country, None, limit - len(places),
                exclude_ids=taken,
                price_level=price_level,
                exclude_tourist_traps=exclude_traps,
            )
            places.extend(sorted(extra, key=_priority_key))
            logger.debug("[pool] city short; added %d country-wide places", len(extra))

        return places

    # ── external augmentation ────────────────────────────────────────────────

    def augment(
        self,
        pool: list[Place],
        categories: Sequence[LocationCategory],
        target: int,
        country: str,
        city: Optional[str],
    ) -> list[Place]:
        """Top *pool* up to *target* from text search; returns a new list."""
        pool = list(pool)
        if len(pool) >= target:
            return pool

        logger.info("[augment] pool too small (%d < %d); searching", len(pool), target)
        label = city or country
        pool_sources = {p.source_id for p in pool if p.source_id}

        for cat in categories:
            cat_name = str(getattr(cat, "value", cat))
            query = f"Best {cat_name.replace('_', ' ').lower()} in {label}"
            try:
                result = self.search.search_by_text(query, AUGMENT_MIN_RATING)
            except PlaceSearchError as exc:
                logger.warning("[augment] search %r failed, skipping category: %s", query, exc)
                continue

            for candidate in result.places:
                if candidate.source_id in pool_sources:
                    continue
                if self.store.find_by_source_id(candidate.source_id) is not None:
                    continue
                place = self.store.create_place(
                    self._draft_from_candidate(candidate, cat_name, country, city)
                )
                pool.append(place)
                pool_sources.add(candidate.source_id)

            if len(pool) >= target:
                break

        logger.info("[augment] pool size after augmentation: %d", len(pool))
        return pool

    @staticmethod
    def _draft_from_candidate(
        candidate: CandidatePlace,
        category: str,
        country: str,
        city: Optional[str],
    ) -> PlaceDraft:
        return PlaceDraft(
            source_id=candidate.source_id,
            name=candidate.name,
            lat=candidate.lat,
            lng=candidate.lng,
            category=category,
            country=country,
            city=city or country,
            address=candidate.formatted_address,
            rating=candidate.rating,
            total_ratings=candidate.total_ratings,
            price_level=price_tier_to_level(candidate.price_tier),
            cost_min_usd=DEFAULT_POI_COST_USD,
            classification=Classification.MUST_SEE,
            description=f"{candidate.rating}★ {category.replace('_', ' ').lower()} found via search",
            image_urls=list(candidate.photos),
            website_url=candidate.website_url,
        )

    # ── full pool ────────────────────────────────────────────────────────────

    def build(
        self,
        categories: Sequence[LocationCategory],
        country: str,
        city: Optional[str],
        target: int,
    ) -> PoolResult:
        pool = self.fetch_places(categories, country, city, target)
        logger.info("[pool] %d stored activities (target %d)", len(pool), target)
        pool = self.augment(pool, categories, target, country, city)

        warning = None
        if len(pool) < target:
            warning = limited_data_warning(len(pool), target, city or country)
            logger.warning(
                "[pool] limited data for %s: requested %d, found %d",
                city or country, target, len(pool),
            )
        return PoolResult(places=pool, target=target, warning=warning)
