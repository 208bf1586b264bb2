"""
itinerary_generator.py
-----------------------
End-to-end itinerary assembly for one request.

Stages (strictly forward; see GenerationStage):

  POOLING         candidate activities from the store, topped up by search
  CLUSTERING      k-means into one cluster per day
  ORDERING        clusters chained outward from the trip origin
  BALANCING       day sizes pulled into the target band
  HOTEL_RESOLVED  one base hotel near the pool centroid (may be None)
  ROUTING_MEALS   per day: cap / backfill, nearest-neighbour order, meals
  POLISHING       narrative warnings, tips and checklist merged in
  TRIMMING        costliest optional stops dropped to fit the budget
  DONE

Each transition is written to the structured event log under the request's
trip id, followed by a PERFORMANCE record with the total duration.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from itinerary_engine import config
from itinerary_engine.db.place_store import PlaceStore
from itinerary_engine.errors import InvalidRequestError, StageOrderError
from itinerary_engine.modules.observability.logger import (
    PERFORMANCE_EVENT,
    STAGE_EVENT,
    StructuredLogger,
)
from itinerary_engine.modules.planning.budget_planner import BudgetTrimmer
from itinerary_engine.modules.planning.cluster_balancer import ClusterBalancer
from itinerary_engine.modules.planning.hotel_selector import HotelSelector
from itinerary_engine.modules.planning.meal_planner import MealAssigner
from itinerary_engine.modules.planning.pool_builder import (
    PlacePoolBuilder,
    categories_for_styles,
    target_pool_size,
)
from itinerary_engine.modules.planning.route_planner import (
    DayRouter,
    GeoClusterer,
    order_clusters_by_proximity,
)
from itinerary_engine.modules.tool_usage.places_search import PlaceSearchProvider
from itinerary_engine.modules.tool_usage.polish_tool import (
    NullPolishGenerator,
    PolishGenerator,
)
from itinerary_engine.schemas.itinerary import (
    DayPlan,
    GenerationRequest,
    Itinerary,
    PolishResult,
)
from itinerary_engine.schemas.places import budget_to_price_level

logger = logging.getLogger(__name__)

MAX_TRIP_DAYS: int = 30
DEFAULT_THEME: str = "Relaxation"

# Destinations recognised as a whole country rather than a city.
KNOWN_COUNTRIES: tuple[str, ...] = (
    "Lebanon", "France", "Italy", "Spain", "Germany", "Japan",
    "UAE", "United Arab Emirates",
)


class GenerationStage(Enum):
    PENDING        = 0
    POOLING        = 1
    CLUSTERING     = 2
    ORDERING       = 3
    BALANCING      = 4
    HOTEL_RESOLVED = 5
    ROUTING_MEALS  = 6
    POLISHING      = 7
    TRIMMING       = 8
    DONE           = 9


class StageTracker:
    """Forward-only stage pointer for one generation run."""

    def __init__(self, trip_id: str, events: StructuredLogger) -> None:
        self.trip_id = trip_id
        self.events = events
        self.stage = GenerationStage.PENDING

    def advance(self, stage: GenerationStage, **details) -> None:
        if stage.value <= self.stage.value:
            raise StageOrderError(
                f"cannot move from {self.stage.name} to {stage.name} (trip {self.trip_id})"
            )
        self.events.log(self.trip_id, STAGE_EVENT, {
            "from": self.stage.name,
            "to": stage.name,
            **details,
        })
        self.stage = stage


def resolve_destination(destination: str, country: Optional[str] = None) -> tuple[str, Optional[str]]:
    """
    Split a destination into (country, city).

    An explicit *country* wins; the destination is then its city unless it
    names the country itself.  Otherwise a recognised country name means a
    country-wide trip, and anything else is a city in DEFAULT_COUNTRY.
    """
    dest = destination.strip()
    if country:
        return country, (None if dest.lower() == country.lower() else dest or None)
    for known in KNOWN_COUNTRIES:
        if known.lower() == dest.lower():
            return dest, None
    return config.DEFAULT_COUNTRY, dest or None


class ItineraryGenerator:
    def __init__(
        self,
        store: PlaceStore,
        search: PlaceSearchProvider,
        polish: Optional[PolishGenerator] = None,
        events: Optional[StructuredLogger] = None,
        clusterer: Optional[GeoClusterer] = None,
    ) -> None:
        self.store = store
        self.search = search
        self.polish = polish or NullPolishGenerator()
        self.events = events or StructuredLogger()
        self.clusterer = clusterer or GeoClusterer()

        self.pool_builder = PlacePoolBuilder(store, search)
        self.balancer = ClusterBalancer(config.ORIGIN_LAT, config.ORIGIN_LNG)
        self.router = DayRouter()
        self.hotels = HotelSelector(store, search)
        self.meals = MealAssigner(store, search, places=self.pool_builder)
        self.trimmer = BudgetTrimmer()

    # ── Main entry point ──────────────────────────────────────────────────────

    def generate(self, request: GenerationRequest) -> Itinerary:
        days_n = request.number_of_days
        if not isinstance(days_n, int) or not 1 <= days_n <= MAX_TRIP_DAYS:
            raise InvalidRequestError(f"number_of_days must be 1..{MAX_TRIP_DAYS}, got {days_n!r}")
        if request.budget_usd < 0:
            raise InvalidRequestError(f"budget_usd must not be negative, got {request.budget_usd}")
        categories = categories_for_styles(request.travel_styles)
        if not categories:
            raise InvalidRequestError("no activity categories for the requested travel styles")

        t0 = time.perf_counter()
        trip_id = str(uuid.uuid4())
        stages = StageTracker(trip_id, self.events)
        try:
            itinerary = self._assemble(request, categories, trip_id, stages)
            self.events.log(trip_id, PERFORMANCE_EVENT, {
                "component": "ItineraryGenerator.generate",
                "duration_ms": round((time.perf_counter() - t0) * 1000, 2),
            })
        finally:
            self.events.close(trip_id)
        return itinerary

    def _assemble(
        self,
        request: GenerationRequest,
        categories: list,
        trip_id: str,
        stages: StageTracker,
    ) -> Itinerary:
        days_n = request.number_of_days
        country, city = resolve_destination(request.destination, request.country)
        label = city or country
        logger.info(
            "[itinerary] %s: %d days in %s, styles %s",
            trip_id, days_n, label, [s.value for s in request.travel_styles],
        )

        # ── 1. Pool ──────────────────────────────────────────────────────────
        target = target_pool_size(days_n)
        stages.advance(GenerationStage.POOLING, target=target, country=country, city=city)
        pool_result = self.pool_builder.build(categories, country, city, target)
        pool = pool_result.places

        # ── 2-4. Clusters ────────────────────────────────────────────────────
        stages.advance(GenerationStage.CLUSTERING, pool_size=len(pool))
        clusters = self.clusterer.cluster(pool, days_n)

        stages.advance(GenerationStage.ORDERING, sizes=[len(c) for c in clusters])
        clusters = order_clusters_by_proximity(clusters, config.ORIGIN_LAT, config.ORIGIN_LNG)

        stages.advance(GenerationStage.BALANCING, sizes=[len(c) for c in clusters])
        clusters, moves = self.balancer.balance(clusters, days_n)

        # ── 5. Hotel ─────────────────────────────────────────────────────────
        hotel = self.hotels.select(pool, country, city, label)
        stages.advance(
            GenerationStage.HOTEL_RESOLVED,
            moves=moves,
            hotel=hotel.name if hotel else None,
        )

        # ── 6. Days ──────────────────────────────────────────────────────────
        stages.advance(GenerationStage.ROUTING_MEALS)
        price_level = budget_to_price_level(request.budget_level)
        used_ids: set[str] = set()
        prev_lat, prev_lng = config.ORIGIN_LAT, config.ORIGIN_LNG
        days: list[DayPlan] = []

        for idx in range(days_n):
            day_number = idx + 1
            is_last = day_number == days_n
            start_lat, start_lng = (hotel.lat, hotel.lng) if hotel else (prev_lat, prev_lng)

            cluster = clusters[idx] if idx < len(clusters) else []
            ordered, used_ids = self.router.route_day(
                cluster, pool, used_ids, start_lat, start_lng, day_number=day_number,
            )
            if ordered:
                prev_lat, prev_lng = ordered[-1].lat, ordered[-1].lng

            meals, used_ids = self.meals.assign(
                ordered, start_lat, start_lng, country, city, price_level, used_ids,
                day_number=day_number,
            )

            theme = str(getattr(ordered[0].category, "value", ordered[0].category)) if ordered else DEFAULT_THEME
            where = (ordered[0].city if ordered and ordered[0].city else label)
            days.append(DayPlan(
                day_number=day_number,
                ordered_locations=ordered,
                hotel=hotel,
                starting_hotel=None if is_last else hotel,
                meals=meals,
                theme=theme,
                is_last_day=is_last,
                description=f"Day {day_number}: {theme} in {where}",
            ))

        # ── 7. Polish ────────────────────────────────────────────────────────
        stages.advance(GenerationStage.POLISHING)
        polish = self._polish(days, label)

        warnings: list[dict] = []
        if pool_result.warning:
            warnings.append(pool_result.warning)
        warnings.extend(polish.warnings)

        itinerary = Itinerary(
            number_of_days=days_n,
            budget_usd=request.budget_usd,
            budget_level=request.budget_level,
            travel_styles=list(request.travel_styles),
            destination=label,
            trip_id=trip_id,
            days=days,
            hotel=hotel,
            route_summary=f"{days_n} days in {label}",
            warnings=warnings,
            tourist_traps=polish.tourist_traps,
            local_tips=polish.local_tips,
            checklist=polish.checklist,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

        # ── 8. Budget ────────────────────────────────────────────────────────
        stages.advance(GenerationStage.TRIMMING)
        trim = self.trimmer.trim(itinerary.days, request.budget_usd, request.budget_level)

        stages.advance(
            GenerationStage.DONE,
            total_usd=round(itinerary.total_estimated_cost_usd, 2),
            removed=[p.id for p in trim.removed],
        )
        return itinerary

    def _polish(self, days: list[DayPlan], label: str) -> PolishResult:
        try:
            return self.polish.generate(days, label)
        except Exception as exc:  # noqa: BLE001
            logger.error("[polish] generation failed (non-critical): %s", exc)
            return PolishResult()
