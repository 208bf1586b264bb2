"""
schemas/itinerary.py
--------------------
Dataclass definitions for the generation request and the output itinerary.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from itinerary_engine.schemas.places import BudgetLevel, Place, TravelStyle


# Fixed per-day spend on top of activity costs (transport, incidentals).
DAILY_OVERHEAD_USD: dict[BudgetLevel, float] = {
    BudgetLevel.LOW:    50.0,
    BudgetLevel.MEDIUM: 50.0,
    BudgetLevel.HIGH:   150.0,
}


def daily_overhead(budget_level: BudgetLevel) -> float:
    return DAILY_OVERHEAD_USD.get(budget_level, 50.0)


@dataclass
class GenerationRequest:
    """
    Input to ItineraryGenerator.generate().

    ``destination`` is either a country name or a city; ``country`` pins the
    country explicitly when the destination is a city.
    """
    destination: str
    number_of_days: int
    budget_level: BudgetLevel = BudgetLevel.MEDIUM
    travel_styles: list[TravelStyle] = field(default_factory=list)
    budget_usd: float = 1000.0
    country: Optional[str] = None


@dataclass
class MealSlots:
    breakfast: Optional[Place] = None
    lunch: Optional[Place] = None
    dinner: Optional[Place] = None

    def ids(self) -> list[str]:
        """Ids of the filled slots in breakfast → lunch → dinner order."""
        return [m.id for m in (self.breakfast, self.lunch, self.dinner) if m is not None]

    def missing(self) -> list[str]:
        return [
            slot for slot in ("breakfast", "lunch", "dinner")
            if getattr(self, slot) is None
        ]


@dataclass
class DayPlan:
    """One day: a walking route of POIs plus meals, anchored at the base hotel."""
    day_number: int = 0
    ordered_locations: list[Place] = field(default_factory=list)
    hotel: Optional[Place] = None
    starting_hotel: Optional[Place] = None     # None on the last day (check-out)
    meals: MealSlots = field(default_factory=MealSlots)
    theme: str = ""
    is_last_day: bool = False
    description: str = ""

    @property
    def route_description(self) -> str:
        return " -> ".join(p.name for p in self.ordered_locations)

    @property
    def activity_cost(self) -> float:
        return sum(p.estimated_cost for p in self.ordered_locations)


@dataclass
class PolishResult:
    """Narrative extras merged into the itinerary after day assembly."""
    warnings: list[dict] = field(default_factory=list)         # {title, description}
    tourist_traps: list[dict] = field(default_factory=list)    # {name, reason}
    local_tips: list[str] = field(default_factory=list)
    checklist: list[dict] = field(default_factory=list)        # {category, item, reason}


@dataclass
class Itinerary:
    """
    Top-level output of a generation run.

    ``total_estimated_cost_usd`` is computed from the current days on every
    access so it can never go stale after trimming.
    """
    number_of_days: int
    budget_usd: float
    budget_level: BudgetLevel
    travel_styles: list[TravelStyle] = field(default_factory=list)
    destination: str = ""
    trip_id: str = ""
    days: list[DayPlan] = field(default_factory=list)
    hotel: Optional[Place] = None
    route_summary: str = ""
    warnings: list[dict] = field(default_factory=list)
    tourist_traps: list[dict] = field(default_factory=list)
    local_tips: list[str] = field(default_factory=list)
    checklist: list[dict] = field(default_factory=list)
    generated_at: str = ""  # ISO-8601 timestamp

    @property
    def total_estimated_cost_usd(self) -> float:
        overhead = daily_overhead(self.budget_level)
        return sum(day.activity_cost + overhead for day in self.days)
