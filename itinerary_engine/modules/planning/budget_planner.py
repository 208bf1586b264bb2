"""
modules/planning/budget_planner.py
------------------------------------
Post-assembly budget check.

Estimated trip cost:
    Σ days ( Σ POI cost_min_usd (20 when unknown) + daily overhead )
    daily overhead = 150 USD for HIGH budgets, 50 USD otherwise

When the estimate exceeds budget_usd × 1.10, the costliest POIs are
dropped one at a time (most expensive first) from days that still have
more than 3 stops, until the estimate fits or no candidate is left.
Meals and the hotel are never touched.

All monetary amounts are in USD.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from itinerary_engine.schemas.itinerary import DayPlan, daily_overhead
from itinerary_engine.schemas.places import BudgetLevel, Place

logger = logging.getLogger(__name__)

BUDGET_TOLERANCE:  float = 0.10
MIN_STOPS_TO_TRIM: int   = 3     # a day at or below this keeps all its stops


def estimate_total(days: Sequence[DayPlan], budget_level: BudgetLevel) -> float:
    overhead = daily_overhead(budget_level)
    return sum(day.activity_cost + overhead for day in days)


@dataclass
class TrimResult:
    total_before: float = 0.0
    total_after: float = 0.0
    removed: list[Place] = field(default_factory=list)


class BudgetTrimmer:
    def __init__(self, tolerance: float = BUDGET_TOLERANCE, min_stops: int = MIN_STOPS_TO_TRIM) -> None:
        self.tolerance = tolerance
        self.min_stops = min_stops

    def trim(self, days: list[DayPlan], budget_usd: float, budget_level: BudgetLevel) -> TrimResult:
        """Drop expensive stops from *days* in place until the estimate fits."""
        total = estimate_total(days, budget_level)
        result = TrimResult(total_before=total, total_after=total)
        ceiling = budget_usd * (1 + self.tolerance)

        if budget_usd <= 0 or total <= ceiling:
            logger.info("[budget] within budget: $%.2f <= $%.2f", total, budget_usd)
            return result

        logger.info(
            "[budget] over budget ($%.2f > $%.2f + %d%%); trimming",
            total, budget_usd, round(self.tolerance * 100),
        )
        candidates = [
            (place, day_idx)
            for day_idx, day in enumerate(days)
            for place in day.ordered_locations
        ]
        candidates.sort(key=lambda c: -c[0].estimated_cost)

        for place, day_idx in candidates:
            if total <= ceiling:
                break
            day = days[day_idx]
            if len(day.ordered_locations) <= self.min_stops:
                continue
            day.ordered_locations = [p for p in day.ordered_locations if p.id != place.id]
            total = estimate_total(days, budget_level)
            result.removed.append(place)
            logger.info("[budget] removed %r to save $%.2f", place.name, place.estimated_cost)

        result.total_after = total
        logger.info(
            "[budget] trimming complete: removed %d, new total $%.2f",
            len(result.removed), total,
        )
        return result
