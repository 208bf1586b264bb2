"""
api/routes/itinerary.py
------------------------
POST /v1/itinerary/generate

Validates the request, runs ItineraryGenerator and returns the itinerary
JSON (camelCase keys).  A request the engine rejects maps to 422; any other
failure maps to 500.

The generator is provided through the get_generator dependency so tests can
swap in in-memory collaborators via app.dependency_overrides.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from itinerary_engine.db.repositories.place_repo import PostgresPlaceStore
from itinerary_engine.errors import InvalidRequestError
from itinerary_engine.itinerary_generator import MAX_TRIP_DAYS, ItineraryGenerator
from itinerary_engine.modules.tool_usage.places_search import GooglePlacesSearch
from itinerary_engine.modules.tool_usage.polish_tool import default_polish_generator
from itinerary_engine.schemas.itinerary import DayPlan, GenerationRequest, Itinerary
from itinerary_engine.schemas.places import BudgetLevel, Place, TravelStyle

router = APIRouter()


# ── Request schema ─────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    destination: str = Field(..., min_length=1, description="City or country name")
    numberOfDays: int = Field(..., ge=1, le=MAX_TRIP_DAYS)
    budgetLevel: BudgetLevel = BudgetLevel.MEDIUM
    travelStyles: list[TravelStyle] = Field(default_factory=list, max_length=3)
    budgetUSD: float = Field(1000.0, gt=0)
    country: Optional[str] = Field(None, description="Pins the country when destination is a city")

    def to_generation_request(self) -> GenerationRequest:
        return GenerationRequest(
            destination=self.destination,
            number_of_days=self.numberOfDays,
            budget_level=self.budgetLevel,
            travel_styles=list(self.travelStyles),
            budget_usd=self.budgetUSD,
            country=self.country,
        )


# ── Dependencies ───────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_generator() -> ItineraryGenerator:
    return ItineraryGenerator(
        store=PostgresPlaceStore(),
        search=GooglePlacesSearch(),
        polish=default_polish_generator(),
    )


# ── Serialisers ────────────────────────────────────────────────────────────────

def _ser_place(p: Optional[Place]) -> Optional[dict]:
    if p is None:
        return None
    return {
        "id":             p.id,
        "name":           p.name,
        "latitude":       p.lat,
        "longitude":      p.lng,
        "category":       p.category,
        "classification": p.classification.value if p.classification else None,
        "rating":         p.rating,
        "totalRatings":   p.total_ratings,
        "priceLevel":     p.price_level.value if p.price_level else None,
        "costMinUSD":     p.cost_min_usd,
        "costMaxUSD":     p.cost_max_usd,
        "city":           p.city,
        "country":        p.country,
        "address":        p.address,
        "description":    p.description,
        "imageUrls":      list(p.image_urls),
        "websiteUrl":     p.website_url,
        "isExternal":     p.is_external,
    }


def _ser_day(d: DayPlan) -> dict:
    return {
        "dayNumber":        d.day_number,
        "description":      d.description,
        "routeDescription": d.route_description,
        "theme":            d.theme,
        "isLastDay":        d.is_last_day,
        "locations":        [_ser_place(p) for p in d.ordered_locations],
        "hotel":            _ser_place(d.hotel),
        "startingHotel":    _ser_place(d.starting_hotel),
        "meals": {
            "breakfast": _ser_place(d.meals.breakfast),
            "lunch":     _ser_place(d.meals.lunch),
            "dinner":    _ser_place(d.meals.dinner),
        },
    }


def _ser_itinerary(it: Itinerary) -> dict:
    return {
        "tripId": it.trip_id,
        "itinerary": {
            "numberOfDays": it.number_of_days,
            "budgetUSD":    it.budget_usd,
            "budgetLevel":  it.budget_level.value,
            "travelStyles": [s.value for s in it.travel_styles],
        },
        "destination":           it.destination,
        "days":                  [_ser_day(d) for d in it.days],
        "hotel":                 _ser_place(it.hotel),
        "totalEstimatedCostUSD": round(it.total_estimated_cost_usd, 2),
        "routeSummary":          it.route_summary,
        "warnings":              it.warnings,
        "touristTraps":          it.tourist_traps,
        "localTips":             it.local_tips,
        "checklist":             it.checklist,
        "generatedAt":           it.generated_at,
    }


# ── Endpoint ───────────────────────────────────────────────────────────────────

@router.post("/generate", summary="Generate a multi-day itinerary")
def generate_itinerary(
    req: GenerateRequest,
    generator: ItineraryGenerator = Depends(get_generator),
) -> dict:
    """
    Pools activities for the destination, clusters them into days, routes
    each day from the base hotel, attaches meals and trims to the budget.
    """
    try:
        itinerary = generator.generate(req.to_generation_request())
    except InvalidRequestError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=f"Generation error: {exc}") from exc

    return _ser_itinerary(itinerary)
