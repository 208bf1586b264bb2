from itinerary_engine.schemas.itinerary import (
    DayPlan,
    GenerationRequest,
    Itinerary,
    MealSlots,
    PolishResult,
)
from itinerary_engine.schemas.places import (
    BudgetLevel,
    CandidatePlace,
    Classification,
    LocationCategory,
    Place,
    PlaceDraft,
    PriceLevel,
    SearchResult,
    TravelStyle,
)

__all__ = [
    "BudgetLevel",
    "CandidatePlace",
    "Classification",
    "DayPlan",
    "GenerationRequest",
    "Itinerary",
    "LocationCategory",
    "MealSlots",
    "Place",
    "PlaceDraft",
    "PolishResult",
    "PriceLevel",
    "SearchResult",
    "TravelStyle",
]
