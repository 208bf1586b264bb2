"""
schemas/places.py
-----------------
Place-level types: the stored Place record, the external search candidate,
and the enums that classify them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class LocationCategory(str, Enum):
    HISTORICAL_SITE = "HISTORICAL_SITE"
    MUSEUM          = "MUSEUM"
    RELIGIOUS_SITE  = "RELIGIOUS_SITE"
    MARKET          = "MARKET"
    HIKING          = "HIKING"
    ACTIVITY        = "ACTIVITY"
    BEACH           = "BEACH"
    PARK            = "PARK"
    VIEWPOINT       = "VIEWPOINT"
    SHOPPING        = "SHOPPING"
    CAFE            = "CAFE"
    RESTAURANT      = "RESTAURANT"
    BAR             = "BAR"
    HOTEL           = "HOTEL"
    ACCOMMODATION   = "ACCOMMODATION"


class PriceLevel(str, Enum):
    INEXPENSIVE = "INEXPENSIVE"
    MODERATE    = "MODERATE"
    EXPENSIVE   = "EXPENSIVE"


class Classification(str, Enum):
    MUST_SEE     = "MUST_SEE"
    HIDDEN_GEM   = "HIDDEN_GEM"
    CONDITIONAL  = "CONDITIONAL"
    TOURIST_TRAP = "TOURIST_TRAP"


class BudgetLevel(str, Enum):
    LOW    = "LOW"
    MEDIUM = "MEDIUM"
    HIGH   = "HIGH"


class TravelStyle(str, Enum):
    ADVENTURE        = "ADVENTURE"
    CULTURAL         = "CULTURAL"
    NATURE_ECO       = "NATURE_ECO"
    BEACH_RELAXATION = "BEACH_RELAXATION"
    URBAN_CITY       = "URBAN_CITY"
    FAMILY_GROUP     = "FAMILY_GROUP"


# ── Category groups ───────────────────────────────────────────────────────────
HOTEL_CATEGORIES: list[LocationCategory] = [
    LocationCategory.HOTEL,
    LocationCategory.ACCOMMODATION,
]

FOOD_CATEGORIES: frozenset[LocationCategory] = frozenset({
    LocationCategory.RESTAURANT,
    LocationCategory.CAFE,
    LocationCategory.BAR,
})

ACTIVITY_CATEGORIES: dict[TravelStyle, list[LocationCategory]] = {
    TravelStyle.ADVENTURE: [
        LocationCategory.HIKING, LocationCategory.ACTIVITY, LocationCategory.BEACH,
        LocationCategory.PARK, LocationCategory.VIEWPOINT,
    ],
    TravelStyle.CULTURAL: [
        LocationCategory.HISTORICAL_SITE, LocationCategory.MUSEUM,
        LocationCategory.RELIGIOUS_SITE, LocationCategory.MARKET,
    ],
    TravelStyle.NATURE_ECO: [
        LocationCategory.PARK, LocationCategory.HIKING, LocationCategory.BEACH,
        LocationCategory.VIEWPOINT,
    ],
    TravelStyle.BEACH_RELAXATION: [
        LocationCategory.BEACH, LocationCategory.CAFE, LocationCategory.VIEWPOINT,
        LocationCategory.PARK,
    ],
    TravelStyle.URBAN_CITY: [
        LocationCategory.SHOPPING, LocationCategory.MARKET, LocationCategory.VIEWPOINT,
    ],
    TravelStyle.FAMILY_GROUP: [
        LocationCategory.MUSEUM, LocationCategory.PARK, LocationCategory.ACTIVITY,
        LocationCategory.SHOPPING,
    ],
}

# Used when none of the requested travel styles maps to a category.
DEFAULT_ACTIVITY_CATEGORIES: list[LocationCategory] = [
    LocationCategory.HISTORICAL_SITE,
    LocationCategory.VIEWPOINT,
    LocationCategory.ACTIVITY,
]

# Cost assumed for a POI whose cost_min_usd is unknown.
DEFAULT_POI_COST_USD: float = 20.0


@dataclass(frozen=True)
class Place:
    """
    A stored point of interest.

    Immutable for the duration of a generation run.  ``source_id`` is the
    external (Google) place id and is unique across the store.
    """
    id: str
    name: str
    lat: float
    lng: float
    category: str
    rating: Optional[float] = None
    total_ratings: Optional[int] = None
    price_level: Optional[PriceLevel] = None
    cost_min_usd: Optional[float] = None
    cost_max_usd: Optional[float] = None
    source_id: Optional[str] = None
    city: str = ""
    country: str = ""
    address: str = ""
    classification: Optional[Classification] = None
    description: str = ""
    image_urls: tuple[str, ...] = ()
    website_url: Optional[str] = None
    is_external: bool = False       # True for unpersisted search hits (external hotels)

    @property
    def estimated_cost(self) -> float:
        """cost_min_usd, or DEFAULT_POI_COST_USD when unknown (0 is a real cost)."""
        return self.cost_min_usd if self.cost_min_usd is not None else DEFAULT_POI_COST_USD


@dataclass
class PlaceDraft:
    """Field set for a Place that does not exist in the store yet."""
    source_id: str
    name: str
    lat: float
    lng: float
    category: str
    country: str
    city: str = ""
    address: str = ""
    rating: Optional[float] = None
    total_ratings: Optional[int] = None
    price_level: Optional[PriceLevel] = None
    cost_min_usd: Optional[float] = None
    cost_max_usd: Optional[float] = None
    classification: Optional[Classification] = None
    description: str = ""
    image_urls: list[str] = field(default_factory=list)
    website_url: Optional[str] = None


@dataclass
class CandidatePlace:
    """One hit from the external text-search provider."""
    source_id: str
    name: str
    lat: float
    lng: float
    rating: float = 0.0
    total_ratings: int = 0
    price_tier: Optional[int] = None       # 0-4
    photos: list[str] = field(default_factory=list)
    website_url: Optional[str] = None
    formatted_address: str = ""
    types: list[str] = field(default_factory=list)


@dataclass
class SearchResult:
    places: list[CandidatePlace] = field(default_factory=list)


def price_tier_to_level(tier: Optional[int]) -> Optional[PriceLevel]:
    """Map a 0-4 provider price tier to a PriceLevel."""
    if tier is None:
        return None
    if tier >= 3:
        return PriceLevel.EXPENSIVE
    if tier >= 2:
        return PriceLevel.MODERATE
    return PriceLevel.INEXPENSIVE


def budget_to_price_level(budget: BudgetLevel) -> Optional[PriceLevel]:
    return {
        BudgetLevel.LOW:    PriceLevel.INEXPENSIVE,
        BudgetLevel.MEDIUM: PriceLevel.MODERATE,
        BudgetLevel.HIGH:   PriceLevel.EXPENSIVE,
    }.get(budget)
