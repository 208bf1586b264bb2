"""Shared pytest fixtures: place factories and collaborator fakes."""

from __future__ import annotations

import itertools
from typing import Optional

import pytest

from itinerary_engine.db.place_store import InMemoryPlaceStore
from itinerary_engine.errors import PlaceSearchError
from itinerary_engine.modules.observability.logger import StructuredLogger
from itinerary_engine.schemas.places import CandidatePlace, Place, SearchResult

# Beirut-ish reference coordinates; origin (airport) is 33.8209, 35.4913.
BEIRUT = (33.8938, 35.5018)
JOUNIEH = (33.9808, 35.6178)
BYBLOS = (34.1230, 35.6519)
TYRE = (33.2705, 35.2038)


class FakeSearch:
    """
    PlaceSearchProvider double.

    ``responses`` maps a query (exact match) to candidate lists; queries not
    listed return nothing, queries in ``failing`` raise PlaceSearchError.
    Every call is recorded in ``calls``.
    """

    def __init__(self, responses: Optional[dict] = None, failing: tuple = ()) -> None:
        self.responses = responses or {}
        self.failing = set(failing)
        self.calls: list[tuple[str, Optional[float]]] = []

    def search_by_text(self, query: str, min_rating: Optional[float] = None) -> SearchResult:
        self.calls.append((query, min_rating))
        if query in self.failing:
            raise PlaceSearchError(f"boom: {query}")
        places = self.responses.get(query, [])
        if min_rating is not None:
            places = [p for p in places if p.rating >= min_rating]
        return SearchResult(places=list(places))


_ids = itertools.count(1)


def make_place(
    lat: float,
    lng: float,
    *,
    name: Optional[str] = None,
    category: str = "HISTORICAL_SITE",
    rating: float = 4.5,
    cost: Optional[float] = 20.0,
    country: str = "Lebanon",
    city: str = "",
    **extra,
) -> Place:
    n = next(_ids)
    return Place(
        id=extra.pop("id", f"p{n}"),
        name=name or f"Place {n}",
        lat=lat,
        lng=lng,
        category=category,
        rating=rating,
        total_ratings=extra.pop("total_ratings", 100),
        cost_min_usd=cost,
        source_id=extra.pop("source_id", f"src-{n}"),
        country=country,
        city=city,
        **extra,
    )


def make_candidate(lat: float, lng: float, *, source_id: str, name: str = "", rating: float = 4.5, **extra) -> CandidatePlace:
    return CandidatePlace(
        source_id=source_id,
        name=name or f"Candidate {source_id}",
        lat=lat,
        lng=lng,
        rating=rating,
        total_ratings=extra.pop("total_ratings", 250),
        **extra,
    )


def spread(center: tuple[float, float], count: int, step: float = 0.002, **kwargs) -> list[Place]:
    """*count* places in a tight diagonal line around *center*."""
    lat, lng = center
    return [make_place(lat + i * step, lng + i * step, **kwargs) for i in range(count)]


@pytest.fixture
def place():
    return make_place


@pytest.fixture
def candidate():
    return make_candidate


@pytest.fixture
def spread_places():
    return spread


@pytest.fixture
def store() -> InMemoryPlaceStore:
    return InMemoryPlaceStore()


@pytest.fixture
def fake_search() -> FakeSearch:
    return FakeSearch()


@pytest.fixture
def search_factory():
    return FakeSearch


@pytest.fixture
def events(tmp_path) -> StructuredLogger:
    logger = StructuredLogger(logs_dir=tmp_path)
    yield logger
    logger.close()
