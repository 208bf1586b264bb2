"""
db/place_store.py
------------------
The PlaceStore contract every backing store implements, plus the
process-local InMemoryPlaceStore used for development and tests.

The Postgres implementation lives in db/repositories/place_repo.py.
"""

from __future__ import annotations

import threading
import uuid
from dataclasses import asdict
from typing import Iterable, Optional, Protocol, Sequence

from itinerary_engine.schemas.places import (
    Classification,
    Place,
    PlaceDraft,
    PriceLevel,
)


class PlaceStore(Protocol):
    """Read/write access to persisted Places."""

    def find_by_source_id(self, source_id: str) -> Optional[Place]:
        ...

    def create_place(self, draft: PlaceDraft) -> Place:
        """Insert *draft*; returns the existing row when source_id is taken."""
        ...

    def query_places(
        self,
        categories: Sequence[str],
        country: str,
        city: Optional[str],
        limit: int,
        exclude_ids: Iterable[str] = (),
        price_level: Optional[PriceLevel] = None,
        exclude_tourist_traps: bool = False,
    ) -> list[Place]:
        """Places matching the filters, best rated first, at most *limit*."""
        ...


def place_from_draft(place_id: str, draft: PlaceDraft) -> Place:
    data = asdict(draft)
    data["image_urls"] = tuple(data["image_urls"])
    return Place(id=place_id, **data)


class InMemoryPlaceStore:
    """
    Dict-backed PlaceStore.

    All access is serialised by one lock so concurrent meal searches and
    augmentation writes see a consistent view; source_id uniqueness is
    checked under the same lock.
    """

    def __init__(self, places: Iterable[Place] = ()) -> None:
        self._lock = threading.Lock()
        self._places: dict[str, Place] = {}
        self._by_source: dict[str, str] = {}
        for p in places:
            self.add(p)

    def add(self, place: Place) -> None:
        with self._lock:
            self._places[place.id] = place
            if place.source_id:
                self._by_source[place.source_id] = place.id

    def all(self) -> list[Place]:
        with self._lock:
            return list(self._places.values())

    def find_by_source_id(self, source_id: str) -> Optional[Place]:
        with self._lock:
            place_id = self._by_source.get(source_id)
            return self._places.get(place_id) if place_id else None

    def create_place(self, draft: PlaceDraft) -> Place:
        with self._lock:
            existing_id = self._by_source.get(draft.source_id)
            if existing_id:
                return self._places[existing_id]
            place = place_from_draft(str(uuid.uuid4()), draft)
            self._places[place.id] = place
            self._by_source[draft.source_id] = place.id
            return place

    def query_places(
        self,
        categories: Sequence[str],
        country: str,
        city: Optional[str],
        limit: int,
        exclude_ids: Iterable[str] = (),
        price_level: Optional[PriceLevel] = None,
        exclude_tourist_traps: bool = False,
    ) -> list[Place]:
        wanted = {str(getattr(c, "value", c)) for c in categories}
        excluded = set(exclude_ids)
        with self._lock:
            rows = [
                p for p in self._places.values()
                if str(getattr(p.category, "value", p.category)) in wanted
                and p.country.lower() == country.lower()
                and (not city or p.city.lower() == city.lower())
                and (price_level is None or p.price_level == price_level)
                and p.id not in excluded
                and not (exclude_tourist_traps
                         and p.classification == Classification.TOURIST_TRAP)
            ]
        rows.sort(key=lambda p: (-(p.rating or 0.0), -(p.total_ratings or 0)))
        return rows[:limit]
