"""HTTP surface: health, request validation and the itinerary JSON shape."""

import pytest
from fastapi.testclient import TestClient

from itinerary_engine import __version__
from itinerary_engine.api.routes.itinerary import get_generator
from itinerary_engine.api.server import app
from itinerary_engine.db.place_store import InMemoryPlaceStore
from itinerary_engine.errors import InvalidRequestError
from itinerary_engine.itinerary_generator import ItineraryGenerator

MIDDLE = (33.89, 35.50)


class RaisingGenerator:
    def __init__(self, exc):
        self.exc = exc

    def generate(self, request):
        raise self.exc


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_generator():
    def install(generator):
        app.dependency_overrides[get_generator] = lambda: generator
    return install


def test_health(client):
    res = client.get("/v1/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok", "service": "itinerary-engine", "version": __version__}


def test_generate_returns_camel_case_itinerary(client, use_generator, spread_places, fake_search, events):
    hotel = spread_places(MIDDLE, 1, category="HOTEL")
    store = InMemoryPlaceStore(spread_places(MIDDLE, 10) + hotel)
    use_generator(ItineraryGenerator(store, fake_search, events=events))

    res = client.post("/v1/itinerary/generate", json={
        "destination": "Lebanon",
        "numberOfDays": 2,
        "budgetLevel": "LOW",
        "travelStyles": ["CULTURAL"],
        "budgetUSD": 2000,
    })

    assert res.status_code == 200
    body = res.json()
    assert body["itinerary"] == {
        "numberOfDays": 2, "budgetUSD": 2000.0, "budgetLevel": "LOW", "travelStyles": ["CULTURAL"],
    }
    assert body["routeSummary"] == "2 days in Lebanon"
    assert len(body["days"]) == 2
    first, last = body["days"]
    assert first["startingHotel"]["id"] == hotel[0].id
    assert last["startingHotel"] is None
    assert last["isLastDay"] is True
    assert set(first["meals"]) == {"breakfast", "lunch", "dinner"}
    assert {"latitude", "longitude", "costMinUSD", "isExternal"} <= set(first["locations"][0])
    assert body["totalEstimatedCostUSD"] == pytest.approx(8 * 20 + 2 * 50)
    assert body["tripId"]


@pytest.mark.parametrize("payload", [
    {"destination": "Lebanon", "numberOfDays": 0},
    {"destination": "Lebanon", "numberOfDays": 31},
    {"destination": "", "numberOfDays": 2},
    {"destination": "Lebanon", "numberOfDays": 2, "budgetUSD": -5},
    {"destination": "Lebanon", "numberOfDays": 2, "travelStyles": ["CULTURAL", "ADVENTURE", "NATURE_ECO", "URBAN_CITY"]},
    {"destination": "Lebanon", "numberOfDays": 2, "travelStyles": ["SPACE_TRAVEL"]},
])
def test_invalid_payloads_are_rejected(client, use_generator, payload):
    use_generator(RaisingGenerator(AssertionError("generator must not run")))
    assert client.post("/v1/itinerary/generate", json=payload).status_code == 422


def test_engine_rejection_maps_to_422(client, use_generator):
    use_generator(RaisingGenerator(InvalidRequestError("no categories")))
    res = client.post("/v1/itinerary/generate", json={"destination": "Lebanon", "numberOfDays": 2})
    assert res.status_code == 422
    assert res.json()["detail"] == "no categories"


def test_unexpected_failure_maps_to_500(client, use_generator):
    use_generator(RaisingGenerator(RuntimeError("db down")))
    res = client.post("/v1/itinerary/generate", json={"destination": "Lebanon", "numberOfDays": 2})
    assert res.status_code == 500
    assert "db down" in res.json()["detail"]
