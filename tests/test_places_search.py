"""GooglePlacesSearch: response parsing, error mapping and the Redis cache."""

import pytest
import redis
import requests

from itinerary_engine.db import redis_client
from itinerary_engine.errors import PlaceSearchError
from itinerary_engine.modules.tool_usage.places_search import (
    TEXT_SEARCH_URL,
    GooglePlacesSearch,
    parse_text_search,
)

SAMPLE = {
    "status": "OK",
    "results": [
        {
            "place_id": "ChIJ-jeita",
            "name": "Jeita Grotto",
            "geometry": {"location": {"lat": 33.9437, "lng": 35.6407}},
            "rating": 4.7,
            "user_ratings_total": 15234,
            "price_level": 2,
            "formatted_address": "Jeita, Lebanon",
            "types": ["tourist_attraction", "point_of_interest"],
            "photos": [{"photo_reference": f"ref{i}"} for i in range(5)],
        },
        {
            "place_id": "ChIJ-souk",
            "name": "Souk el Tayeb",
            "geometry": {"location": {"lat": 33.8959, "lng": 35.5056}},
            "rating": 3.9,
        },
        {"place_id": "no-geometry", "name": "Broken"},
    ],
}


class FakeResponse:
    def __init__(self, data, status_code=200):
        self._data = data
        self.status_code = status_code

    def json(self):
        return self._data


class FakeSession:
    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params, timeout))
        if self.exc is not None:
            raise self.exc
        return self.response


def _search(session, **kw):
    kw.setdefault("api_key", "test-key")
    kw.setdefault("use_cache", False)
    return GooglePlacesSearch(session=session, **kw)


def test_parse_skips_results_without_coordinates():
    got = parse_text_search(SAMPLE, "k")
    assert [c.source_id for c in got] == ["ChIJ-jeita", "ChIJ-souk"]


def test_parse_maps_fields_and_caps_photos():
    jeita = parse_text_search(SAMPLE, "k")[0]
    assert jeita.name == "Jeita Grotto"
    assert (jeita.lat, jeita.lng) == (33.9437, 35.6407)
    assert jeita.total_ratings == 15234
    assert jeita.price_tier == 2
    assert len(jeita.photos) == 3
    assert "photo_reference=ref0" in jeita.photos[0]
    assert jeita.photos[0].endswith("key=k")


def test_parse_defaults_missing_rating():
    data = {"results": [{"place_id": "x", "geometry": {"location": {"lat": 1, "lng": 2}}}]}
    [only] = parse_text_search(data)
    assert only.rating == 0.0
    assert only.total_ratings == 0


def test_search_filters_by_min_rating():
    session = FakeSession(FakeResponse(SAMPLE))
    result = _search(session).search_by_text("things to do in Lebanon", min_rating=4.0)

    assert [c.name for c in result.places] == ["Jeita Grotto"]
    url, params, timeout = session.calls[0]
    assert url == TEXT_SEARCH_URL
    assert params == {"query": "things to do in Lebanon", "key": "test-key"}
    assert timeout > 0


def test_search_caps_results():
    session = FakeSession(FakeResponse(SAMPLE))
    result = _search(session, max_results=1).search_by_text("q")
    assert len(result.places) == 1


def test_missing_api_key_returns_empty_without_calling_out():
    session = FakeSession(FakeResponse(SAMPLE))
    result = _search(session, api_key="").search_by_text("q")
    assert result.places == []
    assert session.calls == []


def test_zero_results_is_not_an_error():
    session = FakeSession(FakeResponse({"status": "ZERO_RESULTS", "results": []}))
    assert _search(session).search_by_text("q").places == []


@pytest.mark.parametrize("response", [
    FakeResponse({"status": "REQUEST_DENIED", "error_message": "bad key"}),
    FakeResponse({}, status_code=503),
])
def test_bad_responses_raise(response):
    with pytest.raises(PlaceSearchError):
        _search(FakeSession(response)).search_by_text("q")


def test_non_json_body_raises_place_search_error():
    res = requests.Response()
    res.status_code = 200
    res._content = b"<html>captive portal</html>"
    with pytest.raises(PlaceSearchError, match="non-JSON"):
        _search(FakeSession(res)).search_by_text("q")


def test_transport_error_raises_place_search_error():
    session = FakeSession(exc=requests.ConnectionError("down"))
    with pytest.raises(PlaceSearchError):
        _search(session).search_by_text("q")


# ── cache ─────────────────────────────────────────────────────────────────────

def test_cache_hit_skips_http(monkeypatch):
    cached = [{"source_id": "c1", "name": "Cached", "lat": 1.0, "lng": 2.0, "rating": 4.8}]
    monkeypatch.setattr(redis_client, "get_cached_search", lambda q, r: cached)
    session = FakeSession(FakeResponse(SAMPLE))

    result = _search(session, use_cache=True).search_by_text("q", 4.0)

    assert [c.source_id for c in result.places] == ["c1"]
    assert session.calls == []


def test_cache_miss_stores_response(monkeypatch):
    stored = {}
    monkeypatch.setattr(redis_client, "get_cached_search", lambda q, r: None)
    monkeypatch.setattr(
        redis_client, "set_cached_search",
        lambda q, r, candidates: stored.update({(q, r): candidates}),
    )

    _search(FakeSession(FakeResponse(SAMPLE)), use_cache=True).search_by_text("q", 4.0)

    assert [c["source_id"] for c in stored[("q", 4.0)]] == ["ChIJ-jeita", "ChIJ-souk"]


def test_redis_outage_falls_through_to_api(monkeypatch):
    def down(*args):
        raise redis.ConnectionError("no redis")

    monkeypatch.setattr(redis_client, "get_cached_search", down)
    monkeypatch.setattr(redis_client, "set_cached_search", down)
    session = FakeSession(FakeResponse(SAMPLE))

    result = _search(session, use_cache=True).search_by_text("q")

    assert len(result.places) == 2
    assert len(session.calls) == 1


def test_cache_key_depends_on_min_rating():
    assert redis_client.search_cache_key("q", 4.0) != redis_client.search_cache_key("q", 3.5)
    assert redis_client.search_cache_key("q", None).startswith("placesearch:")


@pytest.mark.parametrize("entry", [
    [{"source_id": "c1", "name": "Cached", "lat": 1.0, "lng": 2.0, "stars": 5}],
    ["not-a-dict"],
])
def test_stale_cache_entry_is_treated_as_miss(monkeypatch, entry):
    monkeypatch.setattr(redis_client, "get_cached_search", lambda q, r: entry)
    monkeypatch.setattr(redis_client, "set_cached_search", lambda q, r, c: None)
    session = FakeSession(FakeResponse(SAMPLE))

    result = _search(session, use_cache=True).search_by_text("q")

    assert len(result.places) == 2
    assert len(session.calls) == 1


def test_corrupt_cache_json_is_treated_as_miss(monkeypatch):
    class GarbledRedis:
        def get(self, key):
            return "{not json"

        def setex(self, key, ttl, value):
            pass

    monkeypatch.setattr(redis_client, "get_redis", lambda: GarbledRedis())
    session = FakeSession(FakeResponse(SAMPLE))

    result = _search(session, use_cache=True).search_by_text("q")

    assert len(result.places) == 2
