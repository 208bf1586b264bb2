"""HotelSelector: stored hotels first, external search fallback, retry anchor."""

from itinerary_engine import config
from itinerary_engine.db.place_store import InMemoryPlaceStore
from itinerary_engine.modules.planning.hotel_selector import HotelSelector

TYRE = (33.2705, 35.2038)
BYBLOS = (34.1230, 35.6519)


def test_nearest_stored_hotel_within_radius_wins(place, fake_search):
    pool = [place(33.90, 35.50), place(33.92, 35.52)]
    near = place(33.912, 35.512, category="HOTEL")
    nearer = place(33.910, 35.510, category="ACCOMMODATION")
    far = place(34.40, 35.90, category="HOTEL")
    store = InMemoryPlaceStore([near, far, nearer])

    hotel = HotelSelector(store, fake_search).select(pool, "Lebanon", None, "Lebanon")

    assert hotel == nearer
    assert fake_search.calls == []


def test_external_hotel_used_when_no_stored_hotel_nearby(place, candidate, search_factory):
    pool = [place(33.90, 35.50), place(33.92, 35.52)]
    store = InMemoryPlaceStore([place(34.40, 35.90, category="HOTEL")])
    search = search_factory({
        "hotel near Beirut": [
            candidate(34.50, 36.00, source_id="far-hotel"),
            candidate(33.905, 35.505, source_id="abc", name="Le Gray", rating=4.7, total_ratings=1200),
        ],
    })

    hotel = HotelSelector(store, search).select(pool, "Lebanon", "Beirut", "Beirut")

    assert hotel.id == "external-abc"
    assert hotel.name == "Le Gray"
    assert hotel.is_external
    assert hotel.category == "HOTEL"
    assert store.find_by_source_id("abc") is None
    assert search.calls == [("hotel near Beirut", 4.0)]


def test_retry_at_first_activity_with_wider_radius(place, candidate, search_factory):
    pool = [place(*TYRE)] + [place(BYBLOS[0] + i * 0.001, BYBLOS[1]) for i in range(3)]
    search = search_factory({
        "hotel near Lebanon": [candidate(TYRE[0] + 0.01, TYRE[1] + 0.01, source_id="tyre-rest")],
    })

    hotel = HotelSelector(InMemoryPlaceStore(), search).select(pool, "Lebanon", None, "Lebanon")

    assert hotel is not None
    assert hotel.id == "external-tyre-rest"
    assert len(search.calls) == 2


def test_no_hotel_anywhere_returns_none(place, fake_search):
    pool = [place(33.90, 35.50)]
    assert HotelSelector(InMemoryPlaceStore(), fake_search).select(pool, "Lebanon", None, "Lebanon") is None


def test_empty_pool_anchors_on_default_center(place, fake_search):
    centre_hotel = place(config.DEFAULT_CENTER_LAT + 0.01, config.DEFAULT_CENTER_LNG, category="HOTEL")
    store = InMemoryPlaceStore([centre_hotel])

    hotel = HotelSelector(store, fake_search).select([], "Lebanon", None, "Lebanon")

    assert hotel == centre_hotel


def test_empty_pool_does_not_retry(fake_search):
    assert HotelSelector(InMemoryPlaceStore(), fake_search).select([], "Lebanon", None, "Lebanon") is None
    assert len(fake_search.calls) == 1


def test_search_failure_is_not_fatal(place, search_factory):
    search = search_factory(failing=("hotel near Lebanon",))
    pool = [place(33.90, 35.50)]
    assert HotelSelector(InMemoryPlaceStore(), search).select(pool, "Lebanon", None, "Lebanon") is None


def test_low_rated_external_hotels_are_ignored(place, candidate, search_factory):
    search = search_factory({
        "hotel near Lebanon": [candidate(33.901, 35.501, source_id="meh", rating=3.1)],
    })
    pool = [place(33.90, 35.50)]
    assert HotelSelector(InMemoryPlaceStore(), search).select(pool, "Lebanon", None, "Lebanon") is None
