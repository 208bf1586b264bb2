"""ClusterBalancer: target band, move selection and convergence."""

from itinerary_engine.modules.planning.cluster_balancer import ClusterBalancer, balance_band

ORIGIN = (33.8209, 35.4913)


def _sizes(clusters):
    return [len(c) for c in clusters]


def test_band_has_floor_of_three():
    assert balance_band(6, 3) == (3, 4)
    assert balance_band(30, 3) == (9, 12)
    assert balance_band(2, 5) == (3, 2)


def test_balanced_clusters_are_left_alone(spread_places):
    clusters = [spread_places((33.9, 35.5), 5), spread_places((34.1, 35.6), 5), spread_places((33.3, 35.2), 5)]
    result, moves = ClusterBalancer(*ORIGIN).balance(clusters, 3)
    assert moves == 0
    assert _sizes(result) == [5, 5, 5]


def test_oversized_cluster_donates_to_undersized(spread_places):
    big = spread_places((33.9, 35.5), 10)
    small = spread_places((34.1, 35.6), 1)
    mid = spread_places((33.3, 35.2), 4)

    result, moves = ClusterBalancer(*ORIGIN).balance([big, small, mid], 3)

    # band is [4, 7]
    assert moves > 0
    assert all(4 <= n <= 7 for n in _sizes(result))
    assert sum(_sizes(result)) == 15


def test_moved_place_is_nearest_to_receiver(place):
    receiver = [place(34.10, 35.60)]
    donor = [place(33.90, 35.50), place(34.05, 35.58), place(33.80, 35.48),
             place(33.85, 35.49), place(33.86, 35.49), place(33.87, 35.49)]
    other = [place(33.3, 35.2), place(33.31, 35.2), place(33.32, 35.2), place(33.33, 35.2)]
    closest = donor[1]

    result, moves = ClusterBalancer(*ORIGIN, max_attempts=1).balance([donor, receiver, other], 3)

    assert moves == 1
    assert closest in result[1]
    assert closest not in result[0]


def test_empty_receiver_takes_place_nearest_origin(place):
    near_origin = place(33.83, 35.49)
    donor = [place(34.40, 35.80), near_origin, place(34.41, 35.81),
             place(34.42, 35.82), place(34.43, 35.83), place(34.44, 35.84)]
    result, moves = ClusterBalancer(*ORIGIN, max_attempts=1).balance([donor, []], 2)
    assert moves == 1
    assert result[1] == [near_origin]


def test_single_member_donor_never_gives_its_last_place(place):
    clusters = [[place(33.9, 35.5)], [place(34.0, 35.6)], [], [], []]
    result, moves = ClusterBalancer(*ORIGIN).balance(clusters, 5)
    assert moves == 0
    assert _sizes(result) == [1, 1, 0, 0, 0]


def test_input_is_not_mutated(spread_places):
    big = spread_places((33.9, 35.5), 10)
    small = spread_places((34.1, 35.6), 1)
    clusters = [big, small]
    ClusterBalancer(*ORIGIN).balance(clusters, 2)
    assert len(big) == 10 and len(small) == 1


def test_second_pass_makes_no_moves(spread_places):
    clusters = [
        spread_places((33.9, 35.5), 9),
        spread_places((34.1, 35.6), 3),
        spread_places((33.3, 35.2), 1),
        spread_places((33.5, 35.4), 0),
    ]
    balancer = ClusterBalancer(*ORIGIN)
    once, first_moves = balancer.balance(clusters, 4)
    twice, second_moves = balancer.balance(once, 4)

    assert first_moves > 0
    assert second_moves == 0
    assert _sizes(twice) == _sizes(once)


def test_unresolvable_imbalance_stops_without_oscillating(spread_places):
    # 7 places over 3 days: band [3, 4] cannot be met by every day
    clusters = [spread_places((33.9, 35.5), 3), spread_places((34.1, 35.6), 3), spread_places((33.3, 35.2), 1)]
    result, moves = ClusterBalancer(*ORIGIN).balance(clusters, 3)
    assert moves == 1
    assert sorted(_sizes(result)) == [2, 2, 3]


def test_attempt_cap_bounds_moves(spread_places):
    clusters = [spread_places((33.9, 35.5), 60), []]
    _, moves = ClusterBalancer(*ORIGIN, max_attempts=5).balance(clusters, 2)
    assert moves == 5
