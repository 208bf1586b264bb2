"""
modules/planning/route_planner.py
-----------------------------------
Geographic day planning: split the POI pool into one cluster per day,
order the clusters outward from the trip origin, and sequence each day's
visits into a walking route.

  GeoClusterer                 k-means on (lat, lng), K = min(days, pool)
  order_clusters_by_proximity  greedy chain of cluster centroids from origin
  DayRouter                    per-day cap, backfill and nearest-neighbour order

None of these are globally optimal (no TSP); they are bounded heuristics
that keep each day geographically tight.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from itinerary_engine.modules.tool_usage.distance_tool import (
    centroid,
    haversine_km,
    nearest_index,
)
from itinerary_engine.schemas.places import Place

logger = logging.getLogger(__name__)

Cluster = list[Place]

# ── Constants ─────────────────────────────────────────────────────────────────
_KMEANS_ITERATIONS: int = 50     # hard cap; usually converges in < 10
MAX_POIS_PER_DAY:   int = 4
BACKFILL_POIS:      int = 3      # taken from the unused pool for an empty day


# ── Clustering ────────────────────────────────────────────────────────────────

class GeoClusterer:
    """
    Partition places into ``number_of_days`` geographically coherent clusters.

    Initial centroids are evenly spaced over the pool sorted by (lat, lng)
    when ``seed`` is None, so the same pool always clusters the same way.
    With an integer seed they are a seeded random sample instead.
    """

    def __init__(self, seed: Optional[int] = None, max_iterations: int = _KMEANS_ITERATIONS) -> None:
        self.seed = seed
        self.max_iterations = max_iterations

    def cluster(self, places: Sequence[Place], number_of_days: int) -> list[Cluster]:
        n = len(places)
        if number_of_days <= 0:
            return []
        if n == 0:
            return [[] for _ in range(number_of_days)]
        if n <= number_of_days:
            clusters = [[p] for p in places]
            return clusters + [[] for _ in range(number_of_days - n)]

        k = min(number_of_days, n)
        centroids = self._initial_centroids(places, k)

        assignment: list[int] = []
        clusters: list[Cluster] = [[] for _ in range(k)]
        for iteration in range(self.max_iterations):
            new_assignment = [
                _nearest_centroid(p, centroids) for p in places
            ]
            if new_assignment == assignment:
                logger.debug("[cluster] converged after %d iterations", iteration)
                break
            assignment = new_assignment

            clusters = [[] for _ in range(k)]
            for place, idx in zip(places, assignment):
                clusters[idx].append(place)

            # An empty cluster keeps its previous centroid
            centroids = [
                centroid(members) if members else centroids[i]
                for i, members in enumerate(clusters)
            ]

        return clusters + [[] for _ in range(number_of_days - k)]

    def _initial_centroids(self, places: Sequence[Place], k: int) -> list[tuple[float, float]]:
        if self.seed is not None:
            picks = random.Random(self.seed).sample(list(places), k)
        else:
            sorted_p = sorted(places, key=lambda p: (p.lat, p.lng))
            step = len(sorted_p) / k
            picks = [sorted_p[int(i * step)] for i in range(k)]
        return [(p.lat, p.lng) for p in picks]


def _nearest_centroid(place: Place, centroids: list[tuple[float, float]]) -> int:
    dists = [haversine_km(place.lat, place.lng, clat, clng) for clat, clng in centroids]
    return dists.index(min(dists))      # first minimum wins ties


# ── Cluster ordering ──────────────────────────────────────────────────────────

def order_clusters_by_proximity(
    clusters: Sequence[Cluster],
    origin_lat: float,
    origin_lng: float,
) -> list[Cluster]:
    """
    Chain clusters greedily: nearest centroid to the origin first, then the
    nearest to that centroid, and so on.  Empty clusters go last, in input
    order.
    """
    remaining = [c for c in clusters if c]
    empties = [c for c in clusters if not c]

    ordered: list[Cluster] = []
    ref_lat, ref_lng = origin_lat, origin_lng
    while remaining:
        best_idx, best_dist = 0, float("inf")
        for idx, members in enumerate(remaining):
            clat, clng = centroid(members)
            d = haversine_km(ref_lat, ref_lng, clat, clng)
            if d < best_dist:
                best_idx, best_dist = idx, d
        chosen = remaining.pop(best_idx)
        ordered.append(chosen)
        ref_lat, ref_lng = centroid(chosen)

    return ordered + empties


# ── Per-day routing ───────────────────────────────────────────────────────────

def nearest_neighbor_route(places: Sequence[Place], start_lat: float, start_lng: float) -> list[Place]:
    """Visit order that always walks to the closest unvisited place next."""
    unvisited = list(places)
    route: list[Place] = []
    lat, lng = start_lat, start_lng
    while unvisited:
        nxt = unvisited.pop(nearest_index(unvisited, lat, lng))
        route.append(nxt)
        lat, lng = nxt.lat, nxt.lng
    return route


class DayRouter:
    """
    Turn one cluster into a day's ordered visits.

    Places already used on earlier days are skipped.  More than
    ``max_per_day`` remaining places are cut to the highest rated; an empty
    day borrows ``backfill`` places from the unused pool.
    """

    def __init__(self, max_per_day: int = MAX_POIS_PER_DAY, backfill: int = BACKFILL_POIS) -> None:
        self.max_per_day = max_per_day
        self.backfill = backfill

    def route_day(
        self,
        cluster: Sequence[Place],
        pool: Sequence[Place],
        used_ids: set[str],
        start_lat: float,
        start_lng: float,
        day_number: int = 0,
    ) -> tuple[list[Place], set[str]]:
        """Return (ordered places, updated used ids)."""
        activities = [p for p in cluster if p.id not in used_ids]

        if len(activities) > self.max_per_day:
            # sorted() is stable, so equal ratings keep cluster order
            activities = sorted(activities, key=lambda p: -(p.rating or 0.0))[: self.max_per_day]
            logger.debug("[route] day %d limited to %d activities", day_number, self.max_per_day)

        if not activities:
            activities = [p for p in pool if p.id not in used_ids][: self.backfill]
            if activities:
                logger.info(
                    "[route] day %d cluster empty, backfilled %d from unused pool",
                    day_number, len(activities),
                )

        used = used_ids | {p.id for p in activities}
        return nearest_neighbor_route(activities, start_lat, start_lng), used
