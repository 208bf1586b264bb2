"""
modules/planning/cluster_balancer.py
--------------------------------------
Even out day sizes after clustering.

Target band per day: [max(3, avg - 1), avg + 2] with avg = floor(total / days).
While the smallest cluster is under the band or the largest is over it,
move one POI from the largest cluster to the smallest: the member nearest
the receiver's centroid (the trip origin when the receiver is empty).

A move is only made when it narrows the gap (largest - smallest >= 2) and
the donor keeps at least one POI, so repeated passes settle instead of
swapping one place back and forth.  An imbalance that cannot be resolved
within the attempt cap is left as is.
"""

from __future__ import annotations

import logging
from typing import Sequence

from itinerary_engine.modules.tool_usage.distance_tool import centroid, nearest_index
from itinerary_engine.schemas.places import Place

logger = logging.getLogger(__name__)

_MAX_ATTEMPTS:   int = 30
_MIN_FLOOR:      int = 3


def balance_band(total: int, number_of_days: int) -> tuple[int, int]:
    """(min, max) places per day for *total* places over *number_of_days*."""
    avg = total // number_of_days if number_of_days > 0 else 0
    return max(_MIN_FLOOR, avg - 1), avg + 2


class ClusterBalancer:
    def __init__(self, origin_lat: float, origin_lng: float, max_attempts: int = _MAX_ATTEMPTS) -> None:
        self.origin_lat = origin_lat
        self.origin_lng = origin_lng
        self.max_attempts = max_attempts

    def balance(
        self,
        clusters: Sequence[Sequence[Place]],
        number_of_days: int,
    ) -> tuple[list[list[Place]], int]:
        """Return (balanced clusters, number of moves).  Input is not mutated."""
        result = [list(c) for c in clusters]
        if not result or number_of_days <= 0:
            return result, 0

        total = sum(len(c) for c in result)
        min_per_day, max_per_day = balance_band(total, number_of_days)

        moves = 0
        for _ in range(self.max_attempts):
            sizes = [len(c) for c in result]
            min_idx = sizes.index(min(sizes))
            max_idx = sizes.index(max(sizes))

            out_of_band = sizes[min_idx] < min_per_day or sizes[max_idx] > max_per_day
            if not out_of_band:
                break
            if sizes[max_idx] <= 1 or sizes[max_idx] - sizes[min_idx] < 2:
                break

            receiver = result[min_idx]
            if receiver:
                ref_lat, ref_lng = centroid(receiver)
            else:
                ref_lat, ref_lng = self.origin_lat, self.origin_lng

            donor = result[max_idx]
            receiver.append(donor.pop(nearest_index(donor, ref_lat, ref_lng)))
            moves += 1

        logger.info(
            "[cluster] balanced sizes %s (band %d-%d, %d moves)",
            [len(c) for c in result], min_per_day, max_per_day, moves,
        )
        return result, moves
