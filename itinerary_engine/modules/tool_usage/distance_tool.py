"""
modules/tool_usage/distance_tool.py
-------------------------------------
Pure geographic helpers shared by every planner stage.

Distances are great-circle kilometres (Haversine, R = 6371 km).  Centroids
are the arithmetic mean of latitudes and longitudes, which is fine at city
and country scale but wrong near the poles or across the antimeridian.
"""

from __future__ import annotations
import math
from typing import Iterable, Protocol

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = 6371.0


class HasCoords(Protocol):
    lat: float
    lng: float


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lng2 - lng1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    # Clamp guards against a > 1.0 from float rounding on antipodal points.
    return 2 * r * math.asin(math.sqrt(min(a, 1.0)))


def centroid(points: Iterable[HasCoords]) -> tuple[float, float]:
    """Mean (lat, lng) of *points*; (0.0, 0.0) for an empty set."""
    pts = list(points)
    if not pts:
        return (0.0, 0.0)
    return (
        sum(p.lat for p in pts) / len(pts),
        sum(p.lng for p in pts) / len(pts),
    )


def nearest_index(points: list[HasCoords], lat: float, lng: float) -> int:
    """
    Index of the point in *points* nearest to (lat, lng).

    Ties resolve to the first point in list order.  Returns -1 when
    *points* is empty.
    """
    best_idx, best_dist = -1, math.inf
    for idx, p in enumerate(points):
        d = haversine_km(p.lat, p.lng, lat, lng)
        if d < best_dist:
            best_idx, best_dist = idx, d
    return best_idx
