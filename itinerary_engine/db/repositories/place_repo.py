"""
db/repositories/place_repo.py
------------------------------
Queries against the `place` table, and the PostgresPlaceStore that exposes
them through the PlaceStore contract.

Module-level functions accept a psycopg2 connection whose cursors return
dict rows (see db/connection.py).  Commit/rollback is managed by the caller
via get_conn().

source_id is UNIQUE in the schema, so concurrent augmentation of the same
destination cannot create duplicate rows: the loser of the race hits
ON CONFLICT and gets the winner's row back.
"""

from __future__ import annotations

from typing import Any, Callable, ContextManager, Iterable, Optional, Sequence

from itinerary_engine.db.connection import get_conn
from itinerary_engine.schemas.places import (
    Classification,
    Place,
    PlaceDraft,
    PriceLevel,
)

_COLUMNS = """
    id::text AS id, source_id, name, latitude, longitude, category,
    classification, rating, total_ratings, price_level,
    cost_min_usd, cost_max_usd, city, country, address, description,
    image_urls, website_url
"""


def _enum_or_none(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def row_to_place(row: dict[str, Any]) -> Place:
    """Convert one `place` row (dict cursor) into a Place."""
    return Place(
        id=str(row["id"]),
        name=row["name"],
        lat=float(row["latitude"]),
        lng=float(row["longitude"]),
        category=row["category"],
        rating=row.get("rating"),
        total_ratings=row.get("total_ratings"),
        price_level=_enum_or_none(PriceLevel, row.get("price_level")),
        cost_min_usd=row.get("cost_min_usd"),
        cost_max_usd=row.get("cost_max_usd"),
        source_id=row.get("source_id"),
        city=row.get("city") or "",
        country=row.get("country") or "",
        address=row.get("address") or "",
        classification=_enum_or_none(Classification, row.get("classification")),
        description=row.get("description") or "",
        image_urls=tuple(row.get("image_urls") or ()),
        website_url=row.get("website_url"),
    )


# ── place table ────────────────────────────────────────────────────────────────

def get_place_by_source_id(conn, source_id: str) -> dict | None:
    """Return the row with this external id, or None."""
    sql = f"SELECT {_COLUMNS} FROM place WHERE source_id = %s"
    with conn.cursor() as cur:
        cur.execute(sql, (source_id,))
        return cur.fetchone()


def upsert_place(conn, draft: PlaceDraft) -> dict:
    """
    Insert a place discovered through external search.

    On conflict (same source_id), refreshes the rating fields and images
    only; name, category and location of the stored row are kept.

    Returns the stored row.
    """
    row = {
        "source_id":      draft.source_id,
        "name":           draft.name,
        "latitude":       draft.lat,
        "longitude":      draft.lng,
        "category":       str(getattr(draft.category, "value", draft.category)),
        "classification": draft.classification.value if draft.classification else None,
        "rating":         draft.rating,
        "total_ratings":  draft.total_ratings,
        "price_level":    draft.price_level.value if draft.price_level else None,
        "cost_min_usd":   draft.cost_min_usd,
        "cost_max_usd":   draft.cost_max_usd,
        "city":           draft.city or draft.country,
        "country":        draft.country,
        "address":        draft.address,
        "description":    draft.description,
        "image_urls":     list(draft.image_urls),
        "website_url":    draft.website_url,
    }
    sql = f"""
        INSERT INTO place (
            source_id, name, latitude, longitude, category, classification,
            rating, total_ratings, price_level, cost_min_usd, cost_max_usd,
            city, country, address, description, image_urls, website_url
        ) VALUES (
            %(source_id)s, %(name)s, %(latitude)s, %(longitude)s, %(category)s,
            %(classification)s, %(rating)s, %(total_ratings)s, %(price_level)s,
            %(cost_min_usd)s, %(cost_max_usd)s, %(city)s, %(country)s,
            %(address)s, %(description)s, %(image_urls)s, %(website_url)s
        )
        ON CONFLICT (source_id) DO UPDATE SET
            rating        = COALESCE(EXCLUDED.rating, place.rating),
            total_ratings = COALESCE(EXCLUDED.total_ratings, place.total_ratings),
            image_urls    = EXCLUDED.image_urls,
            updated_at    = NOW()
        RETURNING {_COLUMNS}
    """
    with conn.cursor() as cur:
        cur.execute(sql, row)
        return cur.fetchone()


def select_places(
    conn,
    categories: Sequence[str],
    country: str,
    city: Optional[str],
    limit: int,
    exclude_ids: Sequence[str] = (),
    price_level: Optional[str] = None,
    exclude_tourist_traps: bool = False,
) -> list[dict]:
    """Filtered place rows, best rated (then most reviewed) first."""
    clauses = ["category = ANY(%(categories)s)", "lower(country) = lower(%(country)s)"]
    params: dict[str, Any] = {
        "categories": list(categories),
        "country": country,
        "limit": limit,
    }
    if city:
        clauses.append("lower(city) = lower(%(city)s)")
        params["city"] = city
    if price_level:
        clauses.append("price_level = %(price_level)s")
        params["price_level"] = price_level
    if exclude_ids:
        clauses.append("NOT (id::text = ANY(%(exclude_ids)s))")
        params["exclude_ids"] = list(exclude_ids)
    if exclude_tourist_traps:
        clauses.append("classification IS DISTINCT FROM 'TOURIST_TRAP'")

    sql = f"""
        SELECT {_COLUMNS}
        FROM place
        WHERE {" AND ".join(clauses)}
        ORDER BY rating DESC NULLS LAST, total_ratings DESC NULLS LAST
        LIMIT %(limit)s
    """
    with conn.cursor() as cur:
        cur.execute(sql, params)
        return list(cur.fetchall())


# ── PlaceStore implementation ─────────────────────────────────────────────────

class PostgresPlaceStore:
    """PlaceStore backed by the `place` table; one pooled connection per call."""

    def __init__(self, conn_factory: Callable[[], ContextManager] = get_conn) -> None:
        self._conn_factory = conn_factory

    def find_by_source_id(self, source_id: str) -> Optional[Place]:
        with self._conn_factory() as conn:
            row = get_place_by_source_id(conn, source_id)
        return row_to_place(row) if row else None

    def create_place(self, draft: PlaceDraft) -> Place:
        with self._conn_factory() as conn:
            row = upsert_place(conn, draft)
        return row_to_place(row)

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
        with self._conn_factory() as conn:
            rows = select_places(
                conn,
                [str(getattr(c, "value", c)) for c in categories],
                country,
                city,
                limit,
                exclude_ids=list(exclude_ids),
                price_level=price_level.value if price_level else None,
                exclude_tourist_traps=exclude_tourist_traps,
            )
        return [row_to_place(r) for r in rows]
