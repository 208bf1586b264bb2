"""
config.py
---------
Central configuration for the itinerary engine.
All secrets loaded from environment variables, never hard-coded.

Algorithm constants (radii, per-day caps, overheads) live beside the
planner that uses them; only deployment-level knobs belong here.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (if it exists) so env vars in that file
# are picked up by os.getenv() below.  Won't override vars already set in the shell.
_env_path = Path(__file__).resolve().parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Google Places (text search) ───────────────────────────────────────────────
# Obtain at: https://console.cloud.google.com/apis/credentials
# Enable:  Places API
# With no key set the search provider returns empty results (augmentation,
# meal fallback and external hotel lookup are then skipped).
GOOGLE_PLACES_API_KEY: str     = os.getenv("GOOGLE_PLACES_API_KEY", "")
GOOGLE_PLACES_TIMEOUT_S: float = float(os.getenv("GOOGLE_PLACES_TIMEOUT_S", "10"))
GOOGLE_PLACES_MAX_RESULTS: int = int(os.getenv("GOOGLE_PLACES_MAX_RESULTS", "20"))

# ── LLM polish (warnings / tips / checklist) ──────────────────────────────────
GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
LLM_MODEL_NAME: str = os.getenv("LLM_MODEL_NAME", "gemini-2.5-flash")
# Stub polish returns empty sections and makes no LLM call.
USE_STUB_POLISH: bool = _flag("USE_STUB_POLISH", "true")

# ── Geography defaults ────────────────────────────────────────────────────────
# Trip origin (arrival airport).  Cluster ordering starts here and days start
# here when no base hotel could be resolved.
ORIGIN_LAT: float = float(os.getenv("ORIGIN_LAT", "33.8209"))
ORIGIN_LNG: float = float(os.getenv("ORIGIN_LNG", "35.4913"))
# City-centre anchor used for the hotel search when the activity pool is empty.
DEFAULT_CENTER_LAT: float = float(os.getenv("DEFAULT_CENTER_LAT", "33.8938"))
DEFAULT_CENTER_LNG: float = float(os.getenv("DEFAULT_CENTER_LNG", "35.5018"))
# Destinations not recognised as a country are treated as a city in this country.
DEFAULT_COUNTRY: str = os.getenv("DEFAULT_COUNTRY", "Lebanon")

# ── PostgreSQL ────────────────────────────────────────────────────────────────
# Schema defined in itinerary_engine/db/schema.sql
# Apply with: python -m itinerary_engine.scripts.run_migrations
POSTGRES_HOST: str     = os.getenv("POSTGRES_HOST",     "localhost")
POSTGRES_PORT: int     = int(os.getenv("POSTGRES_PORT", "5432"))
POSTGRES_DB: str       = os.getenv("POSTGRES_DB",       "itinerary")
POSTGRES_USER: str     = os.getenv("POSTGRES_USER",     "itinerary_user")
POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "itinerary_pass")
POSTGRES_MIN_CONN: int = int(os.getenv("POSTGRES_MIN_CONN", "1"))
POSTGRES_MAX_CONN: int = int(os.getenv("POSTGRES_MAX_CONN", "10"))

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_HOST: str     = os.getenv("REDIS_HOST",     "localhost")
REDIS_PORT: int     = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int       = int(os.getenv("REDIS_DB",   "0"))
REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")
# Text-search response cache.  Disabled by default so a missing Redis never
# slows generation down.
SEARCH_CACHE_ENABLED: bool = _flag("SEARCH_CACHE_ENABLED", "false")
SEARCH_CACHE_TTL: int      = int(os.getenv("SEARCH_CACHE_TTL", "86400"))   # 24 hours

# ── Observability ─────────────────────────────────────────────────────────────
# Structured per-trip JSONL event logs land here.
LOGS_DIR: str = os.getenv("LOGS_DIR", str(Path(__file__).resolve().parent.parent / "logs"))
