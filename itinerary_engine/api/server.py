"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    uvicorn itinerary_engine.api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    POST /v1/itinerary/generate
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from itinerary_engine import __version__
from itinerary_engine.api.routes import health, itinerary
from itinerary_engine.db.connection import close_pool

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    close_pool()


app = FastAPI(
    title="Itinerary Assembly Engine API",
    version=__version__,
    description=(
        "Builds day-by-day travel itineraries: POI pooling, geographic "
        "clustering, walking routes, meals and budget trimming."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router,    prefix="/v1",           tags=["Health"])
app.include_router(itinerary.router, prefix="/v1/itinerary", tags=["Itinerary"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("itinerary_engine.api.server:app", host="0.0.0.0", port=8000, reload=True)
