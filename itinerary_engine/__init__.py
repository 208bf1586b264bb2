"""Itinerary assembly engine: POI pooling, day clustering, routing, meals and budget trimming."""

__version__ = "0.1.0"
