"""
errors.py
---------
Exception types raised across the engine.

Only InvalidRequestError escapes a generation run; PlaceSearchError is
caught per call by whichever stage issued the search.
"""

from __future__ import annotations


class InvalidRequestError(ValueError):
    """The generation request can never succeed (bad day count, budget, ...)."""


class PlaceSearchError(RuntimeError):
    """An external place-search call failed (network, HTTP or API status)."""


class StageOrderError(RuntimeError):
    """A generation run tried to move backwards through its stages."""
