"""
modules/tool_usage/polish_tool.py
----------------------------------
Narrative extras for a finished set of days: warnings, tourist traps to
avoid, local tips and a packing checklist.

GeminiPolishGenerator asks Gemini (google-genai) for a JSON object and
normalises it into a PolishResult.  It raises on any failure; the
generator treats a raised polish as empty output.

NullPolishGenerator (config.USE_STUB_POLISH, the default) returns empty
sections and makes no network call.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol, Sequence

from google import genai
from google.genai import types

from itinerary_engine import config
from itinerary_engine.schemas.itinerary import DayPlan, PolishResult

logger = logging.getLogger(__name__)

CHECKLIST_CATEGORIES = (
    "ESSENTIALS", "WEATHER", "TERRAIN", "ACTIVITY", "SAFETY", "DOCUMENTATION",
)

_CHECKLIST_ALIASES: dict[str, str] = {
    "TEC":         "ESSENTIALS",
    "TECH":        "ESSENTIALS",
    "TECHNOLOGY":  "ESSENTIALS",
    "ELECTRONICS": "ESSENTIALS",
    "TOILETRIES":  "ESSENTIALS",
    "MISC":        "ESSENTIALS",
    "OTHER":       "ESSENTIALS",
    "CLOTHING":    "WEATHER",
    "CLOTHES":     "WEATHER",
    "HEALTH":      "SAFETY",
    "MEDICAL":     "SAFETY",
    "MEDICINE":    "SAFETY",
    "DOCUMENTS":   "DOCUMENTATION",
    "DOCUMENT":    "DOCUMENTATION",
    "PAPERS":      "DOCUMENTATION",
}


class PolishGenerator(Protocol):
    def generate(self, days: Sequence[DayPlan], destination_label: str) -> PolishResult:
        ...


def map_checklist_category(category: str) -> Optional[str]:
    """Normalise a model-chosen category; None when it cannot be mapped."""
    normalized = (category or "").strip().upper()
    if normalized in CHECKLIST_CATEGORIES:
        return normalized
    mapped = _CHECKLIST_ALIASES.get(normalized)
    if mapped is None:
        logger.warning("[polish] dropping checklist item with category %r", category)
    return mapped


def build_polish_prompt(days: Sequence[DayPlan], destination_label: str) -> str:
    context = f"Itinerary for {destination_label}:\n\n"
    for day in days:
        context += f"Day {day.day_number}: {day.description}\n"
        for loc in day.ordered_locations:
            desc = (loc.description or "No description")[:100]
            context += f"- {loc.name} ({loc.category}): {desc}\n"
            if loc.rating:
                context += f"  Rating: {loc.rating}/5 ({loc.total_ratings or 0} reviews)\n"
        context += "\n"

    return f"""You are a local travel expert for {destination_label}.
Analyze this specific itinerary and provide targeted advice.
Do NOT provide generic tips. Address these specific locations.

{context}
Generate:
1. 2-3 specific warnings relevant to THESE locations.
2. 2-3 specific tourist traps to avoid NEAR the places listed.
3. 3-5 insider local tips for these specific spots.
4. 5-7 packing checklist items customised for this trip.
   Categories must be EXACTLY one of: {", ".join(CHECKLIST_CATEGORIES)}.

Format as JSON:
{{
  "warnings": [{{"title": "...", "description": "..."}}],
  "touristTraps": [{{"name": "...", "reason": "..."}}],
  "localTips": ["...", "..."],
  "checklist": [{{"category": "...", "item": "...", "reason": "..."}}]
}}"""


def parse_polish_response(text: str) -> PolishResult:
    """Parse the model's JSON body; raises ValueError on malformed output."""
    cleaned = text.strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`")
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:]
    parsed = json.loads(cleaned)
    if not isinstance(parsed, dict):
        raise ValueError("polish response is not a JSON object")

    checklist = []
    for item in parsed.get("checklist") or []:
        category = map_checklist_category(str(item.get("category", "")))
        if category is not None:
            checklist.append({**item, "category": category})

    return PolishResult(
        warnings=list(parsed.get("warnings") or []),
        tourist_traps=list(parsed.get("touristTraps") or []),
        local_tips=[str(t) for t in parsed.get("localTips") or []],
        checklist=checklist,
    )


class NullPolishGenerator:
    def generate(self, days: Sequence[DayPlan], destination_label: str) -> PolishResult:
        return PolishResult()


class GeminiPolishGenerator:
    """PolishGenerator backed by google-genai generate_content."""

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None, client=None):
        self.api_key = api_key or config.GEMINI_API_KEY
        self.model_name = model_name or config.LLM_MODEL_NAME
        self._client = client

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise RuntimeError("GEMINI_API_KEY missing")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    def generate(self, days: Sequence[DayPlan], destination_label: str) -> PolishResult:
        response = self.client.models.generate_content(
            model=self.model_name,
            contents=build_polish_prompt(days, destination_label),
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                temperature=0.7,
            ),
        )
        if not response or not response.text:
            raise RuntimeError("Empty Gemini response")
        return parse_polish_response(response.text)


def default_polish_generator() -> PolishGenerator:
    if config.USE_STUB_POLISH or not config.GEMINI_API_KEY:
        return NullPolishGenerator()
    return GeminiPolishGenerator()
