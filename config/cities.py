"""Tracked cities and the name variants used to spot them in market text.

Dict order is the matching priority: the first city whose variant appears
in a market's text wins.
"""

from __future__ import annotations

import re
from typing import Any


CITIES: dict[str, dict[str, Any]] = {
    "NYC": {
        "name": "New York City",
        "lat": 40.7128,
        "lon": -74.0060,
        "variations": ("new york", "nyc", "manhattan", "central park", "knyc"),
    },
    "LA": {
        "name": "Los Angeles",
        "lat": 34.0522,
        "lon": -118.2437,
        "variations": ("los angeles", "la", "lax", "klax"),
    },
    "Chicago": {
        "name": "Chicago",
        "lat": 41.8781,
        "lon": -87.6298,
        "variations": ("chicago", "ord", "o'hare", "kord"),
    },
    "Miami": {
        "name": "Miami",
        "lat": 25.7617,
        "lon": -80.1918,
        "variations": ("miami", "mia", "kmia"),
    },
    "Dallas": {
        "name": "Dallas",
        "lat": 32.7767,
        "lon": -96.7970,
        "variations": ("dallas", "dfw", "fort worth", "kdfw"),
    },
    "Seattle": {
        "name": "Seattle",
        "lat": 47.6062,
        "lon": -122.3321,
        "variations": ("seattle", "sea", "sea-tac", "ksea"),
    },
}


def _variant_pattern(variant: str) -> re.Pattern[str]:
    # Short codes like "la" or "sea" only count as whole words.
    return re.compile(rf"(?<![a-z0-9]){re.escape(variant)}(?![a-z0-9])")


_VARIANT_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (code, _variant_pattern(variant))
    for code, city in CITIES.items()
    for variant in city["variations"]
]


def find_city_for_text(text: str) -> str | None:
    """Return the first tracked city code mentioned in ``text``."""
    lower = text.lower()
    for code, pattern in _VARIANT_PATTERNS:
        if pattern.search(lower):
            return code
    return None
