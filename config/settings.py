"""Global scanner configuration.

Values are conservative defaults; a few can be overridden via environment.
"""

from __future__ import annotations

import os


# Edge detection
MIN_EDGE_THRESHOLD = 0.05

# Assumed dispersion (°F) of the realised daily high around the forecast high,
# one regime per confidence tier.
CONFIDENCE_STD_DEVS: dict[str, float] = {
    "very_high": 1.5,  # ±2°F ~80% of the time
    "high": 2.0,  # ±3°F ~90% of the time
    "medium": 3.0,  # ±5°F ~95% of the time
    "low": 4.5,
}

# Lead-time tier upper limits (hours, inclusive)
VERY_HIGH_CONFIDENCE_MAX_HOURS = 24.0
HIGH_CONFIDENCE_MAX_HOURS = 48.0
MEDIUM_CONFIDENCE_MAX_HOURS = 72.0

# Pacing between successive calls to the same provider
FORECAST_REQUEST_DELAY_SECONDS = 0.3
DISCOVERY_REQUEST_DELAY_SECONDS = 0.2
PRICE_REQUEST_DELAY_SECONDS = 0.1

# Timing
SCAN_INTERVAL_SECONDS = 300
HTTP_TIMEOUT_SECONDS = 20.0

# Market normalization
DEFAULT_OUTCOME_PRICE = 0.5
TEMP_KEYWORDS = (
    "temperature",
    "high temperature",
    "high temp",
    "daily high",
    "degrees",
    "°f",
)
PRIMARY_DISCOVERY_PARAMS: dict[str, str | int] = {"closed": "false", "limit": 100, "tag": "weather"}
FALLBACK_DISCOVERY_KEYWORDS = ("temperature", "high", "weather")
FALLBACK_DISCOVERY_LIMIT = 50

# API endpoints
GAMMA_API_URL = "https://gamma-api.polymarket.com"
CLOB_API_URL = "https://clob.polymarket.com"
NOAA_API_URL = "https://api.weather.gov"
NWS_USER_AGENT = "WeatherEdgeScanner/1.0 (contact@example.com)"

# Output
LOG_DIR = "logs"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def load_runtime_overrides() -> dict[str, float | bool | str]:
    """Optionally override key runtime config values via environment variables."""
    return {
        "MIN_EDGE_THRESHOLD": _env_float("MIN_EDGE_THRESHOLD", MIN_EDGE_THRESHOLD),
        "SCAN_INTERVAL_SECONDS": _env_float("SCAN_INTERVAL_SECONDS", SCAN_INTERVAL_SECONDS),
        "FORECAST_REQUEST_DELAY_SECONDS": _env_float(
            "FORECAST_REQUEST_DELAY_SECONDS", FORECAST_REQUEST_DELAY_SECONDS
        ),
        "LOG_DIR": _env_str("LOG_DIR", LOG_DIR),
        "SHOW_DASHBOARD": _env_bool("SHOW_DASHBOARD", True),
    }
