"""NWS forecast client: grid lookup, hourly periods, daily high/low summary."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable

import httpx

from config.cities import CITIES
from config.settings import (
    FORECAST_REQUEST_DELAY_SECONDS,
    HIGH_CONFIDENCE_MAX_HOURS,
    HTTP_TIMEOUT_SECONDS,
    MEDIUM_CONFIDENCE_MAX_HOURS,
    NOAA_API_URL,
    NWS_USER_AGENT,
    VERY_HIGH_CONFIDENCE_MAX_HOURS,
)


log = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Sleep = Callable[[float], Awaitable[None]]


def utc_now() -> datetime:
    return datetime.now(UTC)


class ForecastProviderError(RuntimeError):
    """The forecast provider answered with an error status or an unusable payload."""


class UnknownCityError(KeyError):
    """A city code outside the tracked-city table."""


class Confidence(str, Enum):
    VERY_HIGH = "very_high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class GridReference:
    office: str
    grid_x: int
    grid_y: int
    forecast_url: str
    forecast_hourly_url: str


@dataclass(frozen=True)
class HourlyPeriod:
    start_time: datetime
    end_time: datetime
    temperature: float
    temperature_unit: str
    is_daytime: bool
    short_forecast: str


@dataclass(frozen=True)
class DailyForecast:
    city_code: str
    date: str  # YYYY-MM-DD
    high_temp: float
    low_temp: float
    confidence: Confidence
    hours_until: int
    short_forecast: str


class GridCache:
    """Append-only (lat, lon) -> GridReference cache.

    Grid geometry never changes, so entries have no TTL and no eviction.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[float, float], GridReference] = {}

    def get(self, lat: float, lon: float) -> GridReference | None:
        return self._entries.get((lat, lon))

    def put(self, lat: float, lon: float, grid: GridReference) -> None:
        self._entries[(lat, lon)] = grid

    def __len__(self) -> int:
        return len(self._entries)


def confidence_for_lead_time(hours_until: float) -> Confidence:
    """Map lead time (hours, clamped at zero) to a confidence tier."""
    hours = max(0.0, hours_until)
    if hours <= VERY_HIGH_CONFIDENCE_MAX_HOURS:
        return Confidence.VERY_HIGH
    if hours <= HIGH_CONFIDENCE_MAX_HOURS:
        return Confidence.HIGH
    if hours <= MEDIUM_CONFIDENCE_MAX_HOURS:
        return Confidence.MEDIUM
    return Confidence.LOW


def lead_time_hours(target_date: date, now: datetime) -> float:
    target_start = datetime.combine(target_date, datetime.min.time(), UTC)
    return max((target_start - now).total_seconds() / 3600.0, 0.0)


def summarize_day(
    city_code: str,
    target_date: date,
    periods: Iterable[HourlyPeriod],
    now: datetime,
) -> DailyForecast | None:
    """Aggregate the periods falling on ``target_date`` (local calendar date).

    Returns None when the provider's horizon does not reach that date.
    """
    day_periods = [p for p in periods if p.start_time.date() == target_date]
    if not day_periods:
        return None

    temps = [p.temperature for p in day_periods]
    hours = lead_time_hours(target_date, now)
    daytime = [p for p in day_periods if p.is_daytime]
    short_forecast = (daytime or day_periods)[0].short_forecast

    return DailyForecast(
        city_code=city_code,
        date=target_date.isoformat(),
        high_temp=max(temps),
        low_temp=min(temps),
        confidence=confidence_for_lead_time(hours),
        hours_until=round(hours),
        short_forecast=short_forecast,
    )


def _parse_grid(payload: Any) -> GridReference:
    try:
        props = payload["properties"]
        return GridReference(
            office=str(props["gridId"]),
            grid_x=int(props["gridX"]),
            grid_y=int(props["gridY"]),
            forecast_url=str(props["forecast"]),
            forecast_hourly_url=str(props["forecastHourly"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ForecastProviderError(f"Malformed grid point payload: {exc!r}") from exc


def _parse_period(raw: dict[str, Any]) -> HourlyPeriod:
    return HourlyPeriod(
        start_time=datetime.fromisoformat(str(raw["startTime"]).replace("Z", "+00:00")),
        end_time=datetime.fromisoformat(str(raw["endTime"]).replace("Z", "+00:00")),
        temperature=float(raw["temperature"]),
        temperature_unit=str(raw.get("temperatureUnit", "F")),
        is_daytime=bool(raw.get("isDaytime", False)),
        short_forecast=str(raw.get("shortForecast", "") or ""),
    )


def _parse_periods(payload: Any) -> list[HourlyPeriod]:
    try:
        raw_periods = payload["properties"]["periods"]
        return [_parse_period(raw) for raw in raw_periods]
    except (KeyError, TypeError, ValueError) as exc:
        raise ForecastProviderError(f"Malformed hourly forecast payload: {exc!r}") from exc


class NWSForecastClient:
    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        grid_cache: GridCache | None = None,
        clock: Clock = utc_now,
        sleep: Sleep = asyncio.sleep,
        request_delay_seconds: float = FORECAST_REQUEST_DELAY_SECONDS,
    ) -> None:
        self.http = http or httpx.AsyncClient(
            timeout=HTTP_TIMEOUT_SECONDS,
            headers={"Accept": "application/geo+json", "User-Agent": NWS_USER_AGENT},
        )
        self.grid_cache = grid_cache if grid_cache is not None else GridCache()
        self.clock = clock
        self.sleep = sleep
        self.request_delay_seconds = request_delay_seconds

    async def close(self) -> None:
        await self.http.aclose()

    async def _get_json(self, url: str) -> Any:
        try:
            response = await self.http.get(url)
        except httpx.HTTPError as exc:
            raise ForecastProviderError(f"NWS request failed for {url}: {exc}") from exc
        if response.status_code != 200:
            raise ForecastProviderError(f"NWS API error: {response.status_code} {response.reason_phrase} ({url})")
        try:
            return response.json()
        except ValueError as exc:
            raise ForecastProviderError(f"NWS returned non-JSON body for {url}") from exc

    async def resolve_grid(self, lat: float, lon: float) -> GridReference:
        cached = self.grid_cache.get(lat, lon)
        if cached is not None:
            return cached
        payload = await self._get_json(f"{NOAA_API_URL}/points/{lat},{lon}")
        grid = _parse_grid(payload)
        self.grid_cache.put(lat, lon, grid)
        return grid

    async def fetch_hourly(self, grid: GridReference) -> list[HourlyPeriod]:
        payload = await self._get_json(grid.forecast_hourly_url)
        return _parse_periods(payload)

    async def daily_high(self, city_code: str, target_date: date) -> DailyForecast | None:
        city = CITIES.get(city_code)
        if city is None:
            raise UnknownCityError(city_code)

        grid = await self.resolve_grid(city["lat"], city["lon"])
        periods = await self.fetch_hourly(grid)
        forecast = summarize_day(city_code, target_date, periods, self.clock())
        if forecast is None:
            log.debug("No NWS periods for %s on %s", city_code, target_date.isoformat())
        return forecast

    async def all_cities_forecast(self, target_date: date) -> dict[str, DailyForecast]:
        forecasts: dict[str, DailyForecast] = {}
        for idx, city_code in enumerate(CITIES):
            if idx:
                await self.sleep(self.request_delay_seconds)
            try:
                forecast = await self.daily_high(city_code, target_date)
            except ForecastProviderError as exc:
                log.warning("Failed to fetch forecast for %s: %s", city_code, exc)
                continue
            if forecast is not None:
                forecasts[city_code] = forecast
        return forecasts
