"""Scan pipeline: discover markets, forecast their cities, rank the edges."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Awaitable, Callable

from config.settings import FORECAST_REQUEST_DELAY_SECONDS, MIN_EDGE_THRESHOLD, PRICE_REQUEST_DELAY_SECONDS
from data.forecast import DailyForecast, ForecastProviderError, NWSForecastClient, UnknownCityError, utc_now
from data.market_parser import NormalizedMarket
from data.polymarket import PolymarketDataClient
from strategy.edge_calculator import Opportunity, detect_opportunities


log = logging.getLogger(__name__)

# (city_code, YYYY-MM-DD)
ForecastKey = tuple[str, str]


@dataclass
class ScanResult:
    scanned_at: str
    target_date: str | None = None  # None: each market is scored against its own settlement day
    markets: list[NormalizedMarket] = field(default_factory=list)
    forecasts: dict[ForecastKey, DailyForecast] = field(default_factory=dict)
    opportunities: list[Opportunity] = field(default_factory=list)


class WeatherScanner:
    def __init__(
        self,
        market_client: PolymarketDataClient,
        forecast_client: NWSForecastClient,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        forecast_delay_seconds: float = FORECAST_REQUEST_DELAY_SECONDS,
        price_delay_seconds: float = PRICE_REQUEST_DELAY_SECONDS,
        min_edge: float = MIN_EDGE_THRESHOLD,
    ) -> None:
        self.market_client = market_client
        self.forecast_client = forecast_client
        self.clock = clock
        self.sleep = sleep
        self.forecast_delay_seconds = forecast_delay_seconds
        self.price_delay_seconds = price_delay_seconds
        self.min_edge = min_edge

    async def _forecast_days(self, keys: list[ForecastKey]) -> dict[ForecastKey, DailyForecast]:
        forecasts: dict[ForecastKey, DailyForecast] = {}
        for idx, (city_code, day) in enumerate(keys):
            if idx:
                await self.sleep(self.forecast_delay_seconds)
            try:
                forecast = await self.forecast_client.daily_high(city_code, date.fromisoformat(day))
            except (ForecastProviderError, UnknownCityError) as exc:
                log.error("Failed to get forecast for %s on %s: %s", city_code, day, exc)
                continue
            if forecast is None:
                continue
            forecasts[(city_code, day)] = forecast
            log.info(
                "%s %s: NWS predicts %.0f°F (%s, %dh out)",
                city_code,
                day,
                forecast.high_temp,
                forecast.confidence.value,
                forecast.hours_until,
            )
        return forecasts

    async def scan(self, target_date: date | None = None) -> ScanResult:
        """Run one clean scan. Only a discovery failure raises.

        Each market is scored against the forecast for its own settlement
        day. Passing ``target_date`` pins every market to that day's forecast.
        """
        result = ScanResult(
            scanned_at=self.clock().isoformat(),
            target_date=target_date.isoformat() if target_date else None,
        )
        log.info("=== WEATHER SCAN (%s) ===", result.target_date or "all market dates")

        result.markets = await self.market_client.discover_temperature_markets()
        if not result.markets:
            log.info("No temperature markets found")
            return result

        def forecast_key(market: NormalizedMarket) -> ForecastKey:
            return market.city_code, result.target_date or market.target_date

        keys = list(dict.fromkeys(forecast_key(m) for m in result.markets))
        result.forecasts = await self._forecast_days(keys)

        refreshed = 0
        for market in result.markets:
            forecast = result.forecasts.get(forecast_key(market))
            if forecast is None:
                log.debug("No forecast for %s on %s; skipping %s", *forecast_key(market), market.market_id)
                continue
            if refreshed:
                await self.sleep(self.price_delay_seconds)
            await self.market_client.refresh_prices(market)
            refreshed += 1
            result.opportunities.extend(detect_opportunities(market, forecast, min_edge=self.min_edge))

        result.opportunities.sort(key=lambda opp: opp.edge, reverse=True)
        log.info("=== SCAN COMPLETE: %d opportunities found ===", len(result.opportunities))
        return result

    async def quick_scan(self) -> tuple[bool, int, Opportunity | None]:
        """(has_opportunities, count, top opportunity) across all discovered markets."""
        result = await self.scan()
        top = result.opportunities[0] if result.opportunities else None
        return bool(result.opportunities), len(result.opportunities), top
