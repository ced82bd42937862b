"""Polymarket Gamma listing and CLOB price utilities."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from datetime import datetime
from typing import Any, Awaitable, Callable

import httpx

from config.settings import (
    CLOB_API_URL,
    DISCOVERY_REQUEST_DELAY_SECONDS,
    FALLBACK_DISCOVERY_KEYWORDS,
    FALLBACK_DISCOVERY_LIMIT,
    GAMMA_API_URL,
    HTTP_TIMEOUT_SECONDS,
    PRICE_REQUEST_DELAY_SECONDS,
    PRIMARY_DISCOVERY_PARAMS,
)
from data.forecast import utc_now
from data.market_parser import NormalizedMarket, parse_market


log = logging.getLogger(__name__)


class MarketProviderError(RuntimeError):
    """A single listing or price request failed."""


class DiscoveryError(RuntimeError):
    """Market discovery failed on the primary query and every fallback query."""


class PolymarketDataClient:
    def __init__(
        self,
        http: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        discovery_delay_seconds: float = DISCOVERY_REQUEST_DELAY_SECONDS,
        price_delay_seconds: float = PRICE_REQUEST_DELAY_SECONDS,
    ) -> None:
        self.http = http or httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, headers={"Accept": "application/json"})
        self.clock = clock
        self.sleep = sleep
        self.discovery_delay_seconds = discovery_delay_seconds
        self.price_delay_seconds = price_delay_seconds
        self.reject_stats: Counter[str] = Counter()
        self.last_discovery_stats: dict[str, Any] = {}

    async def close(self) -> None:
        await self.http.aclose()

    async def list_markets(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Raw Gamma market records for one query."""
        try:
            response = await self.http.get(f"{GAMMA_API_URL}/markets", params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise MarketProviderError(f"Gamma market listing failed for {params}: {exc}") from exc
        if isinstance(payload, dict):
            payload = payload.get("data", payload.get("markets", []))
        if not isinstance(payload, list):
            raise MarketProviderError(f"Unexpected Gamma listing payload type: {type(payload).__name__}")
        return [item for item in payload if isinstance(item, dict)]

    async def get_price(self, token_id: str) -> float:
        """Midpoint price for one outcome token."""
        try:
            response = await self.http.get(f"{CLOB_API_URL}/midpoint", params={"token_id": token_id})
            response.raise_for_status()
            payload = response.json()
            return float(payload.get("mid", payload.get("price")))
        except (httpx.HTTPError, ValueError, TypeError, AttributeError) as exc:
            raise MarketProviderError(f"CLOB price lookup failed for {token_id}: {exc}") from exc

    def _normalize_all(self, records: list[dict[str, Any]], now: datetime) -> list[NormalizedMarket]:
        markets: list[NormalizedMarket] = []
        for raw in records:
            market = parse_market(raw, now=now, reject_stats=self.reject_stats)
            if market is not None:
                markets.append(market)
        return markets

    async def discover_temperature_markets(self) -> list[NormalizedMarket]:
        """Primary tag query, then a broader keyword search if it fails.

        Zero markets is a normal result; DiscoveryError is raised only when
        every query failed.
        """
        self.reject_stats = Counter()
        now = self.clock()
        strategy = "primary"
        try:
            records = await self.list_markets(dict(PRIMARY_DISCOVERY_PARAMS))
            markets = self._normalize_all(records, now)
        except MarketProviderError as exc:
            log.warning("Tag search failed (%s), trying broader search...", exc)
            strategy = "fallback"
            markets = await self._search_broadly(now)

        self.last_discovery_stats = {
            "strategy": strategy,
            "discovered_markets": len(markets),
            "reject_stats": dict(self.reject_stats),
        }
        log.info("Found %d temperature markets (%s)", len(markets), strategy)
        return markets

    async def _search_broadly(self, now: datetime) -> list[NormalizedMarket]:
        markets: list[NormalizedMarket] = []
        seen_ids: set[str] = set()
        failures: list[str] = []
        for idx, keyword in enumerate(FALLBACK_DISCOVERY_KEYWORDS):
            if idx:
                await self.sleep(self.discovery_delay_seconds)
            params = {"closed": "false", "limit": FALLBACK_DISCOVERY_LIMIT, "_q": keyword}
            try:
                records = await self.list_markets(params)
            except MarketProviderError as exc:
                self.reject_stats["search_fetch_error"] += 1
                failures.append(str(exc))
                continue
            for market in self._normalize_all(records, now):
                if market.market_id not in seen_ids:
                    seen_ids.add(market.market_id)
                    markets.append(market)

        if len(failures) == len(FALLBACK_DISCOVERY_KEYWORDS):
            raise DiscoveryError(f"Market discovery failed: {failures[-1]}")
        return markets

    async def refresh_prices(self, market: NormalizedMarket) -> NormalizedMarket:
        """Update bucket prices in place; a failed token keeps its last known price."""
        for idx, bucket in enumerate(market.buckets):
            if idx:
                await self.sleep(self.price_delay_seconds)
            try:
                price = await self.get_price(bucket.token_id)
            except MarketProviderError as exc:
                log.debug("Keeping stale price for %s: %s", bucket.token_id, exc)
                continue
            if 0.0 < price < 1.0:
                bucket.price = price
        return market
