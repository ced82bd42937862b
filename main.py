"""Main runtime entrypoint for the weather edge scanner."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from config.cities import CITIES
from config.settings import load_runtime_overrides
from data.forecast import NWSForecastClient
from data.polymarket import DiscoveryError, PolymarketDataClient
from monitoring.dashboard import render_scan
from monitoring.logger import OpportunityJournal, configure_logging
from strategy.scanner import ScanResult, WeatherScanner


log = logging.getLogger("weather-edge")


class ScanRunner:
    """Runs scans on a fixed interval, never two at once."""

    def __init__(
        self,
        scanner: WeatherScanner,
        journal: OpportunityJournal | None = None,
        interval_seconds: float = 300,
        show_dashboard: bool = True,
    ) -> None:
        self.scanner = scanner
        self.journal = journal
        self.interval_seconds = interval_seconds
        self.show_dashboard = show_dashboard
        self._in_flight = False

    async def run_once(self) -> ScanResult | None:
        if self._in_flight:
            log.warning("Previous scan still running; skipping this tick.")
            return None
        self._in_flight = True
        try:
            result = await self.scanner.scan()
        except DiscoveryError as exc:
            log.error("Scan failed: %s", exc)
            return None
        finally:
            self._in_flight = False

        if self.journal is not None:
            self.journal.log_scan(result)
        if self.show_dashboard:
            render_scan(result)
        return result

    async def run_forever(self) -> None:
        log.info("Starting scan loop every %ss.", self.interval_seconds)
        while True:
            try:
                await self.run_once()
            except Exception:
                log.exception("Scan loop stopped by an unexpected error.")
                raise
            await asyncio.sleep(self.interval_seconds)


async def run_diagnostic(market_client: PolymarketDataClient) -> None:
    markets = await market_client.discover_temperature_markets()
    print(f"DIAGNOSTIC discovered={len(markets)}")
    print(f"DIAGNOSTIC stats={market_client.last_discovery_stats}")
    for sample in markets[:5]:
        print(f"DIAGNOSTIC sample {sample.city_code} {sample.target_date} buckets={len(sample.buckets)} {sample.question}")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Weather market edge scanner")
    parser.add_argument("--once", action="store_true", help="Run a single scan then exit.")
    parser.add_argument("--diagnostic", action="store_true", help="Run market discovery diagnostics then exit.")
    args = parser.parse_args()

    load_dotenv()
    runtime = load_runtime_overrides()
    configure_logging()

    market_client = PolymarketDataClient()
    forecast_client = NWSForecastClient(request_delay_seconds=float(runtime["FORECAST_REQUEST_DELAY_SECONDS"]))
    try:
        if args.diagnostic:
            await run_diagnostic(market_client)
            return

        log.info("Tracking cities: %s", ", ".join(CITIES))
        scanner = WeatherScanner(
            market_client,
            forecast_client,
            forecast_delay_seconds=float(runtime["FORECAST_REQUEST_DELAY_SECONDS"]),
            min_edge=float(runtime["MIN_EDGE_THRESHOLD"]),
        )
        runner = ScanRunner(
            scanner,
            journal=OpportunityJournal(output_dir=str(runtime["LOG_DIR"])),
            interval_seconds=float(runtime["SCAN_INTERVAL_SECONDS"]),
            show_dashboard=bool(runtime["SHOW_DASHBOARD"]),
        )
        if args.once:
            result = await runner.run_once()
            if result is None:
                sys.exit(1)
            return
        await runner.run_forever()
    finally:
        await forecast_client.close()
        await market_client.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Shutting down gracefully.")
