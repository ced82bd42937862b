"""Quick health check for active temperature markets."""

from __future__ import annotations

import asyncio
import argparse
import sys
from collections import Counter
from pathlib import Path

# Allow running script directly from the project root.
sys.path.append(str(Path(__file__).resolve().parent.parent))

from data.polymarket import PolymarketDataClient


async def main() -> None:
    parser = argparse.ArgumentParser(description="Check temperature market discovery status.")
    parser.add_argument("--prices", action="store_true", help="Also refresh prices for the sampled markets.")
    args = parser.parse_args()

    client = PolymarketDataClient()
    try:
        markets = await client.discover_temperature_markets()
        print(f"discovered_markets={len(markets)}")
        print(f"discovery_stats={client.last_discovery_stats}")

        if not markets:
            print("reason=No active temperature markets matched the tracked cities.")
            return

        city_counts = Counter(m.city_code for m in markets)
        print("city_counts=")
        for city, count in sorted(city_counts.items()):
            print(f"  {city}: {count}")

        print("sample_markets=")
        for market in markets[:5]:
            if args.prices:
                await client.refresh_prices(market)
            prices = ", ".join(f"{b.label}={b.price:.3f}" for b in market.buckets)
            print(f"  - {market.city_code} | {market.target_date} | {market.question} | {prices}")
    finally:
        await client.close()


if __name__ == "__main__":
    asyncio.run(main())
