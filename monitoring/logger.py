"""Logging setup plus a CSV journal of surfaced opportunities."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from strategy.edge_calculator import Opportunity
from strategy.scanner import ScanResult


OPPORTUNITY_COLUMNS = [
    "scanned_at",
    "city_code",
    "date",
    "bucket",
    "side",
    "confidence",
    "forecast_high",
    "fair_probability",
    "market_price",
    "edge",
    "market_id",
    "token_id",
]


def configure_logging(level: int = logging.INFO) -> logging.Logger:
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    # Keep third-party HTTP client chatter out of scan logs.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return logging.getLogger("weather-edge")


class OpportunityJournal:
    def __init__(self, output_dir: str = "logs") -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.opportunities_file = self.output_dir / "opportunities.csv"
        self._init_csv_header()

    def _init_csv_header(self) -> None:
        if not self.opportunities_file.exists():
            with self.opportunities_file.open("w", newline="", encoding="utf-8") as f:
                csv.writer(f).writerow(OPPORTUNITY_COLUMNS)

    def _row(self, scanned_at: str, opp: Opportunity) -> list:
        record = opp.to_dict()
        for key in ("fair_probability", "market_price", "edge"):
            record[key] = round(record[key], 4)
        record["scanned_at"] = scanned_at
        return [record[column] for column in OPPORTUNITY_COLUMNS]

    def log_scan(self, result: ScanResult) -> int:
        """Append every opportunity of ``result``; returns the number written."""
        if not result.opportunities:
            return 0
        with self.opportunities_file.open("a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            for opp in result.opportunities:
                writer.writerow(self._row(result.scanned_at, opp))
        return len(result.opportunities)
