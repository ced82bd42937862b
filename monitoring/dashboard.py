"""Terminal view of the latest scan."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from strategy.scanner import ScanResult


console = Console()


def build_table(result: ScanResult, limit: int = 20) -> Table:
    table = Table(title=f"Weather Edges for {result.target_date or 'all market dates'}")
    table.add_column("City", style="cyan")
    table.add_column("Bucket")
    table.add_column("Forecast", justify="right")
    table.add_column("Conf")
    table.add_column("Fair", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Edge", justify="right", style="green")

    for opp in result.opportunities[:limit]:
        table.add_row(
            opp.city_code,
            opp.bucket,
            f"{opp.forecast_high:.0f}°F",
            opp.confidence,
            f"{opp.fair_probability:.1%}",
            f"{opp.market_price:.3f}",
            f"{opp.edge:+.3f}",
        )
    table.caption = (
        f"markets={len(result.markets)} forecasts={len(result.forecasts)} "
        f"opportunities={len(result.opportunities)} scanned_at={result.scanned_at}"
    )
    return table


def render_scan(result: ScanResult) -> None:
    # Under nohup/file redirection, skip rich terminal output.
    if not getattr(console.file, "isatty", lambda: False)():
        return
    try:
        console.print(build_table(result))
    except OSError:
        return
