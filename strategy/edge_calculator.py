"""Edge computations for temperature-bucket markets."""

from __future__ import annotations

from dataclasses import asdict, dataclass

from config.settings import MIN_EDGE_THRESHOLD
from data.forecast import DailyForecast
from data.market_parser import NormalizedMarket
from data.probability import ProbabilityModel, normal_bucket_probability


# Float slack so an edge that equals the threshold on paper is not lost to rounding.
EDGE_EPSILON = 1e-9


@dataclass(frozen=True)
class Opportunity:
    market_id: str
    city_code: str
    city: str
    date: str
    token_id: str
    bucket: str
    side: str
    market_price: float
    fair_probability: float
    edge: float
    confidence: str
    forecast_high: float

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_edge(fair_probability: float, market_price: float) -> float:
    return fair_probability - market_price


def detect_opportunities(
    market: NormalizedMarket,
    forecast: DailyForecast,
    model: ProbabilityModel = normal_bucket_probability,
    min_edge: float = MIN_EDGE_THRESHOLD,
) -> list[Opportunity]:
    """Underpriced buckets of ``market`` under ``forecast``, in bucket order.

    Buckets are scored independently; fair probabilities are not
    renormalised across the market.
    """
    opportunities: list[Opportunity] = []
    for bucket in market.buckets:
        fair = model(forecast, bucket)
        edge = calculate_edge(fair, bucket.price)
        if edge + EDGE_EPSILON < min_edge:
            continue
        opportunities.append(
            Opportunity(
                market_id=market.market_id,
                city_code=market.city_code,
                city=market.city,
                date=market.target_date,
                token_id=bucket.token_id,
                bucket=bucket.label,
                side="BUY_YES",
                market_price=bucket.price,
                fair_probability=fair,
                edge=edge,
                confidence=forecast.confidence.value,
                forecast_high=forecast.high_temp,
            )
        )
    return opportunities
