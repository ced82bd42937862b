"""Bucket probabilities for a forecast daily high."""

from __future__ import annotations

import math
from typing import Callable

from config.settings import CONFIDENCE_STD_DEVS
from data.forecast import Confidence, DailyForecast
from data.market_parser import OutcomeBucket


def normal_cdf(x: float, mu: float = 0.0, sigma: float = 1.0) -> float:
    if math.isinf(x):
        return 1.0 if x > 0 else 0.0
    z = (x - mu) / (sigma * math.sqrt(2.0))
    return 0.5 * (1.0 + math.erf(z))


def std_dev_for_confidence(confidence: Confidence | str) -> float:
    return CONFIDENCE_STD_DEVS[Confidence(confidence).value]


def interval_probability(lower: float | None, upper: float | None, mu: float, sigma: float) -> float:
    """P(lower <= X < upper) for X ~ N(mu, sigma); a None bound is unbounded."""
    low = -math.inf if lower is None else lower
    high = math.inf if upper is None else upper
    p = normal_cdf(high, mu, sigma) - normal_cdf(low, mu, sigma)
    return max(0.0, min(1.0, p))


# Any (forecast, bucket) -> probability callable can stand in for the normal model.
ProbabilityModel = Callable[[DailyForecast, OutcomeBucket], float]


def normal_bucket_probability(forecast: DailyForecast, bucket: OutcomeBucket) -> float:
    """Fair probability of ``bucket`` with the daily high ~ N(forecast high, σ(confidence))."""
    sigma = std_dev_for_confidence(forecast.confidence)
    return interval_probability(bucket.lower, bucket.upper, forecast.high_temp, sigma)
