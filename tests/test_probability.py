"""Tests for the normal bucket-probability model."""

import math

import pytest

from data.forecast import Confidence
from data.market_parser import OutcomeBucket
from data.probability import (
    interval_probability,
    normal_bucket_probability,
    normal_cdf,
    std_dev_for_confidence,
)


def _bucket(lower, upper, price=0.5):
    return OutcomeBucket(token_id="tok", label="test", lower=lower, upper=upper, price=price)


class TestStdDev:
    def test_sigma_grows_as_confidence_drops(self):
        tiers = [Confidence.VERY_HIGH, Confidence.HIGH, Confidence.MEDIUM, Confidence.LOW]
        sigmas = [std_dev_for_confidence(tier) for tier in tiers]
        assert sigmas == sorted(sigmas)
        assert len(set(sigmas)) == 4
        assert all(s > 0 for s in sigmas)

    def test_table_values(self):
        assert std_dev_for_confidence(Confidence.VERY_HIGH) == 1.5
        assert std_dev_for_confidence(Confidence.HIGH) == 2.0
        assert std_dev_for_confidence("medium") == 3.0
        assert std_dev_for_confidence("low") == 4.5


class TestNormalCdf:
    def test_center(self):
        assert normal_cdf(0.0) == pytest.approx(0.5)

    def test_infinities(self):
        assert normal_cdf(math.inf, 10.0, 2.0) == 1.0
        assert normal_cdf(-math.inf, 10.0, 2.0) == 0.0

    def test_one_sigma(self):
        assert normal_cdf(1.0) == pytest.approx(0.841345, abs=1e-6)


class TestIntervalProbability:
    @pytest.mark.parametrize("mu,sigma", [(75.0, 2.0), (-10.0, 4.5), (0.0, 1.5)])
    def test_unbounded_bucket_is_certain(self, mu, sigma):
        assert interval_probability(None, None, mu, sigma) == 1.0

    def test_symmetric_bucket_around_mean(self):
        p = interval_probability(73.0, 77.0, 75.0, 2.0)
        assert p > 0
        assert p == pytest.approx(0.682689, abs=1e-5)

    def test_reflection_about_mean(self):
        # Swapping the distances (mean - lo) and (hi - mean) leaves the mass unchanged.
        mu, sigma = 75.0, 3.0
        assert interval_probability(72.0, 77.0, mu, sigma) == pytest.approx(
            interval_probability(73.0, 78.0, mu, sigma)
        )

    def test_open_top_far_from_mean(self):
        assert interval_probability(95.0, None, 75.0, 2.0) < 1e-12

    def test_open_bottom(self):
        assert interval_probability(None, 75.0, 75.0, 2.0) == pytest.approx(0.5)


class TestNormalBucketProbability:
    def test_end_to_end_inner_bucket(self, make_forecast):
        forecast = make_forecast(high=75.0, confidence=Confidence.HIGH)
        assert normal_bucket_probability(forecast, _bucket(73.0, 77.0)) == pytest.approx(0.6827, abs=1e-4)

    def test_wider_sigma_spreads_mass(self, make_forecast):
        bucket = _bucket(73.0, 77.0)
        tight = normal_bucket_probability(make_forecast(confidence=Confidence.VERY_HIGH), bucket)
        loose = normal_bucket_probability(make_forecast(confidence=Confidence.LOW), bucket)
        assert tight > loose
