"""Tests for raw market record normalization."""

from collections import Counter
from datetime import UTC, date, datetime

import pytest

from data.market_parser import parse_date_from_text, parse_market


NOW = datetime(2025, 12, 20, 12, 0, tzinfo=UTC)

BUCKET_OUTCOMES = [
    {"outcome": "70-72°F", "tokenId": "t1", "price": "0.4"},
    {"outcome": "73°F or above", "tokenId": "t2", "price": "0.3"},
]


def _record(question, **extra):
    raw = {"id": "m1", "question": question, "outcomes": BUCKET_OUTCOMES}
    raw.update(extra)
    return raw


class TestParseMarket:
    def test_month_abbreviation_with_inferred_year(self):
        market = parse_market(_record("NYC High Temp Dec 25"), now=NOW)

        assert market is not None
        assert market.target_date == "2025-12-25"
        assert market.city_code == "NYC"
        assert market.city == "New York City"
        assert market.question == "NYC High Temp Dec 25"
        assert [b.token_id for b in market.buckets] == ["t1", "t2"]
        assert market.buckets[0].lower == 69.5
        assert market.buckets[0].upper == 72.5
        assert market.buckets[1].upper is None
        assert market.buckets[0].price == pytest.approx(0.4)

    def test_non_temperature_market_is_filtered(self):
        stats = Counter()
        assert parse_market(_record("Will BTC close above 100k on Dec 25?"), now=NOW, reject_stats=stats) is None
        assert stats["not_temperature"] == 1

    def test_untracked_city_is_filtered(self):
        stats = Counter()
        assert parse_market(_record("Highest temperature in Boston on Dec 25?"), now=NOW, reject_stats=stats) is None
        assert stats["unknown_city"] == 1

    def test_short_city_codes_match_whole_words_only(self):
        market = parse_market(_record("Highest temperature in Dallas on Dec 25?"), now=NOW)
        assert market.city_code == "Dallas"

    def test_city_found_in_description(self):
        raw = _record("Daily high temperature on Dec 25?", description="Resolves from the Seattle-Tacoma station.")
        assert parse_market(raw, now=NOW).city_code == "Seattle"

    def test_title_and_slug_aliases(self):
        raw = {"conditionId": "0xabc", "title": "Dec 26 daily high", "slug": "chicago-temperature", "tokens": BUCKET_OUTCOMES}
        market = parse_market(raw, now=NOW)
        assert market.market_id == "0xabc"
        assert market.condition_id == "0xabc"
        assert market.city_code == "Chicago"
        assert market.target_date == "2025-12-26"

    def test_explicit_end_date_wins(self):
        raw = _record("NYC High Temp Dec 25", endDate="2025-12-27T12:00:00Z")
        assert parse_market(raw, now=NOW).target_date == "2025-12-27"

    def test_unparseable_end_date_falls_back_to_question(self):
        raw = _record("NYC High Temp Dec 25", endDate="soon")
        assert parse_market(raw, now=NOW).target_date == "2025-12-25"

    def test_missing_date_defaults_to_tomorrow(self):
        assert parse_market(_record("NYC high temperature"), now=NOW).target_date == "2025-12-21"

    def test_unparseable_outcomes_are_dropped(self):
        outcomes = BUCKET_OUTCOMES + [{"outcome": "Other", "tokenId": "t3", "price": "0.1"}]
        market = parse_market(_record("NYC High Temp Dec 25", outcomes=outcomes), now=NOW)
        assert [b.token_id for b in market.buckets] == ["t1", "t2"]

    def test_no_buckets_means_no_market(self):
        stats = Counter()
        raw = _record("NYC High Temp Dec 25", outcomes=[{"outcome": "Maybe", "tokenId": "t1"}])
        assert parse_market(raw, now=NOW, reject_stats=stats) is None
        assert stats["missing_or_unparseable_buckets"] == 1

    def test_missing_price_uses_default(self):
        raw = _record("NYC High Temp Dec 25", outcomes=[{"name": "70-72°F", "token_id": "t1"}])
        assert parse_market(raw, now=NOW).buckets[0].price == 0.5

    def test_out_of_range_price_drops_outcome(self):
        outcomes = [{"outcome": "70-72°F", "tokenId": "t1", "price": "0"}, BUCKET_OUTCOMES[1]]
        market = parse_market(_record("NYC High Temp Dec 25", outcomes=outcomes), now=NOW)
        assert [b.token_id for b in market.buckets] == ["t2"]

    def test_gamma_string_encoded_outcomes(self):
        raw = {
            "conditionId": "0xdef",
            "question": "Highest temperature in Chicago on December 26?",
            "outcomes": '["40-41°F", "42°F or higher"]',
            "clobTokenIds": '["111", "222"]',
            "outcomePrices": '["0.35", "0.2"]',
        }
        market = parse_market(raw, now=NOW)
        assert market.market_id == "0xdef"
        assert market.target_date == "2025-12-26"
        assert [(b.token_id, b.price) for b in market.buckets] == [("111", 0.35), ("222", 0.2)]

    def test_yes_no_market_takes_bucket_from_question(self):
        raw = {
            "id": "m9",
            "question": "Will the highest temperature in Miami be 80-81°F on December 26?",
            "outcomes": '["Yes", "No"]',
            "clobTokenIds": '["y1", "n1"]',
            "outcomePrices": '["0.25", "0.75"]',
        }
        market = parse_market(raw, now=NOW)
        assert len(market.buckets) == 1
        bucket = market.buckets[0]
        assert (bucket.token_id, bucket.lower, bucket.upper, bucket.price) == ("y1", 79.5, 81.5, 0.25)

    def test_yes_no_market_without_bucket_in_question(self):
        raw = {
            "id": "m10",
            "question": "Will NYC set a record high temperature on December 26?",
            "outcomes": '["Yes", "No"]',
            "clobTokenIds": '["y1", "n1"]',
        }
        assert parse_market(raw, now=NOW) is None


class TestParseDateFromText:
    TODAY = date(2025, 12, 20)

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("temperature on 2025-12-28", date(2025, 12, 28)),
            ("temperature on 12/26", date(2025, 12, 26)),
            ("temperature on 12/26/25", date(2025, 12, 26)),
            ("temperature on 1/3/2026", date(2026, 1, 3)),
            ("temperature on December 26", date(2025, 12, 26)),
            ("temperature on December 26th, 2025", date(2025, 12, 26)),
            ("temperature on Dec. 27", date(2025, 12, 27)),
            ("temperature on Sept 3, 2026", date(2026, 9, 3)),
        ],
    )
    def test_patterns(self, text, expected):
        assert parse_date_from_text(text, self.TODAY) == expected

    def test_yearless_date_rolls_into_next_year(self):
        assert parse_date_from_text("high temp Jan 2", self.TODAY) == date(2026, 1, 2)

    def test_invalid_match_falls_through_to_next_pattern(self):
        assert parse_date_from_text("nyc 13/40 high on December 26", self.TODAY) == date(2025, 12, 26)

    def test_no_date(self):
        assert parse_date_from_text("highest temperature in nyc", self.TODAY) is None
