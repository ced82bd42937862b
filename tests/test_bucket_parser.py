"""Tests for temperature bucket label parsing."""

import pytest

from data.bucket_parser import extract_bucket_from_question, parse_bucket_label


class TestParseBucketLabel:
    @pytest.mark.parametrize(
        "label,expected",
        [
            ("70-72°F", (69.5, 72.5)),
            ("70 - 72 °F", (69.5, 72.5)),
            ("72°F", (71.5, 72.5)),
            ("95°F or above", (94.5, None)),
            ("65°F or higher", (64.5, None)),
            ("95+", (94.5, None)),
            ("Above 95°F", (95.5, None)),
            ("Below 40°F", (None, 39.5)),
            ("40°F or below", (None, 40.5)),
            ("Between 70 and 72°F", (69.5, 72.5)),
            ("-5 to 0°F", (-5.5, 0.5)),
        ],
    )
    def test_labels(self, label, expected):
        assert parse_bucket_label(label) == expected

    def test_inverted_range_rejected(self):
        assert parse_bucket_label("72-70°F") is None

    @pytest.mark.parametrize("label", ["Yes", "No", "Other", "", "   "])
    def test_non_bucket_labels(self, label):
        assert parse_bucket_label(label) is None

    def test_encoding_artifact_degree_sign(self):
        assert parse_bucket_label("70-72Â°F") == (69.5, 72.5)


class TestExtractBucketFromQuestion:
    def test_range_in_question(self):
        question = "Will the highest temperature in NYC be 70-71°F on Dec 25, 2025?"
        assert extract_bucket_from_question(question) == (69.5, 71.5)

    def test_open_top_in_question(self):
        question = "Will the highest temperature in Miami be 85°F or higher on December 26?"
        assert extract_bucket_from_question(question) == (84.5, None)

    def test_single_degree_value(self):
        question = "Will the high in Seattle be 48°F on 12/26?"
        assert extract_bucket_from_question(question) == (47.5, 48.5)

    def test_dates_are_not_buckets(self):
        assert extract_bucket_from_question("Will it rain in NYC on 2025-12-25?") is None
