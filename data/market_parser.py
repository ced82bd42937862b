"""Normalize raw Gamma market records into temperature markets.

Every function here is pure: the raw shape goes in, a strict
``NormalizedMarket`` (or None for anything that is not a usable
temperature market) comes out.
"""

from __future__ import annotations

import json
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from typing import Any

from config.cities import CITIES, find_city_for_text
from config.settings import DEFAULT_OUTCOME_PRICE, TEMP_KEYWORDS
from data.bucket_parser import extract_bucket_from_question, parse_bucket_label


MONTHS = (
    "january",
    "february",
    "march",
    "april",
    "may",
    "june",
    "july",
    "august",
    "september",
    "october",
    "november",
    "december",
)
MONTH_ABBREVIATIONS = {name[:3]: idx for idx, name in enumerate(MONTHS, start=1)}
MONTH_ABBREVIATIONS["sept"] = 9

ISO_DATE_PATTERN = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
SLASH_DATE_PATTERN = re.compile(r"\b(\d{1,2})/(\d{1,2})(?:/(\d{4}|\d{2}))?\b")
MONTH_NAME_PATTERN = re.compile(r"\b(" + "|".join(MONTHS) + r")\s+(\d{1,2})(?:st|nd|rd|th)?(?:,?\s+(\d{4}))?\b")
MONTH_ABBR_PATTERN = re.compile(
    r"\b(jan|feb|mar|apr|may|jun|jul|aug|sept|sep|oct|nov|dec)\.?\s+(\d{1,2})(?:st|nd|rd|th)?(?:,?\s+(\d{4}))?\b"
)

# A yearless date further than this in the past is read as next year's.
YEAR_ROLLOVER_DAYS = 180

MARKET_ID_FIELDS = ("id", "conditionId", "condition_id")
CONDITION_ID_FIELDS = ("conditionId", "condition_id", "id")
QUESTION_FIELDS = ("question", "title")
DESCRIPTION_FIELDS = ("description", "rules")
SLUG_FIELDS = ("market_slug", "slug")
END_DATE_FIELDS = ("endDate", "endDateIso", "end_date_iso")
OUTCOME_LIST_FIELDS = ("tokens", "outcomes")
OUTCOME_LABEL_FIELDS = ("outcome", "name", "title")
TOKEN_ID_FIELDS = ("tokenId", "token_id", "id")
PRICE_FIELDS = ("price", "lastTradePrice")


@dataclass
class OutcomeBucket:
    token_id: str
    label: str
    lower: float | None
    upper: float | None
    price: float

    def __post_init__(self) -> None:
        if self.lower is not None and self.upper is not None and self.lower > self.upper:
            raise ValueError(f"Inverted bucket bounds for {self.label!r}: {self.lower} > {self.upper}")
        if not 0.0 < self.price < 1.0:
            raise ValueError(f"Outcome price must be in (0, 1), got {self.price}")


@dataclass
class NormalizedMarket:
    market_id: str
    condition_id: str
    city_code: str
    city: str
    target_date: str  # YYYY-MM-DD
    buckets: list[OutcomeBucket] = field(default_factory=list)
    question: str = ""


def _first(raw: dict[str, Any], fields: tuple[str, ...], default: Any = None) -> Any:
    for name in fields:
        value = raw.get(name)
        if value not in (None, ""):
            return value
    return default


def _as_list(value: Any) -> list[Any]:
    # Gamma encodes several list fields as JSON strings.
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return []
    return value if isinstance(value, list) else []


def _to_price(value: Any) -> float | None:
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if 0.0 < price < 1.0 else None


def is_temperature_text(text: str) -> bool:
    lower = text.lower()
    return any(keyword in lower for keyword in TEMP_KEYWORDS)


def _build_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _infer_year(month: int, day: int, today: date) -> date | None:
    candidate = _build_date(today.year, month, day)
    if candidate is None:
        return None
    if (today - candidate).days > YEAR_ROLLOVER_DAYS:
        return _build_date(today.year + 1, month, day)
    return candidate


def _explicit_year(raw_year: str | None) -> int | None:
    if not raw_year:
        return None
    year = int(raw_year)
    return year + 2000 if year < 100 else year


def _date_from_match(pattern: re.Pattern[str], match: re.Match[str], today: date) -> date | None:
    if pattern is ISO_DATE_PATTERN:
        return _build_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    if pattern is SLASH_DATE_PATTERN:
        month, day = int(match.group(1)), int(match.group(2))
    elif pattern is MONTH_NAME_PATTERN:
        month, day = MONTHS.index(match.group(1)) + 1, int(match.group(2))
    else:
        month, day = MONTH_ABBREVIATIONS[match.group(1)], int(match.group(2))
    year = _explicit_year(match.group(3))
    if year is None:
        return _infer_year(month, day, today)
    return _build_date(year, month, day)


def parse_date_from_text(text: str, today: date) -> date | None:
    """First date found in ``text``, trying ISO, M/D[/YY], month name, month abbreviation."""
    lower = text.lower()
    for pattern in (ISO_DATE_PATTERN, SLASH_DATE_PATTERN, MONTH_NAME_PATTERN, MONTH_ABBR_PATTERN):
        for match in pattern.finditer(lower):
            parsed = _date_from_match(pattern, match, today)
            if parsed is not None:
                return parsed
    return None


def _parse_end_date(value: Any) -> date | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).date()
    except ValueError:
        return None


def extract_target_date(raw: dict[str, Any], question: str, now: datetime) -> date:
    """Settlement date: explicit end date, else a date in the question, else tomorrow."""
    end_date = _parse_end_date(_first(raw, END_DATE_FIELDS))
    if end_date is not None:
        return end_date
    today = now.date()
    parsed = parse_date_from_text(question, today)
    if parsed is not None:
        return parsed
    return today + timedelta(days=1)


def _raw_outcomes(raw: dict[str, Any]) -> list[dict[str, Any]]:
    listed = _as_list(_first(raw, OUTCOME_LIST_FIELDS, []))
    if listed and all(isinstance(item, dict) for item in listed):
        return listed

    # Gamma shape: parallel JSON arrays of labels, CLOB token ids and prices.
    labels = _as_list(raw.get("outcomes"))
    token_ids = _as_list(raw.get("clobTokenIds"))
    prices = _as_list(raw.get("outcomePrices"))
    outcomes: list[dict[str, Any]] = []
    for idx, label in enumerate(labels):
        if idx >= len(token_ids):
            break
        outcomes.append(
            {
                "outcome": str(label),
                "token_id": str(token_ids[idx]),
                "price": prices[idx] if idx < len(prices) else None,
            }
        )
    return outcomes


def _make_bucket(token_id: Any, label: str, bounds: tuple[float | None, float | None], price: Any) -> OutcomeBucket | None:
    if not token_id:
        return None
    lower, upper = bounds
    resolved_price = DEFAULT_OUTCOME_PRICE if price in (None, "") else _to_price(price)
    if resolved_price is None:
        return None
    return OutcomeBucket(token_id=str(token_id), label=label, lower=lower, upper=upper, price=resolved_price)


def parse_outcomes(raw: dict[str, Any], question: str) -> list[OutcomeBucket]:
    """Outcome buckets of a market; labels that are not buckets are dropped."""
    outcomes = _raw_outcomes(raw)
    labels = [str(_first(o, OUTCOME_LABEL_FIELDS, "")).strip() for o in outcomes]

    if outcomes and {label.lower() for label in labels} <= {"yes", "no"}:
        bounds = extract_bucket_from_question(question)
        if bounds is None:
            return []
        for outcome, label in zip(outcomes, labels):
            if label.lower() == "yes":
                bucket = _make_bucket(
                    _first(outcome, TOKEN_ID_FIELDS), question, bounds, _first(outcome, PRICE_FIELDS)
                )
                return [bucket] if bucket else []
        return []

    buckets: list[OutcomeBucket] = []
    for outcome, label in zip(outcomes, labels):
        bounds = parse_bucket_label(label)
        if bounds is None:
            continue
        bucket = _make_bucket(_first(outcome, TOKEN_ID_FIELDS), label, bounds, _first(outcome, PRICE_FIELDS))
        if bucket is not None:
            buckets.append(bucket)
    return buckets


def parse_market(
    raw: dict[str, Any],
    now: datetime | None = None,
    reject_stats: Counter[str] | None = None,
) -> NormalizedMarket | None:
    """Return the temperature market described by ``raw``, or None.

    This is a filter: records that are not recognisable temperature markets
    are dropped without raising.
    """
    now = now or datetime.now(UTC)
    stats = reject_stats if reject_stats is not None else Counter()

    question = str(_first(raw, QUESTION_FIELDS, ""))
    description = str(_first(raw, DESCRIPTION_FIELDS, ""))
    slug = str(_first(raw, SLUG_FIELDS, ""))
    text = f"{question} {description} {slug}"

    if not is_temperature_text(text):
        stats["not_temperature"] += 1
        return None

    city_code = find_city_for_text(text)
    if city_code is None:
        stats["unknown_city"] += 1
        return None

    target_date = extract_target_date(raw, question, now)

    buckets = parse_outcomes(raw, question)
    if not buckets:
        stats["missing_or_unparseable_buckets"] += 1
        return None

    market_id = _first(raw, MARKET_ID_FIELDS)
    if market_id is None:
        stats["missing_market_id"] += 1
        return None

    stats["accepted"] += 1
    return NormalizedMarket(
        market_id=str(market_id),
        condition_id=str(_first(raw, CONDITION_ID_FIELDS, market_id)),
        city_code=city_code,
        city=CITIES[city_code]["name"],
        target_date=target_date.isoformat(),
        buckets=buckets,
        question=question,
    )
