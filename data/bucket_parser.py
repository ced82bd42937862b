"""Temperature bucket label parsing.

Markets settle on whole-degree readings, so a label covering readings
70..72 maps to the continuous half-open range [69.5, 72.5). A None bound
is open-ended.
"""

from __future__ import annotations

import re


Bounds = tuple[float | None, float | None]

HALF_DEGREE = 0.5

_NUM = r"(-?\d+(?:\.\d+)?)"
_UNIT = r"(?:\s*°\s*[fc]?|\s*[fc]\b)?"

_ABOVE_SUFFIX = re.compile(_NUM + _UNIT + r"\s*(?:\+|or above|or higher|or more|or warmer|and above|and higher)")
_BELOW_SUFFIX = re.compile(_NUM + _UNIT + r"\s*(?:or below|or lower|or less|or colder|and below|and lower)")
_AT_LEAST = re.compile(r"(?:at least|no less than|>=|≥)\s*" + _NUM + _UNIT)
_ABOVE = re.compile(r"(?:above|over|greater than|more than|higher than|exceeds?|>)\s*" + _NUM + _UNIT)
_AT_MOST = re.compile(r"(?:at most|no more than|<=|≤)\s*" + _NUM + _UNIT)
_BELOW = re.compile(r"(?:below|under|less than|lower than|<)\s*" + _NUM + _UNIT)
_BETWEEN = re.compile(r"between\s*" + _NUM + _UNIT + r"\s*and\s*" + _NUM + _UNIT)
_RANGE = re.compile(_NUM + _UNIT + r"\s*(?:-|to)\s*" + _NUM + _UNIT)
_SINGLE = re.compile(r"^" + _NUM + _UNIT + r"$")

_UNIT_MARK = re.compile(r"°|\d\s*[fc]\b")


def _normalize(text: str) -> str:
    return (
        text.lower()
        .replace("â°", "°")
        .replace("º", "°")
        .replace("degrees", "°")
        .replace("fahrenheit", "f")
        .replace("–", "-")
        .replace("—", "-")
        .strip()
    )


def _range(low: float, high: float) -> Bounds | None:
    if low > high:
        return None
    return low - HALF_DEGREE, high + HALF_DEGREE


def _match_bounds(text: str, require_unit: bool) -> Bounds | None:
    def find(pattern: re.Pattern[str]) -> re.Match[str] | None:
        for match in pattern.finditer(text):
            if not require_unit or _UNIT_MARK.search(match.group(0)):
                return match
        return None

    if m := find(_ABOVE_SUFFIX):
        return float(m.group(1)) - HALF_DEGREE, None
    if m := find(_BELOW_SUFFIX):
        return None, float(m.group(1)) + HALF_DEGREE
    if m := find(_AT_LEAST):
        return float(m.group(1)) - HALF_DEGREE, None
    if m := find(_AT_MOST):
        return None, float(m.group(1)) + HALF_DEGREE
    if m := find(_BETWEEN):
        return _range(float(m.group(1)), float(m.group(2)))
    if m := find(_RANGE):
        return _range(float(m.group(1)), float(m.group(2)))
    if m := find(_ABOVE):
        return float(m.group(1)) + HALF_DEGREE, None
    if m := find(_BELOW):
        return None, float(m.group(1)) - HALF_DEGREE
    return None


def parse_bucket_label(label: str) -> Bounds | None:
    """Parse an outcome label such as "70-72°F", "Above 95°F" or "Below 40°F".

    Returns None for labels that do not describe a temperature bucket,
    including ranges whose bounds are inverted.
    """
    clean = _normalize(label)
    if not clean:
        return None
    bounds = _match_bounds(clean, require_unit=False)
    if bounds is not None:
        return bounds
    single = _SINGLE.match(clean)
    if single:
        value = float(single.group(1))
        return value - HALF_DEGREE, value + HALF_DEGREE
    return None


def extract_bucket_from_question(question: str) -> Bounds | None:
    """Pull the bucket out of a yes/no question ("... be 70-71°F on Dec 25?").

    Only matches carrying a degree marker count, so dates and other numbers
    in the question are ignored.
    """
    clean = _normalize(question)
    bounds = _match_bounds(clean, require_unit=True)
    if bounds is not None:
        return bounds
    for single in re.finditer(_NUM + r"\s*°\s*[fc]?", clean):
        value = float(single.group(1))
        return value - HALF_DEGREE, value + HALF_DEGREE
    return None
