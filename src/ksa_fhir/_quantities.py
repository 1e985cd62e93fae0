"""
Text heuristics for quantities, doses and dosing frequency.

These are the only pieces of free-text interpretation the engine does;
everything else trusts the typed entities handed in by the extractor.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from ksa_fhir._constants import UCUM

_NUMERIC_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([A-Za-z/%]+)?")
_DOSAGE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(mg|mcg|g|ml|iu|units?)\b", re.IGNORECASE)

_ARABIC_DIACRITICS_RE = re.compile(r"[\u064b-\u0652]")

# A daily period: "daily", "a day", "per day", "/day", "في اليوم", "يوميا".
_PER_DAY = r"(?:daily|a\s+day|per\s+day|every\s+day|/\s*day|في\s+اليوم|يوميا)"

# Each pattern must match the whole phrase, so any other count
# ("three times daily", "tid") or period ("once weekly") stays free text.
_TIMING_PATTERNS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(
        rf"(?:twice|two\s+times|2\s*(?:x|times))\s*{_PER_DAY}"
        r"|b\.?i\.?d\.?"
        r"|مرتين\s*(?:يوميا|في\s+اليوم)"
    ), 2),
    (re.compile(
        rf"(?:once|one\s+time|1\s*(?:x|time))\s*{_PER_DAY}"
        r"|daily|every\s+day|q\.?d\.?|o\.?d\.?"
        r"|مرة(?:\s+واحدة)?\s*(?:يوميا|في\s+اليوم)|يوميا"
    ), 1),
)


def _number(text: str) -> int | float:
    """Parse a numeric token, keeping integers integral."""
    return float(text) if "." in text else int(text)


def extract_numeric_value(value: str) -> Optional[dict[str, Any]]:
    """Extract the first number and its trailing unit from *value*.

    >>> extract_numeric_value("120 mmHg")
    {'value': 120, 'unit': 'mmHg'}
    >>> extract_numeric_value("Temp 37.5C")
    {'value': 37.5, 'unit': 'C'}
    >>> extract_numeric_value("negative") is None
    True

    The unit defaults to ``"unit"`` when no unit token follows the
    number.
    """
    match = _NUMERIC_RE.search(value)
    if match is None:
        return None
    return {
        "value": _number(match.group(1)),
        "unit": match.group(2) or "unit",
    }


def parse_dosage_quantity(dosage: str) -> dict[str, Any]:
    """Parse a ``<number><unit>`` dose such as ``"600mg"``.

    Returns a FHIR ``Quantity`` with UCUM system and code when a dose is
    found, otherwise the default single dose ``{value: 1, unit: "dose"}``.
    """
    match = _DOSAGE_RE.search(dosage)
    if match is None:
        return {"value": 1, "unit": "dose"}
    unit = match.group(2)
    return {
        "value": _number(match.group(1)),
        "unit": unit,
        "system": UCUM,
        "code": unit,
    }


def create_dosage_timing(frequency: Optional[str]) -> Optional[dict[str, Any]]:
    """Derive a FHIR ``Timing`` from a free-text frequency.

    Only phrases that as a whole mean once daily or twice daily
    (English, Latin abbreviations, Arabic) become a structured
    ``repeat``.  Anything else, including other counts ("three times
    daily") and other periods ("once weekly"), is kept as free text
    under ``code.text``.  Returns None for an empty frequency.
    """
    if not frequency or not frequency.strip():
        return None

    phrase = " ".join(_ARABIC_DIACRITICS_RE.sub("", frequency).lower().split())
    for pattern, per_day in _TIMING_PATTERNS:
        if pattern.fullmatch(phrase):
            return {
                "repeat": {
                    "frequency": per_day,
                    "period": 1,
                    "periodUnit": "d",
                }
            }

    return {"code": {"text": frequency}}
