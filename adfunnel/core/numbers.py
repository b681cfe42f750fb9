"""ADFUNNEL — Lenient numeric coercion for platform payloads.

Ad platforms send numbers as strings, occasionally as empty strings, nulls
or nonsense. Nothing here raises: anything unusable becomes 0.
"""

import math
from typing import Any, Optional


def _parse(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0:
        return None
    return number


def is_valid_number(value: Any) -> bool:
    """True when ``value`` reads as a finite, non-negative number."""
    return _parse(value) is not None


def safe_float(value: Any) -> float:
    """Convert a value to a non-negative finite float, 0.0 on failure."""
    number = _parse(value)
    return 0.0 if number is None else number


def safe_count(value: Any) -> int:
    """Convert a value to a non-negative integer count (truncating)."""
    return int(safe_float(value))


def round_currency(value: float) -> float:
    return round(value, 2)


def round_count(value: float) -> int:
    """Round half up; fractional attribution counts become whole events."""
    return int(math.floor(value + 0.5))
