"""Normalization helpers.

Centralizes defensive parsing of raw sensor values.
"""

from __future__ import annotations

import math
from typing import Any

from pybatmon._constants import MS_PER_HOUR


def safe_float(value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if value == "":
            return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_bool(value: Any) -> bool | None:
    """Parse booleans from bools, numbers and common strings."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return None


def hours_to_ms(hours: float) -> int:
    """Convert a window length in hours to milliseconds."""
    return int(hours * MS_PER_HOUR)
