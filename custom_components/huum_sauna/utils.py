"""Utility helpers shared across the HUUM sauna integration."""

from __future__ import annotations

import math
from typing import Any


def float_or_none(value: Any) -> float | None:
    """Return value as ``float`` if possible, else ``None``.

    Converts integers, floats, and numeric strings to ``float`` while safely
    handling ``None``, booleans and non-numeric inputs.
    """

    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, (int, float)):
            num = float(value)
        else:
            string_val = str(value).strip()
            if not string_val:
                return None
            num = float(string_val)
    except (TypeError, ValueError):
        return None
    return num if math.isfinite(num) else None


def coerce_int(value: Any) -> int | None:
    """Return ``value`` as ``int`` when it is integral, else ``None``."""

    num = float_or_none(value)
    if num is None or not num.is_integer():
        return None
    return int(num)


def format_number(value: float) -> str:
    """Render ``value`` without a trailing ``.0`` when it is integral."""

    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))
