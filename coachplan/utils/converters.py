"""Type conversion helpers used across the coachplan codebase."""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional
from uuid import UUID

KG_PER_LB = 0.453592

_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def to_float(value: Any) -> Optional[float]:
    """Convert ``value`` to a finite ``float`` where possible.

    Strings are read like ``parseFloat``: the leading number wins, so
    ``"60kg"`` yields 60.0. NaN and infinities yield ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip())
        if match is None:
            return None
        result = float(match.group(0))
    else:
        try:
            result = float(value)
        except (TypeError, ValueError):
            return None
    return result if math.isfinite(result) else None


def round_half_up(value: float, places: int = 3) -> float:
    """Round the way a PostgreSQL ``NUMERIC`` column of that scale stores it."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def to_int(value: Any) -> Optional[int]:
    """Convert ``value`` to ``int``; strings are parsed leniently like ``parseInt``.

    ``"8 reps"`` yields 8, ``"abc"`` and ``""`` yield ``None``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    if isinstance(value, str):
        stripped = value.strip()
        digits = ""
        for index, char in enumerate(stripped):
            if char.isdigit() or (index == 0 and char in "+-"):
                digits += char
            else:
                break
        try:
            return int(digits)
        except ValueError:
            return None
    return None


def to_date(value: Any) -> Optional[date]:
    """Best-effort conversion of common date representations to ``date``."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            return date.fromisoformat(stripped[:10])
        except ValueError:
            return None
    return None


def to_id(value: Any) -> Optional[str]:
    """Normalise a storage identifier (``UUID`` or text) to ``str``."""

    if value is None:
        return None
    if isinstance(value, UUID):
        return str(value)
    return str(value).strip() or None


def lb_to_kg(value: float) -> float:
    return value * KG_PER_LB
