"""Lenient coercion of raw store records.

Rows handed to the engine come straight out of the order, customer and
product stores. Fields may be missing, strings, ``None`` or ``NaN``; the
helpers here turn them into safe numeric and temporal values instead of
raising, so a single bad row never aborts an analysis.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Mapping, Sequence

# Alternative keys accepted for the same logical field. Stores emit snake_case
# while the HTTP layer and JSON fixtures use camelCase.
TIMESTAMP_KEYS = ("occurred_at", "occurredAt", "created_at", "createdAt", "date")
AMOUNT_KEYS = ("amount", "total_amount", "totalAmount", "value")


@dataclass(frozen=True)
class InsufficientData:
    """Marker returned when there is not enough history to compute a result.

    Attributes
    ----------
    reason:
        Human-readable explanation suitable for a "not enough data yet" message
    required:
        Minimum number of observations the computation needs
    available:
        Number of observations actually supplied
    """

    reason: str
    required: int
    available: int

    def __bool__(self) -> bool:
        return False

    def as_dict(self) -> dict[str, object]:
        return {
            "insufficientData": True,
            "reason": self.reason,
            "required": self.required,
            "available": self.available,
        }


def coerce_float(value: Any, default: float = 0.0) -> float:
    """Convert ``value`` to a finite float, falling back to ``default``.

    Examples
    --------
    >>> coerce_float("12.50")
    12.5
    >>> coerce_float(None)
    0.0
    >>> coerce_float(float("nan"), default=1.0)
    1.0
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        value = float(value)
    try:
        result = float(value)
    except (TypeError, ValueError, InvalidOperation):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def coerce_non_negative_float(value: Any) -> float:
    return max(0.0, coerce_float(value))


def coerce_non_negative_int(value: Any) -> int:
    """Convert ``value`` to an int >= 0, truncating fractional parts."""
    return max(0, int(coerce_float(value)))


def coerce_timestamp(value: Any, assume_utc: bool = False) -> datetime | None:
    """Parse ``value`` into a datetime, or return None when it cannot be read.

    Accepts datetimes, dates and ISO-8601 strings (a trailing ``Z`` is read as
    UTC). With ``assume_utc`` the result is always timezone-aware UTC: naive
    values are taken to be UTC and aware values are converted, so timestamps
    from differently typed columns can be compared.
    """
    ts = _parse_timestamp(value)
    if ts is None or not assume_utc:
        return ts
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _parse_timestamp(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def coerce_date(value: Any) -> date | None:
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    ts = coerce_timestamp(value)
    return ts.date() if ts is not None else None


def first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the value of the first key in ``keys`` present in ``record``."""
    for key in keys:
        if key in record and record[key] is not None:
            return record[key]
    return None


def round_half_up(value: float, places: int = 2) -> float:
    """Round like a cashier does (0.125 -> 0.13), returning a float."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
