"""Time-series aggregation of raw order records.

Orders are bucketed by calendar day or calendar month. Only keys that
actually occur in the input produce a point; missing days are not
zero-filled, so downstream analyses must treat the series as a set of known
observations rather than a dense calendar.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Union

from retail_intelligence.foundation.records import (
    AMOUNT_KEYS,
    TIMESTAMP_KEYS,
    coerce_float,
    coerce_non_negative_float,
    coerce_timestamp,
    first_present,
)

logger = logging.getLogger(__name__)

QUANTITY_KEYS = ("quantity", "qty")


class TimeGrain(str, Enum):
    """Supported bucketing grains."""

    DAY = "day"
    MONTH = "month"


class SeriesMetric(str, Enum):
    """What a bucket's ``value`` measures."""

    REVENUE = "revenue"
    ORDERS = "orders"


@dataclass(frozen=True)
class TimePoint:
    """Aggregated value for a single calendar day.

    Attributes
    ----------
    date:
        Calendar day of the bucket
    value:
        Summed amount (or record count for the orders metric)
    count:
        Number of records that fell into the bucket
    """

    date: date
    value: float
    count: int = 1

    def as_dict(self) -> dict[str, object]:
        return {"date": self.date.isoformat(), "value": self.value, "count": self.count}


@dataclass(frozen=True)
class MonthPoint:
    """Aggregated value for a calendar month keyed ``YYYY-MM``."""

    month: str
    value: float
    count: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Month count cannot be negative: {self.count} (month={self.month})")

    def as_dict(self) -> dict[str, object]:
        return {"month": self.month, "value": self.value, "count": self.count}


SeriesPoint = Union[TimePoint, MonthPoint]


def month_key(ts: datetime | date) -> str:
    """Return the ``YYYY-MM`` key for a timestamp."""
    return f"{ts.year:04d}-{ts.month:02d}"


def aggregate_series(
    records: Iterable[Mapping[str, Any]],
    grain: TimeGrain | str = TimeGrain.DAY,
    metric: SeriesMetric | str = SeriesMetric.REVENUE,
    exclude_statuses: Collection[str] = (),
    exclude: Callable[[Mapping[str, Any]], bool] | None = None,
) -> list[SeriesPoint]:
    """Bucket dated order records into an ordered daily or monthly series.

    Parameters
    ----------
    records:
        Mappings carrying a timestamp (``occurred_at``/``created_at`` or their
        camelCase forms), an amount (``amount``/``total_amount``) and
        optionally a ``status``.
    grain:
        ``day`` produces TimePoints, ``month`` produces MonthPoints.
    metric:
        ``revenue`` sums amounts; ``orders`` counts records.
    exclude_statuses:
        Records whose ``status`` is in this collection are dropped
        (e.g. ``("cancelled",)``).
    exclude:
        Optional predicate; records for which it returns True are dropped.

    Returns
    -------
    list[TimePoint] | list[MonthPoint]
        One point per key present, sorted ascending by key.

    Examples
    --------
    >>> orders = [
    ...     {"created_at": "2024-03-02T10:00:00Z", "total_amount": "20.00"},
    ...     {"created_at": "2024-03-01T09:00:00Z", "total_amount": 5},
    ...     {"created_at": "2024-03-02T18:00:00Z", "total_amount": 7.5},
    ... ]
    >>> [(p.date.isoformat(), p.value, p.count) for p in aggregate_series(orders)]
    [('2024-03-01', 5.0, 1), ('2024-03-02', 27.5, 2)]
    """
    grain = TimeGrain(grain)
    metric = SeriesMetric(metric)
    excluded = set(exclude_statuses)

    # Sum in timestamp order, whatever order the store returned.
    dated: list[tuple[datetime, float]] = []
    skipped = 0
    for idx, record in enumerate(records):
        if excluded and record.get("status") in excluded:
            continue
        if exclude is not None and exclude(record):
            continue
        ts = coerce_timestamp(first_present(record, TIMESTAMP_KEYS))
        if ts is None:
            skipped += 1
            logger.warning(f"Skipping record at index {idx}: unreadable timestamp")
            continue
        dated.append((ts, coerce_float(first_present(record, AMOUNT_KEYS))))

    if skipped:
        logger.info(f"Skipped {skipped} records without a usable timestamp")

    dated.sort(key=lambda item: _sort_key(item[0]))

    buckets: dict[object, list[float]] = {}
    for ts, amount in dated:
        key = ts.date() if grain is TimeGrain.DAY else month_key(ts)
        bucket = buckets.setdefault(key, [0.0, 0])
        bucket[0] += amount
        bucket[1] += 1

    points: list[SeriesPoint] = []
    for key in sorted(buckets):
        total, count = buckets[key]
        value = float(count) if metric is SeriesMetric.ORDERS else total
        if grain is TimeGrain.DAY:
            points.append(TimePoint(date=key, value=value, count=int(count)))
        else:
            points.append(MonthPoint(month=key, value=value, count=int(count)))
    return points


def aggregate_daily(
    records: Iterable[Mapping[str, Any]], **kwargs: Any
) -> list[TimePoint]:
    """Shorthand for :func:`aggregate_series` with ``grain="day"``."""
    return aggregate_series(records, grain=TimeGrain.DAY, **kwargs)


def aggregate_monthly(
    records: Iterable[Mapping[str, Any]], **kwargs: Any
) -> list[MonthPoint]:
    """Shorthand for :func:`aggregate_series` with ``grain="month"``."""
    return aggregate_series(records, grain=TimeGrain.MONTH, **kwargs)


def aggregate_daily_quantities(
    items: Iterable[Mapping[str, Any]],
    exclude_statuses: Collection[str] = ("cancelled",),
    since: datetime | date | None = None,
) -> list[float]:
    """Build the per-day units-sold sample for one product.

    ``items`` are order lines with a ``quantity`` and the parent order's
    timestamp and status. Days without sales are absent from the sample,
    matching what the storefront has always fed the inventory optimizer.
    """
    series = aggregate_series(
        (
            {
                "occurred_at": first_present(item, TIMESTAMP_KEYS),
                "amount": coerce_non_negative_float(first_present(item, QUANTITY_KEYS)),
                "status": item.get("status"),
            }
            for item in items
        ),
        grain=TimeGrain.DAY,
        exclude_statuses=exclude_statuses,
        exclude=_before(since) if since is not None else None,
    )
    return [point.value for point in series]


def _before(since: datetime | date) -> Callable[[Mapping[str, Any]], bool]:
    cutoff = since.date() if isinstance(since, datetime) else since

    def predicate(record: Mapping[str, Any]) -> bool:
        ts = coerce_timestamp(first_present(record, TIMESTAMP_KEYS))
        return ts is not None and ts.date() < cutoff

    return predicate


def _sort_key(ts: datetime) -> tuple[date, float]:
    # Aware and naive timestamps cannot be compared directly; order by the
    # calendar day first and the wall-clock time second.
    return ts.date(), ts.hour * 3600 + ts.minute * 60 + ts.second + ts.microsecond / 1e6
