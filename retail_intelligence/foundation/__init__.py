"""Foundational building blocks for the retail intelligence engine.

This package exposes lenient record coercion, the time-series aggregator
that turns raw orders into daily or monthly series, and the least-squares
trend fitting shared by the forecasting and seasonality analyses.
"""

from .records import (
    InsufficientData,
    coerce_date,
    coerce_float,
    coerce_non_negative_float,
    coerce_non_negative_int,
    coerce_timestamp,
)
from .timeseries import (
    MonthPoint,
    SeriesMetric,
    TimeGrain,
    TimePoint,
    aggregate_daily,
    aggregate_daily_quantities,
    aggregate_monthly,
    aggregate_series,
    month_key,
)
from .trend import TrendLine, fit_trend, mean, population_std

__all__ = [
    "InsufficientData",
    "coerce_date",
    "coerce_float",
    "coerce_non_negative_float",
    "coerce_non_negative_int",
    "coerce_timestamp",
    "MonthPoint",
    "SeriesMetric",
    "TimeGrain",
    "TimePoint",
    "aggregate_daily",
    "aggregate_daily_quantities",
    "aggregate_monthly",
    "aggregate_series",
    "month_key",
    "TrendLine",
    "fit_trend",
    "mean",
    "population_std",
]
