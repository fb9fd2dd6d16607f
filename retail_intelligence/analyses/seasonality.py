"""Seasonal trend detection over a monthly revenue series.

Each month's seasonal index is its value divided by the mean across all
months in the series: an index above 1 marks a stronger-than-average month.
The overall direction comes from the sign of the least-squares slope over the
month sequence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from retail_intelligence.foundation.records import InsufficientData, round_half_up
from retail_intelligence.foundation.timeseries import MonthPoint
from retail_intelligence.foundation.trend import fit_trend, mean, population_std

logger = logging.getLogger(__name__)

# Minimum number of orders behind the series
MIN_ORDER_COUNT = 30

# Slopes within ±TREND_EPSILON are reported as flat
TREND_EPSILON = 1e-6

# Months further than this many standard deviations from the mean are flagged
# as peak or low months
SEASONAL_BAND_STD = 0.5


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


@dataclass(frozen=True)
class SeasonalityConfig:
    min_order_count: int = MIN_ORDER_COUNT
    trend_epsilon: float = TREND_EPSILON
    band_std: float = SEASONAL_BAND_STD


@dataclass(frozen=True)
class SeasonalitySummary:
    """Seasonal profile of a monthly series.

    Attributes
    ----------
    monthly_index:
        ``YYYY-MM`` -> value / mean, in chronological order; all 0 when the
        mean is not positive
    peak_month:
        Month with the highest value (earliest wins ties)
    trough_month:
        Month with the lowest value (earliest wins ties)
    trend_direction:
        Sign of the least-squares slope over the months
    trend_slope:
        The fitted slope in value units per month
    average_value:
        Mean value across months
    peak_months:
        Months more than ``band_std`` standard deviations above the mean
    low_months:
        Months more than ``band_std`` standard deviations below the mean
    seasonality_strength:
        Coefficient of variation (std / mean), 0 when the mean is not positive
    """

    monthly_index: dict[str, float]
    peak_month: str
    trough_month: str
    trend_direction: TrendDirection
    trend_slope: float = 0.0
    average_value: float = 0.0
    peak_months: list[str] = field(default_factory=list)
    low_months: list[str] = field(default_factory=list)
    seasonality_strength: float = 0.0

    @property
    def has_seasonal(self) -> bool:
        return bool(self.peak_months or self.low_months)

    def as_dict(self) -> dict[str, object]:
        return {
            "monthlyIndex": dict(self.monthly_index),
            "peakMonth": self.peak_month,
            "troughMonth": self.trough_month,
            "trendDirection": self.trend_direction.value,
            "trendSlope": self.trend_slope,
            "averageValue": round_half_up(self.average_value),
            "peakMonths": list(self.peak_months),
            "lowMonths": list(self.low_months),
            "seasonalityStrength": self.seasonality_strength,
            "hasSeasonal": self.has_seasonal,
        }


def detect_seasonality(
    series: Sequence[MonthPoint],
    config: SeasonalityConfig = SeasonalityConfig(),
) -> SeasonalitySummary | InsufficientData:
    """Compute seasonal indices and trend direction for a monthly series.

    Parameters
    ----------
    series:
        Monthly points, in any order. Points sharing a month are merged by
        summing value and count. The ``count`` fields must add up to at least
        ``config.min_order_count``.
    config:
        Order threshold, flat-trend epsilon and peak/low band width.

    Returns
    -------
    SeasonalitySummary | InsufficientData

    Examples
    --------
    >>> months = [
    ...     MonthPoint("2024-01", 100.0, 10),
    ...     MonthPoint("2024-02", 200.0, 10),
    ...     MonthPoint("2024-03", 300.0, 10),
    ... ]
    >>> summary = detect_seasonality(months)
    >>> summary.monthly_index
    {'2024-01': 0.5, '2024-02': 1.0, '2024-03': 1.5}
    >>> summary.peak_month, summary.trough_month, summary.trend_direction.value
    ('2024-03', '2024-01', 'up')
    """
    total_orders = sum(point.count for point in series)
    if total_orders < config.min_order_count or not series:
        logger.info(
            f"Seasonality skipped: {total_orders} orders, {config.min_order_count} required"
        )
        return InsufficientData(
            reason="Insufficient data for seasonal analysis",
            required=config.min_order_count,
            available=total_orders,
        )

    merged: dict[str, float] = {}
    for point in sorted(series, key=lambda point: point.month):
        merged[point.month] = merged.get(point.month, 0.0) + float(point.value)
    months = list(merged)
    values = list(merged.values())
    overall_mean = mean(values)

    # Indices are only defined against a positive mean
    monthly_index = {
        month: value / overall_mean if overall_mean > 0 else 0.0
        for month, value in merged.items()
    }
    peak_month = months[values.index(max(values))]
    trough_month = months[values.index(min(values))]

    slope = fit_trend(values).slope
    if slope > config.trend_epsilon:
        direction = TrendDirection.UP
    elif slope < -config.trend_epsilon:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.FLAT

    spread = population_std(values)
    upper = overall_mean + config.band_std * spread
    lower = overall_mean - config.band_std * spread
    peak_months = [m for m, v in zip(months, values) if v > upper]
    low_months = [m for m, v in zip(months, values) if v < lower]
    strength = round_half_up(spread / overall_mean) if overall_mean > 0 else 0.0

    logger.debug(
        f"Seasonality over {len(months)} months: peak={peak_month}, "
        f"trough={trough_month}, slope={slope:.4f}"
    )
    return SeasonalitySummary(
        monthly_index=monthly_index,
        peak_month=peak_month,
        trough_month=trough_month,
        trend_direction=direction,
        trend_slope=slope,
        average_value=overall_mean,
        peak_months=peak_months,
        low_months=low_months,
        seasonality_strength=strength,
    )
