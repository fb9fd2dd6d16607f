"""Demand forecasting by linear trend extrapolation.

The forecaster fits an ordinary least-squares line through a daily series,
using each observation's position in the sorted sequence as the independent
variable, and projects it forward one calendar day at a time. Projections
below zero are clamped because demand cannot be negative.

This is a simple trend model. It has no seasonal component and
no smoothing; gaps between observed days are not interpolated, so a sparse
series is treated as if its observations were consecutive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Sequence

from retail_intelligence.foundation.records import InsufficientData, round_half_up
from retail_intelligence.foundation.timeseries import TimePoint
from retail_intelligence.foundation.trend import fit_trend, population_std

logger = logging.getLogger(__name__)

# Minimum number of observed days before a trend is considered meaningful
MIN_HISTORY_DAYS = 7

# Default forecast horizon used by the storefront dashboard
DEFAULT_HORIZON_DAYS = 30

# z-score for the ~95% band drawn around each projection
CONFIDENCE_Z = 1.96


@dataclass(frozen=True)
class ForecastConfig:
    """Tunable thresholds for :func:`forecast_demand`.

    Attributes
    ----------
    min_history_days:
        Fewer observations than this yield :class:`InsufficientData`
    confidence_z:
        Width of the confidence band in standard deviations of the history
    """

    min_history_days: int = MIN_HISTORY_DAYS
    confidence_z: float = CONFIDENCE_Z


@dataclass(frozen=True)
class ForecastPoint:
    """Projected value for one future day.

    Attributes
    ----------
    date:
        Calendar day being forecast
    predicted_value:
        Trend projection, clamped at zero
    confidence_lower:
        Lower edge of the band, clamped at zero
    confidence_upper:
        Upper edge of the band
    """

    date: date
    predicted_value: float
    confidence_lower: float
    confidence_upper: float

    def __post_init__(self) -> None:
        if self.predicted_value < 0:
            raise ValueError(
                f"Predicted value cannot be negative: {self.predicted_value} (date={self.date})"
            )
        if self.confidence_lower < 0:
            raise ValueError(
                f"Confidence lower bound cannot be negative: {self.confidence_lower} (date={self.date})"
            )

    def as_dict(self) -> dict[str, object]:
        return {
            "date": self.date.isoformat(),
            "predictedValue": round_half_up(self.predicted_value),
            "confidenceLower": round_half_up(self.confidence_lower),
            "confidenceUpper": round_half_up(self.confidence_upper),
        }


def forecast_demand(
    series: Sequence[TimePoint],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    config: ForecastConfig = ForecastConfig(),
) -> list[ForecastPoint] | InsufficientData:
    """Extrapolate a daily series ``horizon_days`` into the future.

    Parameters
    ----------
    series:
        Observed daily points. They are sorted by date here, so callers may
        pass them in any order.
    horizon_days:
        Number of consecutive days after the last observed date to forecast.
        Zero yields an empty list.
    config:
        History threshold and confidence band width.

    Returns
    -------
    list[ForecastPoint] | InsufficientData
        ``horizon_days`` points dated last observed date + 1, + 2, ...; or an
        :class:`InsufficientData` marker when the series is too short.

    Raises
    ------
    ValueError
        If ``horizon_days`` is negative.

    Examples
    --------
    >>> from datetime import date, timedelta
    >>> start = date(2024, 1, 1)
    >>> history = [TimePoint(start + timedelta(days=i), 2.0 * i + 10) for i in range(7)]
    >>> points = forecast_demand(history, horizon_days=2)
    >>> [(p.date.isoformat(), round(p.predicted_value, 6)) for p in points]
    [('2024-01-08', 24.0), ('2024-01-09', 26.0)]
    """
    if horizon_days < 0:
        raise ValueError(f"horizon_days cannot be negative: {horizon_days}")

    n = len(series)
    if n < config.min_history_days:
        logger.info(
            f"Forecast skipped: {n} days of history, {config.min_history_days} required"
        )
        return InsufficientData(
            reason=(
                "Insufficient data for forecasting "
                f"(minimum {config.min_history_days} days required)"
            ),
            required=config.min_history_days,
            available=n,
        )

    ordered = sorted(series, key=lambda point: point.date)
    values = [float(point.value) for point in ordered]

    line = fit_trend(values)
    band = config.confidence_z * population_std(values)
    last_date = ordered[-1].date
    logger.debug(
        f"Fitted demand trend over {n} days: slope={line.slope:.4f}, "
        f"intercept={line.intercept:.4f}, band=±{band:.4f}"
    )

    forecast: list[ForecastPoint] = []
    for i in range(1, horizon_days + 1):
        projected = line.predict(n - 1 + i)
        forecast.append(
            ForecastPoint(
                date=last_date + timedelta(days=i),
                predicted_value=max(0.0, projected),
                confidence_lower=max(0.0, projected - band),
                confidence_upper=max(0.0, projected + band),
            )
        )
    return forecast
