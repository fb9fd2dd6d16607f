"""Least-squares trend fitting and dispersion helpers shared by the analyses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from scipy import stats


@dataclass(frozen=True)
class TrendLine:
    """Ordinary least-squares line ``value = slope * index + intercept``."""

    slope: float
    intercept: float

    def predict(self, index: float) -> float:
        return self.slope * index + self.intercept


def fit_trend(values: Sequence[float]) -> TrendLine:
    """Fit an OLS line using each value's position (0..n-1) as x.

    With fewer than two observations there is no slope to estimate; the line
    is flat through the single value (or zero for empty input).

    Examples
    --------
    >>> line = fit_trend([10.0, 12.0, 14.0, 16.0])
    >>> round(line.slope, 6), round(line.intercept, 6)
    (2.0, 10.0)
    """
    y = np.asarray(values, dtype=float)
    if y.size == 0:
        return TrendLine(slope=0.0, intercept=0.0)
    if y.size == 1:
        return TrendLine(slope=0.0, intercept=float(y[0]))

    x = np.arange(y.size, dtype=float)
    result = stats.linregress(x, y)
    return TrendLine(slope=float(result.slope), intercept=float(result.intercept))


def population_std(values: Sequence[float]) -> float:
    """Population standard deviation (ddof=0); 0 for empty input."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=float)))


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(np.asarray(values, dtype=float)))
