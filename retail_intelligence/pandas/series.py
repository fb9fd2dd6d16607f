"""Pandas DataFrame adapters for time series and demand forecasts."""

from typing import List, Union

import pandas as pd  # type: ignore

from retail_intelligence.analyses.forecast import (
    DEFAULT_HORIZON_DAYS,
    ForecastPoint,
    forecast_demand,
)
from retail_intelligence.foundation.records import InsufficientData, coerce_float
from retail_intelligence.foundation.timeseries import MonthPoint, TimePoint


def series_to_dataframe(points: List[Union[TimePoint, MonthPoint]]) -> pd.DataFrame:
    """Convert an aggregated series to a DataFrame.

    Args:
        points: Daily or monthly points from the aggregator

    Returns:
        DataFrame with columns date (or month), value, count

    Example:
        >>> daily = aggregate_daily(orders, exclude_statuses=("cancelled",))
        >>> series_to_dataframe(daily).plot(x="date", y="value")
    """
    if not points:
        return pd.DataFrame(columns=["date", "value", "count"])

    if isinstance(points[0], MonthPoint):
        rows = [{"month": p.month, "value": p.value, "count": p.count} for p in points]
    else:
        rows = [
            {"date": pd.Timestamp(p.date), "value": p.value, "count": p.count}
            for p in points
        ]
    return pd.DataFrame(rows)


def dataframe_to_time_points(
    df: pd.DataFrame, date_col: str = "date", value_col: str = "value"
) -> List[TimePoint]:
    """Convert a DataFrame of daily observations to TimePoints.

    Rows with an unreadable date are dropped; unreadable values become 0.

    Args:
        df: DataFrame with one row per observed day
        date_col: Column holding the calendar day
        value_col: Column holding the observed value

    Returns:
        TimePoints sorted ascending by date

    Raises:
        ValueError: If DataFrame is missing required columns
    """
    missing_cols = {date_col, value_col} - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    if df.empty:
        return []

    dates = pd.to_datetime(df[date_col], errors="coerce")
    points = [
        TimePoint(date=ts.date(), value=coerce_float(value))
        for ts, value in zip(dates, df[value_col])
        if not pd.isna(ts)
    ]
    points.sort(key=lambda p: p.date)
    return points


def forecast_to_dataframe(forecast: List[ForecastPoint]) -> pd.DataFrame:
    """Convert forecast points to a DataFrame.

    Args:
        forecast: Output of forecast_demand

    Returns:
        DataFrame with columns date, predicted_value, confidence_lower,
        confidence_upper
    """
    columns = ["date", "predicted_value", "confidence_lower", "confidence_upper"]
    if not forecast:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(
        [
            {
                "date": pd.Timestamp(p.date),
                "predicted_value": p.predicted_value,
                "confidence_lower": p.confidence_lower,
                "confidence_upper": p.confidence_upper,
            }
            for p in forecast
        ],
        columns=columns,
    )


def forecast_demand_df(
    df: pd.DataFrame,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    date_col: str = "date",
    value_col: str = "value",
) -> Union[pd.DataFrame, InsufficientData]:
    """Forecast directly from a DataFrame of daily observations.

    Convenience function combining conversion and forecasting.

    Returns:
        Forecast DataFrame, or the InsufficientData marker when the history
        is too short
    """
    result = forecast_demand(
        dataframe_to_time_points(df, date_col=date_col, value_col=value_col),
        horizon_days=horizon_days,
    )
    if isinstance(result, InsufficientData):
        return result
    return forecast_to_dataframe(result)
