"""Pandas DataFrame adapters for retail intelligence components."""

from .series import (
    series_to_dataframe,
    dataframe_to_time_points,
    forecast_to_dataframe,
    forecast_demand_df,
)
from .segmentation import (
    rfm_results_to_dataframe,
    dataframe_to_customer_profiles,
    segment_customers_df,
)
from .products import (
    dataframe_to_product_performance,
    classifications_to_dataframe,
    replenishment_to_dataframe,
    classify_portfolio_df,
)

__all__ = [
    # Series and forecast adapters
    "series_to_dataframe",
    "dataframe_to_time_points",
    "forecast_to_dataframe",
    "forecast_demand_df",
    # Segmentation adapters
    "rfm_results_to_dataframe",
    "dataframe_to_customer_profiles",
    "segment_customers_df",
    # Product adapters
    "dataframe_to_product_performance",
    "classifications_to_dataframe",
    "replenishment_to_dataframe",
    "classify_portfolio_df",
]
