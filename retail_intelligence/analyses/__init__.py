"""Business intelligence analyses over store snapshots.

Every analysis is a pure function of the records it is given:

1. Demand forecast - linear trend extrapolation of a daily series
2. Seasonality - monthly seasonal indices and trend direction
3. Customer segmentation - RFM quintile scores, segments and churn risk
4. Inventory optimisation - safety stock, reorder point and action
5. Product portfolio - growth / margin classification
"""

from .forecast import ForecastConfig, ForecastPoint, forecast_demand
from .inventory import (
    InventoryAction,
    InventoryConfig,
    InventoryRecommendation,
    ReplenishmentPlan,
    optimize_inventory,
    plan_replenishment,
)
from .portfolio import (
    PortfolioCategory,
    ProductClassification,
    ProductPerformance,
    classify_portfolio,
)
from .seasonality import (
    SeasonalityConfig,
    SeasonalitySummary,
    TrendDirection,
    detect_seasonality,
)
from .segmentation import (
    ChurnAlert,
    CustomerProfile,
    CustomerSegment,
    RFMResult,
    SegmentationConfig,
    build_customer_profiles,
    churn_watchlist,
    segment_customers,
    summarize_segments,
)

__all__ = [
    # Forecast
    "ForecastConfig",
    "ForecastPoint",
    "forecast_demand",
    # Seasonality
    "SeasonalityConfig",
    "SeasonalitySummary",
    "TrendDirection",
    "detect_seasonality",
    # Segmentation
    "ChurnAlert",
    "CustomerProfile",
    "CustomerSegment",
    "RFMResult",
    "SegmentationConfig",
    "build_customer_profiles",
    "churn_watchlist",
    "segment_customers",
    "summarize_segments",
    # Inventory
    "InventoryAction",
    "InventoryConfig",
    "InventoryRecommendation",
    "ReplenishmentPlan",
    "optimize_inventory",
    "plan_replenishment",
    # Portfolio
    "PortfolioCategory",
    "ProductClassification",
    "ProductPerformance",
    "classify_portfolio",
]
