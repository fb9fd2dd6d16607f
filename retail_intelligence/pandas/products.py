"""Pandas DataFrame adapters for inventory plans and portfolio classification."""

from typing import List, Sequence

import pandas as pd  # type: ignore

from retail_intelligence.analyses.inventory import ReplenishmentPlan
from retail_intelligence.analyses.portfolio import (
    ProductClassification,
    ProductPerformance,
    classify_portfolio,
)

CLASSIFICATION_COLUMNS = [
    "product_id",
    "name",
    "category",
    "growth_rate",
    "profit_margin",
    "recommendation",
]

PLAN_COLUMNS = [
    "product_id",
    "name",
    "current_stock",
    "optimal_stock",
    "reorder_point",
    "safety_stock",
    "avg_daily_sales",
    "action",
]


def dataframe_to_product_performance(
    df: pd.DataFrame,
    product_id_col: str = "product_id",
    current_col: str = "current_period_sales",
    previous_col: str = "previous_period_sales",
    revenue_col: str = "revenue",
    cost_col: str = "cost",
) -> List[ProductPerformance]:
    """Convert a DataFrame to ProductPerformance inputs.

    An optional ``name`` column is passed through. Null or malformed numbers
    become 0.

    Raises:
        ValueError: If DataFrame missing required columns
    """
    required = {product_id_col, current_col, previous_col, revenue_col, cost_col}
    missing_cols = required - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    products = []
    for record in df.to_dict("records"):
        name = record.get("name")
        products.append(
            ProductPerformance.from_record(
                {
                    "product_id": record[product_id_col],
                    "current_period_sales": record[current_col],
                    "previous_period_sales": record[previous_col],
                    "revenue": record[revenue_col],
                    "cost": record[cost_col],
                    "name": None if pd.isna(name) else name,
                }
            )
        )
    return products


def classifications_to_dataframe(
    classifications: Sequence[ProductClassification],
) -> pd.DataFrame:
    """Convert portfolio classifications to a DataFrame."""
    rows = [
        {
            "product_id": c.product_id,
            "name": c.name,
            "category": c.category.value,
            "growth_rate": c.growth_rate,
            "profit_margin": c.profit_margin,
            "recommendation": c.recommendation,
        }
        for c in classifications
    ]
    return pd.DataFrame(rows, columns=CLASSIFICATION_COLUMNS)


def replenishment_to_dataframe(plans: Sequence[ReplenishmentPlan]) -> pd.DataFrame:
    """Convert replenishment plans to a DataFrame, keeping their urgency order."""
    rows = [
        {
            "product_id": plan.product_id,
            "name": plan.name,
            "current_stock": plan.recommendation.current_stock,
            "optimal_stock": plan.recommendation.optimal_stock,
            "reorder_point": plan.recommendation.reorder_point,
            "safety_stock": plan.recommendation.safety_stock,
            "avg_daily_sales": plan.recommendation.avg_daily_sales,
            "action": plan.recommendation.action.value,
        }
        for plan in plans
    ]
    return pd.DataFrame(rows, columns=PLAN_COLUMNS)


def classify_portfolio_df(df: pd.DataFrame, **column_names: str) -> pd.DataFrame:
    """Classify products held in a DataFrame.

    Convenience function combining conversion and classification.
    """
    products = dataframe_to_product_performance(df, **column_names)
    return classifications_to_dataframe(classify_portfolio(products))
