"""Pandas DataFrame adapters for RFM segmentation."""

from typing import List, Sequence

import pandas as pd  # type: ignore

from retail_intelligence.analyses.segmentation import (
    CustomerProfile,
    RFMResult,
    segment_customers,
)

RESULT_COLUMNS = [
    "customer_id",
    "recency_score",
    "frequency_score",
    "monetary_score",
    "segment",
    "churn_risk_score",
    "recency_days",
    "frequency",
    "monetary",
]


def rfm_results_to_dataframe(results: Sequence[RFMResult]) -> pd.DataFrame:
    """Convert RFM results to a DataFrame.

    Args:
        results: Output of segment_customers

    Returns:
        DataFrame with one row per customer, segment as its string value

    Example:
        >>> results = segment_customers(profiles)
        >>> df = rfm_results_to_dataframe(results)
        >>> df.groupby("segment")["monetary"].sum()
    """
    if not results:
        return pd.DataFrame(columns=RESULT_COLUMNS)

    rows = [
        {
            "customer_id": r.customer_id,
            "recency_score": r.recency_score,
            "frequency_score": r.frequency_score,
            "monetary_score": r.monetary_score,
            "segment": r.segment.value,
            "churn_risk_score": r.churn_risk_score,
            "recency_days": r.recency_days,
            "frequency": r.frequency,
            "monetary": r.monetary,
        }
        for r in results
    ]
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def dataframe_to_customer_profiles(
    df: pd.DataFrame,
    customer_id_col: str = "customer_id",
    recency_col: str = "recency_days",
    frequency_col: str = "frequency",
    monetary_col: str = "monetary",
) -> List[CustomerProfile]:
    """Convert a DataFrame to CustomerProfiles.

    Null or malformed numbers become 0 rather than raising, matching the
    lenient handling of store records.

    Args:
        df: DataFrame with one row per customer
        *_col: Column name mappings for flexibility

    Returns:
        Profiles in DataFrame row order

    Raises:
        ValueError: If DataFrame missing required columns
    """
    required = {customer_id_col, recency_col, frequency_col, monetary_col}
    missing_cols = required - set(df.columns)
    if missing_cols:
        raise ValueError(f"DataFrame missing required columns: {missing_cols}")

    return [
        CustomerProfile.from_record(
            {
                "customer_id": record[customer_id_col],
                "recency_days": record[recency_col],
                "frequency": record[frequency_col],
                "monetary": record[monetary_col],
            }
        )
        for record in df.to_dict("records")
    ]


def segment_customers_df(df: pd.DataFrame, **column_names: str) -> pd.DataFrame:
    """Segment customers held in a DataFrame.

    Convenience function combining conversion and segmentation. Keyword
    arguments are forwarded to dataframe_to_customer_profiles.
    """
    profiles = dataframe_to_customer_profiles(df, **column_names)
    return rfm_results_to_dataframe(segment_customers(profiles))
