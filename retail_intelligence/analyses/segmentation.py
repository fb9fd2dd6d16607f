"""RFM (Recency-Frequency-Monetary) customer segmentation and churn risk.

Customers are scored 1-5 on each dimension by their quintile position within
the population handed in:
- Recency: fewer days since the last purchase scores higher
- Frequency: more completed orders scores higher
- Monetary: more total spend scores higher

A fixed rule table maps the three scores to a value segment, and a weighted
blend of the recency and frequency scores gives a churn-risk score in [0, 1].
Scores are relative to the current population and recomputed on every call.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Sequence

import pandas as pd  # Used for population ranking

from retail_intelligence.foundation.records import (
    AMOUNT_KEYS,
    TIMESTAMP_KEYS,
    coerce_float,
    coerce_non_negative_float,
    coerce_non_negative_int,
    coerce_timestamp,
    first_present,
    round_half_up,
)

logger = logging.getLogger(__name__)

SCORE_BINS = 5

# Churn risk weights, summing to 1
RECENCY_CHURN_WEIGHT = 0.6
FREQUENCY_CHURN_WEIGHT = 0.4

# Segment thresholds (inclusive)
HIGH_SCORE = 4
MID_SCORE = 3
LOW_SCORE = 2

# Churn watchlist defaults
WATCHLIST_MIN_RISK = 0.5
DISCOUNT_OFFER_RISK = 0.7


class CustomerSegment(str, Enum):
    CHAMPIONS = "champions"
    LOYAL = "loyal"
    POTENTIAL = "potential"
    AT_RISK = "at_risk"
    LOST = "lost"


@dataclass(frozen=True)
class SegmentationConfig:
    """Scoring and churn weighting used by :func:`segment_customers`.

    Attributes
    ----------
    bins:
        Number of quantile bins per dimension (5 = quintiles)
    recency_weight:
        Weight of the normalised recency term in churn risk
    frequency_weight:
        Weight of the normalised frequency term in churn risk
    high_score, mid_score, low_score:
        Inclusive thresholds used by the segment rule table
    """

    bins: int = SCORE_BINS
    recency_weight: float = RECENCY_CHURN_WEIGHT
    frequency_weight: float = FREQUENCY_CHURN_WEIGHT
    high_score: int = HIGH_SCORE
    mid_score: int = MID_SCORE
    low_score: int = LOW_SCORE

    def __post_init__(self) -> None:
        if self.bins < 2:
            raise ValueError(f"bins must be at least 2: {self.bins}")


@dataclass(frozen=True)
class CustomerProfile:
    """Pre-aggregated purchase history for one customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    recency_days:
        Days since the last completed order (>= 0)
    frequency:
        Number of completed orders (>= 0)
    monetary:
        Total spend across completed orders (>= 0)
    """

    customer_id: str
    recency_days: float
    frequency: int
    monetary: float

    def __post_init__(self) -> None:
        if self.recency_days < 0:
            raise ValueError(
                f"Recency cannot be negative: {self.recency_days} (customer_id={self.customer_id})"
            )
        if self.frequency < 0:
            raise ValueError(
                f"Frequency cannot be negative: {self.frequency} (customer_id={self.customer_id})"
            )
        if self.monetary < 0:
            raise ValueError(
                f"Monetary value cannot be negative: {self.monetary} (customer_id={self.customer_id})"
            )

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "CustomerProfile":
        """Build a profile from a loosely typed mapping.

        Accepts snake_case or camelCase keys. Missing or malformed numbers
        become 0 and negatives are clamped to 0.
        """
        return cls(
            customer_id=str(first_present(record, ("customer_id", "customerId", "id"))),
            recency_days=coerce_non_negative_float(
                first_present(record, ("recency_days", "recencyDays"))
            ),
            frequency=coerce_non_negative_int(record.get("frequency")),
            monetary=coerce_non_negative_float(record.get("monetary")),
        )


@dataclass(frozen=True)
class RFMResult:
    """Scores, segment and churn risk for one customer.

    Attributes
    ----------
    customer_id:
        Unique customer identifier
    recency_score, frequency_score, monetary_score:
        Quintile scores in [1, 5], 5 being best
    segment:
        Value segment from the rule table
    churn_risk_score:
        Weighted churn risk in [0, 1], rounded to 2 decimals
    recency_days, frequency, monetary:
        The raw profile values the scores were derived from
    """

    customer_id: str
    recency_score: int
    frequency_score: int
    monetary_score: int
    segment: CustomerSegment
    churn_risk_score: float
    recency_days: float = 0.0
    frequency: int = 0
    monetary: float = 0.0

    def __post_init__(self) -> None:
        for score_name, score_value in [
            ("recency_score", self.recency_score),
            ("frequency_score", self.frequency_score),
            ("monetary_score", self.monetary_score),
        ]:
            if score_value < 1:
                raise ValueError(
                    f"{score_name} must be at least 1: {score_value} (customer_id={self.customer_id})"
                )
        if not 0 <= self.churn_risk_score <= 1:
            raise ValueError(
                f"churn_risk_score must be between 0 and 1: {self.churn_risk_score} "
                f"(customer_id={self.customer_id})"
            )

    def as_dict(self) -> dict[str, object]:
        return {
            "customerId": self.customer_id,
            "recencyScore": self.recency_score,
            "frequencyScore": self.frequency_score,
            "monetaryScore": self.monetary_score,
            "segment": self.segment.value,
            "churnRiskScore": self.churn_risk_score,
            "recencyDays": self.recency_days,
            "frequency": self.frequency,
            "monetary": round_half_up(self.monetary),
        }


@dataclass(frozen=True)
class ChurnAlert:
    """A customer flagged for retention outreach."""

    customer_id: str
    segment: CustomerSegment
    churn_risk_score: float
    recency_days: float
    frequency: int
    lifetime_value: float
    recommended_action: str

    def as_dict(self) -> dict[str, object]:
        return {
            "customerId": self.customer_id,
            "segment": self.segment.value,
            "churnRiskScore": self.churn_risk_score,
            "daysSinceLastPurchase": self.recency_days,
            "totalOrders": self.frequency,
            "lifetimeValue": round_half_up(self.lifetime_value),
            "recommendedAction": self.recommended_action,
        }


def quantile_scores(
    values: Sequence[float], bins: int = SCORE_BINS, reverse: bool = False
) -> list[int]:
    """Score each value 1..bins by its rank position in ``values``.

    Tied values share the lowest rank of their group, so equal inputs always
    receive equal scores. The score is ``ceil(rank * bins / n)``; with
    ``reverse`` the scale is flipped so smaller values score higher.

    Examples
    --------
    >>> quantile_scores([10, 20, 30, 40, 50])
    [1, 2, 3, 4, 5]
    >>> quantile_scores([10, 20, 30, 40, 50], reverse=True)
    [5, 4, 3, 2, 1]
    """
    if not values:
        return []
    n = len(values)
    ranks = pd.Series(values, dtype=float).rank(method="min")
    scores = []
    for rank in ranks:
        score = min(bins, max(1, math.ceil(rank * bins / n)))
        scores.append(bins + 1 - score if reverse else score)
    return scores


def assign_segment(
    recency_score: int,
    frequency_score: int,
    monetary_score: int,
    config: SegmentationConfig = SegmentationConfig(),
) -> CustomerSegment:
    """Map RFM scores to a segment; rules are evaluated top to bottom."""
    if recency_score >= config.high_score and frequency_score >= config.high_score:
        return CustomerSegment.CHAMPIONS
    if frequency_score >= config.high_score:
        return CustomerSegment.LOYAL
    if recency_score <= config.low_score and (
        frequency_score >= config.mid_score or monetary_score >= config.mid_score
    ):
        return CustomerSegment.AT_RISK
    if (
        recency_score <= config.low_score
        and frequency_score <= config.low_score
        and monetary_score <= config.low_score
    ):
        return CustomerSegment.LOST
    return CustomerSegment.POTENTIAL


def churn_risk(
    recency_score: int,
    frequency_score: int,
    config: SegmentationConfig = SegmentationConfig(),
) -> float:
    """Blend normalised recency and frequency shortfalls into a [0, 1] risk.

    Examples
    --------
    >>> churn_risk(5, 5)
    0.0
    >>> churn_risk(1, 1)
    1.0
    >>> churn_risk(3, 3)
    0.5
    """
    span = config.bins - 1
    risk = (
        config.recency_weight * (config.bins - recency_score) / span
        + config.frequency_weight * (config.bins - frequency_score) / span
    )
    return round_half_up(min(1.0, max(0.0, risk)))


def segment_customers(
    customers: Iterable[CustomerProfile | Mapping[str, Any]],
    config: SegmentationConfig = SegmentationConfig(),
) -> list[RFMResult]:
    """Score, segment and churn-rate a customer population.

    Parameters
    ----------
    customers:
        :class:`CustomerProfile` objects or mappings accepted by
        :meth:`CustomerProfile.from_record`.
    config:
        Bin count, churn weights and rule thresholds.

    Returns
    -------
    list[RFMResult]
        One result per customer, in input order. Empty input yields an empty
        list.

    Examples
    --------
    >>> profiles = [
    ...     CustomerProfile("C1", recency_days=2, frequency=12, monetary=900.0),
    ...     CustomerProfile("C2", recency_days=200, frequency=1, monetary=20.0),
    ... ]
    >>> [(r.customer_id, r.segment.value) for r in segment_customers(profiles)]
    [('C1', 'loyal'), ('C2', 'at_risk')]
    """
    profiles = [
        c if isinstance(c, CustomerProfile) else CustomerProfile.from_record(c)
        for c in customers
    ]
    if not profiles:
        return []

    recency_scores = quantile_scores(
        [p.recency_days for p in profiles], config.bins, reverse=True
    )
    frequency_scores = quantile_scores([p.frequency for p in profiles], config.bins)
    monetary_scores = quantile_scores([p.monetary for p in profiles], config.bins)

    results: list[RFMResult] = []
    for profile, r, f, m in zip(
        profiles, recency_scores, frequency_scores, monetary_scores
    ):
        results.append(
            RFMResult(
                customer_id=profile.customer_id,
                recency_score=r,
                frequency_score=f,
                monetary_score=m,
                segment=assign_segment(r, f, m, config),
                churn_risk_score=churn_risk(r, f, config),
                recency_days=profile.recency_days,
                frequency=profile.frequency,
                monetary=profile.monetary,
            )
        )

    logger.debug(f"Segmented {len(results)} customers: {summarize_segments(results)}")
    return results


def summarize_segments(results: Iterable[RFMResult]) -> dict[str, int]:
    """Count customers per segment, always reporting all five segments."""
    summary = {segment.value: 0 for segment in CustomerSegment}
    for result in results:
        summary[result.segment.value] += 1
    return summary


def churn_watchlist(
    results: Iterable[RFMResult],
    min_risk: float = WATCHLIST_MIN_RISK,
    discount_threshold: float = DISCOUNT_OFFER_RISK,
) -> list[ChurnAlert]:
    """List customers at or above ``min_risk``, riskiest first.

    Customers above ``discount_threshold`` are routed to a personalised
    discount; the rest get a re-engagement email.
    """
    alerts = [
        ChurnAlert(
            customer_id=result.customer_id,
            segment=result.segment,
            churn_risk_score=result.churn_risk_score,
            recency_days=result.recency_days,
            frequency=result.frequency,
            lifetime_value=result.monetary,
            recommended_action=(
                "Send personalized discount offer"
                if result.churn_risk_score > discount_threshold
                else "Send re-engagement email"
            ),
        )
        for result in results
        if result.churn_risk_score >= min_risk
    ]
    alerts.sort(key=lambda alert: (-alert.churn_risk_score, alert.customer_id))
    return alerts


def build_customer_profiles(
    customers: Iterable[Mapping[str, Any]],
    as_of: datetime,
    include_inactive: bool = False,
) -> list[CustomerProfile]:
    """Derive RFM profiles from customer-store rows.

    Each row carries an ``id``, a ``created_at`` and a list of
    ``completed_orders`` (``{created_at, total_amount, status?}``; camelCase
    accepted). Cancelled orders are ignored. Recency is measured in whole days
    from the latest order, or from account creation for customers who never
    ordered. Customers without completed orders are dropped unless
    ``include_inactive`` is set.

    **Timezone Assumptions**: naive timestamps, including a naive ``as_of``,
    are read as UTC; aware ones are converted to UTC before comparison.
    """
    reference_time = coerce_timestamp(as_of, assume_utc=True)
    if reference_time is None:
        raise ValueError(f"as_of must be a readable timestamp: {as_of!r}")

    profiles: list[CustomerProfile] = []
    for customer in customers:
        customer_id = str(first_present(customer, ("id", "customer_id", "customerId")))
        orders = (
            first_present(customer, ("completed_orders", "completedOrders", "orders"))
            or []
        )
        completed = [o for o in orders if o.get("status") != "cancelled"]
        if not completed and not include_inactive:
            continue

        timestamps = [
            ts
            for ts in (
                coerce_timestamp(first_present(o, TIMESTAMP_KEYS), assume_utc=True)
                for o in completed
            )
            if ts is not None
        ]
        if timestamps:
            reference = max(timestamps)
        else:
            reference = coerce_timestamp(
                first_present(customer, TIMESTAMP_KEYS), assume_utc=True
            )
        recency_days = max(0, (reference_time - reference).days) if reference is not None else 0

        monetary = sum(
            coerce_float(first_present(o, AMOUNT_KEYS)) for o in completed
        )
        profiles.append(
            CustomerProfile(
                customer_id=customer_id,
                recency_days=float(recency_days),
                frequency=len(completed),
                monetary=max(0.0, monetary),
            )
        )
    return profiles
