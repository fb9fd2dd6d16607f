"""Inventory reorder recommendations from a daily sales sample.

Uses the classic safety-stock model under demand variability:

    safety_stock  = ceil(z * sigma_daily * sqrt(lead_time))
    reorder_point = ceil(mean_daily * lead_time + safety_stock)
    optimal_stock = ceil(reorder_point + mean_daily * lead_time)

and compares current stock against those levels to pick a replenishment
action.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from retail_intelligence.foundation.records import (
    coerce_non_negative_float,
    coerce_non_negative_int,
    first_present,
    round_half_up,
)
from retail_intelligence.foundation.trend import mean, population_std

logger = logging.getLogger(__name__)

MIN_SALES_DAYS = 7
DEFAULT_LEAD_TIME_DAYS = 7
DEFAULT_SERVICE_LEVEL = 0.95

# Only the 95% service level has its own z-score; every other level falls
# back to 1.96
SERVICE_LEVEL_Z_SCORES = {0.95: 1.65}
FALLBACK_Z_SCORE = 1.96

# Stock below this share of the optimal level triggers "reorder soon"
REORDER_SOON_RATIO = 0.7
# Stock above this multiple of the optimal level is "overstocked"
OVERSTOCK_RATIO = 1.5


SALES_SAMPLE_KEYS = (
    "daily_sales_sample",
    "dailySalesSample",
    "daily_sales",
    "dailySales",
)


class InventoryAction(str, Enum):
    URGENT_REORDER = "urgent_reorder"
    REORDER_SOON = "reorder_soon"
    OPTIMAL = "optimal"
    OVERSTOCKED = "overstocked"


# Most urgent first
ACTION_PRIORITY = {
    InventoryAction.URGENT_REORDER: 0,
    InventoryAction.REORDER_SOON: 1,
    InventoryAction.OPTIMAL: 2,
    InventoryAction.OVERSTOCKED: 3,
}


@dataclass(frozen=True)
class InventoryConfig:
    """Thresholds used by :func:`optimize_inventory`.

    Attributes
    ----------
    min_sales_days:
        Fewer daily samples than this yield no recommendation
    z_scores:
        Service level -> z-score for the levels with a dedicated value
    fallback_z_score:
        z-score used for any other service level
    reorder_soon_ratio:
        Fraction of optimal stock below which to reorder soon
    overstock_ratio:
        Multiple of optimal stock above which stock is excessive
    """

    min_sales_days: int = MIN_SALES_DAYS
    z_scores: Mapping[float, float] = field(
        default_factory=lambda: dict(SERVICE_LEVEL_Z_SCORES)
    )
    fallback_z_score: float = FALLBACK_Z_SCORE
    reorder_soon_ratio: float = REORDER_SOON_RATIO
    overstock_ratio: float = OVERSTOCK_RATIO

    def z_score(self, service_level: float) -> float:
        return self.z_scores.get(service_level, self.fallback_z_score)


@dataclass(frozen=True)
class InventoryRecommendation:
    """Stock levels and replenishment action for one product.

    Attributes
    ----------
    current_stock:
        Units on hand
    optimal_stock:
        Target level after replenishment
    reorder_point:
        Level at which replenishment must be triggered
    safety_stock:
        Buffer covering demand variability during lead time
    avg_daily_sales:
        Mean daily units sold, rounded to 2 decimals
    action:
        Recommended replenishment action
    """

    current_stock: int
    optimal_stock: int
    reorder_point: int
    safety_stock: int
    avg_daily_sales: float
    action: InventoryAction

    def __post_init__(self) -> None:
        for name in ("current_stock", "optimal_stock", "reorder_point", "safety_stock"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} cannot be negative: {value}")

    def as_dict(self) -> dict[str, object]:
        return {
            "currentStock": self.current_stock,
            "optimalStock": self.optimal_stock,
            "reorderPoint": self.reorder_point,
            "safetyStock": self.safety_stock,
            "avgDailySales": self.avg_daily_sales,
            "action": self.action.value,
        }


@dataclass(frozen=True)
class ReplenishmentPlan:
    """An inventory recommendation tied to the product it was computed for."""

    product_id: str
    recommendation: InventoryRecommendation
    name: str | None = None

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"productId": self.product_id}
        if self.name is not None:
            payload["name"] = self.name
        payload.update(self.recommendation.as_dict())
        return payload


def optimize_inventory(
    daily_sales: Sequence[float],
    current_stock: int,
    lead_time_days: float = DEFAULT_LEAD_TIME_DAYS,
    service_level: float = DEFAULT_SERVICE_LEVEL,
    config: InventoryConfig = InventoryConfig(),
) -> InventoryRecommendation | None:
    """Compute safety stock, reorder point, optimal stock and action.

    Parameters
    ----------
    daily_sales:
        Units sold per observed day. Malformed entries count as 0.
    current_stock:
        Units on hand; malformed or negative values count as 0.
    lead_time_days:
        Supplier lead time in days (must be positive).
    service_level:
        Target probability of not stocking out during lead time.
    config:
        History threshold, z-score table and action ratios.

    Returns
    -------
    InventoryRecommendation | None
        None when fewer than ``config.min_sales_days`` samples are supplied.

    Raises
    ------
    ValueError
        If ``lead_time_days`` is not positive.

    Examples
    --------
    >>> rec = optimize_inventory([10, 10, 10, 10, 10, 10, 10], current_stock=5)
    >>> rec.safety_stock, rec.reorder_point, rec.optimal_stock, rec.action.value
    (0, 70, 140, 'urgent_reorder')
    """
    if lead_time_days <= 0:
        raise ValueError(f"lead_time_days must be positive: {lead_time_days}")

    if len(daily_sales) < config.min_sales_days:
        logger.debug(
            f"Inventory optimisation skipped: {len(daily_sales)} sales days, "
            f"{config.min_sales_days} required"
        )
        return None

    sales = [coerce_non_negative_float(value) for value in daily_sales]
    stock = coerce_non_negative_int(current_stock)

    avg_daily_sales = mean(sales)
    std_daily_sales = population_std(sales)
    z_score = config.z_score(service_level)

    safety_stock = math.ceil(z_score * std_daily_sales * math.sqrt(lead_time_days))
    reorder_point = math.ceil(avg_daily_sales * lead_time_days + safety_stock)
    optimal_stock = math.ceil(reorder_point + avg_daily_sales * lead_time_days)

    if stock < reorder_point:
        action = InventoryAction.URGENT_REORDER
    elif stock < config.reorder_soon_ratio * optimal_stock:
        action = InventoryAction.REORDER_SOON
    elif stock > config.overstock_ratio * optimal_stock:
        action = InventoryAction.OVERSTOCKED
    else:
        action = InventoryAction.OPTIMAL

    return InventoryRecommendation(
        current_stock=stock,
        optimal_stock=optimal_stock,
        reorder_point=reorder_point,
        safety_stock=safety_stock,
        avg_daily_sales=round_half_up(avg_daily_sales),
        action=action,
    )


def plan_replenishment(
    products: Iterable[Mapping[str, Any]],
    lead_time_days: float = DEFAULT_LEAD_TIME_DAYS,
    service_level: float = DEFAULT_SERVICE_LEVEL,
    config: InventoryConfig = InventoryConfig(),
) -> list[ReplenishmentPlan]:
    """Run :func:`optimize_inventory` over product-store rows.

    Rows carry ``id``, optional ``name``, ``daily_sales_sample`` and
    ``current_stock`` (camelCase accepted). Products without enough sales
    history are skipped. Plans are ordered most urgent action first; ties
    keep input order.
    """
    plans: list[ReplenishmentPlan] = []
    skipped = 0
    for product in products:
        sample = first_present(product, SALES_SAMPLE_KEYS) or []
        recommendation = optimize_inventory(
            list(sample),
            first_present(product, ("current_stock", "currentStock", "stock_quantity")),
            lead_time_days=lead_time_days,
            service_level=service_level,
            config=config,
        )
        if recommendation is None:
            skipped += 1
            continue
        name = product.get("name")
        plans.append(
            ReplenishmentPlan(
                product_id=str(first_present(product, ("id", "product_id", "productId"))),
                recommendation=recommendation,
                name=str(name) if name is not None else None,
            )
        )

    if skipped:
        logger.info(f"Skipped {skipped} products with insufficient sales history")
    plans.sort(key=lambda plan: ACTION_PRIORITY[plan.recommendation.action])
    return plans
