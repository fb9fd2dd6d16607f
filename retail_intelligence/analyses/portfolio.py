"""Product portfolio classification on a growth / margin matrix.

Products are placed in a BCG-style 2x2 grid relative to the averages of the
portfolio being classified:

                     margin <= avg      margin > avg
    growth > avg     question_mark      star
    growth <= avg    dog                cash_cow
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from retail_intelligence.foundation.records import (
    coerce_float,
    first_present,
    round_half_up,
)
from retail_intelligence.foundation.trend import mean

logger = logging.getLogger(__name__)


class PortfolioCategory(str, Enum):
    STAR = "star"
    CASH_COW = "cash_cow"
    QUESTION_MARK = "question_mark"
    DOG = "dog"


RECOMMENDATIONS = {
    PortfolioCategory.STAR: "Invest heavily - high growth, high profit",
    PortfolioCategory.CASH_COW: "Maintain - stable profit generator",
    PortfolioCategory.QUESTION_MARK: "Evaluate - potential or divest",
    PortfolioCategory.DOG: "Consider discontinuing - low growth, low profit",
}


@dataclass(frozen=True)
class ProductPerformance:
    """Sales and profitability figures for one product.

    Attributes
    ----------
    product_id:
        Unique product identifier
    current_period_sales:
        Sales in the most recent period
    previous_period_sales:
        Sales in the period before it
    revenue:
        Revenue used for the margin calculation
    cost:
        Cost of goods against that revenue
    name:
        Optional display name, passed through to the classification
    """

    product_id: str
    current_period_sales: float
    previous_period_sales: float
    revenue: float
    cost: float
    name: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ProductPerformance":
        """Build from a product-store row; malformed numbers become 0."""
        name = record.get("name")
        return cls(
            product_id=str(first_present(record, ("id", "product_id", "productId"))),
            current_period_sales=coerce_float(
                first_present(record, ("current_period_sales", "currentPeriodSales"))
            ),
            previous_period_sales=coerce_float(
                first_present(record, ("previous_period_sales", "previousPeriodSales"))
            ),
            revenue=coerce_float(record.get("revenue")),
            cost=coerce_float(record.get("cost")),
            name=str(name) if name is not None else None,
        )

    @property
    def growth_rate(self) -> float:
        """Period-over-period sales growth in percent; 0 without a baseline."""
        if self.previous_period_sales > 0:
            return (
                (self.current_period_sales - self.previous_period_sales)
                / self.previous_period_sales
                * 100
            )
        return 0.0

    @property
    def profit_margin(self) -> float:
        """Gross margin in percent of revenue; 0 without revenue."""
        if self.revenue > 0:
            return (self.revenue - self.cost) / self.revenue * 100
        return 0.0


@dataclass(frozen=True)
class ProductClassification:
    """Portfolio position of one product.

    ``growth_rate`` and ``profit_margin`` are percentages rounded to 2
    decimals; the category is decided on the unrounded values.
    """

    product_id: str
    category: PortfolioCategory
    growth_rate: float
    profit_margin: float
    recommendation: str
    name: str | None = None

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"productId": self.product_id}
        if self.name is not None:
            payload["name"] = self.name
        payload.update(
            {
                "category": self.category.value,
                "growthRate": self.growth_rate,
                "profitMargin": self.profit_margin,
                "recommendation": self.recommendation,
            }
        )
        return payload


def categorize(
    growth_rate: float, profit_margin: float, avg_growth: float, avg_margin: float
) -> PortfolioCategory:
    if growth_rate > avg_growth and profit_margin > avg_margin:
        return PortfolioCategory.STAR
    if growth_rate <= avg_growth and profit_margin > avg_margin:
        return PortfolioCategory.CASH_COW
    if growth_rate <= avg_growth and profit_margin <= avg_margin:
        return PortfolioCategory.DOG
    return PortfolioCategory.QUESTION_MARK


def classify_portfolio(
    products: Iterable[ProductPerformance | Mapping[str, Any]],
) -> list[ProductClassification]:
    """Classify every product against the portfolio's average growth and margin.

    Parameters
    ----------
    products:
        :class:`ProductPerformance` objects or product-store mappings.

    Returns
    -------
    list[ProductClassification]
        One classification per product, in input order. Empty input yields
        an empty list.

    Examples
    --------
    >>> portfolio = [
    ...     ProductPerformance("P1", 150, 100, revenue=1000, cost=300),
    ...     ProductPerformance("P2", 90, 100, revenue=1000, cost=800),
    ... ]
    >>> [(c.product_id, c.category.value, c.growth_rate) for c in classify_portfolio(portfolio)]
    [('P1', 'star', 50.0), ('P2', 'dog', -10.0)]
    """
    items = [
        p if isinstance(p, ProductPerformance) else ProductPerformance.from_record(p)
        for p in products
    ]
    if not items:
        return []

    growth_rates = [item.growth_rate for item in items]
    margins = [item.profit_margin for item in items]
    avg_growth = mean(growth_rates)
    avg_margin = mean(margins)
    logger.debug(
        f"Classifying {len(items)} products: avg_growth={avg_growth:.2f}%, "
        f"avg_margin={avg_margin:.2f}%"
    )

    classifications: list[ProductClassification] = []
    for item, growth, margin in zip(items, growth_rates, margins):
        category = categorize(growth, margin, avg_growth, avg_margin)
        classifications.append(
            ProductClassification(
                product_id=item.product_id,
                category=category,
                growth_rate=round_half_up(growth),
                profit_margin=round_half_up(margin),
                recommendation=RECOMMENDATIONS[category],
                name=item.name,
            )
        )
    return classifications
