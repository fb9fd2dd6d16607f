"""Tests for growth / margin portfolio classification."""

import pytest

from retail_intelligence.analyses.portfolio import (
    RECOMMENDATIONS,
    PortfolioCategory,
    ProductPerformance,
    categorize,
    classify_portfolio,
)


class TestProductPerformance:
    def test_growth_and_margin(self):
        product = ProductPerformance("P1", 120, 100, revenue=200, cost=50)
        assert product.growth_rate == pytest.approx(20.0)
        assert product.profit_margin == pytest.approx(75.0)

    def test_zero_previous_sales_gives_zero_growth(self):
        assert ProductPerformance("P1", 500, 0, 100, 10).growth_rate == 0.0

    def test_zero_revenue_gives_zero_margin(self):
        assert ProductPerformance("P1", 5, 5, 0, 10).profit_margin == 0.0

    def test_zero_cost_is_full_margin(self):
        assert ProductPerformance("P1", 5, 5, 100, 0).profit_margin == pytest.approx(100.0)

    def test_from_record_is_lenient(self):
        product = ProductPerformance.from_record(
            {
                "productId": "P9",
                "currentPeriodSales": "150",
                "previousPeriodSales": None,
                "revenue": "n/a",
                "cost": 10,
            }
        )
        assert product == ProductPerformance("P9", 150.0, 0.0, 0.0, 10.0)


class TestCategorize:
    @pytest.mark.parametrize(
        "growth, margin, expected",
        [
            (20, 60, PortfolioCategory.STAR),
            (10, 60, PortfolioCategory.CASH_COW),
            (5, 60, PortfolioCategory.CASH_COW),
            (5, 50, PortfolioCategory.DOG),
            (20, 50, PortfolioCategory.QUESTION_MARK),
            (20, 40, PortfolioCategory.QUESTION_MARK),
        ],
    )
    def test_two_axis_rule(self, growth, margin, expected):
        assert categorize(growth, margin, avg_growth=10, avg_margin=50) is expected


class TestClassifyPortfolio:
    def test_empty_input(self):
        assert classify_portfolio([]) == []

    def test_four_quadrants(self):
        products = [
            ProductPerformance("star", 200, 100, revenue=100, cost=10),
            ProductPerformance("cow", 100, 100, revenue=100, cost=10),
            ProductPerformance("question", 200, 100, revenue=100, cost=90),
            ProductPerformance("dog", 100, 100, revenue=100, cost=90),
        ]
        results = classify_portfolio(products)
        assert [r.category for r in results] == [
            PortfolioCategory.STAR,
            PortfolioCategory.CASH_COW,
            PortfolioCategory.QUESTION_MARK,
            PortfolioCategory.DOG,
        ]
        for result in results:
            assert result.recommendation == RECOMMENDATIONS[result.category]

    def test_no_previous_sales_yields_zero_growth_and_cash_cows(self):
        products = [
            ProductPerformance("P1", 100, 0, revenue=100, cost=20),
            ProductPerformance("P2", 300, 0, revenue=100, cost=40),
            ProductPerformance("P3", 50, 0, revenue=100, cost=90),
        ]
        results = classify_portfolio(products)
        assert all(r.growth_rate == 0.0 for r in results)
        # average margin is 50%: P1 (80%) and P2 (60%) sit above it
        assert [r.category for r in results] == [
            PortfolioCategory.CASH_COW,
            PortfolioCategory.CASH_COW,
            PortfolioCategory.DOG,
        ]

    def test_reported_figures_are_rounded(self):
        products = [
            ProductPerformance("P1", 4, 3, revenue=3, cost=1),
            ProductPerformance("P2", 3, 3, revenue=3, cost=2),
        ]
        first = classify_portfolio(products)[0]
        assert first.growth_rate == 33.33
        assert first.profit_margin == 66.67

    def test_recommendation_text(self):
        assert RECOMMENDATIONS[PortfolioCategory.STAR] == "Invest heavily - high growth, high profit"
        assert RECOMMENDATIONS[PortfolioCategory.CASH_COW] == "Maintain - stable profit generator"
        assert RECOMMENDATIONS[PortfolioCategory.QUESTION_MARK] == "Evaluate - potential or divest"
        assert (
            RECOMMENDATIONS[PortfolioCategory.DOG]
            == "Consider discontinuing - low growth, low profit"
        )

    def test_accepts_mappings_and_passes_name(self):
        [result] = classify_portfolio(
            [
                {
                    "id": "P1",
                    "name": "Spark plug",
                    "current_period_sales": 10,
                    "previous_period_sales": 5,
                    "revenue": 10,
                    "cost": 3,
                }
            ]
        )
        assert result.name == "Spark plug"
        # a single product equals the averages on both axes
        assert result.category is PortfolioCategory.DOG
        assert result.as_dict() == {
            "productId": "P1",
            "name": "Spark plug",
            "category": "dog",
            "growthRate": 100.0,
            "profitMargin": 70.0,
            "recommendation": "Consider discontinuing - low growth, low profit",
        }

    def test_idempotent(self):
        products = [
            ProductPerformance("A", 130, 100, 500, 200),
            ProductPerformance("B", 80, 100, 300, 250),
            ProductPerformance("C", 95, 0, 0, 0),
        ]
        assert classify_portfolio(products) == classify_portfolio(list(products))
