"""Integration tests for the command line entry points.

Each test writes a store export to disk, runs one command and inspects the
JSON it produces.
"""

import json

import pytest

from retail_intelligence.cli import (
    forecast_cli,
    inventory_cli,
    portfolio_cli,
    seasonality_cli,
    segments_cli,
)


def _write_json(path, payload):
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run every command from inside the temporary directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def orders_json(workdir):
    """Ten days of steadily growing revenue plus one cancelled order."""
    orders = [
        {
            "id": f"O{day}",
            "created_at": f"2024-03-{day:02d}T12:00:00Z",
            "total_amount": str(100 + 10 * day),
            "status": "delivered",
        }
        for day in range(1, 11)
    ]
    orders.append(
        {
            "id": "O-cancelled",
            "created_at": "2024-03-05T15:00:00Z",
            "total_amount": "5000",
            "status": "cancelled",
        }
    )
    return _write_json(workdir / "orders.json", orders)


class TestForecastCommand:
    def test_writes_forecast_file(self, workdir, orders_json):
        output = workdir / "out" / "forecast.json"
        exit_code = forecast_cli([str(orders_json), "--horizon", "5", "--output", str(output)])

        assert exit_code == 0
        payload = json.loads(output.read_text(encoding="utf-8"))
        assert payload["metric"] == "revenue"
        assert len(payload["historical"]) == 10
        # the cancelled order is excluded
        assert payload["historical"][4]["value"] == 150.0
        assert [point["date"] for point in payload["forecast"]] == [
            "2024-03-11",
            "2024-03-12",
            "2024-03-13",
            "2024-03-14",
            "2024-03-15",
        ]
        assert payload["forecast"][0]["predictedValue"] == pytest.approx(210.0)

    def test_orders_metric_to_stdout(self, orders_json, capsys):
        exit_code = forecast_cli([str(orders_json), "--metric", "orders", "--horizon", "2"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["metric"] == "orders"
        assert {point["value"] for point in payload["historical"]} == {1.0}

    def test_including_cancelled_orders(self, orders_json, capsys):
        forecast_cli([str(orders_json), "--exclude-status", "refunded", "--horizon", "1"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["historical"][4]["value"] == 5150.0

    def test_short_history_exits_with_one(self, workdir, capsys):
        orders = [
            {"created_at": f"2024-03-0{day}T12:00:00Z", "total_amount": 10}
            for day in range(1, 4)
        ]
        path = _write_json(workdir / "short.json", orders)

        assert forecast_cli([str(path)]) == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["forecast"] == []
        assert payload["insufficientData"] is True
        assert payload["required"] == 7
        assert payload["available"] == 3


class TestSeasonalityCommand:
    def test_detects_peak_month(self, workdir, capsys):
        orders = []
        for month, amount in (("01", 100), ("02", 100), ("03", 400)):
            for day in range(1, 13):
                orders.append(
                    {"created_at": f"2024-{month}-{day:02d}T09:00:00Z", "total_amount": amount}
                )
        path = _write_json(workdir / "orders.json", orders)

        assert seasonality_cli([str(path)]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert [row["month"] for row in payload["monthlyData"]] == ["2024-01", "2024-02", "2024-03"]
        assert payload["peakMonth"] == "2024-03"
        assert payload["trendDirection"] == "up"

    def test_too_few_orders(self, orders_json, capsys):
        assert seasonality_cli([str(orders_json)]) == 1
        payload = json.loads(capsys.readouterr().out)
        assert payload["trends"] == []
        assert payload["message"] == "Insufficient data for seasonal analysis"


class TestSegmentsCommand:
    def test_from_customer_rows(self, workdir, capsys):
        customers = [
            {
                "id": f"U{i}",
                "created_at": "2023-01-01T00:00:00",
                "completed_orders": [
                    {"created_at": f"2024-06-{28 - 2 * i:02d}T10:00:00", "total_amount": 100 - 5 * i}
                    for _ in range(10 - i)
                ],
            }
            for i in range(10)
        ]
        path = _write_json(workdir / "customers.json", customers)

        exit_code = segments_cli([str(path), "--as-of", "2024-06-30T00:00:00Z"])

        assert exit_code == 0
        payload = json.loads(capsys.readouterr().out)
        assert [row["customerId"] for row in payload["segments"]] == [f"U{i}" for i in range(10)]
        assert payload["segments"][0]["segment"] == "champions"
        assert payload["segments"][-1]["segment"] == "lost"
        assert sum(payload["summary"].values()) == 10
        risks = [alert["churnRiskScore"] for alert in payload["churnWatchlist"]]
        assert risks == sorted(risks, reverse=True)
        assert all(risk >= 0.5 for risk in risks)

    def test_from_profiles(self, workdir, capsys):
        profiles = [
            {"customer_id": "A", "recency_days": 2, "frequency": 8, "monetary": 800},
            {"customer_id": "B", "recency_days": 200, "frequency": 1, "monetary": 20},
        ]
        path = _write_json(workdir / "profiles.json", profiles)

        assert segments_cli([str(path), "--profiles", "--min-risk", "0"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert len(payload["churnWatchlist"]) == 2

    def test_unreadable_as_of_is_a_usage_error(self, workdir):
        path = _write_json(workdir / "customers.json", [{"id": "U1", "completed_orders": []}])

        with pytest.raises(SystemExit) as excinfo:
            segments_cli([str(path), "--as-of", "end of june"])
        assert excinfo.value.code == 2

    def test_naive_timestamps_read_as_utc(self, workdir, capsys):
        customers = [
            {
                "id": "U1",
                "completed_orders": [
                    {"created_at": "2024-06-20T12:00:00Z", "total_amount": 10},
                    {"created_at": "2024-06-21T12:00:00", "total_amount": 15},
                ],
            }
        ]
        path = _write_json(workdir / "customers.json", customers)

        assert segments_cli([str(path), "--as-of", "2024-06-30"]) == 0
        [row] = json.loads(capsys.readouterr().out)["segments"]
        assert row["recencyDays"] == 8.0

    def test_no_active_customers(self, workdir, capsys):
        path = _write_json(workdir / "customers.json", [{"id": "U1", "completed_orders": []}])

        assert segments_cli([str(path), "--as-of", "2024-06-30"]) == 1
        assert json.loads(capsys.readouterr().out)["segments"] == []


class TestInventoryCommand:
    def test_recommendations_sorted_by_urgency(self, workdir, capsys):
        products = [
            {"id": "P1", "name": "Brake pads", "daily_sales_sample": [10] * 7, "current_stock": 150},
            {"id": "P2", "name": "Oil filter", "daily_sales_sample": [10] * 7, "current_stock": 5},
            {"id": "P3", "daily_sales_sample": [1, 2], "current_stock": 5},
        ]
        path = _write_json(workdir / "products.json", products)

        assert inventory_cli([str(path)]) == 0
        payload = json.loads(capsys.readouterr().out)
        recommendations = payload["recommendations"]
        assert [row["productId"] for row in recommendations] == ["P2", "P1"]
        assert recommendations[0]["action"] == "urgent_reorder"
        assert recommendations[0]["reorderPoint"] == 70

    def test_lead_time_option(self, workdir, capsys):
        path = _write_json(
            workdir / "products.json",
            [{"id": "P1", "daily_sales_sample": [10] * 7, "current_stock": 0}],
        )

        assert inventory_cli([str(path), "--lead-time", "14"]) == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload["recommendations"][0]["reorderPoint"] == 140

    def test_no_usable_history(self, workdir, capsys):
        path = _write_json(workdir / "products.json", [{"id": "P1", "current_stock": 3}])

        assert inventory_cli([str(path)]) == 1
        assert json.loads(capsys.readouterr().out) == {"recommendations": []}


class TestPortfolioCommand:
    def test_insights(self, workdir, capsys):
        products = [
            {"id": "P1", "current_period_sales": 150, "previous_period_sales": 100, "revenue": 1000, "cost": 300},
            {"id": "P2", "current_period_sales": 90, "previous_period_sales": 100, "revenue": 1000, "cost": 800},
        ]
        path = _write_json(workdir / "products.json", products)

        assert portfolio_cli([str(path)]) == 0
        insights = json.loads(capsys.readouterr().out)["insights"]
        assert [(row["productId"], row["category"]) for row in insights] == [
            ("P1", "star"),
            ("P2", "dog"),
        ]

    def test_empty_export(self, workdir, capsys):
        path = _write_json(workdir / "products.json", [])

        assert portfolio_cli([str(path)]) == 1
        assert json.loads(capsys.readouterr().out) == {"insights": []}


class TestInputAndOutputGuards:
    def test_output_outside_working_directory_rejected(self, tmp_path, monkeypatch, orders_json):
        inner = tmp_path / "inner"
        inner.mkdir()
        monkeypatch.chdir(inner)

        with pytest.raises(ValueError, match="must reside within the current working directory"):
            forecast_cli([str(orders_json), "--output", str(tmp_path / "escape.json")])

    def test_non_array_input_rejected(self, workdir):
        path = _write_json(workdir / "orders.json", {"orders": []})

        with pytest.raises(ValueError, match="Expected a JSON array"):
            forecast_cli([str(path)])

    def test_oversized_input_rejected(self, workdir, monkeypatch):
        monkeypatch.setattr("retail_intelligence.cli.MAX_INPUT_BYTES", 10)
        path = _write_json(workdir / "orders.json", [{"created_at": "2024-01-01", "amount": 1}])

        with pytest.raises(ValueError, match="exceeds limit"):
            forecast_cli([str(path)])
