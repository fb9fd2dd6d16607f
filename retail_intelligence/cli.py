"""Command line entry points for the retail intelligence engine.

Each command reads a JSON array exported from one of the stores, runs a
single analysis and writes the JSON result to ``--output`` or stdout. Exit
status is 0 on success and 1 when the data is insufficient for the analysis.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from retail_intelligence.analyses.forecast import DEFAULT_HORIZON_DAYS, forecast_demand
from retail_intelligence.analyses.inventory import (
    DEFAULT_LEAD_TIME_DAYS,
    DEFAULT_SERVICE_LEVEL,
    plan_replenishment,
)
from retail_intelligence.analyses.portfolio import classify_portfolio
from retail_intelligence.analyses.seasonality import detect_seasonality
from retail_intelligence.analyses.segmentation import (
    WATCHLIST_MIN_RISK,
    CustomerProfile,
    build_customer_profiles,
    churn_watchlist,
    segment_customers,
    summarize_segments,
)
from retail_intelligence.foundation.records import InsufficientData, coerce_timestamp
from retail_intelligence.foundation.timeseries import (
    SeriesMetric,
    aggregate_daily,
    aggregate_monthly,
)

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM

DEFAULT_EXCLUDED_STATUSES = ("cancelled",)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        level=logging.DEBUG if verbose else logging.INFO,
    )


def _load_records(path: Path) -> list[dict[str, Any]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if not isinstance(payload, list):
        raise ValueError("Expected a JSON array of records in the input file")
    return [dict(item) for item in payload if isinstance(item, dict)]


def _write_payload(payload: Any, output: Path | None) -> None:
    if output is None:
        json.dump(payload, fp=sys.stdout, indent=2, sort_keys=True)
        print()
        return

    output_path = output.resolve()
    cwd = Path.cwd().resolve()
    try:
        output_path.relative_to(cwd)
    except ValueError:
        raise ValueError(
            f"Output path {output_path} must reside within the current working directory"
        )
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, indent=2, sort_keys=True)
    logger.info(f"Result written to {output_path}")


def _base_parser(description: str, input_help: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("input", type=Path, help=input_help)
    parser.add_argument(
        "--output",
        type=Path,
        help="Optional path for writing the result as JSON.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Enable debug logging."
    )
    return parser


def _add_status_filter(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--exclude-status",
        dest="exclude_statuses",
        action="append",
        help="Order status to drop (repeatable; defaults to 'cancelled').",
    )


def _insufficient(result: InsufficientData, key: str, output: Path | None) -> int:
    logger.warning(result.reason)
    _write_payload({key: [], "message": result.reason, **result.as_dict()}, output)
    return 1


def forecast_cli(argv: list[str] | None = None) -> int:
    """Forecast daily revenue or order volume from an order export."""

    parser = _base_parser(
        forecast_cli.__doc__,
        "Path to JSON array of orders ({created_at, total_amount, status})",
    )
    _add_status_filter(parser)
    parser.add_argument(
        "--horizon",
        type=int,
        default=DEFAULT_HORIZON_DAYS,
        help=f"Days to forecast (default: {DEFAULT_HORIZON_DAYS}).",
    )
    parser.add_argument(
        "--metric",
        choices=[item.value for item in SeriesMetric],
        default=SeriesMetric.REVENUE.value,
        help="Forecast summed revenue or order count (default: revenue).",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    orders = _load_records(args.input)
    history = aggregate_daily(
        orders,
        metric=args.metric,
        exclude_statuses=args.exclude_statuses or DEFAULT_EXCLUDED_STATUSES,
    )
    logger.info(f"Aggregated {len(orders)} orders into {len(history)} observed days")

    result = forecast_demand(history, horizon_days=args.horizon)
    if isinstance(result, InsufficientData):
        return _insufficient(result, "forecast", args.output)

    _write_payload(
        {
            "metric": args.metric,
            "historical": [point.as_dict() for point in history],
            "forecast": [point.as_dict() for point in result],
        },
        args.output,
    )
    return 0


def seasonality_cli(argv: list[str] | None = None) -> int:
    """Detect seasonal revenue patterns from an order export."""

    parser = _base_parser(
        seasonality_cli.__doc__,
        "Path to JSON array of orders ({created_at, total_amount, status})",
    )
    _add_status_filter(parser)
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    orders = _load_records(args.input)
    monthly = aggregate_monthly(
        orders, exclude_statuses=args.exclude_statuses or DEFAULT_EXCLUDED_STATUSES
    )
    result = detect_seasonality(monthly)
    if isinstance(result, InsufficientData):
        return _insufficient(result, "trends", args.output)

    _write_payload(
        {"monthlyData": [point.as_dict() for point in monthly], **result.as_dict()},
        args.output,
    )
    return 0


def segments_cli(argv: list[str] | None = None) -> int:
    """Segment customers by RFM score and list those at risk of churning.

    Input rows are either customer-store rows ({id, created_at,
    completed_orders}) or ready-made profiles ({customer_id, recency_days,
    frequency, monetary}) when --profiles is given.
    """

    parser = _base_parser(
        "Segment customers by RFM score and list those at risk of churning",
        "Path to JSON array of customers",
    )
    parser.add_argument(
        "--profiles",
        action="store_true",
        help="Input rows are already RFM profiles.",
    )
    parser.add_argument(
        "--as-of",
        help="Reference timestamp for recency (ISO-8601, defaults to now in UTC).",
    )
    parser.add_argument(
        "--min-risk",
        type=float,
        default=WATCHLIST_MIN_RISK,
        help=f"Churn risk floor for the watchlist (default: {WATCHLIST_MIN_RISK}).",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    rows = _load_records(args.input)
    if args.profiles:
        profiles = [CustomerProfile.from_record(row) for row in rows]
    else:
        as_of = datetime.now(timezone.utc)
        if args.as_of:
            as_of = coerce_timestamp(args.as_of, assume_utc=True)
            if as_of is None:
                parser.error(f"--as-of is not an ISO-8601 timestamp: {args.as_of!r}")
        profiles = build_customer_profiles(rows, as_of)

    if not profiles:
        logger.warning("No customers with completed orders found")
        _write_payload({"segments": [], "summary": {}, "churnWatchlist": []}, args.output)
        return 1

    results = segment_customers(profiles)
    logger.info(f"Segmented {len(results)} customers")
    _write_payload(
        {
            "segments": [result.as_dict() for result in results],
            "summary": summarize_segments(results),
            "churnWatchlist": [
                alert.as_dict() for alert in churn_watchlist(results, min_risk=args.min_risk)
            ],
        },
        args.output,
    )
    return 0


def inventory_cli(argv: list[str] | None = None) -> int:
    """Recommend stock levels and reorder actions per product."""

    parser = _base_parser(
        inventory_cli.__doc__,
        "Path to JSON array of products ({id, daily_sales_sample, current_stock})",
    )
    parser.add_argument(
        "--lead-time",
        type=float,
        default=DEFAULT_LEAD_TIME_DAYS,
        help=f"Supplier lead time in days (default: {DEFAULT_LEAD_TIME_DAYS}).",
    )
    parser.add_argument(
        "--service-level",
        type=float,
        default=DEFAULT_SERVICE_LEVEL,
        help=f"Target service level (default: {DEFAULT_SERVICE_LEVEL}).",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    products = _load_records(args.input)
    plans = plan_replenishment(
        products, lead_time_days=args.lead_time, service_level=args.service_level
    )
    if not plans:
        logger.warning("No product has enough sales history for a recommendation")
        _write_payload({"recommendations": []}, args.output)
        return 1

    _write_payload({"recommendations": [plan.as_dict() for plan in plans]}, args.output)
    return 0


def portfolio_cli(argv: list[str] | None = None) -> int:
    """Classify products on the growth / margin portfolio matrix."""

    parser = _base_parser(
        portfolio_cli.__doc__,
        "Path to JSON array of products "
        "({id, current_period_sales, previous_period_sales, revenue, cost})",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    products = _load_records(args.input)
    insights = classify_portfolio(products)
    if not insights:
        logger.warning("No products to classify")
        _write_payload({"insights": []}, args.output)
        return 1

    _write_payload({"insights": [item.as_dict() for item in insights]}, args.output)
    return 0


def main() -> None:
    raise SystemExit(forecast_cli())


def seasonality_main() -> None:
    raise SystemExit(seasonality_cli())


def segments_main() -> None:
    raise SystemExit(segments_cli())


def inventory_main() -> None:
    raise SystemExit(inventory_cli())


def portfolio_main() -> None:
    raise SystemExit(portfolio_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
