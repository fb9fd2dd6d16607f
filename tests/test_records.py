"""Tests for lenient record coercion helpers."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from retail_intelligence.foundation.records import (
    InsufficientData,
    coerce_date,
    coerce_float,
    coerce_non_negative_float,
    coerce_non_negative_int,
    coerce_timestamp,
    first_present,
    round_half_up,
)


class TestCoerceFloat:
    """Test numeric coercion."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (12, 12.0),
            ("12.50", 12.5),
            (Decimal("3.25"), 3.25),
            (None, 0.0),
            ("not a number", 0.0),
            (float("nan"), 0.0),
            (float("inf"), 0.0),
            (True, 0.0),
            ([], 0.0),
        ],
    )
    def test_coerces_or_defaults(self, raw, expected):
        """Readable numbers convert; everything else falls back to 0."""
        assert coerce_float(raw) == expected

    def test_custom_default(self):
        assert coerce_float(None, default=-1.0) == -1.0

    def test_non_negative_clamps(self):
        assert coerce_non_negative_float("-4") == 0.0
        assert coerce_non_negative_int(-3) == 0
        assert coerce_non_negative_int("7.9") == 7


class TestCoerceTimestamp:
    """Test timestamp parsing."""

    def test_iso_string_with_z_suffix_is_utc(self):
        ts = coerce_timestamp("2024-05-01T10:30:00Z")
        assert ts == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)

    def test_date_becomes_midnight(self):
        assert coerce_timestamp(date(2024, 5, 1)) == datetime(2024, 5, 1)

    def test_datetime_passes_through(self):
        ts = datetime(2024, 5, 1, 8)
        assert coerce_timestamp(ts) is ts

    @pytest.mark.parametrize("raw", [None, "", "yesterday", 12345])
    def test_unreadable_returns_none(self, raw):
        assert coerce_timestamp(raw) is None

    def test_assume_utc_marks_naive_values(self):
        ts = coerce_timestamp("2024-05-01T10:30:00", assume_utc=True)
        assert ts == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
        assert ts.tzinfo is timezone.utc

    def test_assume_utc_converts_offsets(self):
        ts = coerce_timestamp("2024-05-01T12:30:00+02:00", assume_utc=True)
        assert ts.hour == 10
        assert ts.utcoffset() == timedelta(0)

    def test_assume_utc_keeps_unreadable_as_none(self):
        assert coerce_timestamp("yesterday", assume_utc=True) is None

    def test_coerce_date(self):
        assert coerce_date("2024-05-01T23:59:00") == date(2024, 5, 1)
        assert coerce_date(date(2024, 5, 1)) == date(2024, 5, 1)
        assert coerce_date("garbage") is None


class TestHelpers:
    def test_first_present_skips_missing_and_none(self):
        record = {"created_at": None, "createdAt": "2024-01-01"}
        assert first_present(record, ("occurred_at", "created_at", "createdAt")) == "2024-01-01"
        assert first_present(record, ("amount",)) is None

    def test_round_half_up(self):
        assert round_half_up(0.125) == 0.13
        assert round_half_up(2.675) == 2.68
        assert round_half_up(10.0) == 10.0

    def test_insufficient_data_is_falsy(self):
        marker = InsufficientData(reason="not enough", required=7, available=3)
        assert not marker
        assert marker.as_dict() == {
            "insufficientData": True,
            "reason": "not enough",
            "required": 7,
            "available": 3,
        }
