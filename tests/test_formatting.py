from __future__ import annotations

from datetime import timezone
from decimal import Decimal

import pytest

from market_feed.core.query.formatting import (
    format_clock,
    format_fixed2,
    format_plain_number,
    resolve_display_timezone,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("100"), "100"),
        (Decimal("100.00"), "100"),
        (Decimal("65000.50"), "65000.5"),
        (Decimal("0.1250"), "0.125"),
        (Decimal("1E+3"), "1000"),
    ],
)
def test_format_plain_number(value: Decimal, expected: str) -> None:
    assert format_plain_number(value) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (Decimal("100"), "100.00"),
        (Decimal("8125.0625"), "8125.06"),
        (Decimal("0.125"), "0.13"),
        (Decimal("2.675"), "2.68"),
    ],
)
def test_format_fixed2_rounds_half_up(value: Decimal, expected: str) -> None:
    assert format_fixed2(value) == expected


def test_format_clock_pads_milliseconds() -> None:
    assert format_clock(1_700_000_000_007, timezone.utc) == "22:13:20.007"
    assert format_clock(0, timezone.utc) == "00:00:00.000"


def test_format_clock_out_of_range_is_empty() -> None:
    assert format_clock(10**20, timezone.utc) == ""


def test_resolve_display_timezone() -> None:
    assert resolve_display_timezone(None) is None
    assert resolve_display_timezone("UTC") is not None
    assert resolve_display_timezone("Not/AZone") is None
