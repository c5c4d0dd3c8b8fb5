import math

import pytest

from stock_watchlist.providers.core import (format_change_percent,
                                            format_market_cap,
                                            format_pe_ratio, format_price,
                                            normalize_stock_symbol)


def test_normalize_stock_symbol_trims_and_uppercases():
    assert normalize_stock_symbol("  aapl ") == "AAPL"


@pytest.mark.parametrize(
    "price, expected",
    [(1234.5, "$1,234.50"), (0.0, "$0.00"), (-3.2, "-$3.20")],
)
def test_format_price(price, expected):
    assert format_price(price) == expected


@pytest.mark.parametrize(
    "change, expected",
    [(1.234, "+1.23%"), (-0.5, "-0.50%"), (0, None), (None, None), (math.nan, None)],
)
def test_format_change_percent(change, expected):
    assert format_change_percent(change) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        (1_500_000, "$1.50M"),
        (2_345_000_000, "$2.35B"),
        (3_100_000_000_000, "$3.10T"),
        (950, "$950.00"),
        (0, "N/A"),
        (None, "N/A"),
        (math.inf, "N/A"),
    ],
)
def test_format_market_cap(value, expected):
    assert format_market_cap(value) == expected


def test_pe_ratio_uses_ttm_first():
    assert format_pe_ratio({"peBasicExclExtraTTM": 12.345}) == "12.35"
    assert (
        format_pe_ratio({"peBasicExclExtraTTM": 10.0, "peNormalizedAnnual": 99.0})
        == "10.00"
    )


def test_pe_ratio_falls_back_to_normalized_annual():
    assert (
        format_pe_ratio({"peBasicExclExtraTTM": None, "peNormalizedAnnual": 20.1})
        == "20.10"
    )


@pytest.mark.parametrize(
    "metric",
    [{}, None, {"peBasicExclExtraTTM": math.nan}, {"peNormalizedAnnual": "n/a"}],
)
def test_pe_ratio_not_available(metric):
    assert format_pe_ratio(metric) == "N/A"
