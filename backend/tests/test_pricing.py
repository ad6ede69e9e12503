import math

import pytest

from milevalue.data.currency import convert_to_usd, format_price
from milevalue.services.awards.cabins import (
    BUSINESS,
    CABINS,
    ECONOMY,
    FIRST,
    PREMIUM,
    cabin_display,
    direct_cabin,
    normalize_cabin,
)
from milevalue.services.awards.pricing import detect_currency, parse_miles, parse_price


def test_foreign_currency_code_is_converted():
    assert parse_price("AUD 100.00") == pytest.approx(65.00)


def test_plain_number_passes_through():
    assert parse_price(250) == 250


@pytest.mark.parametrize("raw, expected", [
    ("$1,234.50", 1234.50),
    ("USD 56.00", 56.00),
    ("CA$326", 241.24),
    ("€100", 108.00),
    ("£10", 12.70),
    ("NT$3,000", 93.00),
    ("MX$3,000", 174.00),
    ("₹3,000", 36.00),
    ("₩3,000", 2.22),
    ("₺3,000", 93.00),
])
def test_string_prices(raw, expected):
    assert parse_price(raw) == pytest.approx(expected)


@pytest.mark.parametrize("raw", [None, "", "free", "--", True, [], {}, -5, math.nan, math.inf])
def test_unreadable_prices_degrade_to_zero(raw):
    assert parse_price(raw) == 0


def test_symbol_markers_prefer_longest_match():
    assert detect_currency("CA$100") == "CAD"
    assert detect_currency("A$100") == "AUD"
    assert detect_currency("$100") == "USD"
    assert detect_currency("100") == "USD"


@pytest.mark.parametrize("raw, expected", [
    ("60,000", 60000),
    (60000, 60000),
    (60000.0, 60000),
    ("abc", 0),
    (None, 0),
    (-10, 0),
])
def test_parse_miles(raw, expected):
    assert parse_miles(raw) == expected


def test_format_price_rounds_to_whole_units():
    assert format_price(1234.56) == "$1,235"
    assert format_price(100, "CAD") == "CA$100"
    assert convert_to_usd(1000, "CAD") == 740.0


@pytest.mark.parametrize("raw, expected", [
    ("Business", BUSINESS),
    ("j", BUSINESS),
    ("FIRST CLASS", FIRST),
    ("F", FIRST),
    ("PREMIUM_ECONOMY", PREMIUM),
    ("Premium Economy", PREMIUM),
    ("W", PREMIUM),
    ("Economy", ECONOMY),
    ("Y", ECONOMY),
    ("", ECONOMY),
    (None, ECONOMY),
    (42, ECONOMY),
    ("garbage", ECONOMY),
])
def test_normalize_cabin(raw, expected):
    assert normalize_cabin(raw) == expected


def test_normalize_cabin_is_total():
    for raw in ["", " ", "?", "FJ", "coach", object(), 3.5]:
        assert normalize_cabin(raw) in CABINS


def test_direct_cabin_names():
    assert direct_cabin("Business") == BUSINESS
    assert direct_cabin("Premium Economy") == PREMIUM
    assert direct_cabin("Economy") == ECONOMY
    assert direct_cabin("Suite") is None
    assert direct_cabin(None) is None
    assert cabin_display(PREMIUM) == "Premium Economy"


@pytest.mark.parametrize("currency", ["TWD", "MXN", "INR", "KRW", "TRY", "CAD", "AUD", "EUR"])
def test_formatted_prices_parse_back_in_their_currency(currency):
    formatted = format_price(3000, currency)

    assert detect_currency(formatted) == currency
    assert parse_price(formatted) == pytest.approx(convert_to_usd(3000, currency))
