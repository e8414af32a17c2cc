# tests/test_price_formatter.py
from decimal import Decimal

import pytest

from app.services.price_formatter import (
    average_price,
    cents_to_dollars,
    compare_prices,
    discount_percentage,
    dollars_to_cents,
    format_discount_amount,
    format_price,
    parse_price,
    percentage_saved,
    price_range,
    price_with_tax,
    round_half_up,
    tax_amount,
    valid_price,
)


def test_format_price():
    assert format_price(1299) == "$12.99"
    assert format_price(5) == "$0.05"
    assert format_price(100000) == "$1000.00"


def test_format_price_zero_none_and_negative():
    assert format_price(0) == "$0.00"
    assert format_price(None) == "$0.00"
    assert format_price(-500) == "-$5.00"


def test_format_discount_amount_is_always_a_deduction():
    assert format_discount_amount(500) == "-$5.00"
    assert format_discount_amount(-500) == "-$5.00"


def test_parse_price_strips_symbols_and_separators():
    assert parse_price("$1,234.56") == 123456
    assert parse_price(" 12.5 ") == 1250
    assert parse_price(9.99) == 999


def test_parse_price_blank_or_garbage_is_zero():
    assert parse_price(None) == 0
    assert parse_price("") == 0
    assert parse_price("$") == 0
    assert parse_price("abc") == 0


@pytest.mark.parametrize("cents", [0, 1, 5, 10, 99, 100, 101, 1299, 123456, 10**12])
def test_parse_price_reverses_format_price(cents):
    assert parse_price(format_price(cents)) == cents


@pytest.mark.parametrize(
    "text",
    ["nan", "NaN", "inf", "-Infinity", "sNaN", "$nan", float("nan"), float("inf")],
)
def test_parse_price_non_finite_is_zero(text):
    assert parse_price(text) == 0


def test_non_finite_amounts_round_to_zero():
    assert round_half_up(float("nan")) == 0
    assert round_half_up(Decimal("-Infinity")) == 0
    assert dollars_to_cents(float("inf")) == 0


def test_round_half_up_rounds_halves_away_from_zero():
    # 4500 * 0.0875 = 393.75
    assert round_half_up(Decimal("393.75")) == 394
    assert round_half_up(Decimal("0.5")) == 1
    assert round_half_up(Decimal("2.5")) == 3  # banker's rounding would give 2
    assert round_half_up(Decimal("2.49")) == 2


def test_price_range():
    assert price_range([500, 1200, 800]) == "$5.00 - $12.00"
    assert price_range([700, 700]) == "$7.00"
    assert price_range([]) == "$0.00"
    assert price_range([None, 0, 300]) == "$3.00"


def test_dollar_conversions():
    assert cents_to_dollars(1299) == 12.99
    assert cents_to_dollars(None) == 0.0
    assert dollars_to_cents(12.99) == 1299
    assert dollars_to_cents(Decimal("0.005")) == 1
    assert dollars_to_cents(None) == 0


def test_percentage_saved():
    assert percentage_saved(5000, 500) == 10.0
    assert percentage_saved(3000, 1000) == 33.3
    assert percentage_saved(0, 100) == 0.0


def test_tax_amount_and_price_with_tax():
    # 4500 * 0.0875 = 393.75
    assert tax_amount(4500, 0.0875) == 394
    assert tax_amount(0, 0.0875) == 0
    assert tax_amount(4500, None) == 0
    assert tax_amount(4500, float("nan")) == 0
    assert price_with_tax(4500, 0.0875) == 4894
    assert price_with_tax(4500, None) == 4500


def test_discount_percentage():
    assert discount_percentage(3000, 2000) == 33.3
    assert discount_percentage(1000, 1000) == 0.0
    assert discount_percentage(1000, 1200) == 0.0
    assert discount_percentage(0, 500) == 0.0


def test_compare_and_average_prices():
    assert compare_prices(500, 500) == "equal"
    assert compare_prices(700, 500) == "higher"
    assert compare_prices(300, 500) == "lower"

    assert average_price([100, 200, 0, None]) == 150
    assert average_price([100, 201]) == 151  # 150.5
    assert average_price([]) == 0


def test_valid_price():
    assert valid_price(0)
    assert valid_price(1299)
    assert not valid_price(-1)
    assert not valid_price(12.99)
    assert not valid_price(True)
