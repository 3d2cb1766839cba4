"""Tests for amount parsing."""

from decimal import Decimal

import pytest

from charterdesk.utils.amount_parser import parse_amount


@pytest.mark.parametrize(
    "value, expected",
    [
        ("123.45", "123.45"),
        ("-123.45", "-123.45"),
        ("฿1,234.56", "1234.56"),
        ("-$123.45", "-123.45"),
        ("THB 500", "500"),
        ("(123.45)", "-123.45"),
        ("1.234,56", "1234.56"),
        ("12,5", "12.5"),
        ("1,234", "1234"),
        ("1,234,567", "1234567"),
        ("  42  ", "42"),
    ],
)
def test_parse_amount(value, expected):
    assert parse_amount(value) == Decimal(expected)


@pytest.mark.parametrize("value", ["", "   ", "abc", "-", "1.2.3"])
def test_parse_amount_invalid(value):
    with pytest.raises(ValueError):
        parse_amount(value)
