"""
Unit tests for the Decimal money helpers.
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from splitbill.app.money import format_amount, round2, to_decimal


@pytest.mark.parametrize(
    "value, expected",
    [
        ("10.005", Decimal("10.01")),
        ("10.004", Decimal("10.00")),
        ("-10.005", Decimal("-10.01")),
        (33.3333, Decimal("33.33")),
        (5, Decimal("5.00")),
        (Decimal("0.125"), Decimal("0.13")),
    ],
)
def test_round2_half_up(value, expected):
    assert round2(value) == expected
    assert round2(value).as_tuple().exponent == -2


def test_to_decimal_goes_through_str_for_floats():
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal(0.1) + to_decimal(0.2) == Decimal("0.3")


def test_to_decimal_returns_decimal_unchanged():
    value = Decimal("1.234")

    assert to_decimal(value) is value


def test_to_decimal_rejects_booleans():
    with pytest.raises(TypeError):
        to_decimal(True)


def test_format_amount_always_two_places():
    assert format_amount(Decimal("50")) == "50.00"
    assert format_amount(Decimal("-0.5")) == "-0.50"
    assert format_amount(Decimal("1.005")) == "1.01"


def test_round2_handles_amounts_beyond_default_precision():
    """A 28-digit context cannot hold 1E+27 to the cent; round2 widens it."""
    result = round2(Decimal("1E+27"))

    assert result == Decimal("1E+27")
    assert result.as_tuple().exponent == -2
    assert format_amount(Decimal("1E+27")) == "1000000000000000000000000000.00"
