"""
Tests for major-to-minor unit conversion of charge amounts.
"""

from decimal import Decimal

import pytest

from eventzen.services.interfaces.payment_gateway import to_minor_units


@pytest.mark.parametrize(
    "amount, expected",
    [
        (Decimal("300.00"), 30000),
        (Decimal("0"), 0),
        (Decimal("19.99"), 1999),
        (Decimal("0.005"), 1),
        (Decimal("10.004"), 1000),
    ],
)
def test_to_minor_units(amount, expected):
    assert to_minor_units(amount) == expected


def test_float_input_is_converted_exactly():
    # 0.29 * 100 is 28.999999999999996 in binary floating point
    assert to_minor_units(0.29) == 29
