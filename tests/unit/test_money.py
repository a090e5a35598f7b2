"""Unit tests for money helpers"""

import pytest
from decimal import Decimal
from spendmart_core.domain.money import (
    clamp,
    fits_money_precision,
    parse_amount,
    quantize_money,
    round_to_nearest,
    to_decimal,
)


def test_to_decimal_float_has_no_binary_drift():
    assert to_decimal(0.015) == Decimal("0.015")


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("1250", Decimal("1250")),
        ("1250.50", Decimal("1250.50")),
        ("1,250.50", Decimal("1250.50")),
        ("1250,50", Decimal("1250.50")),
        (" 99.5 ", Decimal("99.5")),
        (42, Decimal("42")),
    ],
)
def test_parse_amount(raw, expected):
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "abc", "12.3.4", "NaN", "Infinity"])
def test_parse_amount_rejects_garbage(raw):
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_quantize_money_half_up():
    assert quantize_money(Decimal("696.665")) == Decimal("696.67")
    assert quantize_money(Decimal("696.664")) == Decimal("696.66")


def test_round_to_nearest_half_up():
    assert round_to_nearest(Decimal("35550"), Decimal("500")) == Decimal("35500")
    assert round_to_nearest(Decimal("35750"), Decimal("500")) == Decimal("36000")
    assert round_to_nearest(Decimal("35749.99"), Decimal("500")) == Decimal("35500")


def test_clamp():
    assert clamp(Decimal("5"), Decimal("0"), Decimal("3")) == Decimal("3")
    assert clamp(Decimal("-1"), Decimal("0"), Decimal("3")) == Decimal("0")
    assert clamp(Decimal("2"), Decimal("0"), Decimal("3")) == Decimal("2")


@pytest.mark.parametrize(
    "value,fits",
    [
        (Decimal("0"), True),
        (Decimal("1250.50"), True),
        (Decimal("12.5000000"), True),
        (Decimal("0.000001"), True),
        (Decimal("99999999999.999999"), True),
        (Decimal("1E+2"), True),
        (Decimal("0.0000001"), False),
        (Decimal("100000000000"), False),
        (Decimal("1e40"), False),
        (Decimal("-1e40"), False),
    ],
)
def test_fits_money_precision(value, fits):
    assert fits_money_precision(value) is fits
