"""Fixed-precision helpers for currency amounts and rates"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

MoneyLike = Union[Decimal, int, str, float]

ZERO = Decimal("0")
CENT = Decimal("0.01")


def to_decimal(value: MoneyLike) -> Decimal:
    """
    Convert a number to Decimal without binary float drift.

    Floats go through str() so 0.015 stays 0.015 rather than
    0.01499999999999999944...
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def parse_amount(raw: MoneyLike) -> Decimal:
    """
    Parse a user-entered amount.

    Accepts "1250", "1250.50", "1,250.50" and decimal-comma "1250,50".

    Raises:
        ValueError: If the text is not a finite number
    """
    if isinstance(raw, str):
        text = raw.strip().replace(" ", "")
        if "," in text and "." in text:
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
        if not text:
            raise ValueError("empty amount")
    else:
        text = raw

    try:
        value = to_decimal(text)
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"not a number: {raw!r}") from e

    if not value.is_finite():
        raise ValueError(f"not a finite number: {raw!r}")
    return value


def clamp(value: Decimal, low: Decimal, high: Decimal) -> Decimal:
    return max(low, min(value, high))


def quantize_money(value: Decimal) -> Decimal:
    """Round to the minimum currency unit. Presentation boundary only."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_to_nearest(value: Decimal, step: Decimal) -> Decimal:
    """Round to the nearest multiple of step, halves away from zero"""
    steps = (to_decimal(value) / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return steps * step


# Stored as Numeric(18, 6); 11 integer digits leaves room for interest on top
MAX_INTEGER_DIGITS = 11
MAX_FRACTION_DIGITS = 6


def fits_money_precision(value: Decimal) -> bool:
    """
    True when value can be stored and quantized without overflow.

    Trailing zeros do not count: "12.5000000" fits, "0.0000001" and
    "1e40" do not.
    """
    if not value.is_finite():
        return False
    if value.is_zero():
        return True
    _, digits, exponent = value.normalize().as_tuple()
    fraction_digits = max(-exponent, 0)
    integer_digits = max(len(digits) + exponent, 0)
    return integer_digits <= MAX_INTEGER_DIGITS and fraction_digits <= MAX_FRACTION_DIGITS
