"""
Aggregate Discount — Percent Arithmetic Helpers

All percentages are Decimal — never float — so 14.07 stays 14.07 and the
2dp half-up rounding matches what the checkout displays.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

_TWO_DP = Decimal("0.01")
_HUNDRED = Decimal("100")

ZERO = Decimal("0")


def quantize(value: Decimal) -> Decimal:
    return value.quantize(_TWO_DP, rounding=ROUND_HALF_UP)


def retained_factor(percent: Decimal) -> Decimal:
    """
    Share of the price kept after a percent discount.

    Examples:
        >>> retained_factor(Decimal("14.07"))
        Decimal('0.8593')
    """
    return Decimal("1") - percent / _HUNDRED


def apply_percent(price: Decimal, percent: Decimal) -> Decimal:
    """Price after taking percent off it (unrounded)."""
    return price * retained_factor(percent)


def is_valid_percent(value: Decimal) -> bool:
    """True for finite values in [0, 100)."""
    return value.is_finite() and ZERO <= value < _HUNDRED


def format_percent(value: Decimal) -> str:
    """
    Render a percent as a plain decimal string with at most 2 fraction digits.

    Examples:
        >>> format_percent(Decimal("14.070"))
        '14.07'
        >>> format_percent(Decimal("14.00"))
        '14'
        >>> format_percent(Decimal("17.5"))
        '17.5'
    """
    text = format(quantize(value), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
