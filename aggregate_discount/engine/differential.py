"""
Aggregate Discount — Differential Discount Calculator

Two accounting models for the extra percent a line needs:

Percent-differential (tiers are percents off the current price):
    A line already discounted by p_line must end up where p_agg would put it.
    Discounts compose multiplicatively, so

        extra = (1 - (1 - p_agg/100) / (1 - p_line/100)) × 100

    Example: line at 14.07%, aggregate tier 29.5%
        0.705 / 0.8593 = 0.82044 → extra = 17.96%   (not 29.5 - 14.07 = 15.43)

Price-anchored (tiers are target percents off list):
        target = list × (1 - p_target/100)
        extra  = (current - target) / current × 100

    The result is a percent of the CURRENT price, which is what the checkout
    discount applies to. It is not a percent off list.

Both return 0 rather than a negative or non-finite number. All results are
2dp, ROUND_HALF_UP.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from aggregate_discount.utils.percent import (
    ZERO,
    is_valid_percent,
    quantize,
    retained_factor,
)

logger = structlog.get_logger(__name__)

_HUNDRED = Decimal("100")
# Rounding must not turn a sub-100 result into a 100% discount.
_MAX_PERCENT = Decimal("99.99")


def calculate_differential_discount(
    aggregate_percent: Decimal,
    per_line_percent: Decimal,
) -> Decimal:
    """
    Extra percent needed to move a line from its own tier to the aggregate tier.

    Rules:
    - aggregate <= per_line → 0 (never reduce a line's discount)
    - per_line == 0 → aggregate unchanged
    - otherwise the multiplicative differential above

    Args:
        aggregate_percent: Percent of the tier the whole cart reached.
        per_line_percent: Percent the line already gets on its own quantity.

    Returns:
        Decimal percent in [0, 100), 2dp. Inputs outside [0, 100) yield 0.
    """
    if not (is_valid_percent(aggregate_percent) and is_valid_percent(per_line_percent)):
        logger.warning(
            "differential_input_invalid",
            aggregate_percent=str(aggregate_percent),
            per_line_percent=str(per_line_percent),
            source="differential",
        )
        return ZERO

    if aggregate_percent <= per_line_percent:
        return ZERO

    if per_line_percent == ZERO:
        return min(quantize(aggregate_percent), _MAX_PERCENT)

    additional_retained = retained_factor(aggregate_percent) / retained_factor(per_line_percent)
    result = quantize((Decimal("1") - additional_retained) * _HUNDRED)

    logger.debug(
        "differential_calculated",
        aggregate_percent=str(aggregate_percent),
        per_line_percent=str(per_line_percent),
        additional_percent=str(result),
        source="differential",
    )
    return min(max(result, ZERO), _MAX_PERCENT)


def calculate_price_anchored_discount(
    current_unit_price: Decimal,
    list_unit_price: Decimal,
    target_percent_off_list: Decimal,
) -> Decimal:
    """
    Percent off the current price needed to reach the target price off list.

    Args:
        current_unit_price: What the line costs per unit right now.
        list_unit_price: Authoritative list price per unit.
        target_percent_off_list: Aggregate tier's target, as percent off list.

    Returns:
        Decimal percent in [0, 100), 2dp. 0 when the line is already at or
        below target, or when any input is non-positive or out of range.
    """
    if (
        not current_unit_price.is_finite()
        or not list_unit_price.is_finite()
        or current_unit_price <= ZERO
        or list_unit_price <= ZERO
        or not is_valid_percent(target_percent_off_list)
    ):
        logger.warning(
            "price_anchored_input_invalid",
            current_unit_price=str(current_unit_price),
            list_unit_price=str(list_unit_price),
            target_percent_off_list=str(target_percent_off_list),
            source="differential",
        )
        return ZERO

    target_price = list_unit_price * retained_factor(target_percent_off_list)
    if current_unit_price <= target_price:
        return ZERO

    result = quantize((current_unit_price - target_price) / current_unit_price * _HUNDRED)

    logger.debug(
        "price_anchored_calculated",
        current_unit_price=str(current_unit_price),
        list_unit_price=str(list_unit_price),
        target_price=str(target_price),
        additional_percent=str(result),
        source="differential",
    )
    return min(result, _MAX_PERCENT)
