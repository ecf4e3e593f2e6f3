"""
Aggregate Discount — Tier Resolver

The resolved tier for a quantity is the tier with the highest threshold the
quantity meets or exceeds. No tier met means base pricing.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from aggregate_discount.models.tiers import Tier

logger = structlog.get_logger(__name__)


def resolve_tier(tiers: Iterable[Tier], quantity: int) -> Tier | None:
    """
    Find the highest tier reached by quantity.

    Input order does not matter. On equal thresholds the last one found
    wins. Tiers with a non-positive threshold are ignored.

    Args:
        tiers: A segment's tier table.
        quantity: Aggregate or per-line unit count.

    Returns:
        The resolved Tier, or None if quantity is below every threshold.
    """
    chosen: Tier | None = None
    for tier in tiers:
        if tier.min_quantity <= 0:
            continue
        if quantity < tier.min_quantity:
            continue
        if chosen is None or tier.min_quantity >= chosen.min_quantity:
            chosen = tier

    logger.debug(
        "tier_resolved",
        quantity=quantity,
        min_quantity=chosen.min_quantity if chosen else None,
        percent=str(chosen.percent) if chosen else None,
        source="tier_resolver",
    )
    return chosen
