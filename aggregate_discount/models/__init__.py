"""
Models package — export all input, config and output records.
"""

from aggregate_discount.models.cart import BuyerIdentity, CartLine, EvaluationInput
from aggregate_discount.models.discount import Diagnostic, DiscountRecord, EvaluationResult
from aggregate_discount.models.tiers import SegmentTiers, Tier, TierConfig

__all__ = [
    "BuyerIdentity",
    "CartLine",
    "Diagnostic",
    "DiscountRecord",
    "EvaluationInput",
    "EvaluationResult",
    "SegmentTiers",
    "Tier",
    "TierConfig",
]
