from aggregate_discount.engine.aggregation import AggregationEngine, evaluate_cart
from aggregate_discount.engine.differential import (
    calculate_differential_discount,
    calculate_price_anchored_discount,
)
from aggregate_discount.engine.segment import (
    IdentityClassifier,
    PriceRatioClassifier,
    SegmentClassifier,
    build_classifier,
)
from aggregate_discount.engine.tier_config import (
    TierConfigError,
    load_tier_config,
    parse_tier_config,
)
from aggregate_discount.engine.tier_resolver import resolve_tier

__all__ = [
    "AggregationEngine",
    "IdentityClassifier",
    "PriceRatioClassifier",
    "SegmentClassifier",
    "TierConfigError",
    "build_classifier",
    "calculate_differential_discount",
    "calculate_price_anchored_discount",
    "evaluate_cart",
    "load_tier_config",
    "parse_tier_config",
    "resolve_tier",
]
