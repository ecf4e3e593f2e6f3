"""
Aggregate Discount — Configuration & Constants

Every keyword, band, default tier table and label lives here. No hardcoded
values in business logic.

Usage:
    from aggregate_discount.config import settings
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic_settings import BaseSettings


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Segment(str, Enum):
    """Buyer segment selecting which tier table applies."""
    GUIDEFITTERS = "guidefitters"  # segment A, ~22% base catalog discount
    RESELLERS = "resellers"        # segment B, ~45% base catalog discount


class ClassifierStrategy(str, Enum):
    """How a buyer is mapped to a segment. A deployment picks exactly one."""
    IDENTITY = "identity"
    PRICE_RATIO = "price_ratio"


class DiscountModel(str, Enum):
    """Which baseline a line's extra discount is computed against."""
    PERCENT_DIFFERENTIAL = "percent_differential"
    PRICE_ANCHORED = "price_anchored"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """
    Central configuration for the aggregate discount engine.

    Loads from environment variables with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # -----------------------------------------------------------------------
    # Deployment switches
    # -----------------------------------------------------------------------
    CLASSIFIER_STRATEGY: ClassifierStrategy = ClassifierStrategy.IDENTITY
    DISCOUNT_MODEL: DiscountModel = DiscountModel.PERCENT_DIFFERENTIAL

    # Price-anchored model only: below the lowest tier, target the segment's
    # basePercent instead of emitting nothing.
    BELOW_TIER_USES_BASE_PERCENT: bool = False

    LOG_LEVEL: str = "INFO"

    # -----------------------------------------------------------------------
    # Eligibility
    # -----------------------------------------------------------------------
    QUALIFYING_TAG: str = "15pack"

    # -----------------------------------------------------------------------
    # Identity classification
    # Checked in order: segment B keyword first, then segment A.
    # -----------------------------------------------------------------------
    SEGMENT_B_KEYWORD: str = "reseller"
    SEGMENT_A_KEYWORD: str = "guidefitter"
    DEFAULT_SEGMENT: Segment = Segment.GUIDEFITTERS  # B2B buyer, no keyword matched

    # -----------------------------------------------------------------------
    # Price-ratio classification
    # current / list ratio bands, inclusive on both ends
    # -----------------------------------------------------------------------
    PRICE_RATIO_BANDS: dict[Segment, tuple[Decimal, Decimal]] = {
        Segment.GUIDEFITTERS: (Decimal("0.73"), Decimal("0.83")),  # ~22% off list
        Segment.RESELLERS: (Decimal("0.50"), Decimal("0.60")),     # ~45% off list
    }

    # -----------------------------------------------------------------------
    # Built-in tier table, used when the shop setting is absent or malformed
    # -----------------------------------------------------------------------
    DEFAULT_TIER_CONFIG: dict[str, Any] = {
        "guidefitters": {
            "tiers": [
                {"min_quantity": 12, "discount_percent": "14.07"},
                {"min_quantity": 48, "discount_percent": "29.5"},
            ],
        },
        "resellers": {
            "tiers": [
                {"min_quantity": 48, "discount_percent": "9.1"},
            ],
        },
    }

    # -----------------------------------------------------------------------
    # Output
    # -----------------------------------------------------------------------
    DISCOUNT_LABEL_TEMPLATE: str = "B2B Volume Discount ({quantity} units)"


# Singleton instance
settings = Settings()
