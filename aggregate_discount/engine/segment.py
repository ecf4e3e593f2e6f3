"""
Aggregate Discount — Segment Classification

Two interchangeable strategies decide which tier table governs a buyer. A
deployment picks exactly one via settings.CLASSIFIER_STRATEGY; they are
never combined.

Identity:
    Match the buyer's catalog title against segment keywords, segment B
    ("reseller") before segment A ("guidefitter"). A B2B buyer whose title
    matches neither falls back to segment A. No catalog → not B2B.

Price ratio:
    current / list on the first eligible line with both prices. Each segment
    has a band around its base catalog discount (A: 0.73–0.83 ≈ 22% off,
    B: 0.50–0.60 ≈ 45% off). Outside every band → direct-to-consumer.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

import structlog

from aggregate_discount.config import ClassifierStrategy, Segment, Settings, settings as default_settings
from aggregate_discount.models.cart import BuyerIdentity, CartLine

logger = structlog.get_logger(__name__)


class SegmentClassifier(Protocol):
    """Maps a buyer (and, for some strategies, the cart) to a segment."""

    def classify(
        self,
        buyer: BuyerIdentity,
        lines: Sequence[CartLine] = (),
    ) -> Segment | None:
        ...


class IdentityClassifier:
    """Classify from the catalog title of the buyer's purchasing relationship."""

    def __init__(self, cfg: Settings | None = None):
        cfg = cfg or default_settings
        self._b_keyword = cfg.SEGMENT_B_KEYWORD.lower()
        self._a_keyword = cfg.SEGMENT_A_KEYWORD.lower()
        self._default = cfg.DEFAULT_SEGMENT

    def classify(
        self,
        buyer: BuyerIdentity,
        lines: Sequence[CartLine] = (),
    ) -> Segment | None:
        if not buyer.has_catalog:
            logger.info("segment_not_b2b", reason="no_catalog", source="segment")
            return None

        title = buyer.catalog_title.lower()
        if self._b_keyword in title:
            segment = Segment.RESELLERS
            matched = self._b_keyword
        elif self._a_keyword in title:
            segment = Segment.GUIDEFITTERS
            matched = self._a_keyword
        else:
            segment = self._default
            matched = None

        logger.info(
            "segment_classified",
            strategy=ClassifierStrategy.IDENTITY.value,
            catalog_title=buyer.catalog_title,
            company_name=buyer.company_name,
            matched_keyword=matched,
            segment=segment.value,
            source="segment",
        )
        return segment


class PriceRatioClassifier:
    """Classify from how far the first eligible line's price sits below list."""

    def __init__(self, cfg: Settings | None = None):
        cfg = cfg or default_settings
        self._bands: dict[Segment, tuple[Decimal, Decimal]] = dict(cfg.PRICE_RATIO_BANDS)

    def classify(
        self,
        buyer: BuyerIdentity,
        lines: Sequence[CartLine] = (),
    ) -> Segment | None:
        sample = next(
            (line for line in lines if line.eligible and line.quantity > 0 and line.has_prices),
            None,
        )
        if sample is None:
            logger.info("segment_not_b2b", reason="no_priced_eligible_line", source="segment")
            return None

        ratio = sample.unit_current_price / sample.unit_list_price
        segment = self.segment_for_ratio(ratio)

        logger.info(
            "segment_classified",
            strategy=ClassifierStrategy.PRICE_RATIO.value,
            line_id=sample.id,
            ratio=str(ratio),
            segment=segment.value if segment else None,
            source="segment",
        )
        return segment

    def segment_for_ratio(self, ratio: Decimal) -> Segment | None:
        for segment, (low, high) in self._bands.items():
            if low <= ratio <= high:
                return segment
        return None


def build_classifier(cfg: Settings | None = None) -> SegmentClassifier:
    """Return the classifier the deployment is configured for."""
    cfg = cfg or default_settings
    if cfg.CLASSIFIER_STRATEGY == ClassifierStrategy.PRICE_RATIO:
        return PriceRatioClassifier(cfg)
    return IdentityClassifier(cfg)
