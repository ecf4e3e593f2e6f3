"""
Aggregate Discount — Aggregation Engine (Orchestrator)

Runs one cart evaluation in strict order:
1. Load Config — shop setting, or the built-in default table
2. Parse Lines — one record at a time; a bad record is skipped, not fatal
3. Classify Segment — identity or price-ratio strategy
4. Scan Lines — eligible lines only, summing aggregate quantity
5. Resolve Aggregate Tier — highest tier the whole cart reaches
6. Compute Per Line — extra discount each line needs to reach that tier
7. Emit — one DiscountRecord per line with a positive extra discount

Each stage may end the evaluation early with an empty discount list. The
engine never raises: unexpected failures become an empty result carrying an
"evaluation_failed" diagnostic.

The engine holds no state between evaluate() calls.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

import structlog
from pydantic import ValidationError

from aggregate_discount.config import DiscountModel, Settings, settings as default_settings
from aggregate_discount.engine.diagnostics import warn
from aggregate_discount.engine.differential import (
    calculate_differential_discount,
    calculate_price_anchored_discount,
)
from aggregate_discount.engine.segment import SegmentClassifier, build_classifier
from aggregate_discount.engine.tier_config import load_tier_config
from aggregate_discount.engine.tier_resolver import resolve_tier
from aggregate_discount.models.cart import CartLine, EvaluationInput
from aggregate_discount.models.discount import Diagnostic, DiscountRecord, EvaluationResult
from aggregate_discount.models.tiers import SegmentTiers, Tier
from aggregate_discount.utils.percent import ZERO

logger = structlog.get_logger(__name__)

_SOURCE = "aggregation"


class AggregationEngine:
    """Computes per-line discounts from the cart's aggregate eligible quantity."""

    def __init__(
        self,
        classifier: SegmentClassifier | None = None,
        model: DiscountModel | None = None,
        cfg: Settings | None = None,
    ):
        self.settings = cfg or default_settings
        self.classifier = classifier or build_classifier(self.settings)
        self.model = model or self.settings.DISCOUNT_MODEL

    def evaluate(self, request: EvaluationInput | Mapping[str, Any]) -> EvaluationResult:
        """
        Evaluate one cart.

        Args:
            request: EvaluationInput, or a plain mapping validated into one.

        Returns:
            EvaluationResult. discounts is empty whenever no line qualifies.
        """
        try:
            if not isinstance(request, EvaluationInput):
                request = EvaluationInput.model_validate(request)
            return self._evaluate(request)
        except Exception as e:
            logger.error(
                "aggregate_discount_evaluation_failed",
                error=str(e),
                error_type=type(e).__name__,
                source=_SOURCE,
            )
            return EvaluationResult(
                diagnostics=(
                    Diagnostic(
                        code="evaluation_failed",
                        message=f"{type(e).__name__}: {e}",
                    ),
                ),
            )

    # -------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------

    def _evaluate(self, request: EvaluationInput) -> EvaluationResult:
        # 1. LOAD CONFIG
        tier_config, loaded = load_tier_config(request.config, self.settings)
        diagnostics: list[Diagnostic] = list(loaded)

        def done(**fields: Any) -> EvaluationResult:
            return EvaluationResult(
                diagnostics=tuple(diagnostics),
                config_source=tier_config.source,
                **fields,
            )

        # 2. PARSE LINES
        lines = self._parse_lines(request.lines, diagnostics)

        # 3. CLASSIFY SEGMENT
        segment = self.classifier.classify(request.buyer, lines)
        if segment is None:
            logger.info("aggregate_discount_skipped", reason="no_segment", source=_SOURCE)
            return done()

        table = tier_config.for_segment(segment)
        if table is None or not table.tiers:
            warn(
                diagnostics,
                "segment_config_missing",
                f"No tiers configured for segment '{segment.value}'",
                source=_SOURCE,
                segment=segment.value,
            )
            return done(segment=segment)

        # 4. SCAN LINES
        eligible = self._scan_lines(lines, diagnostics)
        aggregate_quantity = sum(line.quantity for line in eligible)
        if not eligible or aggregate_quantity <= 0:
            logger.info(
                "aggregate_discount_skipped",
                reason="no_eligible_lines",
                segment=segment.value,
                source=_SOURCE,
            )
            return done(segment=segment)

        # 5. RESOLVE AGGREGATE TIER
        aggregate_tier = resolve_tier(table.tiers, aggregate_quantity)
        target_percent = self._aggregate_target(aggregate_tier, table)
        if target_percent is None:
            logger.info(
                "aggregate_discount_skipped",
                reason="below_lowest_tier",
                segment=segment.value,
                aggregate_quantity=aggregate_quantity,
                lowest_threshold=table.lowest_threshold,
                source=_SOURCE,
            )
            return done(segment=segment, aggregate_quantity=aggregate_quantity)

        # 6. COMPUTE PER LINE / 7. EMIT
        label = self.settings.DISCOUNT_LABEL_TEMPLATE.format(quantity=aggregate_quantity)
        discounts: list[DiscountRecord] = []
        for line in eligible:
            percent = self._line_discount(line, table, target_percent)
            if percent > ZERO:
                discounts.append(DiscountRecord(line_id=line.id, percent=percent, label=label))

        logger.info(
            "aggregate_discount_evaluated",
            segment=segment.value,
            model=self.model.value,
            aggregate_quantity=aggregate_quantity,
            target_percent=str(target_percent),
            eligible_lines=len(eligible),
            discounted_lines=len(discounts),
            source=_SOURCE,
        )
        return done(
            discounts=tuple(discounts),
            segment=segment,
            aggregate_quantity=aggregate_quantity,
            aggregate_tier=aggregate_tier,
        )

    def _parse_lines(
        self,
        raw_lines: tuple[Any, ...],
        diagnostics: list[Diagnostic],
    ) -> list[CartLine]:
        """Validate each line record, skipping the ones that cannot be read."""
        tag = self.settings.QUALIFYING_TAG
        lines: list[CartLine] = []
        for index, raw in enumerate(raw_lines):
            try:
                line = CartLine.model_validate(raw)
            except ValidationError as e:
                first = e.errors()[0]
                field = ".".join(str(part) for part in first["loc"]) or "line"
                line_id = raw.get("id") if isinstance(raw, Mapping) else None
                warn(
                    diagnostics,
                    "line_invalid",
                    f"Skipped cart line {index}: {field}: {first['msg']}",
                    source=_SOURCE,
                    line_id=str(line_id) if line_id is not None else None,
                    line_index=index,
                )
                continue

            if "eligible" not in line.model_fields_set and line.tags:
                line = line.model_copy(update={"eligible": line.has_tag(tag)})
            lines.append(line)
        return lines

    def _scan_lines(
        self,
        lines: list[CartLine],
        diagnostics: list[Diagnostic],
    ) -> list[CartLine]:
        """Keep tagged lines with a positive quantity (and prices, when anchored)."""
        eligible: list[CartLine] = []
        for line in lines:
            if not line.eligible:
                continue

            if line.quantity <= 0:
                warn(
                    diagnostics,
                    "invalid_quantity",
                    f"Line {line.id} has non-positive quantity {line.quantity}",
                    source=_SOURCE,
                    line_id=line.id,
                    quantity=line.quantity,
                )
                continue

            if self.model == DiscountModel.PRICE_ANCHORED:
                if line.unit_list_price is None or line.unit_list_price <= ZERO:
                    warn(
                        diagnostics,
                        "missing_list_price",
                        f"No list price for variant {line.variant_id}, "
                        f"product: {line.product_title}",
                        source=_SOURCE,
                        line_id=line.id,
                    )
                    continue
                if line.unit_current_price is None or line.unit_current_price <= ZERO:
                    warn(
                        diagnostics,
                        "missing_current_price",
                        f"No current price for line {line.id}",
                        source=_SOURCE,
                        line_id=line.id,
                    )
                    continue

            eligible.append(line)
        return eligible

    def _aggregate_target(self, tier: Tier | None, table: SegmentTiers) -> Decimal | None:
        if tier is not None:
            return tier.percent
        if (
            self.model == DiscountModel.PRICE_ANCHORED
            and self.settings.BELOW_TIER_USES_BASE_PERCENT
            and table.base_percent is not None
        ):
            return table.base_percent
        return None

    def _line_discount(self, line: CartLine, table: SegmentTiers, target_percent: Decimal) -> Decimal:
        if self.model == DiscountModel.PRICE_ANCHORED:
            return calculate_price_anchored_discount(
                line.unit_current_price,
                line.unit_list_price,
                target_percent,
            )

        line_tier = resolve_tier(table.tiers, line.quantity)
        per_line_percent = line_tier.percent if line_tier else ZERO
        return calculate_differential_discount(target_percent, per_line_percent)


def evaluate_cart(
    request: EvaluationInput | Mapping[str, Any],
    classifier: SegmentClassifier | None = None,
    model: DiscountModel | None = None,
    cfg: Settings | None = None,
) -> EvaluationResult:
    """Evaluate one cart with a fresh engine."""
    return AggregationEngine(classifier=classifier, model=model, cfg=cfg).evaluate(request)
