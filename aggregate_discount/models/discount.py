"""
Engine output records: discount directives and non-fatal diagnostics.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict

from aggregate_discount.config import Segment
from aggregate_discount.models.tiers import Tier
from aggregate_discount.utils.percent import format_percent


class DiscountRecord(BaseModel):
    """Additional percent off one cart line's current price."""

    model_config = ConfigDict(frozen=True)

    line_id: str
    percent: Decimal
    label: str

    def to_directive(self) -> dict[str, str]:
        return {
            "lineId": self.line_id,
            "label": self.label,
            "percent": format_percent(self.percent),
        }


class Diagnostic(BaseModel):
    """A skipped line, a config fallback, or any other non-fatal condition."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    line_id: str | None = None
    segment: str | None = None


class EvaluationResult(BaseModel):
    """Everything one evaluation produced. discounts may be empty."""

    model_config = ConfigDict(frozen=True)

    discounts: tuple[DiscountRecord, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    segment: Segment | None = None
    aggregate_quantity: int = 0
    aggregate_tier: Tier | None = None
    config_source: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "discounts": [record.to_directive() for record in self.discounts],
            "diagnostics": [d.model_dump(exclude_none=True) for d in self.diagnostics],
        }
