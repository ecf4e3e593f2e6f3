"""
Tier table models.

A segment's table is a set of (quantity threshold, percent) pairs. Tables are
normalized once at load time: sorted ascending by threshold, one tier per
threshold.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from aggregate_discount.config import Segment


def _to_decimal(v: Any) -> Any:
    """Route floats through str() so 14.07 stays Decimal('14.07')."""
    if isinstance(v, bool):
        raise ValueError("percent must be numeric, not a boolean")
    if isinstance(v, float):
        v = str(v)
    if isinstance(v, str):
        try:
            v = Decimal(v.strip())
        except InvalidOperation as e:
            raise ValueError(f"not a number: {v!r}") from e
    if isinstance(v, Decimal) and not v.is_finite():
        raise ValueError("percent must be finite")
    return v


class Tier(BaseModel):
    """One quantity threshold and the percent it unlocks."""

    model_config = ConfigDict(frozen=True)

    min_quantity: int = Field(
        ...,
        gt=0,
        validation_alias=AliasChoices("min_quantity", "minQuantity", "min"),
    )
    # Percent off the current price (percent-differential model) or the
    # target percent off list (price-anchored model).
    percent: Decimal = Field(
        ...,
        ge=Decimal("0"),
        lt=Decimal("100"),
        validation_alias=AliasChoices(
            "percent", "discount_percent", "discountPercent",
            "target_percent_off_list", "targetPercentOffList",
        ),
    )

    @field_validator("percent", mode="before")
    @classmethod
    def parse_percent(cls, v: Any) -> Any:
        return _to_decimal(v)


class SegmentTiers(BaseModel):
    """Normalized tier table for one segment."""

    model_config = ConfigDict(frozen=True)

    tiers: tuple[Tier, ...] = ()
    base_percent: Decimal | None = Field(
        default=None,
        ge=Decimal("0"),
        lt=Decimal("100"),
        validation_alias=AliasChoices("base_percent", "basePercent"),
    )

    @field_validator("base_percent", mode="before")
    @classmethod
    def parse_base_percent(cls, v: Any) -> Any:
        if v is None:
            return None
        return _to_decimal(v)

    @property
    def lowest_threshold(self) -> int | None:
        return self.tiers[0].min_quantity if self.tiers else None


class TierConfig(BaseModel):
    """Segment → tier table snapshot for one evaluation."""

    model_config = ConfigDict(frozen=True)

    segments: dict[Segment, SegmentTiers] = Field(default_factory=dict)
    source: str = "default"  # "metafield" | "default"

    def for_segment(self, segment: Segment) -> SegmentTiers | None:
        return self.segments.get(segment)
