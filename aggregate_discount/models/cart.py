"""
Normalized cart input records supplied by the host.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class BuyerIdentity(BaseModel):
    """The buyer's purchasing relationship, as far as classification needs it."""

    model_config = ConfigDict(frozen=True)

    catalog_title: str | None = Field(
        default=None,
        validation_alias=AliasChoices("catalog_title", "catalogTitle"),
    )
    company_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("company_name", "companyName"),
    )

    @property
    def has_catalog(self) -> bool:
        return bool(self.catalog_title and self.catalog_title.strip())


class CartLine(BaseModel):
    """
    One cart line.

    quantity is deliberately unconstrained here: a non-positive quantity must
    reach the engine, which skips it with a diagnostic. eligible is taken from
    tags when the host sends tags without an explicit flag.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., validation_alias=AliasChoices("id", "line_id", "lineId"))
    quantity: int
    eligible: bool = False
    tags: tuple[str, ...] = ()
    unit_list_price: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("unit_list_price", "unitListPrice"),
    )
    unit_current_price: Decimal | None = Field(
        default=None,
        validation_alias=AliasChoices("unit_current_price", "unitCurrentPrice"),
    )
    product_title: str | None = Field(
        default=None,
        validation_alias=AliasChoices("product_title", "productTitle"),
    )
    variant_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("variant_id", "variantId"),
    )

    @field_validator("unit_list_price", "unit_current_price", mode="before")
    @classmethod
    def parse_decimal(cls, v: Any) -> Decimal | None:
        """Safely convert price values to Decimal. Never use float for money."""
        if v is None or v == "" or isinstance(v, bool):
            return None
        try:
            value = Decimal(str(v))
        except (InvalidOperation, ValueError):
            return None
        return value if value.is_finite() else None

    def has_tag(self, tag: str) -> bool:
        wanted = tag.strip().lower()
        return any(t.strip().lower() == wanted for t in self.tags)

    @property
    def has_prices(self) -> bool:
        """Both prices present and positive."""
        return (
            self.unit_list_price is not None
            and self.unit_current_price is not None
            and self.unit_list_price > 0
            and self.unit_current_price > 0
        )


class EvaluationInput(BaseModel):
    """Immutable snapshot of one cart evaluation request."""

    model_config = ConfigDict(frozen=True)

    buyer: BuyerIdentity = Field(default_factory=BuyerIdentity)
    # Lines are validated one at a time by the engine, so one bad record
    # cannot reject the whole cart.
    lines: tuple[Any, ...] = ()
    # Raw shop-level setting: normally a JSON document or a parsed mapping.
    config: Any = None
