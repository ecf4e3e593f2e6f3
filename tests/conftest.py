"""
Aggregate Discount — Shared pytest Fixtures

Provides common fixtures for all test modules:
- Tier configuration documents (percent tiers and price-anchored tiers)
- Buyer identities for each segment
- Settings overrides
"""

from __future__ import annotations

import copy
import json
from typing import Any

import pytest

from aggregate_discount.config import ClassifierStrategy, DiscountModel, Settings, settings
from aggregate_discount.models.cart import BuyerIdentity


# ---------------------------------------------------------------------------
# Tier Documents
# ---------------------------------------------------------------------------

SCENARIO_TIERS: dict[str, Any] = {
    "guidefitters": {
        "tiers": [
            {"minQuantity": 12, "discountPercent": 14.07},
            {"minQuantity": 48, "discountPercent": 29.5},
        ],
    },
    "resellers": {
        "tiers": [
            {"minQuantity": 48, "discountPercent": 9.1},
        ],
    },
}

# Target percent off list, with the catalog's base discount.
PRICE_ANCHORED_TIERS: dict[str, Any] = {
    "guidefitters": {
        "basePercent": 22,
        "tiers": [
            {"min": 12, "percent": 33},
            {"min": 48, "percent": 45},
        ],
    },
    "resellers": {
        "basePercent": 45,
        "tiers": [
            {"min": 48, "percent": 50},
        ],
    },
}


@pytest.fixture
def scenario_tiers() -> dict[str, Any]:
    return copy.deepcopy(SCENARIO_TIERS)


@pytest.fixture
def price_anchored_tiers() -> dict[str, Any]:
    return copy.deepcopy(PRICE_ANCHORED_TIERS)


@pytest.fixture
def scenario_config() -> str:
    """Shop setting as the host delivers it: a JSON string."""
    return json.dumps(SCENARIO_TIERS)


@pytest.fixture
def price_anchored_config() -> str:
    return json.dumps(PRICE_ANCHORED_TIERS)


# ---------------------------------------------------------------------------
# Buyers
# ---------------------------------------------------------------------------


@pytest.fixture
def guidefitter_buyer() -> BuyerIdentity:
    return BuyerIdentity(catalog_title="Guidefitter Wholesale 2026", company_name="Bighorn Outfitters")


@pytest.fixture
def reseller_buyer() -> BuyerIdentity:
    return BuyerIdentity(catalog_title="Reseller Catalog", company_name="Summit Supply")


@pytest.fixture
def consumer_buyer() -> BuyerIdentity:
    return BuyerIdentity()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def price_ratio_settings() -> Settings:
    return settings.model_copy(update={"CLASSIFIER_STRATEGY": ClassifierStrategy.PRICE_RATIO})


@pytest.fixture
def price_anchored_settings() -> Settings:
    return settings.model_copy(update={"DISCOUNT_MODEL": DiscountModel.PRICE_ANCHORED})
