"""
Aggregate Discount — Tier Configuration Loader

Turns the shop-level setting (a JSON document or an already-parsed mapping)
into a validated, normalized TierConfig:

    { "<segment>": { "tiers": [ { "minQuantity": n, "discountPercent": p }, ... ],
                     "basePercent": p } }

Normalization happens once, here: invalid tiers are dropped, tables are
sorted ascending by threshold and deduplicated (last tier found for a
threshold wins).

Absent or malformed documents fall back to settings.DEFAULT_TIER_CONFIG with
a warning. A malformed document is one that is not JSON, not an object, or
has no recognised segment key. This module never raises to its callers.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from aggregate_discount.config import Segment, Settings, settings as default_settings
from aggregate_discount.engine.diagnostics import warn
from aggregate_discount.models.discount import Diagnostic
from aggregate_discount.models.tiers import SegmentTiers, Tier, TierConfig

logger = structlog.get_logger(__name__)

_SOURCE = "tier_config"


class TierConfigError(ValueError):
    """The configuration document as a whole is unusable."""


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    err = errors[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def _parse_segment(
    segment: Segment,
    entry: Any,
    diagnostics: list[Diagnostic],
) -> SegmentTiers | None:
    if not isinstance(entry, Mapping):
        warn(
            diagnostics,
            "config_segment_invalid",
            f"Entry for segment '{segment.value}' is not an object",
            source=_SOURCE,
            segment=segment.value,
        )
        return None

    raw_tiers = entry.get("tiers")
    if not isinstance(raw_tiers, list):
        warn(
            diagnostics,
            "config_tiers_invalid",
            f"Segment '{segment.value}' has no tiers list",
            source=_SOURCE,
            segment=segment.value,
        )
        raw_tiers = []

    by_threshold: dict[int, Tier] = {}
    for index, raw_tier in enumerate(raw_tiers):
        try:
            tier = Tier.model_validate(raw_tier)
        except ValidationError as e:
            warn(
                diagnostics,
                "config_tier_invalid",
                f"Dropped tier #{index} of segment '{segment.value}': {_first_error(e)}",
                source=_SOURCE,
                segment=segment.value,
                tier_index=index,
            )
            continue
        if tier.min_quantity in by_threshold:
            warn(
                diagnostics,
                "config_tier_duplicate",
                f"Segment '{segment.value}' lists threshold {tier.min_quantity} more than "
                f"once; keeping the last one",
                source=_SOURCE,
                segment=segment.value,
                min_quantity=tier.min_quantity,
            )
        by_threshold[tier.min_quantity] = tier

    tiers = tuple(by_threshold[q] for q in sorted(by_threshold))

    base_raw = entry.get("base_percent", entry.get("basePercent"))
    try:
        return SegmentTiers.model_validate({"tiers": tiers, "base_percent": base_raw})
    except ValidationError as e:
        warn(
            diagnostics,
            "config_base_percent_invalid",
            f"Ignored basePercent of segment '{segment.value}': {_first_error(e)}",
            source=_SOURCE,
            segment=segment.value,
        )
        return SegmentTiers(tiers=tiers)


def parse_tier_config(
    raw: Any,
    source: str = "metafield",
) -> tuple[TierConfig, list[Diagnostic]]:
    """
    Parse and normalize a tier configuration document.

    Unknown segment keys, invalid tiers and invalid base percents are dropped
    with a diagnostic. A segment whose tiers are all invalid is kept with an
    empty table so the engine can report it.

    Args:
        raw: JSON text or an already-parsed document.
        source: Recorded on the TierConfig ("metafield" or "default").

    Returns:
        (TierConfig, diagnostics) tuple.

    Raises:
        TierConfigError: If the document is not JSON, not an object, or
                         names no known segment.
    """
    if isinstance(raw, str):
        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as e:
            raise TierConfigError(f"Tier config is not valid JSON: {e.msg}") from e
    else:
        doc = raw

    if not isinstance(doc, Mapping):
        raise TierConfigError(
            f"Tier config must be an object, got {type(doc).__name__}"
        )

    diagnostics: list[Diagnostic] = []
    segments: dict[Segment, SegmentTiers] = {}

    for key, entry in doc.items():
        try:
            segment = Segment(str(key).strip().lower())
        except ValueError:
            warn(
                diagnostics,
                "config_segment_unknown",
                f"Ignored unknown segment '{key}'",
                source=_SOURCE,
                segment=str(key),
            )
            continue
        table = _parse_segment(segment, entry, diagnostics)
        if table is not None:
            segments[segment] = table

    if not segments:
        raise TierConfigError("Tier config names no known segment")

    config = TierConfig(segments=segments, source=source)
    logger.debug(
        "tier_config_parsed",
        source=source,
        segments={s.value: len(t.tiers) for s, t in segments.items()},
        dropped=len(diagnostics),
    )
    return config, diagnostics


def default_tier_config(cfg: Settings | None = None) -> TierConfig:
    """The built-in table from settings."""
    cfg = cfg or default_settings
    config, _ = parse_tier_config(cfg.DEFAULT_TIER_CONFIG, source="default")
    return config


def load_tier_config(
    raw: Any,
    cfg: Settings | None = None,
) -> tuple[TierConfig, list[Diagnostic]]:
    """
    Load the configuration for one evaluation, falling back to the default.

    Args:
        raw: The shop-level setting, or None when it is not set.
        cfg: Settings override (defaults to the module singleton).

    Returns:
        (TierConfig, diagnostics). Never raises.
    """
    cfg = cfg or default_settings

    if raw is None or (isinstance(raw, str) and not raw.strip()):
        diagnostics: list[Diagnostic] = []
        warn(
            diagnostics,
            "config_missing",
            "No tier config found; using built-in default",
            source=_SOURCE,
        )
        return default_tier_config(cfg), diagnostics

    try:
        return parse_tier_config(raw)
    except TierConfigError as e:
        diagnostics = []
        warn(
            diagnostics,
            "config_malformed",
            f"{e}; using built-in default",
            source=_SOURCE,
        )
        return default_tier_config(cfg), diagnostics
