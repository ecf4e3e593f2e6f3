"""
Aggregate Discount — Command-Line Entrypoint

Configures structlog and evaluates one normalized cart document:

    {
      "buyer": {"catalogTitle": "Guidefitter Wholesale"},
      "lines": [{"id": "gid://line/1", "quantity": 6, "eligible": true}, ...],
      "config": "{\"guidefitters\": {\"tiers\": [...]}}"
    }

Run via:
    python -m aggregate_discount.main cart.json
    python -m aggregate_discount.main cart.json --model price_anchored --strategy price_ratio
    cat cart.json | python -m aggregate_discount.main -
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

import structlog

from aggregate_discount.config import ClassifierStrategy, DiscountModel, settings
from aggregate_discount.engine.aggregation import AggregationEngine
from aggregate_discount.engine.segment import build_classifier


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def _configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output on stderr.

    stdout carries the discount payload, so logs must stay off it.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute per-line aggregate volume discounts for one cart.",
    )
    parser.add_argument(
        "input",
        help="Path to the cart JSON document, or '-' to read stdin.",
    )
    parser.add_argument(
        "--model",
        choices=[m.value for m in DiscountModel],
        default=None,
        help=f"Discount model (default: {settings.DISCOUNT_MODEL.value}).",
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in ClassifierStrategy],
        default=None,
        help=f"Segment classifier (default: {settings.CLASSIFIER_STRATEGY.value}).",
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        help="Logging level (default: %(default)s).",
    )
    return parser.parse_args(argv)


def _read_document(path: str) -> dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def main(argv: list[str] | None = None) -> int:
    """
    Evaluate the cart and print {"discounts": [...], "diagnostics": [...]}.

    Returns:
        Process exit code: 0 on success, 2 if the input file is unreadable.
    """
    args = parse_args(argv)
    _configure_logging(args.log_level)
    logger = structlog.get_logger(__name__)

    try:
        document = _read_document(args.input)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(
            "cart_document_unreadable",
            path=args.input,
            error=str(e),
            error_type=type(e).__name__,
        )
        return 2

    cfg = settings
    if args.strategy is not None:
        cfg = settings.model_copy(
            update={"CLASSIFIER_STRATEGY": ClassifierStrategy(args.strategy)}
        )
    model = DiscountModel(args.model) if args.model else None

    engine = AggregationEngine(classifier=build_classifier(cfg), model=model, cfg=cfg)
    result = engine.evaluate(document)

    json.dump(result.to_payload(), sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
