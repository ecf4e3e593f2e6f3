"""
Aggregate Discount — Diagnostic Channel

Skip and fallback paths never raise. They append a Diagnostic to the
evaluation's result and emit a structlog warning with the same code.
"""

from __future__ import annotations

from typing import Any

import structlog

from aggregate_discount.models.discount import Diagnostic

logger = structlog.get_logger(__name__)


def warn(
    sink: list[Diagnostic],
    code: str,
    message: str,
    *,
    source: str,
    line_id: str | None = None,
    segment: str | None = None,
    **context: Any,
) -> Diagnostic:
    """
    Record a non-fatal diagnostic and log it.

    Args:
        sink: The evaluation's diagnostic list (appended in place).
        code: Stable snake_case code, also used as the log event name.
        message: Human-readable explanation.
        source: Emitting module, for log filtering.
        line_id: Cart line the diagnostic refers to, if any.
        segment: Segment the diagnostic refers to, if any.
        **context: Extra key/value pairs for the log line only.

    Returns:
        The Diagnostic that was appended.
    """
    diagnostic = Diagnostic(code=code, message=message, line_id=line_id, segment=segment)
    sink.append(diagnostic)
    logger.warning(
        code,
        message=message,
        line_id=line_id,
        segment=segment,
        source=source,
        **context,
    )
    return diagnostic
