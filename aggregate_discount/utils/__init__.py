from aggregate_discount.utils.percent import (
    apply_percent,
    format_percent,
    is_valid_percent,
    quantize,
    retained_factor,
)

__all__ = [
    "apply_percent",
    "format_percent",
    "is_valid_percent",
    "quantize",
    "retained_factor",
]
