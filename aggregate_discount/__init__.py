"""
Aggregate Discount — per-line volume discounts from the cart's aggregate quantity.
"""

__version__ = "0.1.0"
