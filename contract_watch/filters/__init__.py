"""
Filters Package
===============

Text heuristics applied to fetched page content.
"""

from .large_amounts import (
    AMOUNT_PATTERNS,
    parse_magnitude,
    extract_amounts,
    flag_large_amounts,
    new_large_amounts,
)

__all__ = [
    "AMOUNT_PATTERNS",
    "parse_magnitude",
    "extract_amounts",
    "flag_large_amounts",
    "new_large_amounts",
]
