"""
Large Amount Heuristic
======================

Best-effort scan of explorer page text for numbers that look like large
transfers. This is approximate by nature: it does not understand the page,
it only pattern-matches text, and its output is advisory.

Pattern classes (case-insensitive, first MAX_MATCHES_PER_PATTERN of each):
1. Currency-suffixed numbers:  "5,000.25 weETH", "12 WETH", "3 ETH"
2. Dollar amounts:             "$1,250,000", "$4.5m"
3. Token counts:               "20,000 tokens"

Each match is reduced to its leading numeric portion (suffixes like k/m/b
are ignored, so the threshold is unit-agnostic) and flagged when the
magnitude is strictly greater than the threshold.
"""

import logging
import re
from decimal import Decimal, InvalidOperation
from itertools import islice
from typing import Iterable, List, Optional

from ..config import DEFAULT_LARGE_AMOUNT_THRESHOLD, MAX_MATCHES_PER_PATTERN
from ..models import LargeAmount

logger = logging.getLogger(__name__)

AMOUNT_PATTERNS = [
    re.compile(r"[\d,]+\.?\d*\s*(?:weETH|WETH|ETH)", re.IGNORECASE),
    re.compile(r"\$[\d,]+\.?\d*[kmb]?", re.IGNORECASE),
    re.compile(r"[\d,]+\.?\d*\s*tokens?", re.IGNORECASE),
]

_NON_NUMERIC = re.compile(r"[^\d.]")
_NUMERIC_PREFIX = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def parse_magnitude(token: str) -> Optional[Decimal]:
    """
    Parse the leading numeric portion of a matched token.

    Everything except digits and dots is dropped first, so "1,500 WETH"
    parses as 1500 and "$4.5m" as 4.5.

    Returns:
        Decimal magnitude, or None if the token holds no number
    """
    cleaned = _NON_NUMERIC.sub("", token)
    match = _NUMERIC_PREFIX.match(cleaned)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def extract_amounts(content: str, max_per_pattern: int = MAX_MATCHES_PER_PATTERN) -> List[LargeAmount]:
    """
    Find amount-like tokens in text.

    Args:
        content: Raw page content
        max_per_pattern: Cap on matches considered per pattern class

    Returns:
        Tokens in pattern-class order, then document order. Tokens with no
        parseable number are dropped.
    """
    found: List[LargeAmount] = []
    for pattern in AMOUNT_PATTERNS:
        for match in islice(pattern.finditer(content), max_per_pattern):
            token = match.group(0).strip()
            magnitude = parse_magnitude(token)
            if magnitude is None:
                continue
            found.append(LargeAmount(token=token, magnitude=magnitude))
    return found


def flag_large_amounts(
    amounts: Iterable[LargeAmount],
    threshold: int = DEFAULT_LARGE_AMOUNT_THRESHOLD,
) -> List[str]:
    """
    Tokens whose magnitude exceeds the threshold, deduplicated, order kept.
    """
    flagged: List[str] = []
    for amount in amounts:
        if amount.magnitude > threshold and amount.token not in flagged:
            flagged.append(amount.token)
    return flagged


def new_large_amounts(flagged: Iterable[str], previously_seen: Iterable[str]) -> List[str]:
    """Flagged tokens that have not been alerted on before."""
    seen = set(previously_seen)
    return [token for token in flagged if token not in seen]
