"""
Observation Models
==================

Dataclasses for a single fetched snapshot of the monitored target.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Union


class ObservationKind(Enum):
    """Which comparable projection an observation carries."""
    NUMERIC_SUPPLY = "numeric_supply"
    CONTENT_FINGERPRINT = "content_fingerprint"


@dataclass(frozen=True)
class LargeAmount:
    """A raw text token that looked like an amount, with its parsed magnitude."""
    token: str
    magnitude: Decimal


def format_supply(value: int, decimals: Optional[int] = None, symbol: Optional[str] = None) -> str:
    """
    Format a base-unit supply for display.

    Uses integer arithmetic only, so no precision is lost for large values.
    Example: format_supply(1234500000000000000000, 18, "weETH") -> "1,234.5 weETH"
    """
    if decimals:
        whole, frac = divmod(value, 10 ** decimals)
        text = f"{whole:,}"
        frac_str = str(frac).rjust(decimals, "0").rstrip("0")
        if frac_str:
            text = f"{text}.{frac_str}"
    else:
        text = f"{value:,}"

    if symbol:
        text = f"{text} {symbol}"
    return text


@dataclass
class Observation:
    """
    Result of one fetch.

    For NUMERIC_SUPPLY, value is the exact integer supply in base units.
    For CONTENT_FINGERPRINT, value is the fixed-length page fingerprint and
    content holds the fetched text.
    """
    kind: ObservationKind
    value: Union[int, str]

    # Content fingerprint only
    content: str = ""
    extracted_amounts: List[LargeAmount] = field(default_factory=list)

    # Numeric supply display metadata
    decimals: Optional[int] = None
    symbol: Optional[str] = None

    source_url: Optional[str] = None

    def __post_init__(self):
        if self.kind is ObservationKind.NUMERIC_SUPPLY:
            if isinstance(self.value, bool) or not isinstance(self.value, int):
                raise TypeError(f"Supply must be an int, got {type(self.value).__name__}")
            if self.value < 0:
                raise ValueError("Supply must not be negative")
        elif not isinstance(self.value, str):
            raise TypeError(f"Fingerprint must be a str, got {type(self.value).__name__}")

    @property
    def comparable(self) -> str:
        """String projection stored in the document and compared across runs."""
        return str(self.value)

    @property
    def display_value(self) -> str:
        """Human-readable value for alert messages."""
        if self.kind is ObservationKind.NUMERIC_SUPPLY:
            return format_supply(self.value, self.decimals, self.symbol)
        return self.value

    @classmethod
    def supply(
        cls,
        value: int,
        decimals: Optional[int] = None,
        symbol: Optional[str] = None,
        source_url: Optional[str] = None,
    ) -> "Observation":
        return cls(
            kind=ObservationKind.NUMERIC_SUPPLY,
            value=value,
            decimals=decimals,
            symbol=symbol,
            source_url=source_url,
        )

    @classmethod
    def fingerprint(
        cls,
        value: str,
        content: str,
        extracted_amounts: Optional[List[LargeAmount]] = None,
        source_url: Optional[str] = None,
    ) -> "Observation":
        return cls(
            kind=ObservationKind.CONTENT_FINGERPRINT,
            value=value,
            content=content,
            extracted_amounts=list(extracted_amounts or []),
            source_url=source_url,
        )
