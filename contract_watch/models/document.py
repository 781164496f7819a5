"""
Persisted Document
==================

The only durable state: the last observation and alert bookkeeping,
stored as one JSON object per monitored target.

On disk (camelCase keys):
    {
      "lastCheck": "2026-10-19T12:00:00+00:00",
      "totalSupply": "1000000000000000000",   # or "pageHash": "..."
      "previousLargeAmounts": ["5000 WETH"],
      "lastErrorAlertAt": "2026-10-19T10:00:00+00:00"
    }
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# Keys written by the first generation of the monitor script
_LEGACY_ALIASES = {
    "largeAmounts": "previousLargeAmounts",
    "lastErrorAlert": "lastErrorAlertAt",
}

_KNOWN_KEYS = {
    "lastCheck",
    "totalSupply",
    "pageHash",
    "previousLargeAmounts",
    "lastErrorAlertAt",
    *_LEGACY_ALIASES,
}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; None for missing or malformed values."""
    if not isinstance(value, str) or not value:
        return None
    try:
        # JavaScript's toISOString() ends in "Z"
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as ISO-8601 in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class PersistedDocument:
    """Last observation and alert bookkeeping for one target."""
    last_check: Optional[datetime] = None
    total_supply: Optional[str] = None
    page_hash: Optional[str] = None
    previous_large_amounts: List[str] = field(default_factory=list)
    last_error_alert_at: Optional[datetime] = None

    # Unrecognised keys, written back untouched
    extra: Dict[str, Any] = field(default_factory=dict)

    def with_changes(self, **changes) -> "PersistedDocument":
        """Copy of this document with some fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict:
        """Convert to the JSON object stored on disk."""
        data: Dict[str, Any] = dict(self.extra)
        data["lastCheck"] = format_timestamp(self.last_check) if self.last_check else None
        if self.total_supply is not None:
            data["totalSupply"] = self.total_supply
        if self.page_hash is not None:
            data["pageHash"] = self.page_hash
        if self.previous_large_amounts:
            data["previousLargeAmounts"] = list(self.previous_large_amounts)
        if self.last_error_alert_at is not None:
            data["lastErrorAlertAt"] = format_timestamp(self.last_error_alert_at)
        return data

    @classmethod
    def from_dict(cls, d: dict) -> "PersistedDocument":
        """
        Create from the stored JSON object.

        Legacy keys (largeAmounts, lastErrorAlert) are accepted when the new
        key is absent. Supply values are kept as strings exactly as stored.
        """
        if not isinstance(d, dict):
            raise TypeError(f"Document must be a JSON object, got {type(d).__name__}")

        values = dict(d)
        for legacy, current in _LEGACY_ALIASES.items():
            if legacy in values and current not in values:
                values[current] = values[legacy]

        total_supply = values.get("totalSupply")
        page_hash = values.get("pageHash")
        amounts = values.get("previousLargeAmounts")
        if not isinstance(amounts, list):
            amounts = []

        return cls(
            last_check=parse_timestamp(values.get("lastCheck")),
            # Stored numbers are re-encoded without going through float
            total_supply=str(total_supply) if total_supply is not None else None,
            page_hash=str(page_hash) if page_hash else None,
            previous_large_amounts=[str(a) for a in amounts if isinstance(a, str)],
            last_error_alert_at=parse_timestamp(values.get("lastErrorAlertAt")),
            extra={k: v for k, v in d.items() if k not in _KNOWN_KEYS},
        )
