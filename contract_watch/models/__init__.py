"""
Shared Data Models
==================

This package contains dataclasses used across the project.
"""

from .observation import Observation, ObservationKind, LargeAmount, format_supply
from .document import PersistedDocument, parse_timestamp, format_timestamp
from .alert import Alert, AlertCategory, ReconcileResult

__all__ = [
    "Observation",
    "ObservationKind",
    "LargeAmount",
    "format_supply",
    "PersistedDocument",
    "parse_timestamp",
    "format_timestamp",
    "Alert",
    "AlertCategory",
    "ReconcileResult",
]
