"""
Alert Models
============

Dataclasses for reconciliation outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List

from .document import PersistedDocument


class AlertCategory(Enum):
    """
    Independent alert categories.

    At most one alert per category is produced in a run; different
    categories may fire in the same run. Declaration order is the order
    messages are published in.
    """
    CHANGE = "change"              # baseline established or value changed
    LARGE_AMOUNT = "large_amount"  # new large amounts found in page content
    ERROR = "error"                # fetch failure outside the cooldown window
    CRITICAL = "critical"          # unexpected failure at the run boundary


@dataclass(frozen=True)
class Alert:
    """A single fired alert."""
    category: AlertCategory
    message: str


@dataclass
class ReconcileResult:
    """
    Decision for one run.

    Attributes:
        alerts: Fired alerts (empty when nothing needs attention)
        document: Document to persist for the next run
        should_persist: Whether the document must be written
    """
    alerts: List[Alert] = field(default_factory=list)
    document: PersistedDocument = field(default_factory=PersistedDocument)
    should_persist: bool = False

    @property
    def fired(self) -> bool:
        return bool(self.alerts)

    def alert_for(self, category: AlertCategory):
        """The alert fired for a category, or None."""
        for alert in self.alerts:
            if alert.category is category:
                return alert
        return None
