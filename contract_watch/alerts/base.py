"""
Alert Sink Interface
====================

A sink receives the final decision of a run exactly once.
"""

import logging
from datetime import datetime
from typing import Dict, List, Sequence

from ..models import Alert, AlertCategory, format_timestamp

logger = logging.getLogger(__name__)

MESSAGE_SEPARATOR = " | "

_CATEGORY_ORDER = {category: i for i, category in enumerate(AlertCategory)}


def ordered(alerts: Sequence[Alert]) -> List[Alert]:
    """Alerts in publishing order (CHANGE, LARGE_AMOUNT, ERROR, CRITICAL)."""
    return sorted(alerts, key=lambda a: _CATEGORY_ORDER[a.category])


def build_outputs(alerts: Sequence[Alert], timestamp: datetime) -> Dict[str, str]:
    """
    Named outputs for the scheduler.

    Returns:
        {"alert": "true"|"false", "message": ..., "timestamp": ISO-8601,
         "categories": "change,large_amount"}
    """
    alerts = ordered(alerts)
    return {
        "alert": "true" if alerts else "false",
        "message": MESSAGE_SEPARATOR.join(a.message for a in alerts),
        "timestamp": format_timestamp(timestamp),
        "categories": ",".join(a.category.value for a in alerts),
    }


class AlertSink:
    """Base class for alert sinks."""

    def publish(self, alerts: Sequence[Alert], timestamp: datetime):
        raise NotImplementedError


class CompositeSink(AlertSink):
    """
    Fans one publish call out to several sinks.

    A failing sink is logged and skipped; the others still receive the alerts.
    """

    def __init__(self, sinks: Sequence[AlertSink]):
        self.sinks = list(sinks)

    def publish(self, alerts: Sequence[Alert], timestamp: datetime):
        for sink in self.sinks:
            try:
                sink.publish(alerts, timestamp)
            except Exception:
                logger.exception(f"Alert sink {type(sink).__name__} failed")
