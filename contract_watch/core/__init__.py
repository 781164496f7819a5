# Core decision logic
from .reconciler import reconcile, reconcile_error, critical_alert

__all__ = [
    "reconcile",
    "reconcile_error",
    "critical_alert",
]
