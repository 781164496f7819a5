"""
Alerts Package
==============

Alert sinks for the run's final decision.

Components:
- base.py: AlertSink interface, CompositeSink, output building
- github_output.py: GitHub Actions step outputs ($GITHUB_OUTPUT)
- telegram.py: Optional Telegram forwarding
"""

from .base import AlertSink, CompositeSink, build_outputs, MESSAGE_SEPARATOR
from .github_output import GitHubOutputSink, format_output_lines
from .telegram import AlertConfig, TelegramAlerts

__all__ = [
    "AlertSink",
    "CompositeSink",
    "build_outputs",
    "MESSAGE_SEPARATOR",
    "GitHubOutputSink",
    "format_output_lines",
    "AlertConfig",
    "TelegramAlerts",
]
