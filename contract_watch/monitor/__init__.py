"""
Monitor Package
===============

Single-run monitoring service.

Components:
- service.py: MonitorService (fetch -> reconcile -> publish -> persist)
"""

from .service import MonitorService, build_sink, EXIT_OK, EXIT_FATAL

__all__ = [
    "MonitorService",
    "build_sink",
    "EXIT_OK",
    "EXIT_FATAL",
]
