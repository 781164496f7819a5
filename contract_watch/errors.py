"""
Error Taxonomy
==============

Every failure a run can recover from is raised as a MonitorError carrying
an ErrorKind. The run boundary (monitor/service.py) matches on the kind;
anything that is not a MonitorError is treated as ErrorKind.FATAL.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """How the run boundary reacts to a failure."""
    FETCH = "fetch"                            # cooldown-gated error alert
    UPSTREAM_NOT_READY = "upstream_not_ready"  # quiet exit, no state change
    PERSISTENCE_READ = "persistence_read"      # treated as fresh baseline
    PERSISTENCE_WRITE = "persistence_write"    # logged only
    FATAL = "fatal"                            # critical alert, non-zero exit


class MonitorError(Exception):
    """Base class for recoverable monitor failures."""

    kind: ErrorKind = ErrorKind.FATAL

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class FetchError(MonitorError):
    """The observation source could not produce a value."""
    kind = ErrorKind.FETCH


class UpstreamNotReadyError(MonitorError):
    """The upstream answered, but is not ready to serve data yet."""
    kind = ErrorKind.UPSTREAM_NOT_READY


class PersistenceReadError(MonitorError):
    """The stored document exists but cannot be read or parsed."""
    kind = ErrorKind.PERSISTENCE_READ


class PersistenceWriteError(MonitorError):
    """The document could not be written."""
    kind = ErrorKind.PERSISTENCE_WRITE


def classify(exc: BaseException) -> ErrorKind:
    """Map any exception onto an ErrorKind."""
    if isinstance(exc, MonitorError):
        return exc.kind
    return ErrorKind.FATAL
