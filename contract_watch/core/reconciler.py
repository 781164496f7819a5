"""
Reconciler
==========

Pure decision logic: compares a new observation with the persisted
document and decides which alerts fire and what is stored for the next run.
No I/O happens here; the caller loads and saves the document.

Persistence policy ("skip unchanged"):
    The returned document is only marked for writing when the run
    established a baseline, saw a changed value, changed the remembered
    large amounts, or fired an error alert. Unchanged runs leave the file
    alone, so lastCheck is the time of the last persisted reconciliation.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from ..config import (
    DEFAULT_ERROR_COOLDOWN_SEC,
    DEFAULT_LARGE_AMOUNT_THRESHOLD,
    MAX_MATCHES_PER_PATTERN,
)
from ..filters import extract_amounts, flag_large_amounts, new_large_amounts
from ..models import (
    Alert,
    AlertCategory,
    Observation,
    ObservationKind,
    PersistedDocument,
    ReconcileResult,
    format_supply,
)

logger = logging.getLogger(__name__)

_CANONICAL_INT = re.compile(r"^[0-9]+$")


def _as_utc(now: datetime) -> datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _exact_int(value: str) -> Optional[int]:
    """Parse a canonical base-10 integer string; None for anything else."""
    if _CANONICAL_INT.match(value):
        return int(value)
    return None


# =============================================================================
# Numeric supply
# =============================================================================

def _reconcile_supply(
    previous: Optional[PersistedDocument],
    observation: Observation,
    now: datetime,
) -> ReconcileResult:
    base = previous or PersistedDocument()
    current = observation.comparable
    previous_value = base.total_supply
    where = f" Check: {observation.source_url}" if observation.source_url else ""

    if previous_value is None:
        logger.info(f"First run - baseline total supply {current}")
        message = (
            f"Supply monitor successfully started! Baseline total supply: "
            f"{observation.display_value} ({current} base units).{where}"
        )
        return ReconcileResult(
            alerts=[Alert(AlertCategory.CHANGE, message)],
            document=base.with_changes(total_supply=current, last_check=now),
            should_persist=True,
        )

    # Exact string comparison; "100" and "100.0" are different values
    if previous_value == current:
        logger.info(f"Total supply unchanged at {current}")
        return ReconcileResult(alerts=[], document=base, should_persist=False)

    old_int = _exact_int(previous_value)
    if old_int is not None:
        delta = observation.value - old_int
        old_display = format_supply(old_int, observation.decimals, observation.symbol)
        detail = f" (delta {delta:+d} base units)"
    else:
        old_display = previous_value
        detail = ""

    logger.info(f"Total supply changed: {previous_value} -> {current}")
    message = (
        f"Total supply changed: {old_display} -> {observation.display_value}. "
        f"Exact: {previous_value} -> {current}{detail}.{where}"
    )
    return ReconcileResult(
        alerts=[Alert(AlertCategory.CHANGE, message)],
        document=base.with_changes(total_supply=current, last_check=now),
        should_persist=True,
    )


# =============================================================================
# Content fingerprint
# =============================================================================

def _activity_message(observation: Observation, watch_address: Optional[str]) -> str:
    check = f" Check: {observation.source_url}" if observation.source_url else ""
    if watch_address and watch_address.lower() in observation.content.lower():
        return (
            f"New activity involving {watch_address} detected on the monitored contract! "
            f"Large deposits or withdrawals may have occurred.{check}"
        )
    return f"New contract activity detected on the monitored contract!{check}"


def _large_amount_pass(
    document: PersistedDocument,
    observation: Observation,
    threshold: int,
    max_per_pattern: int,
) -> tuple:
    """
    Run the large-amount heuristic.

    Returns:
        (alert or None, document, amounts_changed)
    """
    amounts = observation.extracted_amounts or extract_amounts(observation.content, max_per_pattern)
    flagged = flag_large_amounts(amounts, threshold)
    if not flagged:
        return None, document, False

    fresh = new_large_amounts(flagged, document.previous_large_amounts)
    alert = None
    if fresh:
        logger.info(f"New large amounts: {', '.join(fresh)}")
        alert = Alert(
            AlertCategory.LARGE_AMOUNT,
            f"Large transaction amounts detected: {', '.join(fresh)}. "
            f"This may indicate significant deposits or supply cap changes.",
        )

    changed = flagged != list(document.previous_large_amounts)
    # Replaced wholesale, never merged
    return alert, document.with_changes(previous_large_amounts=flagged), changed


def _reconcile_fingerprint(
    previous: Optional[PersistedDocument],
    observation: Observation,
    now: datetime,
    watch_address: Optional[str],
    threshold: int,
    max_per_pattern: int,
) -> ReconcileResult:
    base = previous or PersistedDocument()
    current = observation.comparable
    alerts: List[Alert] = []
    document = base
    should_persist = False

    if base.page_hash is None:
        logger.info("First run - baseline established")
        alerts.append(Alert(
            AlertCategory.CHANGE,
            "Contract monitor successfully started! Baseline established; "
            "you will be notified of any new activity.",
        ))
        document = base.with_changes(page_hash=current)
        should_persist = True
    elif base.page_hash != current:
        logger.info("New activity detected")
        alerts.append(Alert(AlertCategory.CHANGE, _activity_message(observation, watch_address)))
        document = base.with_changes(page_hash=current)
        should_persist = True
    else:
        logger.info("No new activity detected")

    try:
        amount_alert, document, amounts_changed = _large_amount_pass(
            document, observation, threshold, max_per_pattern
        )
    except Exception as e:
        # Heuristic only; never fails the run
        logger.warning(f"Large amount check failed: {e}")
    else:
        if amount_alert:
            alerts.append(amount_alert)
        should_persist = should_persist or amounts_changed

    if should_persist:
        document = document.with_changes(last_check=now)

    return ReconcileResult(alerts=alerts, document=document, should_persist=should_persist)


# =============================================================================
# Public API
# =============================================================================

def reconcile(
    previous: Optional[PersistedDocument],
    observation: Observation,
    now: datetime,
    watch_address: Optional[str] = None,
    large_amount_threshold: int = DEFAULT_LARGE_AMOUNT_THRESHOLD,
    max_matches_per_pattern: int = MAX_MATCHES_PER_PATTERN,
) -> ReconcileResult:
    """
    Decide the alert outcome for a successful fetch.

    Args:
        previous: Stored document, or None before the first run
        observation: Freshly fetched observation
        now: Current time (timezone-aware; naive values are taken as UTC)
        watch_address: Secondary address that selects the activity message
        large_amount_threshold: Magnitude above which page amounts are flagged
        max_matches_per_pattern: Cap on matches per amount pattern class

    Returns:
        ReconcileResult with fired alerts and the next document
    """
    now = _as_utc(now)

    if observation.kind is ObservationKind.NUMERIC_SUPPLY:
        return _reconcile_supply(previous, observation, now)

    return _reconcile_fingerprint(
        previous,
        observation,
        now,
        watch_address,
        large_amount_threshold,
        max_matches_per_pattern,
    )


def reconcile_error(
    previous: Optional[PersistedDocument],
    error: BaseException,
    now: datetime,
    cooldown_sec: int = DEFAULT_ERROR_COOLDOWN_SEC,
) -> ReconcileResult:
    """
    Decide whether a failed fetch is surfaced as an alert.

    An error alert fires only if none was sent within the cooldown window.
    A suppressed error changes nothing, so it does not extend the window.

    Args:
        previous: Stored document, or None
        error: The fetch failure
        now: Current time
        cooldown_sec: Minimum seconds between error alerts

    Returns:
        ReconcileResult with at most one ERROR alert
    """
    now = _as_utc(now)
    base = previous or PersistedDocument()
    last_alert = base.last_error_alert_at

    if last_alert is not None and now - last_alert <= timedelta(seconds=cooldown_sec):
        remaining = timedelta(seconds=cooldown_sec) - (now - last_alert)
        logger.info(f"Error alert suppressed (cooldown, {int(remaining.total_seconds())}s remaining)")
        return ReconcileResult(alerts=[], document=base, should_persist=False)

    message = f"Monitor encountered an error: {error}. Will keep trying automatically."
    return ReconcileResult(
        alerts=[Alert(AlertCategory.ERROR, message)],
        document=base.with_changes(last_error_alert_at=now),
        should_persist=True,
    )


def critical_alert(error: BaseException) -> Alert:
    """Alert for an unexpected failure at the run boundary."""
    return Alert(AlertCategory.CRITICAL, f"Critical error in monitor: {error}")
