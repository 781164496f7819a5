"""
Monitor Service
===============

One monitoring run: fetch -> load previous document -> reconcile ->
publish alerts -> persist. The process runs once and exits; an external
scheduler (cron, GitHub Actions) provides the repetition.

Error handling at the run boundary, by ErrorKind:
- FETCH:              cooldown-gated error alert
- UPSTREAM_NOT_READY: no alert, no state change
- PERSISTENCE_READ:   logged, treated as "no previous document"
- PERSISTENCE_WRITE:  logged, the published decision stands
- FATAL:              best-effort critical alert, exit code 1
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from ..alerts import AlertSink, CompositeSink, GitHubOutputSink, TelegramAlerts
from ..api import build_source
from ..config import Config, MonitorMode
from ..core import critical_alert, reconcile, reconcile_error
from ..db import StateStore
from ..errors import ErrorKind, MonitorError, PersistenceReadError, PersistenceWriteError, classify
from ..models import PersistedDocument, ReconcileResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_sink(config: Config) -> AlertSink:
    """Workflow outputs, plus Telegram when configured."""
    sinks = [GitHubOutputSink(config.output_file)]
    telegram = TelegramAlerts.from_env(dry_run=config.dry_run)
    if telegram is not None:
        sinks.append(telegram)
    if len(sinks) == 1:
        return sinks[0]
    return CompositeSink(sinks)


class MonitorService:
    """
    Runs a single check against the configured target.

    Collaborators are built from the config unless injected.
    """

    def __init__(
        self,
        config: Config,
        source=None,
        store: Optional[StateStore] = None,
        sink: Optional[AlertSink] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config
        self.source = source if source is not None else build_source(config)
        self.store = store if store is not None else StateStore(config.data_file)
        self.sink = sink if sink is not None else build_sink(config)
        self.clock = clock

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _fetch(self):
        async with self.source as source:
            return await source.fetch()

    def _load_previous(self) -> Optional[PersistedDocument]:
        try:
            return self.store.load()
        except PersistenceReadError as e:
            logger.error(f"{e} - starting from a fresh baseline")
            return None

    def _save(self, result: ReconcileResult):
        if not result.should_persist:
            logger.info("Nothing changed, stored document left as is")
            return
        try:
            self.store.save(result.document)
        except PersistenceWriteError as e:
            logger.error(str(e))

    def _decide(self, previous: Optional[PersistedDocument], now: datetime) -> Optional[ReconcileResult]:
        """
        Fetch and reconcile.

        Returns:
            ReconcileResult, or None when the run should end without any decision
        """
        try:
            observation = asyncio.run(self._fetch())
        except MonitorError as e:
            kind = classify(e)
            if kind is ErrorKind.UPSTREAM_NOT_READY:
                logger.info(f"Upstream not ready ({e}), skipping this run")
                return None
            if kind is ErrorKind.FETCH:
                logger.error(f"Error checking contract: {e}")
                return reconcile_error(previous, e, now, self.config.error_cooldown_sec)
            # PERSISTENCE_* and FATAL are not produced by observation sources
            raise

        return reconcile(
            previous,
            observation,
            now,
            watch_address=self.config.watch_address,
            large_amount_threshold=self.config.large_amount_threshold,
            max_matches_per_pattern=self.config.max_matches_per_pattern,
        )

    # -------------------------------------------------------------------------
    # Entry Point
    # -------------------------------------------------------------------------

    def run(self) -> int:
        """
        Run one check.

        Returns:
            Process exit code (0 on completion, 1 after a fatal error)
        """
        now = self.clock()
        logger.info("Starting contract monitor...")
        logger.info(f"Monitoring contract: {self.config.contract_address} ({self.config.mode.value} mode)")
        if self.config.mode is MonitorMode.PAGE and self.config.watch_address:
            logger.info(f"Watching for: {self.config.watch_address}")
        logger.info(f"Check time: {now.isoformat()}")

        try:
            previous = self._load_previous()
            result = self._decide(previous, now)

            if result is None:
                self.sink.publish([], now)
                return EXIT_OK

            self.sink.publish(result.alerts, now)
            self._save(result)

        except Exception as e:
            logger.exception(f"Monitor failed: {e}")
            try:
                self.sink.publish([critical_alert(e)], now)
            except Exception:
                logger.exception("Failed to publish critical alert")
            return EXIT_FATAL

        logger.info("Monitor run completed")
        return EXIT_OK
