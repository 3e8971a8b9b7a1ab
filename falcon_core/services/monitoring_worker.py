"""Monitoring background worker.

asyncio background task started from the FastAPI lifespan. Probes the
site on a fixed interval (5 min) and records each snapshot.

Probes never overlap: if a probe is still running when the next one is
due (or when the dashboard asks for a refresh), that tick is skipped.
"""

import asyncio
import contextlib
import logging
from datetime import datetime

from falcon_core.services.metrics_aggregator import (
    LOW_PERFORMANCE_THRESHOLD,
    MetricsAggregator,
)
from falcon_core.services.metrics_collector import MetricsCollector
from falcon_core.services.metrics_types import MetricsSnapshot

logger = logging.getLogger(__name__)

# Default interval: 5 minutes
DEFAULT_INTERVAL_SECONDS = 5 * 60


class MonitoringService:
    """Background worker that periodically probes the site.

    Lifecycle:
    - start() creates an asyncio task that runs the probe loop.
    - stop() cancels the task and waits for it to finish.
    - run_once() executes a single probe (loop body, dashboard refresh, tests).

    Args:
        collector: Probe implementation.
        aggregator: History the snapshots are recorded into.
        target_url: Site to probe.
        interval_seconds: Seconds between probe starts.
    """

    def __init__(
        self,
        collector: MetricsCollector,
        aggregator: MetricsAggregator,
        *,
        target_url: str,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        self._collector = collector
        self._aggregator = aggregator
        self._target_url = target_url
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._last_run_at: datetime | None = None
        self._running = False
        self._probe_in_flight = False

    @property
    def aggregator(self) -> MetricsAggregator:
        """History this service records into."""
        return self._aggregator

    @property
    def is_running(self) -> bool:
        """Whether the background task is currently active."""
        return self._running and self._task is not None and not self._task.done()

    @property
    def last_run_at(self) -> datetime | None:
        """Timestamp of the most recent recorded snapshot."""
        return self._last_run_at

    def start(self) -> None:
        """Start the background probe loop.

        Creates an asyncio task. No-op if already running.
        Must be called from an async context (running event loop).
        """
        if self.is_running:
            logger.warning("Monitoring service already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "Monitoring service started for %s (interval=%ds)",
            self._target_url,
            self._interval_seconds,
        )

    async def stop(self) -> None:
        """Stop the background probe loop.

        Cancels the task and waits for it to finish. An in-flight probe
        is abandoned.
        """
        self._running = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Monitoring service stopped")

    async def run_once(self) -> MetricsSnapshot | None:
        """Probe the site once and record the snapshot.

        Returns:
            The recorded snapshot, or None if a probe was already in flight.
        """
        if self._probe_in_flight:
            logger.info("Previous probe still running; skipping this one")
            return None

        self._probe_in_flight = True
        try:
            snapshot = await self._collector.probe(self._target_url)
        finally:
            self._probe_in_flight = False

        self._aggregator.record(snapshot)
        self._last_run_at = snapshot.timestamp
        self._log_alerts(snapshot)
        return snapshot

    async def _run_loop(self) -> None:
        """Background loop: probe → sleep → repeat. First probe runs at once."""
        loop = asyncio.get_running_loop()
        try:
            while self._running:
                started = loop.time()
                try:
                    await self.run_once()
                except Exception:  # noqa: BLE001
                    logger.exception("Error in monitoring probe")
                elapsed = loop.time() - started
                await asyncio.sleep(max(0.0, self._interval_seconds - elapsed))
        except asyncio.CancelledError:
            logger.debug("Monitoring loop cancelled")
            raise

    def _log_alerts(self, snapshot: MetricsSnapshot) -> None:
        if not snapshot.uptime:
            logger.error("ALERT: %s is DOWN", self._target_url)
        if snapshot.performance_score < LOW_PERFORMANCE_THRESHOLD:
            logger.warning(
                "Performance score is low for %s: %d",
                self._target_url,
                snapshot.performance_score,
            )


# Process-wide service, created at startup
_monitoring_service: MonitoringService | None = None


def init_monitoring_service(
    *,
    target_url: str,
    interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    timeout_seconds: float,
    max_history: int,
) -> MonitoringService:
    """Create the process-wide monitoring service (not started).

    Called once from the application lifespan. Replaces any existing service.

    Returns:
        The new service.
    """
    global _monitoring_service
    _monitoring_service = MonitoringService(
        MetricsCollector(timeout_seconds=timeout_seconds),
        MetricsAggregator(max_history=max_history),
        target_url=target_url,
        interval_seconds=interval_seconds,
    )
    return _monitoring_service


def get_monitoring_service() -> MonitoringService | None:
    """Get the process-wide monitoring service, if initialized."""
    return _monitoring_service


def set_monitoring_service(service: MonitoringService | None) -> None:
    """Install a monitoring service (for testing)."""
    global _monitoring_service
    _monitoring_service = service
