"""Rolling monitoring history and derived statistics.

Keeps the most recent snapshots (FIFO, capped at 1000) and computes
trailing-window uptime and performance averages, plus alerts derived
from the latest snapshot.

History is lost on restart.
"""

from collections import deque
from datetime import timedelta

from falcon_core.core.clock import Clock, utc_now
from falcon_core.services.metrics_types import Alert, AlertSeverity, MetricsSnapshot

DEFAULT_MAX_HISTORY = 1000
DEFAULT_WINDOW_HOURS = 24
DEFAULT_HISTORY_LIMIT = 100

LOW_PERFORMANCE_THRESHOLD = 60
LOW_SECURITY_THRESHOLD = 50


class MetricsAggregator:
    """Bounded snapshot history with trailing-window statistics.

    Only ``record`` mutates the history; readers work on a copy.

    Args:
        max_history: Maximum number of snapshots kept.
        clock: Returns the current time, used to place the window.
    """

    def __init__(
        self,
        *,
        max_history: int = DEFAULT_MAX_HISTORY,
        clock: Clock = utc_now,
    ) -> None:
        self._history: deque[MetricsSnapshot] = deque(maxlen=max_history)
        self._clock = clock

    def __len__(self) -> int:
        return len(self._history)

    def record(self, snapshot: MetricsSnapshot) -> None:
        """Append a snapshot, evicting the oldest when full."""
        self._history.append(snapshot)

    def latest(self) -> MetricsSnapshot | None:
        """Most recent snapshot, or None before the first probe."""
        return self._history[-1] if self._history else None

    def history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[MetricsSnapshot]:
        """Most recent ``limit`` snapshots, oldest first."""
        if limit <= 0:
            return []
        return list(self._history)[-limit:]

    def uptime_percentage(self, window_hours: float = DEFAULT_WINDOW_HOURS) -> float:
        """Percentage (0-100) of in-window snapshots that were up.

        An empty window reports 100.0: with no evidence of downtime the
        site is presumed up.
        """
        window = self._window(window_hours)
        if not window:
            return 100.0
        up = sum(1 for snapshot in window if snapshot.uptime)
        return up / len(window) * 100

    def average_performance(self, window_hours: float = DEFAULT_WINDOW_HOURS) -> float:
        """Mean performance score over the window; 0.0 when empty."""
        window = self._window(window_hours)
        if not window:
            return 0.0
        return sum(snapshot.performance_score for snapshot in window) / len(window)

    def alerts(self) -> list[Alert]:
        """Alerts raised by the latest snapshot. Empty before the first probe."""
        current = self.latest()
        if current is None:
            return []

        alerts: list[Alert] = []
        if not current.uptime:
            alerts.append(
                Alert(
                    AlertSeverity.ERROR, "Website is currently down", current.timestamp
                )
            )
        if current.performance_score < LOW_PERFORMANCE_THRESHOLD:
            alerts.append(
                Alert(
                    AlertSeverity.WARNING,
                    f"Performance score is low: {current.performance_score}%",
                    current.timestamp,
                )
            )
        if not current.ssl_valid:
            alerts.append(
                Alert(
                    AlertSeverity.ERROR,
                    "SSL certificate issue detected",
                    current.timestamp,
                )
            )
        if current.security_score < LOW_SECURITY_THRESHOLD:
            alerts.append(
                Alert(
                    AlertSeverity.WARNING,
                    f"Security score needs improvement: {current.security_score}%",
                    current.timestamp,
                )
            )
        return alerts

    def clear(self) -> None:
        """Drop all history (for testing)."""
        self._history.clear()

    def _window(self, window_hours: float) -> list[MetricsSnapshot]:
        cutoff = self._clock() - timedelta(hours=window_hours)
        return [s for s in list(self._history) if s.timestamp > cutoff]
