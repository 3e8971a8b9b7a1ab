"""Tests for MetricsAggregator - bounded history and window statistics."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st

from falcon_core.services.metrics_aggregator import MetricsAggregator
from falcon_core.services.metrics_collector import SECURITY_HEADERS, MetricsCollector
from falcon_core.services.metrics_types import AlertSeverity, MetricsSnapshot
from tests.conftest import CLOCK_START, FakeClock


def _snapshot(
    timestamp: datetime = CLOCK_START,
    *,
    uptime: bool = True,
    performance_score: int = 100,
    security_score: int = 100,
    ssl_valid: bool = True,
) -> MetricsSnapshot:
    return MetricsSnapshot(
        timestamp=timestamp,
        uptime=uptime,
        response_time_ms=200,
        performance_score=performance_score,
        security_score=security_score,
        ssl_valid=ssl_valid,
    )


@pytest.fixture
def aggregator(clock: FakeClock) -> MetricsAggregator:
    return MetricsAggregator(clock=clock)


class TestHistory:
    """Recording and bounded retention."""

    def test_empty_history(self, aggregator: MetricsAggregator) -> None:
        assert aggregator.latest() is None
        assert aggregator.history() == []
        assert len(aggregator) == 0

    def test_latest_is_last_recorded(self, aggregator: MetricsAggregator) -> None:
        first = _snapshot(CLOCK_START - timedelta(minutes=10))
        second = _snapshot(CLOCK_START - timedelta(minutes=5))
        aggregator.record(first)
        aggregator.record(second)
        assert aggregator.latest() == second

    def test_history_is_oldest_first_and_limited(
        self, aggregator: MetricsAggregator
    ) -> None:
        snapshots = [
            _snapshot(CLOCK_START - timedelta(minutes=i)) for i in range(5, 0, -1)
        ]
        for snapshot in snapshots:
            aggregator.record(snapshot)
        assert aggregator.history(3) == snapshots[-3:]
        assert aggregator.history(100) == snapshots

    @pytest.mark.parametrize("limit", [0, -1])
    def test_non_positive_limit_is_empty(
        self, aggregator: MetricsAggregator, limit: int
    ) -> None:
        aggregator.record(_snapshot())
        assert aggregator.history(limit) == []

    def test_oldest_evicted_when_full(self, clock: FakeClock) -> None:
        aggregator = MetricsAggregator(max_history=3, clock=clock)
        snapshots = [
            _snapshot(CLOCK_START - timedelta(minutes=i)) for i in range(4, 0, -1)
        ]
        for snapshot in snapshots:
            aggregator.record(snapshot)
        assert len(aggregator) == 3
        assert aggregator.history() == snapshots[1:]

    def test_default_cap_is_1000(self, aggregator: MetricsAggregator) -> None:
        for i in range(1005):
            aggregator.record(_snapshot(CLOCK_START - timedelta(seconds=i)))
        assert len(aggregator) == 1000

    def test_clear(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(_snapshot())
        aggregator.clear()
        assert aggregator.latest() is None

    @given(count=st.integers(min_value=0, max_value=60), cap=st.integers(1, 20))
    def test_length_never_exceeds_cap(self, count: int, cap: int) -> None:
        aggregator = MetricsAggregator(max_history=cap, clock=FakeClock())
        for i in range(count):
            aggregator.record(_snapshot(CLOCK_START - timedelta(seconds=i)))
        assert len(aggregator) == min(count, cap)


class TestWindowStatistics:
    """Trailing 24-hour uptime and performance."""

    def test_empty_window_reports_full_uptime(
        self, aggregator: MetricsAggregator
    ) -> None:
        assert aggregator.uptime_percentage() == 100.0
        assert aggregator.average_performance() == 0.0

    def test_uptime_percentage(self, aggregator: MetricsAggregator) -> None:
        for i, up in enumerate([True, True, True, False]):
            aggregator.record(_snapshot(CLOCK_START - timedelta(hours=i), uptime=up))
        assert aggregator.uptime_percentage() == 75.0

    def test_average_performance(self, aggregator: MetricsAggregator) -> None:
        for i, score in enumerate([100, 80, 60]):
            aggregator.record(
                _snapshot(CLOCK_START - timedelta(hours=i), performance_score=score)
            )
        assert aggregator.average_performance() == 80.0

    def test_snapshots_outside_window_ignored(
        self, aggregator: MetricsAggregator
    ) -> None:
        aggregator.record(_snapshot(CLOCK_START - timedelta(hours=30), uptime=False))
        aggregator.record(_snapshot(CLOCK_START - timedelta(hours=1), uptime=True))
        assert aggregator.uptime_percentage() == 100.0

    def test_window_boundary_is_exclusive(self, aggregator: MetricsAggregator) -> None:
        """A snapshot exactly 24 hours old is outside the window."""
        aggregator.record(_snapshot(CLOCK_START - timedelta(hours=24), uptime=False))
        assert aggregator.uptime_percentage() == 100.0
        just_inside = CLOCK_START - timedelta(hours=24) + timedelta(seconds=1)
        aggregator.record(_snapshot(just_inside, uptime=False))
        assert aggregator.uptime_percentage() == 0.0

    def test_window_follows_clock(
        self, aggregator: MetricsAggregator, clock: FakeClock
    ) -> None:
        aggregator.record(_snapshot(CLOCK_START, uptime=False))
        clock.advance(hours=25)
        assert aggregator.uptime_percentage() == 100.0

    def test_custom_window(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(_snapshot(CLOCK_START - timedelta(hours=2), uptime=False))
        aggregator.record(_snapshot(CLOCK_START - timedelta(minutes=30)))
        assert aggregator.uptime_percentage(window_hours=1) == 100.0
        assert aggregator.uptime_percentage(window_hours=3) == 50.0

    @given(ups=st.lists(st.booleans(), min_size=1, max_size=50))
    def test_uptime_is_a_percentage(self, ups: list[bool]) -> None:
        aggregator = MetricsAggregator(clock=FakeClock())
        for i, up in enumerate(ups):
            aggregator.record(_snapshot(CLOCK_START - timedelta(minutes=i), uptime=up))
        assert 0.0 <= aggregator.uptime_percentage() <= 100.0
        assert aggregator.uptime_percentage() == pytest.approx(
            sum(ups) / len(ups) * 100
        )


class TestAlerts:
    """Alerts derived from the latest snapshot."""

    def test_no_alerts_without_history(self, aggregator: MetricsAggregator) -> None:
        assert aggregator.alerts() == []

    def test_no_alerts_when_healthy(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(_snapshot())
        assert aggregator.alerts() == []

    def test_all_alerts_for_worst_case(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(MetricsSnapshot.worst_case(CLOCK_START))
        alerts = aggregator.alerts()

        assert [(a.severity, a.message) for a in alerts] == [
            (AlertSeverity.ERROR, "Website is currently down"),
            (AlertSeverity.WARNING, "Performance score is low: 0%"),
            (AlertSeverity.ERROR, "SSL certificate issue detected"),
            (AlertSeverity.WARNING, "Security score needs improvement: 0%"),
        ]
        assert all(a.timestamp == CLOCK_START for a in alerts)

    def test_thresholds_are_strict(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(_snapshot(performance_score=60, security_score=50))
        assert aggregator.alerts() == []

    def test_only_latest_snapshot_counts(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(_snapshot(CLOCK_START - timedelta(minutes=5), uptime=False))
        aggregator.record(_snapshot())
        assert aggregator.alerts() == []

    def test_alert_serialization(self, aggregator: MetricsAggregator) -> None:
        aggregator.record(_snapshot(performance_score=40))
        assert aggregator.alerts()[0].to_dict() == {
            "type": "warning",
            "message": "Performance score is low: 40%",
            "timestamp": CLOCK_START.isoformat(),
        }


class TestSnapshotSerialization:
    """Wire format of a snapshot."""

    def test_to_dict(self) -> None:
        assert _snapshot().to_dict() == {
            "timestamp": CLOCK_START.isoformat(),
            "uptime": True,
            "responseTime": 200,
            "performanceScore": 100,
            "securityScore": 100,
            "sslValid": True,
        }


class TestEndToEnd:
    """Collector output flowing into the aggregator."""

    def test_1001_records_keep_most_recent_1000(
        self, aggregator: MetricsAggregator
    ) -> None:
        start = CLOCK_START - timedelta(days=10)
        for i in range(1001):
            aggregator.record(_snapshot(start + timedelta(minutes=5 * i)))

        history = aggregator.history(1000)
        assert len(aggregator) == 1000
        assert history[0].timestamp == start + timedelta(minutes=5)
        assert history[-1].timestamp == start + timedelta(minutes=5 * 1000)

    def test_seven_of_ten_up_is_70_percent(
        self, aggregator: MetricsAggregator
    ) -> None:
        for i in range(10):
            aggregator.record(
                _snapshot(CLOCK_START - timedelta(minutes=10 * i), uptime=i < 7)
            )
        assert aggregator.uptime_percentage() == pytest.approx(70.0)

    async def test_healthy_probe_raises_no_alerts(
        self, aggregator: MetricsAggregator, clock: FakeClock
    ) -> None:
        headers = {header: "1" for header in SECURITY_HEADERS}
        collector = MetricsCollector(
            transport=httpx.MockTransport(
                lambda _request: httpx.Response(200, headers=headers)
            ),
            tls_checker=AsyncMock(return_value=True),
            resolver=AsyncMock(return_value=[]),
            clock=clock,
            timer=iter([1.0, 1.2]).__next__,
        )
        snapshot = await collector.probe("https://falconcore.us")
        aggregator.record(snapshot)

        assert snapshot.response_time_ms == 200
        assert snapshot.performance_score == 100
        assert snapshot.security_score == 100
        assert snapshot.ssl_valid is True
        assert aggregator.alerts() == []

    async def test_unreachable_probe_raises_down_and_ssl_alerts(
        self, aggregator: MetricsAggregator, clock: FakeClock
    ) -> None:
        collector = MetricsCollector(
            resolver=AsyncMock(side_effect=OSError("Name or service not known")),
            clock=clock,
        )
        aggregator.record(await collector.probe("https://unreachable.invalid"))

        messages = [alert.message for alert in aggregator.alerts()]
        assert "Website is currently down" in messages
        assert "SSL certificate issue detected" in messages
