"""Monitoring snapshot and alert types.

Shared by the metrics collector, the aggregator, and the dashboard API.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class AlertSeverity(str, Enum):
    """How urgent an alert is."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class MetricsSnapshot:
    """Result of one monitoring probe.

    Attributes:
        timestamp: When the probe completed (UTC).
        uptime: Whether the site answered with a 2xx status.
        response_time_ms: Wall-clock latency of one GET; 0 means the probe failed.
        performance_score: 0-100, step function of response time.
        security_score: 0-100, from security headers plus an HTTPS bonus.
        ssl_valid: Whether a non-expired certificate was presented.
    """

    timestamp: datetime
    uptime: bool
    response_time_ms: int
    performance_score: int
    security_score: int
    ssl_valid: bool

    @classmethod
    def worst_case(cls, timestamp: datetime) -> "MetricsSnapshot":
        """Snapshot recorded when the probe could not run at all."""
        return cls(
            timestamp=timestamp,
            uptime=False,
            response_time_ms=0,
            performance_score=0,
            security_score=0,
            ssl_valid=False,
        )

    def to_dict(self) -> dict:
        """Serialize for API responses (camelCase keys, ISO timestamp)."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "uptime": self.uptime,
            "responseTime": self.response_time_ms,
            "performanceScore": self.performance_score,
            "securityScore": self.security_score,
            "sslValid": self.ssl_valid,
        }


@dataclass(frozen=True)
class Alert:
    """A condition raised from the latest snapshot."""

    severity: AlertSeverity
    message: str
    timestamp: datetime

    def to_dict(self) -> dict:
        """Serialize for API responses."""
        return {
            "type": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
