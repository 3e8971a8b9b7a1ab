"""Monitoring dashboard endpoints.

Read-only views over the monitoring history for the admin dashboard,
plus an on-demand probe. All endpoints require the X-Admin-Key header.

Endpoints:
- GET /monitoring/metrics: latest snapshot with 24h uptime and performance
- GET /monitoring/history: recent snapshots, oldest first
- GET /monitoring/alerts: alerts raised by the latest snapshot
- POST /monitoring/refresh: probe now (skipped if a probe is running)
"""

from typing import Annotated

from fastapi import APIRouter, Query

from falcon_core.api.deps import AdminKey, Monitoring
from falcon_core.services.metrics_aggregator import DEFAULT_MAX_HISTORY

router = APIRouter(dependencies=[AdminKey])


@router.get("/metrics")
async def get_metrics(monitoring: Monitoring) -> dict:
    """Latest snapshot plus trailing 24-hour statistics.

    ``latest`` is null until the first probe has completed.
    """
    aggregator = monitoring.aggregator
    latest = aggregator.latest()
    return {
        "success": True,
        "latest": latest.to_dict() if latest else None,
        "uptime24h": aggregator.uptime_percentage(),
        "averagePerformance24h": aggregator.average_performance(),
        "isMonitoring": monitoring.is_running,
    }


@router.get("/history")
async def get_history(
    monitoring: Monitoring,
    limit: Annotated[int, Query(ge=1, le=DEFAULT_MAX_HISTORY)] = 100,
) -> dict:
    """Most recent snapshots, oldest first."""
    snapshots = monitoring.aggregator.history(limit)
    return {
        "success": True,
        "history": [snapshot.to_dict() for snapshot in snapshots],
    }


@router.get("/alerts")
async def get_alerts(monitoring: Monitoring) -> dict:
    """Alerts derived from the latest snapshot."""
    return {
        "success": True,
        "alerts": [alert.to_dict() for alert in monitoring.aggregator.alerts()],
    }


@router.post("/refresh")
async def refresh(monitoring: Monitoring) -> dict:
    """Run a probe immediately.

    Returns ``skipped: true`` when a probe is already in flight.
    """
    snapshot = await monitoring.run_once()
    if snapshot is None:
        return {"success": True, "skipped": True, "snapshot": None}
    return {"success": True, "skipped": False, "snapshot": snapshot.to_dict()}
