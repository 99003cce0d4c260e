"""Alert REST endpoints.

Implements alert listing, statistics, operator guidance and acknowledgment.
"""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fabwatch.api.deps import get_monitor
from fabwatch.api.schemas.alert import (
    AlertGuidanceResponse,
    AlertResponse,
    AlertSummaryResponse,
)
from fabwatch.core.alerts import sort_by_priority
from fabwatch.core.monitor import ProcessMonitor

router = APIRouter(prefix="/api/v1/alerts", tags=["alerts"])


def _not_found(alert_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Alert {alert_id} not found",
    )


@router.get("/", response_model=list[AlertResponse])
async def list_alerts(
    monitor: ProcessMonitor = Depends(get_monitor),
    count: int = Query(50, ge=1, le=1000, description="Number of most recent alerts"),
    unacknowledged_only: bool = Query(False, description="Drop acknowledged alerts"),
    order: Literal["time", "priority"] = Query("time", description="time (oldest first) or priority"),
) -> list[AlertResponse]:
    """List recent alerts.

    The last `count` alerts are taken first and then filtered, so
    `unacknowledged_only` may return fewer than `count`.
    """
    alerts = monitor.get_recent_alerts(count, unacknowledged_only=unacknowledged_only)
    if order == "priority":
        alerts = sort_by_priority(alerts)
    return [AlertResponse.model_validate(a.to_dict()) for a in alerts]


@router.get("/summary", response_model=AlertSummaryResponse)
async def get_alert_summary(
    monitor: ProcessMonitor = Depends(get_monitor),
) -> AlertSummaryResponse:
    """Aggregate alert counts by severity, type, parameter and line."""
    return AlertSummaryResponse.model_validate(monitor.get_alert_summary().to_dict())


@router.get("/{alert_id}/guidance", response_model=AlertGuidanceResponse)
async def get_alert_guidance(
    alert_id: str,
    monitor: ProcessMonitor = Depends(get_monitor),
) -> AlertGuidanceResponse:
    """Recommended actions and estimated yield impact for an alert.

    Raises:
        HTTPException 404: If the alert doesn't exist
    """
    guidance = monitor.get_alert_guidance(alert_id)
    if guidance is None:
        raise _not_found(alert_id)
    return AlertGuidanceResponse.model_validate({
        "alert": guidance.alert.to_dict(),
        "recommended_actions": guidance.recommended_actions,
        "yield_impact": guidance.yield_impact.to_dict(),
    })


@router.post("/{alert_id}/acknowledge", response_model=AlertResponse)
async def acknowledge_alert(
    alert_id: str,
    monitor: ProcessMonitor = Depends(get_monitor),
) -> AlertResponse:
    """Acknowledge an alert.

    Acknowledging twice is allowed and keeps the first acknowledgment time.

    Raises:
        HTTPException 404: If the alert doesn't exist
    """
    alert = await monitor.acknowledge_alert(alert_id)
    if alert is None:
        raise _not_found(alert_id)
    return AlertResponse.model_validate(alert.to_dict())
