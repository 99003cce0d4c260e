"""Monitor statistics REST endpoint."""

from dataclasses import asdict

from fastapi import APIRouter, Depends

from fabwatch.api.deps import get_hub, get_monitor
from fabwatch.api.schemas.common import StatisticsResponse
from fabwatch.core.broadcast import SubscriberHub
from fabwatch.core.monitor import ProcessMonitor

router = APIRouter(prefix="/api/v1/statistics", tags=["statistics"])


@router.get("/", response_model=StatisticsResponse)
async def get_statistics(
    monitor: ProcessMonitor = Depends(get_monitor),
    hub: SubscriberHub = Depends(get_hub),
) -> StatisticsResponse:
    """Lifetime counters of the monitoring pipeline."""
    return StatisticsResponse(
        **asdict(monitor.get_statistics()),
        subscribers=hub.subscriber_count,
    )
