"""Reading history REST endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fabwatch.api.deps import get_monitor
from fabwatch.api.schemas.reading import ParameterSeriesResponse, ReadingResponse, SeriesPoint
from fabwatch.core.monitor import ProcessMonitor

router = APIRouter(prefix="/api/v1/readings", tags=["readings"])


@router.get("/", response_model=list[ReadingResponse])
async def list_readings(
    monitor: ProcessMonitor = Depends(get_monitor),
    count: int = Query(100, ge=1, le=1000, description="Number of most recent readings"),
) -> list[ReadingResponse]:
    """Return the most recent readings, oldest first, with SPC attached."""
    return [
        ReadingResponse.model_validate(r.to_dict())
        for r in monitor.get_recent_readings(count)
    ]


@router.get("/{parameter}", response_model=ParameterSeriesResponse)
async def get_parameter_history(
    parameter: str,
    monitor: ProcessMonitor = Depends(get_monitor),
    count: int | None = Query(None, ge=1, le=1000, description="Limit to the last N readings"),
) -> ParameterSeriesResponse:
    """Return the time series of one parameter.

    Raises:
        HTTPException 404: If the parameter is not in the catalog
    """
    series = monitor.get_parameter_series(parameter, count)
    if series is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Parameter {parameter} not found",
        )
    return ParameterSeriesResponse(
        parameter=parameter,
        points=[SeriesPoint(timestamp=ts, value=value) for ts, value in series],
    )
