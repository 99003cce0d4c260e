"""Drift detection REST endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from fabwatch.api.deps import get_monitor
from fabwatch.api.schemas.drift import (
    DriftReportResponse,
    DriftResetRequest,
    DriftResetResponse,
)
from fabwatch.core.monitor import ProcessMonitor

router = APIRouter(prefix="/api/v1/drift", tags=["drift"])


@router.get("/status", response_model=DriftReportResponse)
async def get_drift_status(
    monitor: ProcessMonitor = Depends(get_monitor),
) -> DriftReportResponse:
    """Run drift detection over the current history.

    Read-only: the scheduler's CUSUM and EWMA state is left unchanged.
    """
    return DriftReportResponse.model_validate(monitor.get_drift_status().to_dict())


@router.post("/reset", response_model=DriftResetResponse)
async def reset_drift(
    data: DriftResetRequest,
    monitor: ProcessMonitor = Depends(get_monitor),
) -> DriftResetResponse:
    """Clear CUSUM/EWMA state for one parameter, or for all parameters.

    Raises:
        HTTPException 404: If the parameter is not in the catalog
    """
    if not await monitor.reset_drift_state(data.parameter):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Parameter {data.parameter} not found",
        )
    target = data.parameter or "all parameters"
    return DriftResetResponse(
        parameter=data.parameter,
        message=f"Drift state reset for {target}",
    )
