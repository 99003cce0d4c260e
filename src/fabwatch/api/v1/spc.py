"""SPC capability and diagnostics REST endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from fabwatch.api.deps import get_monitor
from fabwatch.api.schemas.spc import (
    CapabilityResponse,
    CapabilitySummaryResponse,
    DiagnosticsResponse,
)
from fabwatch.core.monitor import ProcessMonitor

router = APIRouter(prefix="/api/v1/spc", tags=["spc"])


def _not_found(parameter: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Parameter {parameter} not found",
    )


@router.get("/summary", response_model=CapabilitySummaryResponse)
async def get_capability_summaries(
    monitor: ProcessMonitor = Depends(get_monitor),
) -> CapabilitySummaryResponse:
    """Capability statistics for every parameter over the recent window."""
    return CapabilitySummaryResponse(
        parameters={
            key: CapabilityResponse.model_validate(summary.to_dict())
            for key, summary in monitor.get_capability_summaries().items()
        }
    )


@router.get("/{parameter}/capability", response_model=CapabilityResponse)
async def get_capability(
    parameter: str,
    monitor: ProcessMonitor = Depends(get_monitor),
) -> CapabilityResponse:
    """Capability statistics for one parameter.

    Raises:
        HTTPException 404: If the parameter is not in the catalog
    """
    summary = monitor.get_capability_summary(parameter)
    if summary is None:
        raise _not_found(parameter)
    return CapabilityResponse.model_validate(summary.to_dict())


@router.get("/{parameter}/diagnostics", response_model=DiagnosticsResponse)
async def get_diagnostics(
    parameter: str,
    monitor: ProcessMonitor = Depends(get_monitor),
) -> DiagnosticsResponse:
    """Capability, I-MR limits estimated from data and pattern-rule violations.

    Raises:
        HTTPException 404: If the parameter is not in the catalog
    """
    diagnostics = monitor.get_parameter_diagnostics(parameter)
    if diagnostics is None:
        raise _not_found(parameter)

    limits = diagnostics.estimated_limits
    return DiagnosticsResponse.model_validate({
        "parameter": diagnostics.parameter,
        "capability": diagnostics.capability.to_dict(),
        "estimated_limits": None if limits is None else {
            "center_line": limits.center_line,
            "ucl": limits.ucl,
            "lcl": limits.lcl,
            "sigma": limits.sigma,
        },
        "violations": [v.to_dict() for v in diagnostics.violations],
    })
