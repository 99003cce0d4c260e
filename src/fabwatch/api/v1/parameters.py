"""Parameter catalog REST endpoint."""

from fastapi import APIRouter, Depends

from fabwatch.api.deps import get_monitor
from fabwatch.api.schemas.parameter import CatalogResponse
from fabwatch.core.monitor import ProcessMonitor

router = APIRouter(prefix="/api/v1/parameters", tags=["parameters"])


@router.get("/", response_model=CatalogResponse)
async def list_parameters(
    monitor: ProcessMonitor = Depends(get_monitor),
) -> CatalogResponse:
    """List monitored parameters with their limits, and the manufacturing lines."""
    return CatalogResponse.model_validate(
        {"parameters": monitor.get_parameters(), "lines": list(monitor.lines)}
    )
