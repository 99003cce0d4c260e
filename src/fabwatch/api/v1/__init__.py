"""FabWatch API v1 endpoints."""

from fabwatch.api.v1.alerts import router as alerts_router
from fabwatch.api.v1.drift import router as drift_router
from fabwatch.api.v1.parameters import router as parameters_router
from fabwatch.api.v1.readings import router as readings_router
from fabwatch.api.v1.spc import router as spc_router
from fabwatch.api.v1.statistics import router as statistics_router
from fabwatch.api.v1.websocket import router as websocket_router

__all__ = [
    "alerts_router",
    "drift_router",
    "parameters_router",
    "readings_router",
    "spc_router",
    "statistics_router",
    "websocket_router",
]
