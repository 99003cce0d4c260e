"""FastAPI dependency injection functions.

The monitor and subscriber hub are created in the application lifespan and
stored on ``app.state``; endpoints receive them through these dependencies.
"""

from fastapi import Request

from fabwatch.core.broadcast import SubscriberHub
from fabwatch.core.monitor import ProcessMonitor


def get_monitor(request: Request) -> ProcessMonitor:
    """Get the process monitor from application state."""
    return request.app.state.monitor


def get_hub(request: Request) -> SubscriberHub:
    """Get the subscriber hub from application state."""
    return request.app.state.hub
