"""Common Pydantic schemas for the FabWatch REST API."""

from datetime import datetime

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format.

    Attributes:
        detail: Human-readable error message
    """

    detail: str


class HealthResponse(BaseModel):
    status: str
    version: str
    scheduler_running: bool
    history_size: int
    subscribers: int


class StatisticsResponse(BaseModel):
    """Lifetime counters of the monitor plus live subscriber count."""

    readings_processed: int
    analyses_run: int
    producer_failures: int
    history_size: int
    history_capacity: int
    total_alerts: int
    unacknowledged_alerts: int
    last_reading_at: datetime | None
    started_at: datetime
    subscribers: int
