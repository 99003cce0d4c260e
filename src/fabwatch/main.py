"""FabWatch FastAPI Application."""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncGenerator

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from fabwatch.api.schemas.common import HealthResponse
from fabwatch.api.v1 import (
    alerts_router,
    drift_router,
    parameters_router,
    readings_router,
    spc_router,
    statistics_router,
    websocket_router,
)
from fabwatch.core.alerts import AlertSynthesizer
from fabwatch.core.broadcast import SubscriberBroadcaster, SubscriberHub
from fabwatch.core.catalog import DEFAULT_CATALOG, MANUFACTURING_LINES
from fabwatch.core.config import Settings, get_settings
from fabwatch.core.engine import DriftDetector
from fabwatch.core.events import EventBus
from fabwatch.core.logging import configure_logging
from fabwatch.core.monitor import ProcessMonitor
from fabwatch.core.providers import ReadingSimulator

logger = structlog.get_logger(__name__)


def build_monitor(settings: Settings, event_bus: EventBus) -> ProcessMonitor:
    """Build the simulator-fed monitor and backfill its history."""
    simulator = ReadingSimulator(
        DEFAULT_CATALOG,
        lines=MANUFACTURING_LINES,
        seed=settings.simulator_seed,
        noise_level=settings.simulator_noise_level,
    )
    monitor = ProcessMonitor(
        DEFAULT_CATALOG,
        producer=simulator,
        detector=DriftDetector(),
        synthesizer=AlertSynthesizer(cooldown=timedelta(seconds=settings.alert_cooldown_seconds)),
        event_bus=event_bus,
        history_capacity=settings.history_capacity,
        analysis_interval=settings.analysis_interval,
        tick_interval=settings.tick_interval_seconds,
        capability_window=settings.capability_window,
        current_yield=settings.current_yield,
        lines=MANUFACTURING_LINES,
    )

    if settings.backfill_count > 0:
        spacing = timedelta(seconds=settings.backfill_spacing_seconds)
        monitor.backfill(
            simulator.historical(settings.backfill_count, spacing),
            settings.backfill_count,
        )
    return monitor


def create_app(settings: Settings | None = None, monitor: ProcessMonitor | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Application settings (default: get_settings())
        monitor: Pre-built monitor to serve instead of the simulator-fed
            one; it is wired to the application's event bus at startup

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        configure_logging(settings.log_format, settings.log_level, service_version=settings.app_version)
        logger.info("fabwatch_starting", version=settings.app_version)

        event_bus = EventBus()
        hub = SubscriberHub(queue_size=settings.subscriber_queue_size)
        broadcaster = SubscriberBroadcaster(hub, event_bus)

        if monitor is None:
            app_monitor = build_monitor(settings, event_bus)
        else:
            app_monitor = monitor
            app_monitor.event_bus = event_bus

        app.state.event_bus = event_bus
        app.state.hub = hub
        app.state.monitor = app_monitor

        if settings.scheduler_enabled:
            await app_monitor.start()

        logger.info(
            "fabwatch_started",
            history_size=len(app_monitor.history),
            scheduler_enabled=settings.scheduler_enabled,
        )

        yield

        logger.info("fabwatch_stopping")
        await app_monitor.stop()
        broadcaster.close()
        await event_bus.shutdown()
        logger.info("fabwatch_stopped")

    app = FastAPI(
        title="FabWatch",
        description="Real-time process drift detection and SPC monitoring",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(parameters_router)
    app.include_router(readings_router)
    app.include_router(alerts_router)
    app.include_router(spc_router)
    app.include_router(drift_router)
    app.include_router(statistics_router)
    app.include_router(websocket_router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request) -> HealthResponse:
        """Health check endpoint."""
        state = request.app.state
        return HealthResponse(
            status="healthy",
            version=settings.app_version,
            scheduler_running=state.monitor.running,
            history_size=len(state.monitor.history),
            subscribers=state.hub.subscriber_count,
        )

    return app


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run("fabwatch.main:app", host=settings.host, port=settings.port)
