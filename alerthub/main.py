"""alerthub — FastAPI service entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from alerthub.config import settings
from alerthub.enrichment.enricher import AlarmEnricher
from alerthub.enrichment.inventory import EmptyInventory, HttpCloudInventory
from alerthub.heartbeat.channel import HeartbeatChannel
from alerthub.ingestion.receiver import router as webhook_router
from alerthub.middleware import MetricsMiddleware
from alerthub.retention.scheduler import RetentionScheduler
from alerthub.routers import alerts, dashboard, debug, health, heartbeat, metrics
from alerthub.state import AlertHub
from alerthub.store.alert_store import AlertStore
from alerthub.store.archive import RawPayloadArchive
from alerthub.store.log_store import LogAlertStore
from alerthub.store.raw_log import RawWebhookLog
from alerthub.telemetry.logging import setup_logging

logger = logging.getLogger("alerthub")


def build_hub() -> AlertHub:
    """Wire the default collaborators from settings."""
    store = AlertStore()
    raw_log = RawWebhookLog()
    inventory = HttpCloudInventory() if settings.inventory_url else EmptyInventory()
    return AlertHub(
        store=store,
        log_store=LogAlertStore(),
        raw_log=raw_log,
        archive=RawPayloadArchive(),
        scheduler=RetentionScheduler(store, raw_log),
        heartbeat=HeartbeatChannel(),
        enricher=AlarmEnricher(inventory),
    )


def create_app(hub: AlertHub | None = None, start_scheduler: bool = True) -> FastAPI:
    hub = hub or build_hub()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Initializing alerthub...")
        if start_scheduler:
            await hub.scheduler.start()
        logger.info("alerthub ready — max_alerts=%d", hub.store.max_alerts)

        yield

        if start_scheduler:
            await hub.scheduler.stop()
        await hub.enricher.close()
        logger.info("alerthub shut down")

    app = FastAPI(
        title="alerthub",
        description="Alert webhook ingestion, deduplication and dashboard queries",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.hub = hub

    app.add_middleware(MetricsMiddleware)

    app.include_router(webhook_router)
    app.include_router(alerts.router)
    app.include_router(debug.router)
    app.include_router(heartbeat.router)
    app.include_router(dashboard.router)
    app.include_router(health.router)
    app.include_router(metrics.router)

    if settings.otlp_endpoint:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)

    return app


def _configure_telemetry() -> None:
    setup_logging(otlp_endpoint=settings.otlp_endpoint, level=settings.log_level)
    if settings.otlp_endpoint:
        from alerthub.telemetry.tracing import setup_tracing

        setup_tracing(otlp_endpoint=settings.otlp_endpoint, environment=settings.environment)


_configure_telemetry()
app = create_app()


def run() -> None:
    """Serve the module-level app; logging is already configured above."""
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
