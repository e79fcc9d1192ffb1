"""Dashboard alert stream and live cloud alarms."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from alerthub.dashboard.classifier import process_alerts
from alerthub.dashboard.models import AlertFilters, PresentationAlert, Source
from alerthub.heartbeat.channel import HeartbeatUnavailable
from alerthub.heartbeat.interpreter import interpret
from alerthub.ingestion.models import Alert
from alerthub.state import AlertHub, get_hub

logger = logging.getLogger("alerthub.api")
router = APIRouter(tags=["dashboard"])


@router.post("/dashboard/alerts", response_model=list[PresentationAlert])
async def dashboard_alerts(filters: AlertFilters, hub: AlertHub = Depends(get_hub)):
    """Classified, filtered, newest-first stream for the requested sources only."""
    if not filters.source:
        return []

    heartbeat = []
    if Source.HEARTBEAT in filters.source:
        try:
            heartbeat = interpret(await hub.heartbeat.fetch_systems())
        except HeartbeatUnavailable:
            logger.warning("Heartbeat feed unavailable, stream built without heartbeat alerts")

    alerts = process_alerts(hub.log_store.alerts(), hub.store.alerts(), heartbeat, filters)
    logger.info("Dashboard stream: %d alerts for %s", len(alerts), [s.value for s in filters.source])
    return alerts


@router.get("/infrastructure/live", response_model=list[Alert])
async def live_alarms(hub: AlertHub = Depends(get_hub)):
    """Currently firing cloud alarms, enriched; empty on upstream outage."""
    return await hub.enricher.fetch_with_timeout()
