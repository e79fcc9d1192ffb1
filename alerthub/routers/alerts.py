"""Query endpoints over retained infrastructure and log-pipeline alerts."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from alerthub.ingestion.models import Alert, LogAlert
from alerthub.state import AlertHub, get_hub
from alerthub.timeutil import utcnow

logger = logging.getLogger("alerthub.api")
router = APIRouter(tags=["alerts"])


class ReadUpdate(BaseModel):
    read: bool = True


@router.get("/alerts", response_model=list[Alert])
async def list_alerts(
    severity: str | None = None,
    vm: str | None = None,
    tenant: str | None = None,
    region: str | None = None,
    alert_type: str | None = None,
    limit: int | None = None,
    hub: AlertHub = Depends(get_hub),
):
    alerts = hub.store.query(severity, vm, tenant, region, alert_type, limit)
    logger.info("Returning %d of %d alerts", len(alerts), len(hub.store))
    return alerts


@router.get("/alerts/filters")
async def alert_filters(hub: AlertHub = Depends(get_hub)):
    return hub.store.filter_options()


@router.get("/alerts/status")
async def alert_status(hub: AlertHub = Depends(get_hub)):
    stats = hub.store.stats()
    stats["next_wipe"] = hub.scheduler.next_wipe.isoformat()
    stats["next_prune"] = hub.scheduler.next_prune.isoformat()
    return stats


@router.put("/alerts/{alert_id}/read", response_model=Alert)
async def mark_alert_read(alert_id: str, update: ReadUpdate | None = None, hub: AlertHub = Depends(get_hub)):
    alert = hub.store.mark_read(alert_id, update.read if update else True)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.put("/alerts/{alert_id}/acknowledge", response_model=Alert)
async def acknowledge_alert(alert_id: str, hub: AlertHub = Depends(get_hub)):
    alert = hub.store.acknowledge(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.delete("/alerts")
async def clear_alerts(hub: AlertHub = Depends(get_hub)):
    result = hub.store.wipe()
    logger.info("Manual alert reset: cleared %d alerts", result.alerts)
    return {
        "message": f"Cleared {result.alerts} alerts from memory",
        "cleared_count": result.alerts,
        "reset_time": utcnow().isoformat(),
    }


@router.get("/log-alerts", response_model=list[LogAlert])
async def list_log_alerts(severity: str | None = None, limit: int = 100, hub: AlertHub = Depends(get_hub)):
    return hub.log_store.query(severity, limit)


@router.put("/log-alerts/{alert_id}/read", response_model=LogAlert)
async def mark_log_alert_read(alert_id: str, update: ReadUpdate | None = None, hub: AlertHub = Depends(get_hub)):
    alert = hub.log_store.mark_read(alert_id, update.read if update else True)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.put("/log-alerts/{alert_id}/acknowledge", response_model=LogAlert)
async def acknowledge_log_alert(alert_id: str, hub: AlertHub = Depends(get_hub)):
    alert = hub.log_store.acknowledge(alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert
