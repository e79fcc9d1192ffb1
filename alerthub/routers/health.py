"""Health endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from alerthub.state import AlertHub, get_hub
from alerthub.telemetry.tracing import SERVICE_VERSION

router = APIRouter()

_start_time = datetime.now(timezone.utc)


@router.get("/health")
async def health(hub: AlertHub = Depends(get_hub)):
    uptime = (datetime.now(timezone.utc) - _start_time).total_seconds()
    return {
        "status": "healthy",
        "uptime_seconds": round(uptime, 2),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": SERVICE_VERSION,
        "total_alerts": len(hub.store),
        "scheduler_running": hub.scheduler.running,
        "mode": "memory",
    }
