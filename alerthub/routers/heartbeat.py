"""Heartbeat feed endpoints — fetched fresh per request, never stored."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from alerthub.heartbeat.channel import HeartbeatUnavailable
from alerthub.heartbeat.interpreter import interpret, summarize
from alerthub.heartbeat.models import HeartbeatAlert, HeartbeatSummary
from alerthub.state import AlertHub, get_hub

router = APIRouter(prefix="/heartbeat", tags=["heartbeat"])


async def fetch_systems(hub: AlertHub):
    try:
        return await hub.heartbeat.fetch_systems()
    except HeartbeatUnavailable as exc:
        raise HTTPException(status_code=504, detail=str(exc)) from exc


@router.get("", response_model=list[HeartbeatAlert])
async def heartbeat_alerts(hub: AlertHub = Depends(get_hub)):
    return interpret(await fetch_systems(hub))


@router.get("/summary", response_model=HeartbeatSummary)
async def heartbeat_summary(hub: AlertHub = Depends(get_hub)):
    return summarize(await fetch_systems(hub))
