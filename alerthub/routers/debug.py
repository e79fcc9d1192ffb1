"""Operator debugging: raw payload buffer, dedupe index, forensic archive."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from alerthub.state import AlertHub, get_hub

logger = logging.getLogger("alerthub.api")
router = APIRouter(tags=["debug"])


@router.get("/debug/raw-webhooks")
async def raw_webhooks(limit: int = 10, hub: AlertHub = Depends(get_hub)):
    recent = hub.raw_log.recent(limit)
    return {
        "message": f"Last {len(recent)} raw webhook payloads",
        "total_raw_webhooks": len(hub.raw_log),
        "total_processed_alerts": len(hub.store),
        "recent_raw_webhooks": [e.model_dump(mode="json") for e in recent],
    }


@router.get("/debug/deduplication")
async def deduplication(hub: AlertHub = Depends(get_hub)):
    total = len(hub.store)
    unique = hub.store.unique_count
    duplicates = total - unique
    return {
        "total_alerts": total,
        "unique_alerts": unique,
        "untracked_alerts": duplicates,
        "untracked_percentage": f"{duplicates / total * 100:.1f}%" if total else "0%",
        "dedupe_keys": hub.store.dedupe_keys()[:10],
        "recent_alerts": [
            {"id": a.id, "title": a.title, "dedupe_key": a.dedupe_key, "timestamp": a.timestamp}
            for a in hub.store.alerts()[:5]
        ],
    }


@router.get("/archive")
async def list_archive(hub: AlertHub = Depends(get_hub)):
    files = hub.archive.list_files()
    return {"message": "Available log files", "log_files": files, "total_files": len(files)}


@router.get("/archive/{filename}")
async def view_archive(filename: str, hub: AlertHub = Depends(get_hub)):
    records = hub.archive.read(filename)
    if records is None:
        raise HTTPException(status_code=404, detail="Log file not found")
    return {"filename": filename, "total_alerts": len(records), "alerts": records}


@router.get("/archive/{filename}/download")
async def download_archive(filename: str, hub: AlertHub = Depends(get_hub)):
    path = hub.archive.resolve(filename)
    if path is None:
        raise HTTPException(status_code=404, detail="Log file not found")
    logger.info("Downloading archive file: %s", filename)
    return FileResponse(path, filename=filename, media_type="application/json")
