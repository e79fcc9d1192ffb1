"""Webhook receivers — infrastructure alarms, log-pipeline alerts, auto-dispatch."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from opentelemetry import trace

from alerthub.ingestion.models import IngestResult, PayloadKind, SubscriptionConfirmation, UpsertAction
from alerthub.ingestion.normalizer import (
    detect_payload_kind,
    normalize_log_alert,
    normalize_webhook,
    replace_non_finite,
)
from alerthub.state import AlertHub, get_hub
from alerthub.telemetry.metrics import webhooks_received_total

logger = logging.getLogger("alerthub.ingestion")
tracer = trace.get_tracer(__name__)
router = APIRouter(prefix="/webhooks", tags=["ingestion"])


async def _json_body(request: Request):
    try:
        body = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Request body is not valid JSON") from exc
    # Responses and the archive are strict JSON.
    return replace_non_finite(body)


def _confirm_subscription(hub: AlertHub, confirmation: SubscriptionConfirmation, headers: dict) -> dict:
    logger.info(
        "Subscription confirmation received: topic=%s url=%s (confirm manually)",
        confirmation.topic_id, confirmation.confirmation_url,
    )
    hub.raw_log.record(
        {"type": "subscription_confirmation", **confirmation.model_dump(mode="json")},
        headers,
        entry_id=f"confirmation-{int(confirmation.timestamp.timestamp() * 1000)}",
    )
    return {
        "message": "Subscription confirmation received - please visit the confirmation URL manually",
        "topic_id": confirmation.topic_id,
        "confirmation_url": confirmation.confirmation_url,
        "status": confirmation.status,
    }


def ingest_infrastructure(hub: AlertHub, body, headers: dict) -> dict:
    """Normalize, archive and upsert one infrastructure payload.

    Runs without suspension points so no wipe can interleave with the upsert.
    """
    result = normalize_webhook(body)
    if isinstance(result, SubscriptionConfirmation):
        webhooks_received_total.labels(kind=PayloadKind.SUBSCRIPTION.value).inc()
        return _confirm_subscription(hub, result, headers)

    webhooks_received_total.labels(kind=PayloadKind.INFRASTRUCTURE.value).inc()
    hub.archive.append(body, result.category.value)
    hub.raw_log.record(body, headers)

    with tracer.start_as_current_span("alert-upsert") as span:
        upsert = hub.store.upsert(result)
        span.set_attribute("alert.dedupe_key", upsert.alert.dedupe_key)
        span.set_attribute("alert.category", upsert.alert.category.value)
        span.set_attribute("alert.action", upsert.action.value)

    logger.info(
        "Alert %s: id=%s severity=%s vm=%s dedupe_key=%s total=%d unique=%d",
        upsert.action.value, upsert.alert.id, upsert.alert.severity, upsert.alert.vm,
        upsert.alert.dedupe_key, len(hub.store), hub.store.unique_count,
    )
    return IngestResult(
        message=f"Alert {upsert.action.value} successfully",
        alert_id=upsert.alert.id,
        total_alerts=len(hub.store),
        unique_alerts=hub.store.unique_count,
        is_duplicate=upsert.action is UpsertAction.UPDATED,
        dedupe_key=upsert.alert.dedupe_key,
    ).model_dump()


def ingest_log(hub: AlertHub, body) -> JSONResponse:
    webhooks_received_total.labels(kind=PayloadKind.LOG.value).inc()
    alert = hub.log_store.add(normalize_log_alert(body))
    return JSONResponse(
        status_code=201,
        content={"message": "Log alert saved successfully", "alert": alert.model_dump(mode="json")},
    )


@router.post("/infrastructure")
async def infrastructure_webhook(request: Request, hub: AlertHub = Depends(get_hub)):
    """Receive a cloud-monitoring alarm in any JSON shape."""
    body = await _json_body(request)
    return ingest_infrastructure(hub, body, dict(request.headers))


@router.post("/logs")
async def log_webhook(request: Request, hub: AlertHub = Depends(get_hub)):
    """Receive a log-pipeline alert in Slack-attachment format."""
    body = await _json_body(request)
    return ingest_log(hub, body)


@router.post("")
async def auto_webhook(request: Request, hub: AlertHub = Depends(get_hub)):
    """Accept any supported payload and route it by shape."""
    body = await _json_body(request)
    if detect_payload_kind(body) is PayloadKind.LOG:
        return ingest_log(hub, body)
    return ingest_infrastructure(hub, body, dict(request.headers))
