"""Service state shared by the routes, owned by the FastAPI app."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from alerthub.enrichment.enricher import AlarmEnricher
from alerthub.heartbeat.channel import HeartbeatChannel
from alerthub.retention.scheduler import RetentionScheduler
from alerthub.store.alert_store import AlertStore
from alerthub.store.archive import RawPayloadArchive
from alerthub.store.log_store import LogAlertStore
from alerthub.store.raw_log import RawWebhookLog


@dataclass
class AlertHub:
    store: AlertStore
    log_store: LogAlertStore
    raw_log: RawWebhookLog
    archive: RawPayloadArchive
    scheduler: RetentionScheduler
    heartbeat: HeartbeatChannel
    enricher: AlarmEnricher


def get_hub(request: Request) -> AlertHub:
    return request.app.state.hub
