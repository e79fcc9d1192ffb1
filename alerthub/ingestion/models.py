"""Data models for alert ingestion and normalization."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field

from alerthub.timeutil import utcnow


class AlertDomain(str, Enum):
    SERVER = "server"
    DATABASE = "database"


class PayloadKind(str, Enum):
    SUBSCRIPTION = "subscription"
    LOG = "log"
    INFRASTRUCTURE = "infrastructure"


class UpsertAction(str, Enum):
    NEW = "new"
    UPDATED = "updated"


class Alert(BaseModel):
    """Canonical infrastructure alert. ``dedupe_key`` is its identity."""

    id: str
    dedupe_key: str = ""
    severity: str = "warning"
    message: str = ""
    title: str = ""
    vm: str = "Unknown VM"
    tenant: str = "N/A"
    region: str = "Unknown region"
    compartment: str = "N/A"
    alert_type: str = "REPEAT"
    metric_name: str = ""
    threshold: float | None = 0
    current_value: float | None = 0
    unit: str | None = "%"
    resource_display_name: str = ""
    metric_values: Any = {}
    query: str = ""
    alarm_summary: str = ""
    alarm_id: str = ""
    resource_id: str = ""
    image_id: str = ""
    shape: str = ""
    availability_domain: str = ""
    fault_domain: str = ""
    instance_pool_id: str = ""
    status: str = "UNKNOWN"
    timestamp_epoch_millis: int | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    webhook_received_at: datetime = Field(default_factory=utcnow)
    last_updated: datetime | None = None
    category: AlertDomain = AlertDomain.SERVER
    read: bool = False
    acknowledged: bool = False


# Overwritten on a dedupe update; identity and operator flags are not.
ALERT_MUTABLE_FIELDS = tuple(
    name for name in Alert.model_fields
    if name not in {"id", "dedupe_key", "read", "acknowledged", "last_updated"}
)


class LogAlert(BaseModel):
    """Log-pipeline alert received in Slack-attachment format."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    channel: str = "Unknown"
    short_message: str = "No message provided"
    full_message: str = ""
    severity: str = "unknown"
    color: str = "#999999"
    username: str = "Graylog"
    icon_emoji: str = ":warning:"
    timestamp: datetime = Field(default_factory=utcnow)
    read: bool = False
    acknowledged: bool = False


class SubscriptionConfirmation(BaseModel):
    """Protocol-control message from the notification service; never becomes an Alert."""

    topic_id: str = ""
    message_id: str = ""
    confirmation_url: str = ""
    message: str = ""
    status: str = "pending_manual_confirmation"
    timestamp: datetime = Field(default_factory=utcnow)


class IngestResult(BaseModel):
    message: str
    alert_id: str
    total_alerts: int
    unique_alerts: int
    is_duplicate: bool
    dedupe_key: str
