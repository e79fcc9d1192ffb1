"""Normalize webhook payloads of any known shape into canonical records."""

from __future__ import annotations

import logging
import math
from typing import Any

from alerthub.ingestion.classification import classify_alert_domain
from alerthub.ingestion.extractor import extract_field
from alerthub.ingestion.models import (
    Alert,
    LogAlert,
    PayloadKind,
    SubscriptionConfirmation,
)
from alerthub.timeutil import parse_or_now, parse_timestamp

logger = logging.getLogger("alerthub.ingestion")

SUBSCRIPTION_CONFIRMATION = "SubscriptionConfirmation"

_COLOR_SEVERITY = {
    "#FF0000": "critical",
    "#FFA500": "high",
    "#FFFF00": "medium",
    "#008000": "low",
    "#0000FF": "info",
    "#999999": "unknown",
}


def detect_payload_kind(body: Any) -> PayloadKind:
    if isinstance(body, dict):
        if body.get("type") == SUBSCRIPTION_CONFIRMATION:
            return PayloadKind.SUBSCRIPTION
        if isinstance(body.get("attachments"), list):
            return PayloadKind.LOG
    return PayloadKind.INFRASTRUCTURE


def replace_non_finite(value: Any) -> Any:
    """Replace NaN and Infinity (accepted by the JSON parser) with None, recursively."""
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: replace_non_finite(v) for k, v in value.items()}
    if isinstance(value, list):
        return [replace_non_finite(v) for v in value]
    return value


def unwrap(body: Any) -> dict:
    """Return the alert body, unwrapping ``{"payload": {...}}`` envelopes."""
    if not isinstance(body, dict):
        return {}
    inner = body.get("payload")
    if isinstance(inner, dict) and inner:
        logger.debug("Using wrapped payload format")
        return inner
    return body


def _as_float(value: Any, default: float | None) -> float | None:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _as_millis(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, (int, float)):
        return int(value)
    parsed = parse_timestamp(value)
    return int(parsed.timestamp() * 1000) if parsed else None


def parse_subscription(body: dict) -> SubscriptionConfirmation:
    return SubscriptionConfirmation(
        topic_id=_as_str(body.get("topicId")),
        message_id=_as_str(body.get("messageId")),
        confirmation_url=_as_str(body.get("confirmationUrl")),
        message=_as_str(body.get("message")),
    )


def normalize_alert(body: Any) -> Alert:
    """Build an Alert from any JSON object. Never raises for malformed input."""
    payload = unwrap(body)
    title = _as_str(extract_field(payload, "title"))
    vm = _as_str(extract_field(payload, "vm"))

    return Alert(
        id=_as_str(extract_field(payload, "id")),
        dedupe_key=_as_str(extract_field(payload, "dedupe_key")),
        severity=_as_str(extract_field(payload, "severity")).lower(),
        message=title,
        title=title,
        vm=vm,
        resource_display_name=vm,
        tenant=_as_str(extract_field(payload, "tenant")),
        region=_as_str(extract_field(payload, "region")),
        compartment=_as_str(extract_field(payload, "compartment")),
        alert_type=_as_str(extract_field(payload, "alert_type")),
        metric_name=_as_str(extract_field(payload, "metric_name")),
        threshold=_as_float(extract_field(payload, "threshold"), 0),
        current_value=_as_float(extract_field(payload, "current_value"), 0),
        unit=_as_str(extract_field(payload, "unit")),
        metric_values=extract_field(payload, "metric_values"),
        query=_as_str(extract_field(payload, "query")),
        alarm_summary=_as_str(extract_field(payload, "alarm_summary")),
        alarm_id=_as_str(extract_field(payload, "alarm_id")),
        resource_id=_as_str(extract_field(payload, "resource_id")),
        image_id=_as_str(extract_field(payload, "image_id")),
        shape=_as_str(extract_field(payload, "shape")),
        availability_domain=_as_str(extract_field(payload, "availability_domain")),
        fault_domain=_as_str(extract_field(payload, "fault_domain")),
        instance_pool_id=_as_str(extract_field(payload, "instance_pool_id")),
        status=_as_str(extract_field(payload, "status")),
        timestamp_epoch_millis=_as_millis(extract_field(payload, "timestamp_epoch_millis")),
        timestamp=parse_or_now(extract_field(payload, "timestamp")),
        webhook_received_at=parse_or_now(extract_field(payload, "webhook_received_at")),
        category=classify_alert_domain(payload),
    )


def normalize_webhook(body: Any) -> Alert | SubscriptionConfirmation:
    """Normalize an infrastructure webhook, short-circuiting control messages."""
    if detect_payload_kind(body) is PayloadKind.SUBSCRIPTION:
        return parse_subscription(body)
    return normalize_alert(body)


def severity_from_color(color: Any) -> str:
    if not isinstance(color, str):
        return "unknown"
    return _COLOR_SEVERITY.get(color.strip().upper(), "unknown")


def normalize_log_alert(body: Any) -> LogAlert:
    """Build a LogAlert from a Slack-attachment payload; missing parts use defaults."""
    if not isinstance(body, dict):
        body = {}
    attachments = body.get("attachments")
    attachment = attachments[0] if isinstance(attachments, list) and attachments else {}
    if not isinstance(attachment, dict):
        attachment = {}

    short_message = _as_str(attachment.get("title")) or _as_str(body.get("text")) or "No message provided"
    color = attachment.get("color")

    return LogAlert(
        channel=_as_str(body.get("channel")) or "Unknown",
        short_message=short_message,
        full_message=_as_str(attachment.get("text")),
        severity=severity_from_color(color),
        color=_as_str(color) or "#999999",
        username=_as_str(body.get("username")) or "Graylog",
        icon_emoji=_as_str(body.get("icon_emoji")) or ":warning:",
    )
