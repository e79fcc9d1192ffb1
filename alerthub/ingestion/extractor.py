"""Schema-tolerant field extraction.

Upstream senders rename fields between versions. Every logical field is
declared once in ``FIELD_CANDIDATES`` as an ordered list of source keys plus a
default; supporting a new format means editing the table, not the normalizer.
"""

from __future__ import annotations

import random
import string
import time
from typing import Any

from alerthub.timeutil import utcnow


_MISSING = object()


def synthesize_id(prefix: str = "webhook") -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def extract(obj: Any, candidates, default: Any = None) -> Any:
    """Return the first candidate key present on ``obj`` with a non-empty value.

    ``None`` and ``""`` count as absent. Anything that is not a mapping yields
    ``default``.
    """
    if not isinstance(obj, dict):
        return default
    for key in candidates:
        value = obj.get(key)
        if value is not None and value != "":
            return value
    return default


# field -> (candidate keys, default). A callable default is invoked per call.
FIELD_CANDIDATES: dict[str, tuple[tuple[str, ...], Any]] = {
    "id": (("id", "alarmOCID", "alarmId", "alertId"), synthesize_id),
    "title": (("title", "message", "alertTitle", "name", "subject"), "No title available"),
    "severity": (("severity", "level", "priority", "alertLevel"), "warning"),
    "vm": (("vm", "resourceDisplayName", "hostname", "instanceName", "serverName"), "Unknown VM"),
    "region": (("region", "location", "zone", "availabilityZone"), "Unknown region"),
    "status": (("status", "state", "condition"), "UNKNOWN"),
    "query": (("query", "metricQuery", "expression", "rule"), ""),
    "timestamp_epoch_millis": (
        ("timestampEpochMillis", "timestamp", "time", "createdAt", "lastUpdated"),
        None,
    ),
    "tenant": (("tenant", "organization", "company"), "N/A"),
    "compartment": (("compartment", "compartmentId", "orgId"), "N/A"),
    "alert_type": (("alertType", "type", "category"), "REPEAT"),
    "metric_name": (("metricName", "metric", "measurement"), ""),
    "threshold": (("threshold", "limit", "maxValue"), 0),
    "current_value": (("currentValue", "value", "metricValue"), 0),
    "unit": (("unit", "measurementUnit"), "%"),
    "metric_values": (("metricValues", "metrics", "data"), dict),
    "timestamp": (("timestamp", "time", "createdAt"), utcnow),
    "webhook_received_at": (("webhookReceivedAt", "receivedAt", "lastUpdated"), utcnow),
    "alarm_summary": (("alarmSummary", "summary", "description"), ""),
    "dedupe_key": (("dedupeKey", "deduplicationKey", "uniqueId"), synthesize_id),
    "alarm_id": (("alarmOCID", "alarmId", "id"), ""),
    "resource_id": (("resourceId", "instanceId", "id"), ""),
    "image_id": (("imageId", "image"), ""),
    "shape": (("shape", "instanceType", "size"), ""),
    "availability_domain": (("availabilityDomain", "zone", "az"), ""),
    "fault_domain": (("faultDomain", "fd"), ""),
    "instance_pool_id": (("instancePoolId", "poolId"), ""),
}


def extract_field(obj: Any, field: str) -> Any:
    """Extract a logical field using its entry in ``FIELD_CANDIDATES``."""
    candidates, default = FIELD_CANDIDATES[field]
    value = extract(obj, candidates, _MISSING)
    if value is _MISSING:
        return default() if callable(default) else default
    return value

