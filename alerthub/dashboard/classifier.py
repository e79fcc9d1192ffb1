"""Map raw alert streams into presentation records, then filter and sort them.

Pure and synchronous: given the same inputs the output is always the same.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from alerthub.dashboard.models import (
    AlertFilters,
    Category,
    PresentationAlert,
    PresentationSeverity,
    ServiceStatus,
    Source,
)
from alerthub.heartbeat.models import HeartbeatAlert
from alerthub.ingestion.models import Alert, AlertDomain, LogAlert
from alerthub.timeutil import parse_timestamp

logger = logging.getLogger("alerthub.dashboard")

ALL = "ALL"
RESOURCE_DATABASE = "Database"

# Alert types that carry no information beyond "this is an alarm".
_PLAIN_ALERT_TYPES = {"", "CLOUD_ALARM"}

_SERVICE_STATUS = {"GREEN": "OK", "ORANGE": "WARN"}

# Heartbeat dynamic-filter values that select sites by name suffix.
_SITE_SUFFIXES = {"DBSPC": "_dbspc", "gse": "-gse", "aal": "_aal"}

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def map_severity(severity: str | None, source: Source) -> PresentationSeverity:
    s = (severity or "").lower()
    if "critical" in s or s in ("crit", "high"):
        return PresentationSeverity.CRITICAL
    if "warning" in s or s in ("warn", "medium", "low"):
        return PresentationSeverity.WARNING
    # Only infrastructure alerts distinguish Error from Info.
    if source is Source.INFRASTRUCTURE:
        return PresentationSeverity.ERROR
    return PresentationSeverity.INFO


def log_category(channel: str | None) -> Category:
    channel = (channel or "").lower()
    if "heartbeat" in channel or "monitor" in channel:
        return Category.HEARTBEAT
    if "infrastructure" in channel or "system" in channel:
        return Category.SERVER
    return Category.LOGS


def _from_log(alert: LogAlert) -> PresentationAlert:
    return PresentationAlert(
        id=alert.id,
        source=Source.LOGS,
        severity=map_severity(alert.severity, Source.LOGS),
        title=alert.short_message or "No title",
        description=alert.full_message or alert.short_message or "No description",
        timestamp=alert.timestamp,
        category=log_category(alert.channel),
        channel=alert.channel,
        short_message=alert.short_message,
        full_message=alert.full_message,
    )


def _from_infrastructure(alert: Alert) -> PresentationAlert:
    title = alert.vm
    if alert.alert_type not in _PLAIN_ALERT_TYPES:
        title = f"{alert.vm} - {alert.alert_type}"
    category = Category.DATABASE if alert.category is AlertDomain.DATABASE else Category.SERVER
    return PresentationAlert(
        id=alert.id,
        source=Source.INFRASTRUCTURE,
        severity=map_severity(alert.severity, Source.INFRASTRUCTURE),
        title=title,
        description=alert.message or "No description available",
        timestamp=alert.timestamp,
        category=category,
        site=alert.vm,
        region=alert.region,
        compartment=alert.compartment,
        metric_name=alert.metric_name,
        tenant=alert.tenant,
        vm=alert.vm,
        alert_type=alert.alert_type,
    )


def _from_heartbeat(alert: HeartbeatAlert) -> PresentationAlert:
    return PresentationAlert(
        id=alert.id,
        source=Source.HEARTBEAT,
        severity=map_severity(alert.severity, Source.HEARTBEAT),
        title=f"{alert.site_name} - {alert.service}",
        description=alert.message,
        timestamp=parse_timestamp(alert.timestamp),
        category=Category.HEARTBEAT,
        site=alert.site,
        services=[ServiceStatus(name=alert.service, status=_SERVICE_STATUS.get(alert.status, "ERR"))],
        service=alert.service,
        critical_system=alert.critical_system,
    )


def _matches_dynamic(alert: PresentationAlert, value: str) -> bool:
    lower = value.lower()
    if alert.source is Source.LOGS:
        if value.startswith("#"):
            return (alert.channel or "").lower() == lower
        upper = value.upper()
        return upper in (alert.full_message or "").upper() or upper in (alert.short_message or "").upper()

    if alert.source is Source.INFRASTRUCTURE:
        return (alert.tenant or "").lower() == lower or lower in (alert.vm or "").lower()

    if alert.source is Source.HEARTBEAT:
        if (alert.service or "").lower() == lower:
            return True
        suffix = _SITE_SUFFIXES.get(value)
        return bool(suffix and alert.site and alert.site.lower().endswith(suffix))

    return False


def is_database_alert(alert: PresentationAlert) -> bool:
    if alert.category is Category.DATABASE:
        return True
    alert_type = (alert.alert_type or "").lower()
    metric = (alert.metric_name or "").lower()
    return (
        "database" in alert_type or "db" in alert_type
        or "database" in metric
        or "db" in (alert.vm or "").lower()
    )


def _active(value: str | None) -> bool:
    return bool(value) and value != ALL


def process_alerts(
    log_alerts: list[LogAlert],
    infra_alerts: list[Alert],
    heartbeat_alerts: list[HeartbeatAlert],
    filters: AlertFilters,
) -> list[PresentationAlert]:
    """Build the filtered, newest-first alert stream for the requested sources."""
    sources = set(filters.source)
    if not sources:
        return []

    records: list[PresentationAlert] = []
    if Source.LOGS in sources:
        records.extend(_from_log(a) for a in log_alerts)
    if Source.INFRASTRUCTURE in sources:
        records.extend(_from_infrastructure(a) for a in infra_alerts)
    if Source.HEARTBEAT in sources:
        records.extend(_from_heartbeat(a) for a in heartbeat_alerts)

    if filters.severity:
        wanted = set(filters.severity)
        records = [r for r in records if r.severity in wanted]

    leaked = [r for r in records if r.source not in sources]
    if leaked:
        logger.error("Dropping %d alerts from unrequested sources", len(leaked))
        records = [r for r in records if r.source in sources]

    if _active(filters.dynamic_filter):
        records = [r for r in records if _matches_dynamic(r, filters.dynamic_filter)]

    if _active(filters.region):
        records = [
            r for r in records
            if r.source is not Source.INFRASTRUCTURE or r.region == filters.region
        ]

    if _active(filters.resource_type):
        want_database = filters.resource_type == RESOURCE_DATABASE
        records = [
            r for r in records
            if r.source is not Source.INFRASTRUCTURE or is_database_alert(r) == want_database
        ]

    if filters.search_text:
        needle = filters.search_text.lower()
        records = [
            r for r in records
            if needle in r.title.lower()
            or needle in r.description.lower()
            or needle in (r.site or "").lower()
        ]

    return sorted(records, key=lambda r: r.timestamp or _EPOCH, reverse=True)
