"""Turn firing cloud alarms into Alerts with readable VM and tenant names.

Lookups are cache-first; alarms are processed in fixed-size chunks, with the
alarms of one chunk resolved concurrently and chunks handled one after another
so the number of outstanding lookups stays bounded.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Awaitable, Callable

from opentelemetry import trace

from alerthub.config import settings
from alerthub.enrichment.inventory import CloudInventory
from alerthub.ingestion.classification import classify_alert_domain
from alerthub.ingestion.extractor import synthesize_id
from alerthub.ingestion.models import Alert
from alerthub.telemetry.metrics import enrichment_lookups_total
from alerthub.timeutil import parse_or_now

logger = logging.getLogger("alerthub.enrichment")
tracer = trace.get_tracer(__name__)

ALERT_TYPE = "CLOUD_ALARM"
ERROR_ALERT_TYPE = "CLOUD_ALARM_ERROR"
UNKNOWN_TENANT = "Unknown Tenant"

_SEVERITY = {
    "CRITICAL": "critical",
    "ERROR": "error",
    "WARNING": "warning",
    "INFO": "info",
    "OK": "info",
}

_DIMENSION_KEYS = (
    "resourceId", "instanceId", "instance_id", "resourceName",
    "resource_id", "vmId", "resourceDisplayName", "displayName",
)

_QUERY_PATTERNS = [
    re.compile(r'resourceId\s*=\s*"([^"]+)"', re.I),
    re.compile(r'instanceId\s*=\s*"([^"]+)"', re.I),
    re.compile(r'instance_id\s*=\s*"([^"]+)"', re.I),
    re.compile(r'resourceName\s*=\s*"([^"]+)"', re.I),
    re.compile(r'resourceDisplayName\s*=\s*"([^"]+)"', re.I),
    re.compile(r'displayName\s*=\s*"([^"]+)"', re.I),
    re.compile(r"(ocid1\.instance\.[a-zA-Z0-9._-]+)", re.I),
]

_DISPLAY_NAME_PATTERNS = [
    re.compile(r"([A-Z]{2,}-[A-Z0-9]+-[A-Z0-9]+)"),
    re.compile(r"([A-Z]+\d*-\d+[A-Z]?)"),
    re.compile(r"([A-Z]{3,}\d+)"),
]


def extract_vm_id(alarm: dict) -> str | None:
    dimensions = alarm.get("dimensions")
    if isinstance(dimensions, dict):
        for key in _DIMENSION_KEYS:
            if dimensions.get(key):
                return dimensions[key]

    query = alarm.get("query") or ""
    for pattern in _QUERY_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(1)
    return None


def name_from_display(display_name: str | None, known_names) -> str | None:
    if not display_name:
        return None
    lowered = display_name.lower()
    for name in known_names:
        if name and name.lower() in lowered:
            return name
    for pattern in _DISPLAY_NAME_PATTERNS:
        match = pattern.search(display_name)
        if match:
            return match.group(1)
    return None


def fallback_vm_name(vm_id: str) -> str:
    """Readable label derived from the identifier itself."""
    if vm_id.startswith("ocid1."):
        return f"VM-{vm_id.split('.')[-1][:8]}"
    return vm_id


class AlarmEnricher:
    def __init__(
        self,
        inventory: CloudInventory,
        chunk_size: int | None = None,
        timeout: float | None = None,
        tenant_mappings: dict[str, str] | None = None,
    ) -> None:
        self._inventory = inventory
        self._chunk_size = chunk_size or settings.enrichment_chunk_size
        self._timeout = timeout or settings.enrichment_timeout_seconds
        self._tenant_mappings = dict(settings.tenant_mappings if tenant_mappings is None else tenant_mappings)
        self._instance_cache: dict[str, str] = {}
        self._compartment_cache: dict[str, str] = {}
        self._pending: dict[tuple[str, str], asyncio.Future] = {}

    async def _cached(
        self,
        kind: str,
        cache: dict[str, str],
        key: str,
        fetch: Callable[[str], Awaitable[str]],
    ) -> str:
        if key in cache:
            enrichment_lookups_total.labels(kind=kind, outcome="cache").inc()
            return cache[key]

        # Concurrent lookups of one key share a single call.
        task = self._pending.get((kind, key))
        if task is None:
            task = asyncio.ensure_future(fetch(key))
            self._pending[(kind, key)] = task
        try:
            value = await task
        except Exception:
            enrichment_lookups_total.labels(kind=kind, outcome="error").inc()
            raise
        finally:
            self._pending.pop((kind, key), None)

        enrichment_lookups_total.labels(kind=kind, outcome="fetched").inc()
        cache[key] = value
        return value

    async def vm_name(self, alarm: dict, instance_map: dict[str, str]) -> tuple[str | None, str]:
        vm_id = extract_vm_id(alarm)
        if vm_id and vm_id in instance_map:
            return vm_id, instance_map[vm_id]

        name = name_from_display(alarm.get("displayName"), instance_map.values())
        if name:
            return vm_id, name
        if not vm_id:
            return None, "N/A"

        try:
            return vm_id, await self._cached(
                "instance", self._instance_cache, vm_id, self._inventory.get_instance_name,
            )
        except Exception as exc:
            logger.warning("Instance lookup failed for %s: %s", vm_id, exc)
            return vm_id, fallback_vm_name(vm_id)

    async def tenant_name(self, compartment_id: str | None) -> str:
        if not compartment_id:
            return UNKNOWN_TENANT
        if compartment_id in self._tenant_mappings:
            return self._tenant_mappings[compartment_id]
        try:
            return await self._cached(
                "compartment", self._compartment_cache, compartment_id,
                self._inventory.get_compartment_name,
            )
        except Exception as exc:
            logger.warning("Compartment lookup failed for %s: %s", compartment_id, exc)
            return UNKNOWN_TENANT

    async def to_alert(self, alarm: dict, instance_map: dict[str, str]) -> Alert:
        try:
            return await self._build(alarm, instance_map)
        except Exception:
            logger.exception("Error processing alarm %s", alarm.get("displayName"))
            return Alert(
                id=alarm.get("id") or synthesize_id("alarm"),
                severity="error",
                message=alarm.get("displayName") or "Failed to process cloud alarm",
                title=alarm.get("displayName") or "",
                vm="Processing Error",
                tenant=await self.tenant_name(alarm.get("compartmentId")),
                region=self._inventory.region,
                compartment=alarm.get("compartmentId") or "N/A",
                alert_type=ERROR_ALERT_TYPE,
                metric_name="ProcessingError",
                timestamp=parse_or_now(alarm.get("timeUpdated")),
            )

    async def _build(self, alarm: dict, instance_map: dict[str, str]) -> Alert:
        (vm_id, vm_name), tenant = await asyncio.gather(
            self.vm_name(alarm, instance_map),
            self.tenant_name(alarm.get("compartmentId")),
        )

        raw_severity = (alarm.get("severity") or "").upper()
        severity = _SEVERITY.get(raw_severity)
        if severity is None:
            logger.info("Unrecognized severity %r, defaulting to info", raw_severity)
            severity = "info"

        display_name = alarm.get("displayName") or ""
        message = alarm.get("summary") or alarm.get("body") or display_name or "Unknown cloud alarm"
        alarm_id = alarm.get("id") or synthesize_id("alarm")

        return Alert(
            id=alarm_id,
            dedupe_key=alarm_id,
            severity=severity,
            message=message,
            title=display_name or message,
            vm=vm_name,
            resource_display_name=vm_name,
            resource_id=vm_id or "",
            tenant=tenant,
            region=self._inventory.region,
            compartment=alarm.get("compartmentId") or "N/A",
            alert_type=ALERT_TYPE,
            metric_name=alarm.get("metric") or "Unknown",
            threshold=None,
            current_value=None,
            unit=None,
            query=alarm.get("query") or "",
            alarm_summary=alarm.get("summary") or "",
            alarm_id=alarm_id,
            status=alarm.get("lifecycleState") or "FIRING",
            timestamp=parse_or_now(alarm.get("timeUpdated") or alarm.get("timeCreated")),
            category=classify_alert_domain({
                "query": alarm.get("query"),
                "name": display_name,
                "alarmSummary": alarm.get("summary"),
            }),
        )

    async def fetch_alerts(self) -> list[Alert]:
        alarms = await self._inventory.list_alarms()
        try:
            instance_map = await self._inventory.list_instances()
        except Exception:
            logger.exception("Instance listing failed, resolving names individually")
            instance_map = {}
        logger.info("Enriching %d alarms (%d known instances)", len(alarms), len(instance_map))

        alerts: list[Alert] = []
        with tracer.start_as_current_span("enrich-alarms") as span:
            span.set_attribute("enrichment.alarm_count", len(alarms))
            span.set_attribute("enrichment.chunk_size", self._chunk_size)
            for start in range(0, len(alarms), self._chunk_size):
                chunk = alarms[start:start + self._chunk_size]
                alerts.extend(await asyncio.gather(*(self.to_alert(a, instance_map) for a in chunk)))
        return alerts

    async def close(self) -> None:
        close = getattr(self._inventory, "close", None)
        if close is not None:
            await close()

    async def fetch_with_timeout(self) -> list[Alert]:
        """Fetch live alerts; a timeout or total outage yields an empty list."""
        try:
            return await asyncio.wait_for(self.fetch_alerts(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.error("Cloud alarm fetch timed out after %.0fs", self._timeout)
        except Exception:
            logger.exception("Cloud alarm fetch failed")
        return []
