"""Capacity-bounded, deduplicating in-memory store for infrastructure alerts."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime

from alerthub.config import settings
from alerthub.ingestion.models import ALERT_MUTABLE_FIELDS, Alert, UpsertAction
from alerthub.telemetry.metrics import (
    alert_store_size,
    alerts_evicted_total,
    alerts_upserted_total,
)
from alerthub.timeutil import utcnow

logger = logging.getLogger("alerthub.store")


@dataclass
class UpsertResult:
    action: UpsertAction
    alert: Alert
    evicted: Alert | None = None


@dataclass
class WipeResult:
    alerts: int
    dedupe_keys: int


class AlertStore:
    """Newest-first alert collection plus a dedupe-key index.

    Every key in the index maps to exactly one alert in the collection.
    Alerts without a dedupe key are never merged and never indexed.
    """

    def __init__(self, max_alerts: int | None = None) -> None:
        self.max_alerts = settings.max_alerts if max_alerts is None else max_alerts
        self._alerts: deque[Alert] = deque()
        self._keys: set[str] = set()
        self._by_key: dict[str, Alert] = {}

    def __len__(self) -> int:
        return len(self._alerts)

    @property
    def unique_count(self) -> int:
        return len(self._keys)

    def is_duplicate(self, dedupe_key: str) -> bool:
        return bool(dedupe_key) and dedupe_key in self._keys

    def upsert(self, alert: Alert) -> UpsertResult:
        key = alert.dedupe_key
        if self.is_duplicate(key):
            existing = self._by_key[key]
            for field in ALERT_MUTABLE_FIELDS:
                setattr(existing, field, getattr(alert, field))
            existing.last_updated = utcnow()
            alerts_upserted_total.labels(action=UpsertAction.UPDATED.value).inc()
            logger.info("Updated existing alert for dedupe_key=%s id=%s", key, existing.id)
            return UpsertResult(UpsertAction.UPDATED, existing)

        self._alerts.appendleft(alert)
        if key:
            self._keys.add(key)
            self._by_key[key] = alert

        evicted = None
        if len(self._alerts) > self.max_alerts:
            evicted = self._alerts.pop()
            self._unregister(evicted)
            alerts_evicted_total.inc()
            logger.info("Evicted oldest alert id=%s (capacity %d)", evicted.id, self.max_alerts)

        alerts_upserted_total.labels(action=UpsertAction.NEW.value).inc()
        alert_store_size.set(len(self._alerts))
        logger.info("Added new alert for dedupe_key=%s id=%s", key, alert.id)
        return UpsertResult(UpsertAction.NEW, alert, evicted)

    def _unregister(self, alert: Alert) -> None:
        key = alert.dedupe_key
        # A pruned key may since have been claimed by a newer alert.
        if key and self._by_key.get(key) is alert:
            self._keys.discard(key)
            del self._by_key[key]

    def prune_dedupe_keys(self, cutoff: datetime) -> int:
        """Stop tracking dedupe keys of alerts older than ``cutoff``.

        The alerts themselves stay in the collection.
        """
        cleaned = 0
        for key, alert in list(self._by_key.items()):
            try:
                if alert.timestamp < cutoff:
                    self._keys.discard(key)
                    del self._by_key[key]
                    cleaned += 1
            except Exception:
                logger.exception("Failed to evaluate dedupe key %s during pruning", key)
        if cleaned:
            logger.info("Pruned %d stale dedupe keys, %d remaining", cleaned, len(self._keys))
        return cleaned

    def wipe(self) -> WipeResult:
        result = WipeResult(alerts=len(self._alerts), dedupe_keys=len(self._keys))
        self._alerts.clear()
        self._keys.clear()
        self._by_key.clear()
        alert_store_size.set(0)
        return result

    def alerts(self) -> list[Alert]:
        return list(self._alerts)

    def dedupe_keys(self) -> list[str]:
        return list(self._keys)

    def get(self, alert_id: str) -> Alert | None:
        for alert in self._alerts:
            if alert.id == alert_id:
                return alert
        return None

    def mark_read(self, alert_id: str, read: bool = True) -> Alert | None:
        alert = self.get(alert_id)
        if alert is not None:
            alert.read = read
        return alert

    def acknowledge(self, alert_id: str) -> Alert | None:
        alert = self.get(alert_id)
        if alert is not None:
            alert.acknowledged = True
        return alert

    def query(
        self,
        severity: str | None = None,
        vm: str | None = None,
        tenant: str | None = None,
        region: str | None = None,
        alert_type: str | None = None,
        limit: int | None = None,
    ) -> list[Alert]:
        """Filter retained alerts. ``None``, ``""`` and ``"all"`` disable a filter."""

        def active(value: str | None) -> str | None:
            if not value or value.lower() == "all":
                return None
            return value.lower()

        severity, vm, tenant, region, alert_type = (
            active(severity), active(vm), active(tenant), active(region), active(alert_type),
        )

        result = []
        for alert in self._alerts:
            if severity and alert.severity.lower() != severity:
                continue
            if vm and vm not in alert.vm.lower():
                continue
            if tenant and alert.tenant.lower() != tenant:
                continue
            if region and alert.region.lower() != region:
                continue
            if alert_type and alert.alert_type.lower() != alert_type:
                continue
            result.append(alert)

        if limit and limit > 0:
            result = result[:limit]
        return result

    def filter_options(self) -> dict[str, list[str]]:
        """Distinct values present in the retained set, in first-seen order."""
        fields = {
            "vms": "vm",
            "tenants": "tenant",
            "regions": "region",
            "alert_types": "alert_type",
            "severities": "severity",
        }
        options: dict[str, list[str]] = {}
        for name, attr in fields.items():
            values = (getattr(a, attr) for a in self._alerts)
            options[name] = list(dict.fromkeys(v for v in values if v))
        return options

    def stats(self) -> dict:
        total = len(self._alerts)
        usage = total / self.max_alerts * 100 if self.max_alerts else 0.0
        return {
            "total_alerts": total,
            "unique_alerts": len(self._keys),
            "max_alerts": self.max_alerts,
            "memory_usage": f"{total}/{self.max_alerts} ({usage:.1f}%)",
            "deduplication_enabled": True,
        }
