"""Bounded in-memory store for log-pipeline alerts."""

from __future__ import annotations

import logging
from collections import deque

from alerthub.config import settings
from alerthub.ingestion.models import LogAlert

logger = logging.getLogger("alerthub.store")


class LogAlertStore:
    def __init__(self, max_alerts: int | None = None) -> None:
        self._alerts: deque[LogAlert] = deque(
            maxlen=settings.max_log_alerts if max_alerts is None else max_alerts
        )

    def __len__(self) -> int:
        return len(self._alerts)

    def add(self, alert: LogAlert) -> LogAlert:
        self._alerts.appendleft(alert)
        logger.info("Log alert stored: id=%s channel=%s severity=%s", alert.id, alert.channel, alert.severity)
        return alert

    def alerts(self) -> list[LogAlert]:
        return list(self._alerts)

    def query(self, severity: str | None = None, limit: int = 100) -> list[LogAlert]:
        result = [
            a for a in self._alerts
            if not severity or severity == "all" or a.severity == severity
        ]
        return sorted(result, key=lambda a: a.timestamp, reverse=True)[:limit]

    def get(self, alert_id: str) -> LogAlert | None:
        return next((a for a in self._alerts if a.id == alert_id), None)

    def mark_read(self, alert_id: str, read: bool = True) -> LogAlert | None:
        alert = self.get(alert_id)
        if alert is not None:
            alert.read = read
        return alert

    def acknowledge(self, alert_id: str) -> LogAlert | None:
        alert = self.get(alert_id)
        if alert is not None:
            alert.acknowledged = True
        return alert
