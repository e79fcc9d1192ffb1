"""Retention scheduler — daily full wipe and periodic dedupe-key pruning."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from alerthub.config import settings
from alerthub.store.alert_store import AlertStore
from alerthub.store.raw_log import RawWebhookLog
from alerthub.telemetry.metrics import dedupe_keys_pruned_total, retention_wipes_total

logger = logging.getLogger("alerthub.retention")


def next_daily_run(now: datetime, at: time, tz: ZoneInfo) -> datetime:
    """Next occurrence of wall-clock time ``at`` in ``tz`` strictly after ``now``."""
    local = now.astimezone(tz)
    candidate = datetime.combine(local.date(), at, tzinfo=tz)
    if candidate <= local:
        candidate = datetime.combine(local.date() + timedelta(days=1), at, tzinfo=tz)
    return candidate


class RetentionScheduler:
    """Runs the daily wipe and the dedupe-key sweep against a store.

    ``tick()`` is synchronous and does all the work; ``start()`` only drives it
    from an asyncio loop. Tests call ``tick()`` with a fake clock.
    """

    def __init__(
        self,
        store: AlertStore,
        raw_log: RawWebhookLog,
        *,
        wipe_at: time | None = None,
        timezone: str | None = None,
        prune_interval: timedelta | None = None,
        dedupe_staleness: timedelta | None = None,
        poll_seconds: float | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._raw_log = raw_log
        self._tz = ZoneInfo(timezone or settings.timezone)
        self._wipe_at = wipe_at or time(settings.wipe_hour, settings.wipe_minute)
        self._prune_interval = prune_interval or timedelta(hours=settings.prune_interval_hours)
        self._staleness = dedupe_staleness or timedelta(hours=settings.dedupe_staleness_hours)
        self._poll_seconds = poll_seconds or settings.scheduler_poll_seconds
        self._clock = clock or (lambda: datetime.now(self._tz))

        now = self._clock()
        self.next_wipe = next_daily_run(now, self._wipe_at, self._tz)
        self.next_prune = now + self._prune_interval

        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    def wipe(self) -> None:
        """Clear alerts, dedupe index and raw webhook buffer in one block."""
        result = self._store.wipe()
        raw_count = self._raw_log.clear()
        retention_wipes_total.inc()
        logger.info(
            "Alert memory reset: cleared %d alerts, %d raw webhooks, %d dedupe keys",
            result.alerts, raw_count, result.dedupe_keys,
        )

    def prune(self, now: datetime) -> int:
        cleaned = self._store.prune_dedupe_keys(now - self._staleness)
        dedupe_keys_pruned_total.inc(cleaned)
        return cleaned

    def tick(self, now: datetime | None = None) -> list[str]:
        """Run every job due at ``now``; returns the names of the jobs that ran."""
        now = now or self._clock()
        ran = []

        if now >= self.next_wipe:
            self.wipe()
            self.next_wipe = next_daily_run(now, self._wipe_at, self._tz)
            ran.append("wipe")

        if now >= self.next_prune:
            try:
                self.prune(now)
            except Exception:
                logger.exception("Dedupe key pruning failed")
            self.next_prune = now + self._prune_interval
            ran.append("prune")

        return ran

    async def start(self) -> None:
        self._running = True
        self._task = asyncio.create_task(self._poll_loop())
        logger.info(
            "Retention scheduler started: wipe at %s %s, prune every %s",
            self._wipe_at.strftime("%H:%M"), self._tz.key, self._prune_interval,
        )

    async def stop(self) -> None:
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Retention scheduler stopped")

    async def _poll_loop(self) -> None:
        while self._running:
            try:
                self.tick()
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Retention tick failed")
            await asyncio.sleep(self._poll_seconds)
