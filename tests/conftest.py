from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from alerthub.enrichment.enricher import AlarmEnricher
from alerthub.heartbeat.channel import HeartbeatUnavailable
from alerthub.heartbeat.models import HeartbeatSystem
from alerthub.ingestion.models import Alert
from alerthub.main import create_app
from alerthub.retention.scheduler import RetentionScheduler
from alerthub.state import AlertHub
from alerthub.store.alert_store import AlertStore
from alerthub.store.archive import RawPayloadArchive
from alerthub.store.log_store import LogAlertStore
from alerthub.store.raw_log import RawWebhookLog

T0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


def make_alert(alert_id: str, dedupe_key: str = "", **fields) -> Alert:
    fields.setdefault("timestamp", T0)
    return Alert(id=alert_id, dedupe_key=dedupe_key, **fields)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class FakeHeartbeatChannel:
    def __init__(self, systems: list[dict] | None = None, fail: bool = False) -> None:
        self.systems = systems or []
        self.fail = fail
        self.calls = 0

    async def fetch_systems(self) -> list[HeartbeatSystem]:
        self.calls += 1
        if self.fail:
            raise HeartbeatUnavailable("Heartbeat connection timeout")
        return [HeartbeatSystem.model_validate(s) for s in self.systems]


class FakeInventory:
    region = "us-test-1"

    def __init__(self, alarms=None, instances=None, names=None, compartments=None, delay: float = 0) -> None:
        self.alarms = alarms or []
        self.instances = instances or {}
        self.names = names or {}
        self.compartments = compartments or {}
        self.delay = delay
        self.instance_lookups: list[str] = []
        self.compartment_lookups: list[str] = []
        self.fail_listing = False

    async def list_alarms(self) -> list[dict]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_listing:
            raise ConnectionError("inventory unreachable")
        return list(self.alarms)

    async def list_instances(self) -> dict[str, str]:
        return dict(self.instances)

    async def get_instance_name(self, instance_id: str) -> str:
        self.instance_lookups.append(instance_id)
        if instance_id not in self.names:
            raise LookupError(instance_id)
        return self.names[instance_id]

    async def get_compartment_name(self, compartment_id: str) -> str:
        self.compartment_lookups.append(compartment_id)
        if compartment_id not in self.compartments:
            raise LookupError(compartment_id)
        return self.compartments[compartment_id]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture
def hub(tmp_path, clock) -> AlertHub:
    store = AlertStore(max_alerts=100)
    raw_log = RawWebhookLog(max_entries=5)
    return AlertHub(
        store=store,
        log_store=LogAlertStore(max_alerts=100),
        raw_log=raw_log,
        archive=RawPayloadArchive(tmp_path / "logs"),
        scheduler=RetentionScheduler(store, raw_log, timezone="UTC", clock=clock),
        heartbeat=FakeHeartbeatChannel(),
        enricher=AlarmEnricher(FakeInventory(), tenant_mappings={}),
    )


@pytest.fixture
def client(hub) -> TestClient:
    return TestClient(create_app(hub, start_scheduler=False))
