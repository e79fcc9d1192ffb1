from datetime import timedelta

from conftest import T0, make_alert

from alerthub.ingestion.models import LogAlert, UpsertAction
from alerthub.store.alert_store import AlertStore
from alerthub.store.log_store import LogAlertStore
from alerthub.store.raw_log import RawWebhookLog


def test_same_key_updates_in_place():
    store = AlertStore(max_alerts=10)
    first = store.upsert(make_alert("a1", "k1", severity="warning"))
    second = store.upsert(make_alert("a2", "k1", severity="critical"))

    assert first.action is UpsertAction.NEW
    assert second.action is UpsertAction.UPDATED
    assert len(store) == 1
    kept = store.alerts()[0]
    assert kept.id == "a1"
    assert kept.severity == "critical"
    assert kept.last_updated is not None


def test_update_preserves_operator_flags():
    store = AlertStore(max_alerts=10)
    store.upsert(make_alert("a1", "k1"))
    store.acknowledge("a1")
    store.mark_read("a1")
    store.upsert(make_alert("a2", "k1", message="again"))

    alert = store.get("a1")
    assert alert.acknowledged and alert.read
    assert alert.message == "again"


def test_repeated_upsert_is_idempotent():
    store = AlertStore(max_alerts=10)
    for _ in range(3):
        store.upsert(make_alert("a1", "k1", severity="info"))
    assert len(store) == 1
    assert store.unique_count == 1
    assert store.dedupe_keys() == ["k1"]


def test_distinct_keys_are_newest_first():
    store = AlertStore(max_alerts=10)
    for i in range(3):
        store.upsert(make_alert(f"a{i}", f"k{i}"))
    assert [a.id for a in store.alerts()] == ["a2", "a1", "a0"]


def test_capacity_evicts_oldest_and_unregisters_key():
    store = AlertStore(max_alerts=3)
    for i in range(5):
        result = store.upsert(make_alert(f"a{i}", f"k{i}"))

    assert result.evicted.id == "a1"
    assert len(store) == 3
    assert [a.id for a in store.alerts()] == ["a4", "a3", "a2"]
    assert not store.is_duplicate("k0")
    assert not store.is_duplicate("k1")
    assert store.unique_count == 3


def test_alerts_without_key_never_merge():
    store = AlertStore(max_alerts=10)
    store.upsert(make_alert("a1"))
    store.upsert(make_alert("a2"))
    assert len(store) == 2
    assert store.unique_count == 0


def test_prune_forgets_stale_keys_but_keeps_alerts():
    store = AlertStore(max_alerts=10)
    store.upsert(make_alert("old", "k-old", timestamp=T0 - timedelta(hours=7)))
    store.upsert(make_alert("new", "k-new", timestamp=T0))

    cleaned = store.prune_dedupe_keys(T0 - timedelta(hours=6))

    assert cleaned == 1
    assert len(store) == 2
    assert store.dedupe_keys() == ["k-new"]
    # An arrival with the pruned key is a new alert.
    assert store.upsert(make_alert("again", "k-old")).action is UpsertAction.NEW
    assert len(store) == 3


def test_eviction_keeps_key_claimed_by_newer_alert():
    store = AlertStore(max_alerts=2)
    store.upsert(make_alert("a", "k", timestamp=T0 - timedelta(hours=7)))
    store.prune_dedupe_keys(T0 - timedelta(hours=6))
    store.upsert(make_alert("b", "k"))
    result = store.upsert(make_alert("c", "other"))

    assert result.evicted.id == "a"
    assert store.is_duplicate("k")
    assert store.upsert(make_alert("d", "k", severity="critical")).action is UpsertAction.UPDATED
    assert store.get("b").severity == "critical"


def test_wipe_clears_alerts_and_index():
    store = AlertStore(max_alerts=10)
    store.upsert(make_alert("a1", "k1"))
    store.upsert(make_alert("a2", "k2"))

    result = store.wipe()

    assert (result.alerts, result.dedupe_keys) == (2, 2)
    assert len(store) == 0
    assert store.unique_count == 0
    assert store.upsert(make_alert("a3", "k1")).action is UpsertAction.NEW


def test_query_filters():
    store = AlertStore(max_alerts=10)
    store.upsert(make_alert("a1", "k1", severity="critical", vm="web-01", tenant="Acme", region="us-east"))
    store.upsert(make_alert("a2", "k2", severity="warning", vm="db-01", tenant="Acme", region="eu-west"))
    store.upsert(make_alert("a3", "k3", severity="critical", vm="web-02", tenant="Globex", region="us-east"))

    assert [a.id for a in store.query(severity="CRITICAL")] == ["a3", "a1"]
    assert [a.id for a in store.query(vm="WEB")] == ["a3", "a1"]
    assert [a.id for a in store.query(tenant="acme", region="eu-west")] == ["a2"]
    assert len(store.query(severity="all", vm="")) == 3
    assert [a.id for a in store.query(limit=1)] == ["a3"]


def test_filter_options_are_distinct():
    store = AlertStore(max_alerts=10)
    store.upsert(make_alert("a1", "k1", vm="web-01", region="us-east"))
    store.upsert(make_alert("a2", "k2", vm="web-01", region="eu-west"))

    options = store.filter_options()
    assert options["vms"] == ["web-01"]
    assert sorted(options["regions"]) == ["eu-west", "us-east"]


def test_read_and_acknowledge_unknown_id():
    store = AlertStore(max_alerts=10)
    assert store.mark_read("missing") is None
    assert store.acknowledge("missing") is None


def test_stats():
    store = AlertStore(max_alerts=4)
    store.upsert(make_alert("a1", "k1"))
    store.upsert(make_alert("a2"))

    stats = store.stats()
    assert stats["total_alerts"] == 2
    assert stats["unique_alerts"] == 1
    assert stats["memory_usage"] == "2/4 (50.0%)"


def test_log_store_is_bounded_and_filterable():
    store = LogAlertStore(max_alerts=2)
    store.add(LogAlert(short_message="one", severity="low", timestamp=T0))
    store.add(LogAlert(short_message="two", severity="critical", timestamp=T0 + timedelta(minutes=1)))
    third = store.add(LogAlert(short_message="three", severity="critical", timestamp=T0 + timedelta(minutes=2)))

    assert len(store) == 2
    assert [a.short_message for a in store.query()] == ["three", "two"]
    assert [a.short_message for a in store.query(severity="critical", limit=1)] == ["three"]
    assert store.acknowledge(third.id).acknowledged
    assert store.mark_read("missing") is None


def test_zero_capacity_is_respected():
    store = AlertStore(max_alerts=0)
    result = store.upsert(make_alert("a1", "k1"))

    assert result.evicted is result.alert
    assert len(store) == 0
    assert not store.is_duplicate("k1")
    assert store.stats()["memory_usage"] == "0/0 (0.0%)"

    log_store = LogAlertStore(max_alerts=0)
    log_store.add(LogAlert())
    assert len(log_store) == 0


def test_zero_capacity_raw_log():
    log = RawWebhookLog(max_entries=0)
    log.record({"title": "x"})
    assert len(log) == 0
