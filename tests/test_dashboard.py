from datetime import timedelta

import pytest
from conftest import T0, make_alert

from alerthub.dashboard.classifier import map_severity, process_alerts
from alerthub.dashboard.models import AlertFilters, Category, PresentationSeverity, Source
from alerthub.heartbeat.models import HeartbeatAlert
from alerthub.ingestion.models import AlertDomain, LogAlert

ALL_SOURCES = [Source.LOGS, Source.INFRASTRUCTURE, Source.HEARTBEAT]


def log_alert(short, channel="#app", severity="critical", minutes=0, full=""):
    return LogAlert(
        id=f"log-{short}",
        channel=channel,
        short_message=short,
        full_message=full,
        severity=severity,
        timestamp=T0 + timedelta(minutes=minutes),
    )


def heartbeat_alert(site="site_dbspc", service="DB", status="RED", severity="critical"):
    return HeartbeatAlert(
        id=f"heartbeat-{site}-{service}",
        site=site,
        site_name=site.upper(),
        service=service,
        status=status,
        severity=severity,
        message=f"{service} service is down on {site}",
        timestamp="2026-03-02 11:00:00",
        site_type="MULTI",
    )


@pytest.fixture
def streams():
    logs = [log_alert("disk full", minutes=5), log_alert("slow page", severity="low", minutes=1)]
    infra = [
        make_alert("i1", "k1", severity="critical", vm="web-01", tenant="Acme", region="us-east",
                   alert_type="CLOUD_ALARM", message="CPU high", timestamp=T0 + timedelta(minutes=3)),
        make_alert("i2", "k2", severity="info", vm="ora-db-01", tenant="Globex", region="eu-west",
                   alert_type="REPEAT", message="Tablespace", category=AlertDomain.DATABASE,
                   timestamp=T0 + timedelta(minutes=2)),
    ]
    heartbeat = [heartbeat_alert()]
    return logs, infra, heartbeat


def ids(alerts):
    return [a.id for a in alerts]


def test_empty_source_selection_returns_nothing(streams):
    assert process_alerts(*streams, AlertFilters(source=[])) == []


def test_only_requested_sources_are_returned(streams):
    result = process_alerts(*streams, AlertFilters(source=[Source.LOGS]))
    assert {a.source for a in result} == {Source.LOGS}


def test_all_sources_newest_first(streams):
    result = process_alerts(*streams, AlertFilters(source=ALL_SOURCES))
    assert ids(result) == ["log-disk full", "i1", "i2", "log-slow page", "heartbeat-site_dbspc-DB"]


@pytest.mark.parametrize(
    "severity, source, expected",
    [
        ("critical", Source.LOGS, PresentationSeverity.CRITICAL),
        ("high", Source.LOGS, PresentationSeverity.CRITICAL),
        ("medium", Source.HEARTBEAT, PresentationSeverity.WARNING),
        ("low", Source.LOGS, PresentationSeverity.WARNING),
        ("error", Source.INFRASTRUCTURE, PresentationSeverity.ERROR),
        ("info", Source.INFRASTRUCTURE, PresentationSeverity.ERROR),
        ("info", Source.HEARTBEAT, PresentationSeverity.INFO),
        (None, Source.LOGS, PresentationSeverity.INFO),
    ],
)
def test_map_severity(severity, source, expected):
    assert map_severity(severity, source) is expected


def test_severity_filter(streams):
    filters = AlertFilters(source=ALL_SOURCES, severity=[PresentationSeverity.CRITICAL])
    assert ids(process_alerts(*streams, filters)) == ["log-disk full", "i1", "heartbeat-site_dbspc-DB"]


def test_infrastructure_presentation(streams):
    result = process_alerts(*streams, AlertFilters(source=[Source.INFRASTRUCTURE]))
    by_id = {a.id: a for a in result}
    assert by_id["i1"].title == "web-01"
    assert by_id["i2"].title == "ora-db-01 - REPEAT"
    assert by_id["i2"].category is Category.DATABASE
    assert by_id["i1"].site == "web-01"


def test_log_category_from_channel():
    logs = [log_alert("a", channel="#infra-monitoring"), log_alert("b", channel="#system-events")]
    result = process_alerts(logs, [], [], AlertFilters(source=[Source.LOGS]))
    assert {a.id: a.category for a in result} == {"log-a": Category.HEARTBEAT, "log-b": Category.SERVER}


def test_heartbeat_presentation(streams):
    (alert,) = process_alerts(*streams, AlertFilters(source=[Source.HEARTBEAT]))
    assert alert.title == "SITE_DBSPC - DB"
    assert alert.services[0].status == "ERR"
    assert alert.timestamp is not None


def test_dynamic_filter_by_channel_and_tenant(streams):
    logs, infra, heartbeat = streams
    logs.append(log_alert("other channel", channel="#ops"))

    result = process_alerts(*streams, AlertFilters(source=[Source.LOGS], dynamic_filter="#ops"))
    assert ids(result) == ["log-other channel"]

    result = process_alerts(*streams, AlertFilters(source=[Source.INFRASTRUCTURE], dynamic_filter="acme"))
    assert ids(result) == ["i1"]


def test_dynamic_filter_by_site_suffix(streams):
    logs, infra, heartbeat = streams
    heartbeat.append(heartbeat_alert(site="east-gse", service="WEB"))

    result = process_alerts(*streams, AlertFilters(source=[Source.HEARTBEAT], dynamic_filter="DBSPC"))
    assert ids(result) == ["heartbeat-site_dbspc-DB"]


def test_dynamic_filter_all_is_ignored(streams):
    result = process_alerts(*streams, AlertFilters(source=ALL_SOURCES, dynamic_filter="ALL"))
    assert len(result) == 5


def test_region_filter_only_narrows_infrastructure(streams):
    result = process_alerts(*streams, AlertFilters(source=ALL_SOURCES, region="eu-west"))
    assert "i1" not in ids(result)
    assert "i2" in ids(result)
    assert "log-disk full" in ids(result)


def test_resource_type_filter(streams):
    database = process_alerts(*streams, AlertFilters(source=[Source.INFRASTRUCTURE], resource_type="Database"))
    compute = process_alerts(*streams, AlertFilters(source=[Source.INFRASTRUCTURE], resource_type="Compute"))
    assert ids(database) == ["i2"]
    assert ids(compute) == ["i1"]


def test_search_text(streams):
    result = process_alerts(*streams, AlertFilters(source=ALL_SOURCES, search_text="CPU"))
    assert ids(result) == ["i1"]


def test_equal_timestamps_keep_input_order():
    logs = [log_alert("first"), log_alert("second"), log_alert("third")]
    result = process_alerts(logs, [], [], AlertFilters(source=[Source.LOGS]))
    assert ids(result) == ["log-first", "log-second", "log-third"]


def test_processing_is_deterministic(streams):
    filters = AlertFilters(source=ALL_SOURCES, search_text="o")
    assert process_alerts(*streams, filters) == process_alerts(*streams, filters)
