from datetime import datetime, timezone

import pytest

from alerthub.ingestion.classification import classify_alert_domain
from alerthub.ingestion.models import AlertDomain, PayloadKind, SubscriptionConfirmation
from alerthub.ingestion.normalizer import (
    detect_payload_kind,
    normalize_alert,
    normalize_log_alert,
    normalize_webhook,
    replace_non_finite,
    severity_from_color,
    unwrap,
)
from alerthub.timeutil import parse_timestamp


def test_wrapped_and_flat_payloads_normalize_the_same():
    inner = {
        "id": "a1",
        "dedupeKey": "k1",
        "severity": "CRITICAL",
        "title": "CPU high",
        "resourceDisplayName": "web-01",
        "region": "us-east",
        "timestamp": "2026-03-02T10:00:00Z",
    }
    flat = normalize_alert(inner)
    wrapped = normalize_alert({"payload": inner})

    for alert in (flat, wrapped):
        assert alert.id == "a1"
        assert alert.dedupe_key == "k1"
        assert alert.severity == "critical"
        assert alert.title == alert.message == "CPU high"
        assert alert.vm == alert.resource_display_name == "web-01"
        assert alert.region == "us-east"
        assert alert.timestamp == datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)


def test_empty_payload_envelope_is_not_unwrapped():
    body = {"payload": {}, "title": "outer"}
    assert unwrap(body) is body


def test_empty_object_gets_defaults_and_unique_identity():
    first = normalize_alert({})
    second = normalize_alert({})

    assert first.severity == "warning"
    assert first.vm == "Unknown VM"
    assert first.title == "No title available"
    assert first.tenant == "N/A"
    assert first.unit == "%"
    assert first.id.startswith("webhook-")
    assert first.dedupe_key and first.dedupe_key != second.dedupe_key
    assert first.timestamp.tzinfo is not None


def test_malformed_numbers_fall_back_without_raising():
    alert = normalize_alert({"threshold": "lots", "currentValue": "85.5", "timestamp": "not a date"})
    assert alert.threshold == 0
    assert alert.current_value == 85.5
    assert alert.timestamp.tzinfo is not None


def test_out_of_range_numbers_fall_back_without_raising():
    alert = normalize_alert({"threshold": 10**400, "currentValue": float("inf"), "timestamp": 10**400})
    assert alert.threshold == 0
    assert alert.current_value == 0
    assert alert.timestamp.tzinfo is not None


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_non_finite_epoch_millis_is_dropped(value):
    alert = normalize_alert({"timestampEpochMillis": value, "threshold": value})
    assert alert.timestamp_epoch_millis is None
    assert alert.threshold == 0


@pytest.mark.parametrize("raw", [10**400, float("nan"), "9" * 5000])
def test_unrepresentable_timestamps_parse_to_none(raw):
    assert parse_timestamp(raw) is None


def test_replace_non_finite():
    body = {"a": float("nan"), "b": [1.5, float("inf"), {"c": float("-inf")}], "d": "NaN"}
    assert replace_non_finite(body) == {"a": None, "b": [1.5, None, {"c": None}], "d": "NaN"}


def test_epoch_millis_timestamp():
    alert = normalize_alert({"timestampEpochMillis": 1772445600000})
    assert alert.timestamp_epoch_millis == 1772445600000


@pytest.mark.parametrize("body", [None, [], "plain", 7])
def test_non_object_bodies_become_default_alerts(body):
    alert = normalize_alert(body)
    assert alert.severity == "warning"
    assert alert.category is AlertDomain.SERVER


def test_subscription_confirmation_short_circuits():
    body = {
        "type": "SubscriptionConfirmation",
        "topicId": "topic-1",
        "messageId": "m-1",
        "confirmationUrl": "https://notify.example/confirm?token=x",
    }
    result = normalize_webhook(body)
    assert isinstance(result, SubscriptionConfirmation)
    assert result.topic_id == "topic-1"
    assert result.status == "pending_manual_confirmation"


@pytest.mark.parametrize(
    "body, kind",
    [
        ({"type": "SubscriptionConfirmation"}, PayloadKind.SUBSCRIPTION),
        ({"attachments": []}, PayloadKind.LOG),
        ({"attachments": "nope"}, PayloadKind.INFRASTRUCTURE),
        ({"title": "x"}, PayloadKind.INFRASTRUCTURE),
        ([1, 2], PayloadKind.INFRASTRUCTURE),
    ],
)
def test_detect_payload_kind(body, kind):
    assert detect_payload_kind(body) is kind


@pytest.mark.parametrize(
    "color, severity",
    [
        ("#FF0000", "critical"),
        ("#ff0000", "critical"),
        ("#FFA500", "high"),
        ("#FFFF00", "medium"),
        ("#008000", "low"),
        ("#0000FF", "info"),
        ("#123456", "unknown"),
        (None, "unknown"),
    ],
)
def test_severity_from_color(color, severity):
    assert severity_from_color(color) == severity


def test_log_alert_from_slack_attachment():
    alert = normalize_log_alert({
        "channel": "#payments",
        "attachments": [{"title": "Error spike", "text": "500s on /pay", "color": "#ff0000"}],
    })
    assert alert.channel == "#payments"
    assert alert.short_message == "Error spike"
    assert alert.full_message == "500s on /pay"
    assert alert.severity == "critical"
    assert alert.username == "Graylog"


def test_log_alert_without_attachments_uses_defaults():
    alert = normalize_log_alert({"text": "fallback text"})
    assert alert.short_message == "fallback text"
    assert alert.channel == "Unknown"
    assert alert.severity == "unknown"
    assert alert.color == "#999999"

    assert normalize_log_alert({}).short_message == "No message provided"


@pytest.mark.parametrize(
    "body, domain",
    [
        ({"query": "CpuUtilization[1m].mean() > 80"}, AlertDomain.SERVER),
        ({"query": "DBCPUUtilization[1m].mean() > 80"}, AlertDomain.DATABASE),
        ({"query": "SessionCount[5m].max() > 300"}, AlertDomain.DATABASE),
        ({"name": "Oracle tablespace full"}, AlertDomain.DATABASE),
        ({"alarmSummary": "slow SQL detected"}, AlertDomain.DATABASE),
        ({"name": "instance unreachable"}, AlertDomain.SERVER),
        ({}, AlertDomain.SERVER),
    ],
)
def test_classify_alert_domain(body, domain):
    assert classify_alert_domain(body) is domain


def test_classification_is_deterministic():
    body = {"name": "primary-db backup", "alarmSummary": "database lag"}
    assert {classify_alert_domain(body) for _ in range(5)} == {AlertDomain.DATABASE}


def test_category_uses_wrapped_payload():
    alert = normalize_alert({"payload": {"name": "oracle listener down"}})
    assert alert.category is AlertDomain.DATABASE
