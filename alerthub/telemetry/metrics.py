"""Prometheus metrics definitions."""

from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST

http_request_duration = Histogram(
    "http_request_duration_seconds",
    "Duration of HTTP requests in seconds",
    labelnames=["method", "endpoint", "status_code"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_total = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    labelnames=["method", "endpoint", "status_code"],
)

webhooks_received_total = Counter(
    "alerthub_webhooks_received_total",
    "Webhook payloads received",
    labelnames=["kind"],
)

alerts_upserted_total = Counter(
    "alerthub_alerts_upserted_total",
    "Infrastructure alerts inserted or updated by dedupe key",
    labelnames=["action"],
)

alerts_evicted_total = Counter(
    "alerthub_alerts_evicted_total",
    "Alerts evicted because the store reached capacity",
)

retention_wipes_total = Counter(
    "alerthub_retention_wipes_total",
    "Scheduled full wipes of the alert store",
)

dedupe_keys_pruned_total = Counter(
    "alerthub_dedupe_keys_pruned_total",
    "Stale dedupe keys removed by the periodic sweep",
)

alert_store_size = Gauge(
    "alerthub_alert_store_size",
    "Alerts currently retained in memory",
)

enrichment_lookups_total = Counter(
    "alerthub_enrichment_lookups_total",
    "Cloud inventory lookups by kind and outcome",
    labelnames=["kind", "outcome"],
)


def get_metrics() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
