"""OpenTelemetry tracing. Spans are exported over OTLP only when an endpoint is configured."""

import logging

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

SERVICE_NAME = "alerthub"
SERVICE_VERSION = "1.0.0"

logger = logging.getLogger("alerthub.telemetry")


def setup_tracing(otlp_endpoint: str, environment: str = "") -> TracerProvider:
    attributes = {
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
    }
    if environment:
        attributes["deployment.environment"] = environment

    provider = TracerProvider(resource=Resource.create(attributes))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True)))

    trace.set_tracer_provider(provider)
    logger.info("Exporting traces to %s", otlp_endpoint)
    return provider
