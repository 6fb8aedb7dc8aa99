"""
OpenTelemetry Tracing
=====================

Distributed tracing for request flow visualization.
"""

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from observability.logging_config import get_logger

logger = get_logger(__name__)


def setup_tracing(
    app: FastAPI,
    service_name: str = "sql-query-agent",
    otlp_endpoint: str = "disabled",
    environment: str = "development",
    version: str = "0.1.0",
) -> None:
    """
    Set up OpenTelemetry tracing for the application.

    Spans are always created (the agent opens one per run); they are only
    exported when an OTLP endpoint is configured.

    Args:
        app: FastAPI application instance
        service_name: Name of the service for traces
        otlp_endpoint: OTLP collector endpoint, or "disabled"
        environment: Deployment environment name
        version: Service version
    """
    resource = Resource.create({
        SERVICE_NAME: service_name,
        "service.version": version,
        "deployment.environment": environment,
    })

    provider = TracerProvider(resource=resource)

    if otlp_endpoint and otlp_endpoint != "disabled":
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        logger.info("tracing.exporter_configured", endpoint=otlp_endpoint)

    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
