"""OpenTelemetry tracing setup.

Tracing is a no-op unless enabled in configuration; the console exporter is
meant for local debugging of turn and dispatch spans.
"""

from __future__ import annotations

import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import NoOpTracerProvider

from skyops.config import TelemetryConfig

logger = logging.getLogger(__name__)

_tracer_provider: TracerProvider | NoOpTracerProvider | None = None


def init_tracing(config: TelemetryConfig) -> TracerProvider | NoOpTracerProvider:
    """Install the process tracer provider described by *config*."""
    global _tracer_provider  # noqa: PLW0603

    if not config.enabled:
        provider: TracerProvider | NoOpTracerProvider = NoOpTracerProvider()
        logger.info("Tracing disabled")
    else:
        provider = TracerProvider(resource=Resource.create({"service.name": config.service_name}))
        if config.console_export:
            provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Tracing enabled (console_export=%s)", config.console_export)

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    return provider


def get_tracer(name: str) -> trace.Tracer:
    """Return a tracer from the configured provider."""
    return trace.get_tracer(name)


def shutdown_tracing() -> None:
    """Flush and shut down the tracer provider."""
    if isinstance(_tracer_provider, TracerProvider):
        _tracer_provider.shutdown()


__all__ = ["get_tracer", "init_tracing", "shutdown_tracing"]
