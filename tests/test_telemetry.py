from __future__ import annotations

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import NoOpTracerProvider

from skyops.config import TelemetryConfig
from skyops.core import telemetry
from skyops.core.metrics import metrics_generate_latest, observe_turn_duration


def test_disabled_tracing_installs_noop_provider() -> None:
    provider = telemetry.init_tracing(TelemetryConfig(enabled=False))
    assert isinstance(provider, NoOpTracerProvider)
    telemetry.shutdown_tracing()


def test_enabled_tracing_installs_sdk_provider() -> None:
    provider = telemetry.init_tracing(TelemetryConfig(enabled=True, service_name="skyops-test"))
    try:
        assert isinstance(provider, TracerProvider)
        assert provider.resource.attributes["service.name"] == "skyops-test"
    finally:
        telemetry.shutdown_tracing()


def test_get_tracer_returns_usable_tracer() -> None:
    tracer = telemetry.get_tracer("skyops.tests")
    with tracer.start_as_current_span("sample") as span:
        span.set_attribute("skyops.sample", True)


def test_metrics_exposition_lists_pipeline_metrics() -> None:
    with observe_turn_duration():
        pass

    exposition = metrics_generate_latest().decode()

    assert "skyops_turn_duration_seconds" in exposition
    assert "skyops_directives_dropped" in exposition
    assert "skyops_approvals_created" in exposition
