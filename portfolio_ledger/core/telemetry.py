"""OpenTelemetry configuration helpers.

Valuation services create spans through ``trace.get_tracer`` unconditionally;
they stay no-ops until :func:`setup_telemetry` installs a provider.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanProcessor,
)
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.semconv.resource import ResourceAttributes

from ..config import LedgerSettings

logger = logging.getLogger(__name__)

_TRACER_PROVIDER: TracerProvider | None = None


def build_tracer_provider(settings: LedgerSettings) -> TracerProvider:
    """Return a provider tagged with the service name and reporting currency."""

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: settings.telemetry_service_name or settings.app_name,
            ResourceAttributes.SERVICE_NAMESPACE: "portfolio-ledger",
            "ledger.base_currency": settings.base_currency,
        }
    )
    sampler = ParentBased(TraceIdRatioBased(settings.telemetry_sample_ratio))
    provider = TracerProvider(resource=resource, sampler=sampler)
    provider.add_span_processor(_span_processor(settings))
    return provider


def setup_telemetry(app: FastAPI, settings: LedgerSettings) -> bool:
    """Install the global tracer provider and instrument ``app``.

    Returns False when telemetry is disabled. The provider is installed once
    per process; later apps are instrumented against the same provider.
    """

    global _TRACER_PROVIDER  # noqa: PLW0603 - single initialisation guard

    if not settings.telemetry_enabled:
        logger.info("Telemetry disabled via configuration")
        return False

    if _TRACER_PROVIDER is None:
        _TRACER_PROVIDER = build_tracer_provider(settings)
        trace.set_tracer_provider(_TRACER_PROVIDER)
        LoggingInstrumentor().instrument(set_logging_format=False)
        logger.info(
            "Telemetry initialised for %s (base currency %s)",
            settings.telemetry_service_name,
            settings.base_currency,
        )

    FastAPIInstrumentor.instrument_app(app, tracer_provider=_TRACER_PROVIDER)
    return True


def _span_processor(settings: LedgerSettings) -> SpanProcessor:
    if settings.telemetry_console_export:
        return SimpleSpanProcessor(ConsoleSpanExporter())
    options: dict[str, Any] = {"insecure": settings.telemetry_otlp_insecure}
    if settings.telemetry_otlp_endpoint:
        options["endpoint"] = settings.telemetry_otlp_endpoint
    return BatchSpanProcessor(OTLPSpanExporter(**options))


__all__ = ["build_tracer_provider", "setup_telemetry"]
