# Observability utilities – OpenTelemetry instrumentation, Prometheus metrics
# exposition and structured log shipping.
#
# This module is imported by main.py during application start-up.  All
# instrumentation is performed in a best-effort fashion: if an endpoint is
# unreachable or an exporter cannot be built we log a warning but allow the
# application to continue running.

from __future__ import annotations

import logging
import pathlib
import time
from logging.handlers import RotatingFileHandler
from typing import Any

import logging_loki
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
from prometheus_fastapi_instrumentator import Instrumentator
from pythonjsonlogger import jsonlogger

from moviedetail.core.config import settings

_logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# JSON log formatter (trace correlation friendly)
# ---------------------------------------------------------------------------


def _get_json_formatter() -> logging.Formatter:  # noqa: D401
    """Return a JSON formatter with OTEL trace/span correlation keys.

    ``operation`` and ``record_id`` are the ``extra`` fields the detail
    controller attaches to gateway failure records.
    """

    fmt_keys = [
        "asctime",
        "levelname",
        "name",
        "message",
        "trace_id",
        "span_id",
        "operation",
        "record_id",
    ]
    return jsonlogger.JsonFormatter(" ".join([f"%({k})s" for k in fmt_keys]))


def _parse_pairs(raw: str | None) -> dict[str, str] | None:  # noqa: D401
    """Parse ``"k1=v1,k2=v2"`` into a dict (``None`` when empty)."""

    if not raw:
        return None
    pairs: dict[str, str] = {}
    for pair in raw.split(","):
        if "=" in pair:
            k, v = pair.split("=", 1)
            pairs[k.strip()] = v.strip()
    return pairs or None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_observability(app: FastAPI) -> None:  # noqa: D401
    """Initialise observability integrations.

    The function is safe to call multiple times – it keeps track of internal
    state to ensure instrumentation happens only once.
    """

    if not settings.OBSERVABILITY_ENABLED:
        _logger.info("Observability explicitly disabled via settings")
        return

    _setup_prometheus(app)
    _setup_opentelemetry(app)
    _setup_loki_logging()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


_prometheus_instrumented = False


def _setup_prometheus(app: FastAPI) -> None:
    global _prometheus_instrumented
    if _prometheus_instrumented:
        return

    try:
        start_time = time.perf_counter()
        Instrumentator().instrument(app).expose(
            app, include_in_schema=False, should_gzip=True
        )
        _prometheus_instrumented = True
        _logger.info(
            "Prometheus instrumentation initialised in %.2f ms",
            (time.perf_counter() - start_time) * 1000,
        )
    except Exception as exc:  # pragma: no cover
        _logger.warning("Failed to initialise Prometheus instrumentation: %s", exc)


_otel_instrumented = False


def _setup_opentelemetry(app: FastAPI) -> None:
    global _otel_instrumented
    if _otel_instrumented or not settings.OTEL_TRACES_ENABLED:
        return

    if not settings.OTEL_EXPORTER_OTLP_ENDPOINT:
        _logger.info(
            "OTEL_TRACES_ENABLED but no OTEL_EXPORTER_OTLP_ENDPOINT set – skipping"
        )
        return

    try:
        start = time.perf_counter()

        resource_attrs: dict[str, Any] = {
            "service.name": settings.PROJECT_NAME,
            "service.version": settings.APP_VERSION,
            "deployment.environment": settings.ENVIRONMENT,
        }
        resource = Resource.create(resource_attrs)

        sampler = TraceIdRatioBased(settings.OTEL_TRACES_SAMPLER_RATIO)
        provider = TracerProvider(resource=resource, sampler=sampler)
        trace.set_tracer_provider(provider)

        proto = (settings.OTEL_EXPORTER_OTLP_PROTOCOL or "grpc").lower()

        if proto == "http":
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
                OTLPSpanExporter,
            )

            span_exporter = OTLPSpanExporter(
                endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
                headers=_parse_pairs(settings.OTEL_EXPORTER_OTLP_HEADERS),
            )
        elif proto == "grpc":
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
                OTLPSpanExporter,
            )

            span_exporter = OTLPSpanExporter(
                endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
                insecure=True,
                headers=_parse_pairs(settings.OTEL_EXPORTER_OTLP_HEADERS),
            )
        else:
            _logger.warning(
                "Unsupported OTLP protocol '%s' – skipping tracing setup", proto
            )
            return

        provider.add_span_processor(BatchSpanProcessor(span_exporter))

        # Incoming requests and the outbound movie backend calls
        FastAPIInstrumentor().instrument_app(app, tracer_provider=provider)
        HTTPXClientInstrumentor().instrument(tracer_provider=provider)

        # Correlate application logs with active spans
        LoggingInstrumentor().instrument(set_logging_format=True)

        if settings.OTEL_METRICS_ENABLED:
            _setup_otlp_metrics(resource, proto)

        _otel_instrumented = True
        _logger.info(
            "OpenTelemetry tracing initialised (%.2f ms)",
            (time.perf_counter() - start) * 1000,
        )
    except Exception as exc:  # pragma: no cover
        _logger.warning("Failed to initialise OpenTelemetry tracing: %s", exc)


def _setup_otlp_metrics(resource: "Resource", proto: str) -> None:
    from opentelemetry import metrics
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader

    if proto == "http":
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (
            OTLPMetricExporter,
        )

        metric_exporter = OTLPMetricExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            headers=_parse_pairs(settings.OTEL_EXPORTER_OTLP_HEADERS),
        )
    else:
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import (
            OTLPMetricExporter,
        )

        metric_exporter = OTLPMetricExporter(
            endpoint=settings.OTEL_EXPORTER_OTLP_ENDPOINT,
            insecure=True,
            headers=_parse_pairs(settings.OTEL_EXPORTER_OTLP_HEADERS),
        )

    reader = PeriodicExportingMetricReader(metric_exporter)
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))


# ---------------------------------------------------------------------------
# Loki or file handler setup
# ---------------------------------------------------------------------------

_loki_handler_added = False
_file_handler_added = False


def _setup_loki_logging() -> None:
    global _loki_handler_added, _file_handler_added
    if _loki_handler_added or _file_handler_added:
        return

    try:
        if settings.LOKI_ENABLED and settings.LOKI_ENDPOINT:
            tags = {
                "service": settings.PROJECT_NAME,
                "environment": settings.ENVIRONMENT,
            }
            tags.update(_parse_pairs(settings.LOKI_EXTRA_LABELS) or {})

            handler = logging_loki.LokiHandler(
                url=settings.LOKI_ENDPOINT,
                tags=tags,
                version="1",
            )
            handler.setFormatter(_get_json_formatter())
            logging.getLogger().addHandler(handler)
            _loki_handler_added = True
            _logger.info(
                "Loki logging handler attached (endpoint=%s)", settings.LOKI_ENDPOINT
            )
            return

        # Loki disabled – keep JSON logs in a rotating local file
        log_dir = pathlib.Path("logs")
        log_dir.mkdir(exist_ok=True)
        file_path = log_dir / "app.log"

        handler = RotatingFileHandler(
            file_path, maxBytes=5 * 1024 * 1024, backupCount=5
        )
        handler.setFormatter(_get_json_formatter())
        logging.getLogger().addHandler(handler)
        _file_handler_added = True
        _logger.info("File logging handler attached (%s)", file_path)
    except Exception as exc:  # pragma: no cover
        _logger.warning("Failed to attach logging handler: %s", exc)
