"""
Logging and tracing for the ledger.

Spans are always recorded so ``trace_span`` can wrap any service or
repository method; they are shipped to Axiom over OTLP/HTTP only when both
``axiom_token`` and ``axiom_dataset`` are set.
"""

import asyncio
import functools
import logging
from typing import Mapping, Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from common.core.config import settings

AXIOM_TRACES_ENDPOINT = "https://api.axiom.co/v1/traces"

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

_tracer: Optional[trace.Tracer] = None


def _exports_traces() -> bool:
    return bool(settings.axiom_token and settings.axiom_dataset)


def _build_provider() -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create(
            {
                SERVICE_NAME: settings.otel_service_name,
                SERVICE_VERSION: settings.otel_service_version,
                "deployment.environment": settings.environment.value,
            }
        )
    )
    if _exports_traces():
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=AXIOM_TRACES_ENDPOINT,
                    headers={
                        "Authorization": f"Bearer {settings.axiom_token}",
                        "X-Axiom-Dataset": settings.axiom_dataset,
                    },
                )
            )
        )
    return provider


def _get_tracer() -> trace.Tracer:
    global _tracer
    if _tracer is None:
        provider = _build_provider()
        if _exports_traces():
            trace.set_tracer_provider(provider)
        _tracer = provider.get_tracer(
            settings.otel_service_name, settings.otel_service_version
        )
        logging.getLogger(__name__).debug(
            "Tracing ready", extra={"exporting": _exports_traces()}
        )
    return _tracer


def get_logger(name: str) -> logging.Logger:
    """Module logger. Sets up tracing on first use."""
    _get_tracer()
    return logging.getLogger(name)


def trace_span(func):
    """Wrap a function (sync or async) in a span named ``Class.method``."""

    def span_name(args) -> str:
        owner = args[0] if args else None
        if owner is not None and hasattr(owner, func.__name__):
            return f"{type(owner).__name__}.{func.__name__}"
        return func.__qualname__

    if asyncio.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with _get_tracer().start_as_current_span(span_name(args)):
                return await func(*args, **kwargs)

        return async_wrapper

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        with _get_tracer().start_as_current_span(span_name(args)):
            return func(*args, **kwargs)

    return sync_wrapper


def log_span_event(message: str, attributes: Optional[Mapping[str, object]] = None):
    """Record ``message`` on the current span and log it at INFO."""
    attributes = dict(attributes or {})
    span = trace.get_current_span()
    if span.is_recording():
        span.add_event(message, attributes=attributes)
    logging.getLogger(__name__).info(message, extra=attributes)
