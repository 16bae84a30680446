"""
OpenTelemetry Tracing for the Career Compass backend

Provides span decorators for service operations and document store calls.
Everything here is a no-op unless tracing is enabled through
ENABLE_TRACING or the `tracing` section of the app config.

Usage:
    from utils.tracing import trace_async, add_span_attributes

    @trace_async("roadmap.toggle_step")
    async def toggle_step(self, user_id, roadmap_id, step_id):
        add_span_attributes({"roadmap.id": roadmap_id})
        ...
"""

import os
import logging
import functools
from typing import Dict, Any, Optional, Callable
from pathlib import Path
import yaml

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.trace import Status, StatusCode, Span

from roadmap.config import APP_CONFIG_PATH


_tracer: Optional[trace.Tracer] = None
_tracer_provider: Optional[TracerProvider] = None
_tracing_enabled: bool = False
_config: Dict = {}

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "career-compass"


def load_tracing_config(config_path: Path = APP_CONFIG_PATH) -> Dict:
    """
    Load tracing configuration from the app YAML file.

    Environment variables take precedence over the file.
    """
    config_file = Path(config_path)

    tracing_config: Dict[str, Any] = {}
    if config_file.exists():
        with open(config_file, 'r') as f:
            full_config = yaml.safe_load(f) or {}
        tracing_config = dict(full_config.get("tracing") or {})
    else:
        logger.warning(f"Config file not found: {config_path}, using defaults")

    tracing_config["enabled"] = (
        os.getenv("ENABLE_TRACING", str(tracing_config.get("enabled", False))).lower() == "true"
    )
    tracing_config["service_name"] = os.getenv(
        "OTEL_SERVICE_NAME",
        tracing_config.get("service_name", DEFAULT_SERVICE_NAME)
    )
    tracing_config["otlp_endpoint"] = os.getenv(
        "OTEL_EXPORTER_OTLP_ENDPOINT",
        tracing_config.get("otlp_endpoint", "http://localhost:4317")
    )

    return tracing_config


def initialize_tracing(config_path: Path = APP_CONFIG_PATH) -> bool:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.

    Returns:
        True if tracing is now active, False otherwise
    """
    global _tracer, _tracer_provider, _tracing_enabled, _config

    _config = load_tracing_config(config_path)

    if not _config.get("enabled", False):
        logger.info("OpenTelemetry tracing is disabled")
        _tracing_enabled = False
        return False

    try:
        resource = Resource(attributes={
            SERVICE_NAME: _config["service_name"]
        })

        _tracer_provider = TracerProvider(resource=resource)

        otlp_exporter = OTLPSpanExporter(
            endpoint=_config["otlp_endpoint"],
            insecure=_config.get("insecure", True)
        )
        _tracer_provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

        trace.set_tracer_provider(_tracer_provider)

        _tracer = trace.get_tracer(__name__, tracer_provider=_tracer_provider)
        _tracing_enabled = True

        logger.info(
            f"OpenTelemetry tracing initialized: "
            f"service={_config['service_name']}, "
            f"endpoint={_config['otlp_endpoint']}"
        )
        return True

    except Exception as e:
        logger.error(f"Failed to initialize OpenTelemetry tracing: {e}")
        _tracing_enabled = False
        return False


def get_tracer() -> trace.Tracer:
    """Global tracer, or the no-op tracer when tracing is disabled."""
    if _tracer is None:
        return trace.get_tracer(__name__)
    return _tracer


def is_tracing_enabled() -> bool:
    return _tracing_enabled


def get_tracing_status() -> Dict[str, Any]:
    """Summary used by the API's tracing status endpoint."""
    return {
        "tracing_enabled": _tracing_enabled,
        "service_name": _config.get("service_name", DEFAULT_SERVICE_NAME),
        "otlp_endpoint": _config.get("otlp_endpoint"),
    }


def get_current_span() -> Optional[Span]:
    if not _tracing_enabled:
        return None
    return trace.get_current_span()


def add_span_attributes(attributes: Dict[str, Any]):
    """
    Add attributes to the current span. None values are skipped.
    """
    if not _tracing_enabled or not attributes:
        return

    span = get_current_span()
    if span and span.is_recording():
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(key, value)


def add_span_event(name: str, attributes: Optional[Dict[str, Any]] = None):
    if not _tracing_enabled:
        return

    span = get_current_span()
    if span and span.is_recording():
        span.add_event(name, attributes=attributes or {})


def set_span_error(error: Exception, record_exception: bool = True):
    """Mark the current span as failed."""
    if not _tracing_enabled:
        return

    span = get_current_span()
    if span and span.is_recording():
        span.set_status(Status(StatusCode.ERROR, str(error)))
        if record_exception:
            span.record_exception(error)


def trace_async(
    name: Optional[str] = None,
    attributes: Optional[Dict[str, Any]] = None,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL
) -> Callable:
    """
    Decorator for tracing coroutine functions.

    Args:
        name: Span name (defaults to module.function)
        attributes: Static attributes to add to the span
        kind: Span kind
    """
    def decorator(func: Callable) -> Callable:
        span_name = name or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not _tracing_enabled:
                return await func(*args, **kwargs)

            with get_tracer().start_as_current_span(span_name, kind=kind) as span:
                if attributes:
                    add_span_attributes(attributes)

                span.set_attribute("code.function", func.__name__)
                span.set_attribute("code.namespace", func.__module__)

                try:
                    result = await func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    set_span_error(e)
                    raise

        return wrapper
    return decorator


def trace_db_operation(operation: str) -> Callable:
    """
    Decorator for document store calls.

    Args:
        operation: Operation name (e.g. "insert", "patch", "query")
    """
    return trace_async(
        name=f"docstore.{operation}",
        attributes={"operation": operation, "db.system": "sqlite"},
        kind=trace.SpanKind.CLIENT
    )


def shutdown_tracing():
    """Shutdown tracing and flush all pending spans"""
    global _tracer_provider, _tracer, _tracing_enabled

    if _tracer_provider:
        _tracer_provider.shutdown()
        logger.info("OpenTelemetry tracing shutdown complete")

    _tracer_provider = None
    _tracer = None
    _tracing_enabled = False
