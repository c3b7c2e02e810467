# ==== OPENTELEMETRY TRACING CONFIGURATION ==== #

"""
OpenTelemetry tracing configuration for the subject analyzer.

Tracing is exported over OTLP only when an endpoint is configured; without
one the no-op tracer provider stays in place so spans cost nothing locally.
"""

from typing import Any, Dict

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from subject_analyzer.settings import Settings


def init_tracing(settings: Settings) -> bool:
    """
    Initialize OpenTelemetry tracing with an OTLP exporter.
    
    Args:
        settings (Settings): Application settings carrying the OTEL_* fields
        
    Returns:
        bool: True when an exporter was installed
    """
    endpoint = settings.OTEL_EXPORTER_OTLP_ENDPOINT
    
    # ⚠️ Allow local runs without an APM backend
    if not endpoint:
        return False
    
    resource_attrs = _parse_key_values(settings.OTEL_RESOURCE_ATTRIBUTES)
    resource_attrs["service.name"] = settings.OTEL_SERVICE_NAME or settings.SERVICE_NAME
    
    provider = TracerProvider(resource=Resource.create(resource_attrs))
    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=_parse_key_values(settings.OTEL_EXPORTER_OTLP_HEADERS)
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    
    HTTPXClientInstrumentor().instrument()
    return True


def _parse_key_values(raw: str | None) -> Dict[str, Any]:
    """Parse comma separated key=value pairs from an OTEL environment value."""
    pairs: Dict[str, Any] = {}
    if not raw:
        return pairs
        
    for part in filter(None, map(str.strip, raw.split(","))):
        if "=" in part:
            key, value = part.split("=", 1)
            pairs[key.strip()] = value.strip()
    
    return pairs


def get_tracer(name: str) -> trace.Tracer:
    """Get a tracer instance for the given module.
    
    Args:
        name: Module name (typically __name__)
        
    Returns:
        Tracer instance
    """
    return trace.get_tracer(name)
