# telemetry.py
"""
Startup helpers on top of the exporter factory.
Call init_tracing() once at startup to enable traces, or wrap a short-lived
job in tracing_pipeline() so spans are flushed before the process exits.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional, Union
import os

from opentelemetry.sdk.trace import TracerProvider

from .config import Config, load_config_from_env
from .exporter import OutputType, build_pipeline, install


DEFAULT_OUTPUT_TYPE = "io"


def _output_type_from_env() -> str:
    """
    OTEL_OUTPUT_TYPE = "io" | "grpc" (plus aliases), default "io".
    Returned raw; OutputType.parse does the normalising.
    """
    return os.getenv("OTEL_OUTPUT_TYPE") or DEFAULT_OUTPUT_TYPE


def init_tracing(
    output_type: Union[OutputType, str, None] = None,
    config: Optional[Config] = None,
) -> Optional[TracerProvider]:
    """
    Build a pipeline and install it as the global tracer provider.
    Reads config from environment variables when not given:
        OTEL_OUTPUT_TYPE     - "io" (stdout) or "grpc"
        OTEL_SERVICE_NAME / OTEL_SERVICE_VERSION / OTEL_SERVICE_ID
        OTEL_GRPC_API_KEY / OTEL_GRPC_URL  - only for "grpc"

    Returns the provider so the caller can flush/shut it down on exit,
    or None if the output type is unknown (nothing is installed then).
    """
    if output_type is None:
        output_type = _output_type_from_env()
    if config is None:
        config = load_config_from_env()

    provider = build_pipeline(output_type, config)
    if provider is None:
        return None
    return install(provider)


@contextmanager
def tracing_pipeline(
    output_type: Union[OutputType, str],
    config: Optional[Config] = None,
    flush_timeout_millis: int = 30000,
) -> Iterator[Optional[TracerProvider]]:
    """
    with tracing_pipeline("io", cfg) as provider:
        tracer = provider.get_tracer("job")
        ...
    Spans still queued are flushed and the provider shut down on exit,
    also when the body raises. flush_timeout_millis bounds the final flush.
    The global provider is left alone.
    """
    provider = build_pipeline(output_type, config or load_config_from_env())
    try:
        yield provider
    finally:
        if provider is not None:
            provider.force_flush(flush_timeout_millis)
            provider.shutdown()
