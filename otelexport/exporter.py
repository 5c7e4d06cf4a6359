"""
exporter.py
-----------
Two ways to ship spans out of the process, behind one small factory:

- IO   -> ConsoleSpanExporter writing JSON spans into any text stream
          (stdout, a log file, an io.StringIO in tests).
- GRPC -> OTLPSpanExporter talking to a remote collector over TLS,
          with gzip compression and an "api-key" header.

Usage:
    from otelexport import Config, OutputType, build_pipeline, install

    provider = build_pipeline(OutputType.GRPC, load_config_from_env())
    install(provider)            # optional: make it the process-wide default
    tracer = provider.get_tracer("orders")
    ...
    provider.shutdown()

Building a pipeline never touches the global tracer provider; call install()
when you want that.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
import logging

import grpc
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import ALWAYS_ON

from .config import Config

logger = logging.getLogger(__name__)


# --- GRPC pipeline policy ----------------------------------------------------

API_KEY_HEADER = "api-key"
GRPC_TIMEOUT_SECONDS = 30
BATCH_TIMEOUT_MILLIS = 5000
EXPORT_TIMEOUT_MILLIS = 5000
MAX_QUEUE_SIZE = 10000
# The SDK refuses batches bigger than the queue, so this gets clamped below.
MAX_EXPORT_BATCH_SIZE = 100000
# Fixed gap between reconnect attempts once the channel drops.
RECONNECT_PERIOD_MILLIS = 2000
RECONNECT_CHANNEL_OPTIONS = (
    ("grpc.initial_reconnect_backoff_ms", RECONNECT_PERIOD_MILLIS),
    ("grpc.min_reconnect_backoff_ms", RECONNECT_PERIOD_MILLIS),
    ("grpc.max_reconnect_backoff_ms", RECONNECT_PERIOD_MILLIS),
)


# --- Exception ---------------------------------------------------------------

class ExporterConstructionError(RuntimeError):
    """
    Raised when the span exporter (or the transport under it) can't be built.
    'output' is the OutputType that failed, 'cause' the original exception.
    """
    def __init__(self, output: "OutputType", cause: BaseException):
        super().__init__(f"could not create {output.value} exporter: {cause}")
        self.output = output
        self.cause = cause


# --- Output kinds ------------------------------------------------------------

class OutputType(Enum):
    IO = "io"
    GRPC = "grpc"

    @classmethod
    def parse(cls, value: Union["OutputType", str, None]) -> Optional["OutputType"]:
        """Accept an OutputType or one of its string aliases; None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        return _ALIASES.get(value.strip().lower())


_ALIASES = {
    "io": OutputType.IO,
    "stdout": OutputType.IO,
    "console": OutputType.IO,
    "grpc": OutputType.GRPC,
    "otlp": OutputType.GRPC,
    "otlp-grpc": OutputType.GRPC,
}


# ---------- Base interface ----------

class Exporter:
    """A minimal contract both outputs follow."""

    output: OutputType

    def export_pipeline(self) -> TracerProvider:
        """
        Return a new TracerProvider wired to this output.
        """
        raise NotImplementedError


# ---------- IO output ----------

@dataclass
class IOExporter(Exporter):
    """
    Pretty-printed JSON spans written to config.writer (stdout if None).
    Batching uses the SDK defaults.
    """
    config: Config
    output: OutputType = OutputType.IO

    def export_pipeline(self) -> TracerProvider:
        resource = self.config.resource()
        exporter = self._span_exporter()

        provider = TracerProvider(resource=resource)
        provider.add_span_processor(BatchSpanProcessor(exporter))
        logger.info("Built IO trace pipeline for service %r", self.config.service_name)
        return provider

    def _span_exporter(self) -> ConsoleSpanExporter:
        writer = self.config.writer
        try:
            if writer is None:
                return ConsoleSpanExporter()
            if not callable(getattr(writer, "write", None)):
                raise TypeError(f"writer {writer!r} has no write() method")
            if getattr(writer, "closed", False):
                raise ValueError("writer is closed")
            return ConsoleSpanExporter(out=writer)
        except Exception as exc:
            raise ExporterConstructionError(self.output, exc) from exc


# ---------- GRPC output ----------

@dataclass
class GRPCExporter(Exporter):
    """
    OTLP over gRPC to config.url, authenticated with config.api_key.

    The channel is created lazily by grpc, so an unreachable collector
    doesn't block construction; a dropped channel is redialled every
    RECONNECT_PERIOD_MILLIS and failed exports are retried by the exporter.
    """
    config: Config
    output: OutputType = OutputType.GRPC

    def export_pipeline(self) -> TracerProvider:
        resource = self.config.resource()
        exporter = self._span_exporter()

        provider = TracerProvider(resource=resource, sampler=ALWAYS_ON)
        provider.add_span_processor(
            BatchSpanProcessor(
                exporter,
                max_queue_size=MAX_QUEUE_SIZE,
                schedule_delay_millis=BATCH_TIMEOUT_MILLIS,
                max_export_batch_size=min(MAX_EXPORT_BATCH_SIZE, MAX_QUEUE_SIZE),
                export_timeout_millis=EXPORT_TIMEOUT_MILLIS,
            )
        )
        logger.info(
            "Built GRPC trace pipeline for service %r -> %s",
            self.config.service_name,
            self.config.url,
        )
        return provider

    def _span_exporter(self) -> OTLPSpanExporter:
        try:
            return OTLPSpanExporter(
                endpoint=self.config.url,
                insecure=False,
                credentials=grpc.ssl_channel_credentials(),
                headers={API_KEY_HEADER: self.config.api_key},
                timeout=GRPC_TIMEOUT_SECONDS,
                compression=grpc.Compression.Gzip,
                channel_options=RECONNECT_CHANNEL_OPTIONS,
            )
        except Exception as exc:
            raise ExporterConstructionError(self.output, exc) from exc


# ---------- Factory ----------

def new_exporter(output_type: Union[OutputType, str], config: Config) -> Optional[Exporter]:
    kind = OutputType.parse(output_type)
    if kind is OutputType.IO:
        return IOExporter(config)
    if kind is OutputType.GRPC:
        return GRPCExporter(config)
    logger.warning("Unknown trace output type %r, no pipeline built", output_type)
    return None


def build_pipeline(output_type: Union[OutputType, str], config: Config) -> Optional[TracerProvider]:
    """
    Pick the output and build its TracerProvider.

    Raises ExporterConstructionError or ResourceMergeError if construction
    fails. Returns None (after a warning) for an unknown output type.
    """
    exporter = new_exporter(output_type, config)
    if exporter is None:
        return None
    return exporter.export_pipeline()


def install(provider: TracerProvider) -> TracerProvider:
    """
    Make 'provider' the process-wide default returned by trace.get_tracer().

    The SDK only accepts the first installation and warns on later ones.
    Nothing here synchronizes concurrent callers.
    """
    trace.set_tracer_provider(provider)
    logger.debug("Installed %r as the global tracer provider", provider)
    return provider
