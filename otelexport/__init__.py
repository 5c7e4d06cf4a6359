"""
otelexport: pick an OpenTelemetry trace output (stdout-style stream or
OTLP/gRPC collector) and get back a ready TracerProvider.

    from otelexport import OutputType, build_pipeline, load_config_from_env

    provider = build_pipeline(OutputType.IO, load_config_from_env())
"""

from .config import Config, ResourceMergeError, load_config_from_env
from .exporter import (
    Exporter,
    ExporterConstructionError,
    GRPCExporter,
    IOExporter,
    OutputType,
    build_pipeline,
    install,
    new_exporter,
)
from .telemetry import init_tracing, tracing_pipeline

__all__ = [
    "Config",
    "Exporter",
    "ExporterConstructionError",
    "GRPCExporter",
    "IOExporter",
    "OutputType",
    "ResourceMergeError",
    "build_pipeline",
    "init_tracing",
    "install",
    "load_config_from_env",
    "new_exporter",
    "tracing_pipeline",
]
