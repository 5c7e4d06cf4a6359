"""
config.py
---------
Purpose: Describe *who* is emitting telemetry and *where* it should go.

Key ideas:
- Config holds the service identity (name, version, instance id) plus the
  settings each output needs:
    * IO output   -> `writer` (any text stream; api_key/url can stay empty)
    * GRPC output -> `api_key` + `url` (writer can stay None)
- load_config_from_env() builds a Config from OTEL_* variables.
- Config.resource() turns the identity into an OpenTelemetry Resource,
  merged on top of the SDK's default resource.

.env example:
  OTEL_SERVICE_NAME=orders-api
  OTEL_SERVICE_VERSION=1.4.2
  OTEL_SERVICE_ID=orders-api-7c9f
  OTEL_GRPC_API_KEY=...
  OTEL_GRPC_URL=otlp.nr-data.net:4317
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, TextIO
import os

from opentelemetry.sdk.resources import (
    Resource,
    SERVICE_INSTANCE_ID,
    SERVICE_NAME,
    SERVICE_VERSION,
)


# Semantic conventions version the identity attributes follow.
SCHEMA_URL = "https://opentelemetry.io/schemas/1.4.0"


# --- Exception ---------------------------------------------------------------

class ResourceMergeError(RuntimeError):
    """
    Raised when the service identity can't be merged into the default resource.
    Keeps the two schema URLs around when that was the reason.
    """
    def __init__(self, detail: str, base_schema: str = "", update_schema: str = ""):
        super().__init__(f"could not create resource: {detail}")
        self.detail = detail
        self.base_schema = base_schema
        self.update_schema = update_schema


# --- Config model ------------------------------------------------------------

@dataclass
class Config:
    """
    Everything needed to open an export pipeline.

    - service_name / service_version / service_instance_id:
                    identity attributes attached to every span.
    - writer:       stream for IO output. None means stdout.
    - api_key:      sent as the "api-key" header on GRPC output.
    - url:          GRPC collector address, e.g. "otlp.nr-data.net:4317".
    """
    service_name: str = ""
    service_version: str = ""
    service_instance_id: str = ""
    writer: Optional[TextIO] = None
    api_key: str = ""
    url: str = ""

    def identity(self) -> Resource:
        """Only the three identity attributes, without any defaults."""
        return Resource(
            {
                SERVICE_INSTANCE_ID: self.service_instance_id,
                SERVICE_NAME: self.service_name,
                SERVICE_VERSION: self.service_version,
            },
            schema_url=SCHEMA_URL,
        )

    def resource(self) -> Resource:
        """
        Merge the identity over the default resource (SDK info,
        OTEL_RESOURCE_ATTRIBUTES, detectors). Identity wins on key clashes.

        The SDK's own merge only logs and returns the old resource when the
        schema URLs disagree, so that case is checked here and raised.
        """
        try:
            base = _default_resource()
            update = self.identity()
        except Exception as exc:
            raise ResourceMergeError(str(exc)) from exc

        if base.schema_url and base.schema_url != update.schema_url:
            raise ResourceMergeError(
                f"incompatible schema URLs {base.schema_url!r} and {update.schema_url!r}",
                base_schema=base.schema_url,
                update_schema=update.schema_url,
            )
        return base.merge(update)


def _default_resource() -> Resource:
    return Resource.create()


def load_config_from_env() -> Config:
    """
    Build a Config from the environment. Missing variables become "" so the
    caller can still build an output that doesn't need them.
    """
    return Config(
        service_name=os.environ.get("OTEL_SERVICE_NAME", ""),
        service_version=os.environ.get("OTEL_SERVICE_VERSION", ""),
        service_instance_id=os.environ.get("OTEL_SERVICE_ID", ""),
        writer=None,
        api_key=os.environ.get("OTEL_GRPC_API_KEY", ""),
        url=os.environ.get("OTEL_GRPC_URL", ""),
    )
