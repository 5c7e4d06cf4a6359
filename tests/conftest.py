# tests/conftest.py
import pytest

SAMPLE_ENV = {
    "OTEL_SERVICE_NAME": "sampleServiceName",
    "OTEL_SERVICE_VERSION": "v1.0.0.0",
    "OTEL_SERVICE_ID": "sampleServiceID",
    "OTEL_GRPC_API_KEY": "sampleApiKey",
    "OTEL_GRPC_URL": "otlp.nr-data.net:4317",
}


@pytest.fixture
def otel_env(monkeypatch):
    """Populate the OTEL_* variables the config loader reads; undone after each test."""
    for key, value in SAMPLE_ENV.items():
        monkeypatch.setenv(key, value)
    return SAMPLE_ENV
