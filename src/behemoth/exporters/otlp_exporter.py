"""
OTLP metric exporter factory.

Supports both HTTP and gRPC protocols. Flows are delivered as OTLP metrics.
"""

from typing import Any

PROTOCOLS = ("grpc", "http")


def create_otlp_metric_exporter(
    endpoint: str = "http://localhost:4317",
    protocol: str = "grpc",
    headers: dict[str, str] | None = None,
    insecure: bool = False,
    **kwargs: Any,
):
    """
    Create an OTLP metric exporter.

    Args:
        endpoint: OTLP endpoint URL (http/https must be included)
        protocol: "grpc" or "http"
        headers: Optional headers to include
        insecure: Disable TLS on the gRPC channel
        **kwargs: Additional exporter configuration

    Returns:
        Configured MetricExporter
    """
    if protocol not in PROTOCOLS:
        raise ValueError(f"Unsupported OTLP protocol {protocol!r}; expected one of {PROTOCOLS}")
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return OTLPMetricExporter(
            endpoint=endpoint.replace("http://", "").replace("https://", ""),
            headers=headers,
            insecure=insecure,
            **kwargs,
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (  # type: ignore[assignment]
            OTLPMetricExporter,
        )

        if insecure and endpoint.startswith("https://"):
            endpoint = "http://" + endpoint[len("https://") :]
        metrics_endpoint = endpoint.rstrip("/")
        if not metrics_endpoint.endswith("/v1/metrics"):
            metrics_endpoint = f"{metrics_endpoint}/v1/metrics"
        return OTLPMetricExporter(
            endpoint=metrics_endpoint,
            headers=headers,
            **kwargs,
        )


def auth_headers(apikey: str | None) -> dict[str, str] | None:
    """Bearer authorization header for the API key, if any."""
    if not apikey:
        return None
    return {"authorization": f"Bearer {apikey}"}
