"""
OTLP exporters for traces and metrics.

Provides factory functions for creating OTLP exporters with proper configuration,
over either gRPC (the default, matching a collector listening on 55680) or HTTP.
"""

import socket
from typing import Any
from urllib.parse import urlparse

import grpc


def _grpc_target(endpoint: str) -> str:
    return endpoint.replace("http://", "").replace("https://", "")


def _http_base(endpoint: str, insecure: bool) -> str:
    if "://" in endpoint:
        return endpoint.rstrip("/")
    scheme = "http" if insecure else "https"
    return f"{scheme}://{endpoint}".rstrip("/")


def create_otlp_trace_exporter(
    endpoint: str = "0.0.0.0:55680",
    protocol: str = "grpc",
    insecure: bool = True,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
):
    """
    Create an OTLP trace exporter.

    Args:
        endpoint: Collector address (host:port for gRPC, URL for HTTP)
        protocol: "grpc" or "http"
        insecure: Use a plaintext connection
        headers: Optional headers to include
        **kwargs: Additional exporter configuration

    Returns:
        Configured SpanExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        return OTLPSpanExporter(
            endpoint=_grpc_target(endpoint),
            insecure=insecure,
            headers=headers,
            **kwargs,
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import (  # type: ignore[assignment]
            OTLPSpanExporter,
        )

        traces_endpoint = _http_base(endpoint, insecure)
        if not traces_endpoint.endswith("/v1/traces"):
            traces_endpoint = f"{traces_endpoint}/v1/traces"
        return OTLPSpanExporter(
            endpoint=traces_endpoint,
            headers=headers,
            **kwargs,
        )


def create_otlp_metric_exporter(
    endpoint: str = "0.0.0.0:55680",
    protocol: str = "grpc",
    insecure: bool = True,
    headers: dict[str, str] | None = None,
    **kwargs: Any,
):
    """
    Create an OTLP metric exporter.

    Args:
        endpoint: Collector address (host:port for gRPC, URL for HTTP)
        protocol: "grpc" or "http"
        insecure: Use a plaintext connection
        headers: Optional headers to include
        **kwargs: Additional exporter configuration

    Returns:
        Configured MetricExporter
    """
    if protocol == "grpc":
        from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter

        return OTLPMetricExporter(
            endpoint=_grpc_target(endpoint),
            insecure=insecure,
            headers=headers,
            **kwargs,
        )
    else:
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import (  # type: ignore[assignment]
            OTLPMetricExporter,
        )

        metrics_endpoint = _http_base(endpoint, insecure)
        if not metrics_endpoint.endswith("/v1/metrics"):
            metrics_endpoint = f"{metrics_endpoint}/v1/metrics"
        return OTLPMetricExporter(
            endpoint=metrics_endpoint,
            headers=headers,
            **kwargs,
        )


def wait_for_collector(
    endpoint: str,
    protocol: str = "grpc",
    insecure: bool = True,
    timeout_s: float = 10.0,
) -> None:
    """
    Block until the collector accepts connections.

    The OTLP exporters connect lazily, so without this an unreachable collector
    only shows up later as dropped batches.

    Raises:
        ConnectionError: the collector did not become reachable within timeout_s
    """
    if protocol == "grpc":
        target = _grpc_target(endpoint)
        if insecure:
            channel = grpc.insecure_channel(target)
        else:
            channel = grpc.secure_channel(target, grpc.ssl_channel_credentials())
        try:
            grpc.channel_ready_future(channel).result(timeout=timeout_s)
        except grpc.FutureTimeoutError:
            raise ConnectionError(
                f"collector at {target} not reachable within {timeout_s:g}s"
            ) from None
        finally:
            channel.close()
        return

    parsed = urlparse(_http_base(endpoint, insecure))
    host = parsed.hostname or "localhost"
    port = parsed.port or (443 if parsed.scheme == "https" else 80)
    try:
        with socket.create_connection((host, port), timeout=timeout_s):
            pass
    except OSError as e:
        raise ConnectionError(f"collector at {host}:{port} not reachable: {e}") from e
