"""
Configuration for the appdemo workload generator.

The defaults below are the fixed values the demo ships with: an insecure OTLP
gRPC collector on 0.0.0.0:55680, service name "test-service" and a 7 second
metric push period. They can be overridden, in increasing order of priority,
by a YAML file named in APPDEMO_CONFIG, by APPDEMO_* environment variables,
and finally by CLI flags.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

COLLECTOR_ADDRESS = "0.0.0.0:55680"
COLLECTOR_PROTOCOL = "grpc"
SERVICE_NAME = "test-service"
TRACER_NAME = "test-tracer"
METER_NAME = "test-meter"
SPAN_NAME = "ExecuteRequest"
METRIC_EXPORT_INTERVAL_MS = 7000
CONNECT_TIMEOUT_S = 10.0
SHUTDOWN_TIMEOUT_MS = 30000

# Labels attached to the root context and to every metric recording.
COMMON_LABELS: tuple[tuple[str, str], ...] = (
    ("method", "repl"),
    ("client", "cli"),
)

SUPPORTED_PROTOCOLS = ("grpc", "http")

CONFIG_ENV_VAR = "APPDEMO_CONFIG"


@dataclass(frozen=True)
class PipelineConfig:
    """Settings for the telemetry pipeline and the simulator."""

    endpoint: str = COLLECTOR_ADDRESS
    protocol: str = COLLECTOR_PROTOCOL
    insecure: bool = True
    service_name: str = SERVICE_NAME
    tracer_name: str = TRACER_NAME
    meter_name: str = METER_NAME
    export_interval_ms: int = METRIC_EXPORT_INTERVAL_MS
    wait_for_collector: bool = True
    connect_timeout_s: float = CONNECT_TIMEOUT_S
    shutdown_timeout_ms: int = SHUTDOWN_TIMEOUT_MS
    labels: tuple[tuple[str, str], ...] = field(default=COMMON_LABELS)

    def with_overrides(self, **overrides: Any) -> "PipelineConfig":
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self


def load_yaml(path: Path, default: Any = None) -> Any:
    """Load a YAML mapping; return default when the file is missing."""
    if default is None:
        default = {}
    if not path.exists():
        return default
    try:
        with path.open(encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e
    return data if isinstance(data, dict) else default


def _parse_int(name: str, raw: Any) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value


def _parse_float(name: str, raw: Any) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ConfigError(f"{name} must be non-negative, got {value}")
    return value


def _parse_bool(name: str, raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise ConfigError(f"{name} must be true or false, got {raw!r}")
    return raw


def _parse_protocol(name: str, raw: Any) -> str:
    value = str(raw).strip().lower()
    if value not in SUPPORTED_PROTOCOLS:
        raise ConfigError(f"{name} must be one of {', '.join(SUPPORTED_PROTOCOLS)}, got {raw!r}")
    return value


def _parse_labels(raw: Any) -> tuple[tuple[str, str], ...]:
    """Labels from YAML: a mapping of key to value, order preserved."""
    if not isinstance(raw, dict):
        raise ConfigError("labels must be a mapping of key to value")
    return tuple((str(k), str(v)) for k, v in raw.items())


def _from_mapping(data: dict[str, Any]) -> dict[str, Any]:
    """Translate a config-file mapping into PipelineConfig keyword arguments."""
    kwargs: dict[str, Any] = {}
    if "endpoint" in data:
        kwargs["endpoint"] = str(data["endpoint"]).strip()
    if "protocol" in data:
        kwargs["protocol"] = _parse_protocol("protocol", data["protocol"])
    if "insecure" in data:
        kwargs["insecure"] = _parse_bool("insecure", data["insecure"])
    if "service_name" in data:
        kwargs["service_name"] = str(data["service_name"]).strip()
    if "export_interval_ms" in data:
        kwargs["export_interval_ms"] = _parse_int("export_interval_ms", data["export_interval_ms"])
    if "wait_for_collector" in data:
        kwargs["wait_for_collector"] = _parse_bool(
            "wait_for_collector", data["wait_for_collector"]
        )
    if "connect_timeout_s" in data:
        kwargs["connect_timeout_s"] = _parse_float("connect_timeout_s", data["connect_timeout_s"])
    if "labels" in data:
        kwargs["labels"] = _parse_labels(data["labels"])
    return kwargs


def _from_env(environ: dict[str, str]) -> dict[str, Any]:
    """Read APPDEMO_* overrides; blank values are ignored."""
    kwargs: dict[str, Any] = {}
    endpoint = environ.get("APPDEMO_ENDPOINT", "").strip()
    if endpoint:
        kwargs["endpoint"] = endpoint
    protocol = environ.get("APPDEMO_PROTOCOL", "").strip()
    if protocol:
        kwargs["protocol"] = _parse_protocol("APPDEMO_PROTOCOL", protocol)
    service_name = environ.get("APPDEMO_SERVICE_NAME", "").strip()
    if service_name:
        kwargs["service_name"] = service_name
    interval = environ.get("APPDEMO_EXPORT_INTERVAL_MS", "").strip()
    if interval:
        kwargs["export_interval_ms"] = _parse_int("APPDEMO_EXPORT_INTERVAL_MS", interval)
    timeout = environ.get("APPDEMO_CONNECT_TIMEOUT_S", "").strip()
    if timeout:
        kwargs["connect_timeout_s"] = _parse_float("APPDEMO_CONNECT_TIMEOUT_S", timeout)
    return kwargs


def load_config(environ: dict[str, str] | None = None) -> PipelineConfig:
    """
    Build the effective configuration.

    Resolution order (later wins):
    1. Built-in defaults
    2. YAML file named by APPDEMO_CONFIG (if set)
    3. APPDEMO_* environment variables
    """
    env = dict(os.environ) if environ is None else environ
    kwargs: dict[str, Any] = {}
    config_path = env.get(CONFIG_ENV_VAR, "").strip()
    if config_path:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"{CONFIG_ENV_VAR} points to a missing file: {path}")
        kwargs.update(_from_mapping(load_yaml(path)))
    kwargs.update(_from_env(env))
    return PipelineConfig(**kwargs)
