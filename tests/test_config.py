"""Tests for configuration defaults and overrides."""

from pathlib import Path

import pytest

from appdemo.config import COMMON_LABELS, PipelineConfig, load_config
from appdemo.errors import ConfigError


def test_defaults_are_fixed_constants() -> None:
    config = load_config({})
    assert config.endpoint == "0.0.0.0:55680"
    assert config.protocol == "grpc"
    assert config.insecure is True
    assert config.service_name == "test-service"
    assert config.tracer_name == "test-tracer"
    assert config.meter_name == "test-meter"
    assert config.export_interval_ms == 7000
    assert config.labels == COMMON_LABELS == (("method", "repl"), ("client", "cli"))


def test_env_overrides() -> None:
    config = load_config(
        {
            "APPDEMO_ENDPOINT": "collector:4317",
            "APPDEMO_PROTOCOL": "HTTP",
            "APPDEMO_SERVICE_NAME": "demo",
            "APPDEMO_EXPORT_INTERVAL_MS": "1000",
            "APPDEMO_CONNECT_TIMEOUT_S": "2.5",
        }
    )
    assert config.endpoint == "collector:4317"
    assert config.protocol == "http"
    assert config.service_name == "demo"
    assert config.export_interval_ms == 1000
    assert config.connect_timeout_s == 2.5


def test_blank_env_values_ignored() -> None:
    config = load_config({"APPDEMO_ENDPOINT": "  ", "APPDEMO_SERVICE_NAME": ""})
    assert config == PipelineConfig()


def test_yaml_file_then_env(tmp_path: Path) -> None:
    """Env vars win over the YAML file, which wins over defaults."""
    path = tmp_path / "appdemo.yaml"
    path.write_text(
        "endpoint: file-collector:4317\n"
        "service_name: from-file\n"
        "wait_for_collector: false\n"
        "labels:\n"
        "  method: batch\n"
        "  client: api\n",
        encoding="utf-8",
    )
    config = load_config({"APPDEMO_CONFIG": str(path), "APPDEMO_SERVICE_NAME": "from-env"})
    assert config.endpoint == "file-collector:4317"
    assert config.service_name == "from-env"
    assert config.wait_for_collector is False
    assert config.labels == (("method", "batch"), ("client", "api"))


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="missing file"):
        load_config({"APPDEMO_CONFIG": str(tmp_path / "nope.yaml")})


def test_unparseable_config_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.yaml"
    path.write_text("endpoint: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="Cannot parse"):
        load_config({"APPDEMO_CONFIG": str(path)})


@pytest.mark.parametrize(
    "line",
    ['insecure: "false"', "wait_for_collector: 'no'", "insecure: 0"],
)
def test_yaml_flags_must_be_booleans(tmp_path: Path, line: str) -> None:
    """Quoted strings like "false" are truthy and must not silently enable a flag."""
    path = tmp_path / "appdemo.yaml"
    path.write_text(line + "\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="must be true or false"):
        load_config({"APPDEMO_CONFIG": str(path)})


@pytest.mark.parametrize(
    "env",
    [
        {"APPDEMO_PROTOCOL": "udp"},
        {"APPDEMO_EXPORT_INTERVAL_MS": "soon"},
        {"APPDEMO_EXPORT_INTERVAL_MS": "0"},
        {"APPDEMO_CONNECT_TIMEOUT_S": "-1"},
    ],
)
def test_invalid_env_values(env: dict[str, str]) -> None:
    with pytest.raises(ConfigError):
        load_config(env)


def test_with_overrides_skips_none() -> None:
    config = PipelineConfig()
    assert config.with_overrides(endpoint=None) is config
    updated = config.with_overrides(endpoint="other:4317", service_name=None)
    assert updated.endpoint == "other:4317"
    assert updated.service_name == "test-service"
