"""Tests for the appdemo command-line interface."""

import signal

import pytest

from appdemo import cli
from appdemo import pipeline as pipeline_module


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch) -> None:
    """No real sleeping, no process-wide provider registration, no config env leaking in."""
    monkeypatch.setattr("appdemo.workload.simulator.time.sleep", lambda seconds: None)
    monkeypatch.setattr(pipeline_module.TelemetryPipeline, "install_globals", lambda self: None)
    for name in (
        "APPDEMO_CONFIG",
        "APPDEMO_ENDPOINT",
        "APPDEMO_PROTOCOL",
        "APPDEMO_SERVICE_NAME",
        "APPDEMO_EXPORT_INTERVAL_MS",
        "APPDEMO_CONNECT_TIMEOUT_S",
    ):
        monkeypatch.delenv(name, raising=False)


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(argv)
    return excinfo.value.code


def test_run_console_iterations(capsys) -> None:
    code = _run(["run", "--iterations", "2", "--seed", "7", "--console"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Output: console" in out
    assert "Completed 2 iterations" in out
    latency_lines = [line for line in out.splitlines() if line.startswith("Latency: ")]
    assert len(latency_lines) == 4


def test_unreachable_collector_exits_before_loop(monkeypatch, capsys) -> None:
    def unreachable(endpoint, **kwargs):
        raise ConnectionError(f"collector at {endpoint} not reachable")

    monkeypatch.setattr(pipeline_module, "wait_for_collector", unreachable)

    code = _run(["run", "--iterations", "1"])
    captured = capsys.readouterr()

    assert code == 1
    assert "failed to create exporter" in captured.err
    assert "0.0.0.0:55680" in captured.err
    assert "Latency:" not in captured.out
    assert "Completed" not in captured.out


def test_sigterm_stops_after_current_iteration(monkeypatch, capsys) -> None:
    """SIGTERM mid-iteration ends the loop once that iteration has reported."""
    calls = []

    def sleep(seconds: float) -> None:
        calls.append(seconds)
        if len(calls) == 1:
            signal.raise_signal(signal.SIGTERM)

    monkeypatch.setattr("appdemo.workload.simulator.time.sleep", sleep)
    previous = signal.getsignal(signal.SIGTERM)

    code = _run(["run", "--console", "--seed", "3"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Completed 1 iterations" in out
    assert len(calls) == 2
    assert signal.getsignal(signal.SIGTERM) is previous


def test_config_command_shows_overrides(monkeypatch, capsys) -> None:
    monkeypatch.setenv("APPDEMO_SERVICE_NAME", "from-env")
    code = _run(["--endpoint", "collector:4317", "config"])
    out = capsys.readouterr().out

    assert code == 0
    assert "Endpoint: collector:4317" in out
    assert "Service: from-env" in out
    assert "Labels: method=repl, client=cli" in out


def test_global_options_survive_subcommand(capsys) -> None:
    """Options given before `run` are not reset by the subcommand's copies."""
    args = cli.create_parser().parse_args(["--endpoint", "a:1", "--service-name", "svc", "run"])
    config = cli._resolve_config(args)
    assert config.endpoint == "a:1"
    assert config.service_name == "svc"

    args = cli.create_parser().parse_args(["run", "--endpoint", "b:2", "--no-wait"])
    config = cli._resolve_config(args)
    assert config.endpoint == "b:2"
    assert config.wait_for_collector is False


def test_invalid_env_is_reported(monkeypatch, capsys) -> None:
    monkeypatch.setenv("APPDEMO_PROTOCOL", "udp")
    code = _run(["config"])
    assert code == 1
    assert "APPDEMO_PROTOCOL" in capsys.readouterr().err


def test_no_command_prints_help(capsys) -> None:
    code = _run([])
    assert code == 0
    assert "usage: appdemo" in capsys.readouterr().out
