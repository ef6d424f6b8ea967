"""
Command-line interface for appdemo.

Provides commands for:
- Running the nested synthetic workload against an OTLP collector
- Showing the effective configuration
"""

import argparse
import logging
import signal
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from .config import SUPPORTED_PROTOCOLS, PipelineConfig, load_config
from .errors import AppDemoError
from .exporters.console_exporter import create_console_exporters
from .pipeline import create_pipeline
from .statistics import LATENCY_BOUNDS_MS
from .workload.simulator import WorkloadSimulator

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="appdemo",
        description="Synthetic nested workload generator for an OTLP tracing pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run forever against the default collector (0.0.0.0:55680, gRPC)
  appdemo run

  # Run 5 iterations with a fixed seed, printing spans and metrics locally
  appdemo run --iterations 5 --seed 42 --console

  # Show the effective configuration
  appdemo config
        """,
    )

    parser.add_argument(
        "--endpoint",
        type=str,
        default=None,
        help="Collector address (default: 0.0.0.0:55680, or APPDEMO_ENDPOINT)",
    )
    parser.add_argument(
        "--protocol",
        type=str,
        choices=SUPPORTED_PROTOCOLS,
        default=None,
        help="OTLP protocol (default: grpc, or APPDEMO_PROTOCOL)",
    )
    parser.add_argument(
        "--service-name",
        type=str,
        default=None,
        help="Service name for telemetry (default: test-service)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Diagnostic log level on stderr (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    run_parser = subparsers.add_parser("run", help="Run the nested workload")
    # Repeated so options work after the subcommand; SUPPRESS keeps the global value otherwise.
    run_parser.add_argument(
        "--endpoint", type=str, default=argparse.SUPPRESS, help=argparse.SUPPRESS
    )
    run_parser.add_argument(
        "--protocol",
        type=str,
        choices=SUPPORTED_PROTOCOLS,
        default=argparse.SUPPRESS,
        help=argparse.SUPPRESS,
    )
    run_parser.add_argument(
        "--service-name", type=str, default=argparse.SUPPRESS, help=argparse.SUPPRESS
    )
    run_parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Stop after this many iterations (default: run until interrupted)",
    )
    run_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random generator (default: current time)",
    )
    run_parser.add_argument(
        "--console",
        action="store_true",
        help="Print spans and metrics to stdout instead of exporting over OTLP",
    )
    run_parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Do not block until the collector is reachable",
    )

    subparsers.add_parser("config", help="Show the effective configuration")

    return parser


def _resolve_config(args: argparse.Namespace) -> PipelineConfig:
    config = load_config()
    return config.with_overrides(
        endpoint=getattr(args, "endpoint", None),
        protocol=getattr(args, "protocol", None),
        service_name=getattr(args, "service_name", None),
        wait_for_collector=False if getattr(args, "no_wait", False) else None,
    )


@contextmanager
def _stop_on_signals(stop_event: threading.Event) -> Iterator[None]:
    """Turn SIGINT/SIGTERM into a stop request for the workload loop."""

    def _request_stop(signum, frame):
        if stop_event.is_set():
            return
        logger.info(
            "Received %s; stopping after the current iteration",
            signal.Signals(signum).name,
        )
        stop_event.set()

    previous = {
        sig: signal.signal(sig, _request_stop) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def cmd_run(args: argparse.Namespace) -> int:
    """Run the nested workload until stopped or the iteration limit is reached."""
    config = _resolve_config(args)

    print("Starting nested workload generation...")
    if args.console:
        print("   Output: console")
    else:
        print(f"   Endpoint: {config.endpoint} ({config.protocol})")
    print(f"   Service: {config.service_name}")
    if args.iterations is not None:
        print(f"   Iterations: {args.iterations}")
    if args.seed is not None:
        print(f"   Seed: {args.seed}")
    print(f"   Latency bounds (ms, by unix time mod 5): {', '.join(map(str, LATENCY_BOUNDS_MS))}")
    print()

    span_exporter = metric_exporter = None
    if args.console:
        span_exporter, metric_exporter = create_console_exporters()

    pipeline = create_pipeline(
        config,
        span_exporter=span_exporter,
        metric_exporter=metric_exporter,
        install_globals=True,
    )

    stop_event = threading.Event()
    try:
        simulator = WorkloadSimulator.from_pipeline(pipeline, seed=args.seed)
        with _stop_on_signals(stop_event):
            completed = simulator.run(iterations=args.iterations, stop_event=stop_event)
    finally:
        pipeline.shutdown()

    print()
    print(f"Completed {completed} iterations")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show the effective configuration."""
    config = _resolve_config(args)
    print("Effective configuration:")
    print(f"   Endpoint: {config.endpoint}")
    print(f"   Protocol: {config.protocol} (insecure={config.insecure})")
    print(f"   Service: {config.service_name}")
    print(f"   Tracer / meter: {config.tracer_name} / {config.meter_name}")
    print(f"   Metric export interval: {config.export_interval_ms}ms")
    print(
        f"   Wait for collector: {config.wait_for_collector} "
        f"(timeout {config.connect_timeout_s:g}s)"
    )
    print(f"   Labels: {', '.join(f'{k}={v}' for k, v in config.labels)}")
    return 0


def main(argv: list[str] | None = None):
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=_LOG_FORMAT)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        if args.command == "run":
            code = cmd_run(args)
        elif args.command == "config":
            code = cmd_config(args)
        else:
            parser.print_help()
            code = 1
    except AppDemoError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
