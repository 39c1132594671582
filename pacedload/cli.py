#!/usr/bin/env python3
"""Command line entry point for the paced load generator.

Order of operations: parse arguments, configure logging, validate the run
configuration, decode the payload, check capacity, then hand over to the
supervisor. Everything before the supervisor is synchronous and performs no
network I/O, so configuration problems never leave half-open connections.
"""

import argparse
import json
import sys
from typing import List, Optional

import structlog

from .common.config import LoadGenSettings, build_load_config, load_settings
from .common.errors import ConfigurationError
from .common.logging import configure_logging
from .common.metrics import LoadMetrics
from .common.payload import Payload
from .engine.capacity import check_capacity
from .engine.outcome import RunReport
from .engine.supervisor import ClientSupervisor
from .performance.profiler import SystemProfiler
from .performance.stats import summarize_run

logger = structlog.get_logger("cli")


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {number}")
    return number


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {number}")
    return number


def port_number(value: str) -> int:
    number = int(value)
    if not 1 <= number <= 65535:
        raise argparse.ArgumentTypeError(f"must be a port in 1..65535, got {number}")
    return number


def build_parser(settings: LoadGenSettings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pacedload",
        description="Open N connections and send a fixed payload on each at a steady rate",
    )
    parser.add_argument(
        "-c", "--client-count", type=_positive_int, default=1,
        help="Number of clients; must be below the number of available cores",
    )
    parser.add_argument(
        "--request-count", type=_non_negative_int, required=True,
        help="Number of messages to send per client",
    )
    parser.add_argument(
        "-r", "--rate", type=_positive_int, required=True,
        help="Number of messages to send per second, per client",
    )
    parser.add_argument("--host", default=None, help=f"Target host (default {settings.target_host})")
    parser.add_argument("--port", type=port_number, default=None, help=f"Target port (default {settings.target_port})")
    parser.add_argument(
        "--drain-seconds", type=float, default=None,
        help=f"Idle hold after the last send (default {settings.drain_seconds})",
    )

    payload = parser.add_mutually_exclusive_group()
    payload.add_argument("--payload-hex", default=None, help="Hex-encoded payload")
    payload.add_argument("--payload-file", default=None, help="File holding the raw payload bytes")

    parser.add_argument("--metrics-port", type=port_number, default=settings.metrics_port,
                        help="Expose Prometheus metrics on this port")
    parser.add_argument("--profile", action="store_true", help="Sample process resource usage")
    parser.add_argument("--json", action="store_true",
                        help="Print the full run report as JSON instead of the summary line")
    parser.add_argument("--report-json", default=None, metavar="PATH",
                        help="Write the full run report as JSON to PATH")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level")
    parser.add_argument("--log-format", default=settings.log_format, choices=["console", "json"])
    return parser


def _load_payload(args: argparse.Namespace, settings: LoadGenSettings) -> Payload:
    if args.payload_file:
        return Payload.from_file(args.payload_file)
    return Payload.from_hex(args.payload_hex or settings.payload_hex)


def _report_data(report: RunReport, profile: Optional[dict]) -> dict:
    data = report.to_dict()
    data["summary"] = summarize_run(report)
    if profile is not None:
        data["profile"] = profile
    return data


def _write_report_json(path: str, data: dict) -> None:
    with open(path, "w") as f:
        json.dump(data, f, indent=2)
    logger.info("Run report written", path=path)


def _print_report(report: RunReport) -> None:
    summary = summarize_run(report)
    for outcome in report.failed:
        print(
            f"Client {outcome.client_id} {outcome.status.value} after "
            f"{outcome.sent_count} messages: {outcome.error}",
            file=sys.stderr,
        )
    print(
        f"{summary['completed']}/{summary['sessions']} clients completed, "
        f"{summary['total_sent']} messages sent in {summary['wall_seconds']:.3f}s"
    )


def main(argv: Optional[List[str]] = None) -> int:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 1
    args = build_parser(settings).parse_args(argv)

    try:
        configure_logging("pacedload", args.log_level, args.log_format)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 1

    try:
        config = build_load_config(
            settings,
            client_count=args.client_count,
            request_count=args.request_count,
            rate=args.rate,
            target_host=args.host,
            target_port=args.port,
            drain_seconds=args.drain_seconds,
        )
        payload = _load_payload(args, settings)
        check_capacity(config.client_count)
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        return 1

    logger.info("Payload ready", size_bytes=len(payload))

    metrics = LoadMetrics()
    if args.metrics_port:
        metrics.serve(args.metrics_port)

    profiler = SystemProfiler(interval=0.5) if args.profile else None
    if profiler:
        profiler.start()
    try:
        report = ClientSupervisor(config, payload, metrics=metrics).run()
    finally:
        if profiler:
            profiler.stop()

    data = _report_data(report, profiler.get_summary_stats() if profiler else None)
    if args.json:
        print(json.dumps(data, indent=2))
    else:
        _print_report(report)
    if args.report_json:
        _write_report_json(args.report_json, data)
    return 0


if __name__ == "__main__":
    sys.exit(main())
