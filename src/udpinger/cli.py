#!/usr/bin/env python3
# cli.py — Command-line entry point for udpinger

import argparse
import asyncio
import logging
import sys

from udpinger.core import Pinger
from udpinger.logging_config import setup_logging
from udpinger.models import ConfigError, RunConfig
from udpinger.utils import resolve_host


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="udpinger",
        description="UDP ping client: timed probes at a fixed rate, with RTT and loss statistics",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    # Target & schedule (all required)
    parser.add_argument("--server_ip", required=True, help="Echo responder host name or IP address")
    parser.add_argument("--server_port", required=True, type=int, help="Echo responder UDP port")
    parser.add_argument("--count", required=True, type=int, help="Number of probes to send")
    parser.add_argument("--period", required=True, type=int, help="Interval between probes (ms)")
    parser.add_argument("--timeout", required=True, type=int, help="Per-probe reply deadline (ms)")

    # Output
    parser.add_argument(
        "--histogram",
        action="store_true",
        help="Print an RTT histogram after the summary",
    )
    parser.add_argument(
        "--timeline",
        action="store_true",
        help="Print a per-probe send/reply timeline after the summary",
    )
    parser.add_argument(
        "--progress",
        action="store_true",
        help="Show a progress bar while probes are in flight",
    )
    parser.add_argument(
        "--json-out",
        type=str,
        default=None,
        help="Optional file to write the summary and per-probe results to (JSON)",
    )

    # Logging & Debugging
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug-level logging",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional file to write logs to (e.g., udpinger.log)",
    )

    return parser


def parse_args(argv=None):
    """Parse and validate arguments; exits with usage on any configuration error."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        address = resolve_host(args.server_ip, args.server_port)
        config = RunConfig(
            target_address=address,
            target_port=args.server_port,
            count=args.count,
            period_ms=args.period,
            timeout_ms=args.timeout,
        )
    except ConfigError as e:
        parser.error(str(e))
    return args, config


async def run(argv=None):
    args, config = parse_args(argv)

    log_level = "DEBUG" if args.debug else "WARNING"
    setup_logging(level=log_level, log_file=args.log_file)

    pinger = Pinger(
        config,
        use_progress_bar=args.progress,
        show_histogram=args.histogram,
        show_timeline=args.timeline,
        json_out=args.json_out,
        handle_signals=True,
    )
    logging.info(
        f"Starting udpinger against {config.target_address}:{config.target_port} | "
        f"count={config.count} | period={config.period_ms}ms | timeout={config.timeout_ms}ms"
    )
    return await pinger.run()


def main(argv=None):
    asyncio.run(run(argv))
    return 0


if __name__ == "__main__":
    sys.exit(main())
