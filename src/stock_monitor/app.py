"""Command line entry point for the stock monitor."""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .api.client import ProductPageClient
from .config import AppConfig, load_config
from .errors import FetchError
from .notifications.base import Notifier, NullNotifier
from .notifications.email_notifier import EmailNotifier
from .scheduler.poller import PollingScheduler
from .services.monitoring_service import MonitoringService
from .storage.repository import JsonStatusRepository
from .web.app import create_app

logger = logging.getLogger(__name__)


def build_service(config: AppConfig) -> MonitoringService:
    """Wire the monitoring service from ``config``."""

    notifier: Notifier = EmailNotifier(config.email) if config.email.enabled else NullNotifier()
    return MonitoringService(
        client=ProductPageClient(timeout=config.request_timeout),
        repository=JsonStatusRepository(config.status_file),
        notifier=notifier,
        products=config.products,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stock-monitor", description="Watch product pages for restocks.")
    parser.add_argument("--status-file", type=Path, help="path of the JSON status file")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("check", help="run a single monitoring pass (default)")

    watch = subparsers.add_parser("watch", help="run monitoring passes repeatedly")
    watch.add_argument("--interval", type=float, help="seconds between passes")
    watch.add_argument("--runs", type=int, help="stop after this many passes")

    serve = subparsers.add_parser("serve", help="serve the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=3000)
    return parser


def run_check(service: MonitoringService) -> int:
    """Run one pass. Returns the process exit code."""

    try:
        service.run_pass()
    except FetchError as exc:
        logger.error("Error during monitoring: %s", exc)
        return 1
    except Exception:
        logger.exception("Unexpected error during monitoring")
        return 1
    return 0


def run_watch(service: MonitoringService, interval: float, runs: Optional[int]) -> int:
    scheduler = PollingScheduler(interval, service.run_pass, max_runs=runs)
    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        logger.info("Monitoring stopped by user")
        scheduler.stop()
        return 0
    return 1 if scheduler.last_error is not None else 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config()
    if args.status_file is not None:
        config = dataclasses.replace(config, status_file=args.status_file)
    service = build_service(config)

    if args.command == "watch":
        interval = args.interval if args.interval is not None else config.poll_interval_seconds
        return run_watch(service, interval, args.runs)
    if args.command == "serve":
        app = create_app(service)
        app.run(host=args.host, port=args.port)
        return 0
    return run_check(service)


if __name__ == "__main__":  # pragma: no cover - manual execution only
    sys.exit(main())
