"""
Mention polling worker.

Runs as a separate process (CLI entrypoint). Builds the app from environment
settings, optionally seeds sample data, starts the ingestion scheduler and
blocks until SIGINT/SIGTERM, then stops the scheduler cleanly (the in-flight
mention finishes first).

Usage:
    python -m tweetonium.agent_worker.runtime          # poll forever
    python -m tweetonium.agent_worker.runtime --once   # one run, report as JSON
"""

from __future__ import annotations

import argparse
import json
import signal
import sys
import threading
from typing import Any

from tweetonium.app import Tweetonium, build_app
from tweetonium.config.env import load_tweetonium_env
from tweetonium.config.settings import get_settings
from tweetonium.core.exceptions import ConfigError
from tweetonium.core.timeouts import shutdown_executor
from tweetonium.logging import configure_logging, get_logger

logger = get_logger(__name__)


def run_once(app: Tweetonium) -> dict[str, Any]:
    report = app.ingest_once()
    return {**report.to_dict(), "stats": app.stats()}


def run_forever(app: Tweetonium, shutdown: threading.Event) -> None:
    """Start the scheduler and block until shutdown is set."""

    def request_shutdown(signum: int, frame: Any) -> None:
        logger.info("runtime_shutdown_requested", signal=signum)
        shutdown.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(sig, request_shutdown)
        except (AttributeError, ValueError):
            # not the main thread, or unsupported on this platform
            pass

    app.start()
    logger.info("runtime_worker_started", **app.stats())
    try:
        while not shutdown.is_set():
            shutdown.wait(1.0)
    except KeyboardInterrupt:
        logger.info("runtime_shutdown_requested", signal="KeyboardInterrupt")
    finally:
        app.close()
        logger.info("runtime_worker_stopped", **app.stats())


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Tweetonium mention polling worker")
    parser.add_argument("--once", action="store_true", help="run a single ingestion and print the report as JSON")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--log-format", choices=("json", "console"), default=None, help="override LOG_FORMAT")
    args = parser.parse_args(argv)

    load_tweetonium_env()
    if args.log_level or args.log_format:
        configure_logging(level=args.log_level, fmt=args.log_format)
    try:
        settings = get_settings()
        app = build_app(settings)
    except ConfigError as e:
        logger.error("runtime_config_invalid", **e.to_dict())
        return 2

    try:
        if args.once:
            try:
                print(json.dumps(run_once(app), indent=2))
            finally:
                app.close()
            return 0
        run_forever(app, threading.Event())
        return 0
    finally:
        shutdown_executor(wait=False)


if __name__ == "__main__":
    sys.exit(main())
