#!/usr/bin/env python3
"""
Run the server with an optional idle timeout.

Usage:

    # Serve forever (idle shutdown disabled — default)
    idle-timeout-server

    # Shut down after 15 minutes without requests
    idle-timeout-server --idle-timeout 900

    # Settings can also come from the environment or a .env file
    IDLE_TIMEOUT=900 PORT=9000 idle-timeout-server
"""

import argparse
import logging

import uvicorn

from idle_timeout.config import Settings
from idle_timeout.main import create_app
from idle_timeout.services.idle_monitor import IdleMonitor, report_idle_timeout


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HTTP server that shuts itself down when idle.")
    # Kept as a string so bad values fall through to Settings and disable the timeout
    parser.add_argument(
        "--idle-timeout",
        metavar="SECONDS",
        help="Shut down the server after this many seconds of inactivity. Set to 0 to disable (default).",
    )
    parser.add_argument("--host", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, help="Port to bind (default: 8000)")
    parser.add_argument("--log-level", choices=["critical", "error", "warning", "info", "debug"])
    return parser


def load_settings(argv: list[str] | None = None) -> Settings:
    args = build_parser().parse_args(argv)
    overrides = {
        name: value
        for name, value in vars(args).items()
        if value is not None
    }
    return Settings(**overrides)


def exit_server(server: uvicorn.Server, timeout_seconds: int) -> None:
    """Idle shutdown action: report on stderr and let `server.run()` return."""
    report_idle_timeout(timeout_seconds)
    server.should_exit = True


def main(argv: list[str] | None = None) -> None:
    config = load_settings(argv)
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # `server` is bound below, before the monitor can ever tick
    monitor = IdleMonitor(shutdown=lambda timeout_seconds: exit_server(server, timeout_seconds))
    app = create_app(config, monitor=monitor)
    server = uvicorn.Server(
        uvicorn.Config(app, host=config.host, port=config.port, log_level=config.log_level.lower())
    )
    server.run()


if __name__ == "__main__":
    main()
