# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Operational commands: schema creation and expired-session sweeping."""

from __future__ import annotations

import argparse
import time

from authkeeper.container import Container
from authkeeper.shared.config import AppConfig, DatabaseConfig, load_config
from authkeeper.shared.errors.base import AppError
from authkeeper.shared.logging import logger, setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authkeeper", description="Credential store maintenance"
    )
    parser.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this invocation",
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create the users, sessions and reset tables")
    sub.add_parser("sweep", help="End every expired open session once")
    monitor = sub.add_parser("monitor", help="Run the session monitor until interrupted")
    monitor.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between sweeps (default: MONITOR_INTERVAL_SECONDS)",
    )
    return parser


def _resolve_config(args: argparse.Namespace) -> AppConfig:
    config = load_config()
    updates: dict[str, object] = {}
    if args.database_url:
        updates["database"] = DatabaseConfig(url=args.database_url)
    if getattr(args, "interval", None):
        updates["monitor"] = config.monitor.model_copy(
            update={"interval_seconds": args.interval}
        )
    return config.model_copy(update=updates) if updates else config


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = _resolve_config(args)
    setup_logging(config.log_level, log_file=config.log_file, debug_mode=config.debug_logging)

    container = Container(config)
    try:
        if args.command == "init-db":
            container.init_db()
            print("Database schema ensured")
            return 0

        if args.command == "sweep":
            try:
                closed = container.session_monitor.sweep_once()
            except AppError as exc:
                print(f"Sweep failed: {exc.reason} ({exc.code})")
                return 1
            print(f"Ended {closed} expired session(s)")
            return 0

        monitor = container.session_monitor
        monitor.start()
        try:
            while monitor.is_running:
                time.sleep(0.5)
        except KeyboardInterrupt:
            logger.info("monitor: interrupted")
        return 0
    finally:
        container.close()


if __name__ == "__main__":
    raise SystemExit(main())
