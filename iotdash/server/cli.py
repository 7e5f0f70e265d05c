"""Command-line interface to start the dashboard server.

Without ``--http`` the server runs the metric/alarm tick in the foreground
and logs fired alarms; with ``--http`` it serves the FastAPI transport via
uvicorn.

Usage
-----
    iotdash --config dashboards.json
    iotdash --config dashboards.json --http --port 8080
"""

from __future__ import annotations

import argparse
import asyncio
import importlib
from pathlib import Path
from typing import List, Optional

from ..config.models import AppConfig, EnvSettings
from ..observability import setup_logging
from .app import DashboardServer
from .http import create_app


def _init_from_config(config_path: Path, settings: EnvSettings) -> DashboardServer:
    """Build a server from a JSON catalog file.

    Parameters
    ----------
    config_path: Path
        Filesystem path to the JSON configuration file.
    settings: EnvSettings
        Runtime settings (tick period, capacities).
    """
    return DashboardServer(AppConfig.load(config_path), settings)


async def _run(server: DashboardServer) -> None:
    """Start the server and block until interrupted."""
    await server.start()
    try:
        while True:
            await asyncio.sleep(3600)
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await server.stop()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="IoT dashboard server")
    parser.add_argument("--config", help="Path to JSON dashboard catalog")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=[
            "CRITICAL",
            "ERROR",
            "WARNING",
            "INFO",
            "DEBUG",
        ],
        help="Logging level (overrides environment)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (once sets DEBUG)",
    )
    parser.add_argument(
        "--http",
        action="store_true",
        help="Run HTTP server (requires fastapi/uvicorn)",
    )
    parser.add_argument(
        "--host", default="127.0.0.1", help="HTTP bind host (default 127.0.0.1)"
    )
    parser.add_argument("--port", type=int, default=8080, help="HTTP port")
    return parser


def effective_log_level(args: argparse.Namespace, settings: EnvSettings) -> str:
    """CLI flag first, then ``-v``, then IOTDASH_LOG_LEVEL."""
    if args.log_level:
        return args.log_level
    if args.verbose > 0:
        return "DEBUG"
    return settings.log_level.upper()


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entrypoint for running the dashboard server.

    Provides two modes:
    - foreground tick loop (default), which requires --config
    - HTTP mode with FastAPI when --http is specified
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = EnvSettings()
    level = effective_log_level(args, settings)
    # Apply early so subsequent imports use configured level
    setup_logging(level)

    config_path = Path(args.config) if args.config else None
    if args.http:
        # Lazy import uvicorn only for HTTP mode
        uvicorn = importlib.import_module("uvicorn")
        app = create_app(config_path=config_path)
        uvicorn.run(
            app,
            host=args.host,
            port=args.port,  # type: ignore[attr-defined]
            log_level=level.lower(),
        )
        return

    if config_path is None:
        parser.error("--config is required unless --http is used")
    asyncio.run(_run(_init_from_config(config_path, settings)))


if __name__ == "__main__":  # pragma: no cover
    main()
