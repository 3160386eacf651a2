#!/usr/bin/env python3
"""
Trading Screen Interface - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Starts the screen interface service: REST routes under
/api/trading, the WebSocket push hub at /hub/trading and the
background price simulator.

============================================================
USAGE
============================================================
Direct execution:
    python app.py --port 5000

Without price simulation:
    python app.py --no-simulation

Environment-based configuration (.env is loaded when present):
    SCREEN_PORT=8080 LOG_LEVEL=DEBUG python app.py

============================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

import uvicorn

from core.config import AppConfig
from core.logging_setup import setup_logging
from web_interface.main import VERSION, create_app


# ============================================================
# ARGUMENT PARSING
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="trading-screen-interface",
        description="Trading screen interface server (REST + WebSocket push)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Serve on 0.0.0.0:5000
  %(prog)s --port 8080 --log-level DEBUG
  %(prog)s --no-simulation              # Static prices
        """
    )

    # --------------------------------------------------------
    # Server Options
    # --------------------------------------------------------
    server_group = parser.add_argument_group("Server Options")

    server_group.add_argument(
        "--host",
        type=str,
        default=None,
        help="Interface to bind (default: SCREEN_HOST or 0.0.0.0)",
    )

    server_group.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: SCREEN_PORT or 5000)",
    )

    # --------------------------------------------------------
    # Simulation Options
    # --------------------------------------------------------
    simulation_group = parser.add_argument_group("Simulation Options")

    simulation_group.add_argument(
        "--no-simulation",
        action="store_true",
        help="Disable the background price random walk",
    )

    simulation_group.add_argument(
        "--price-interval",
        type=float,
        default=None,
        help="Seconds between price steps (default: PRICE_UPDATE_INTERVAL or 2.0)",
    )

    # --------------------------------------------------------
    # Logging Options
    # --------------------------------------------------------
    logging_group = parser.add_argument_group("Logging Options")

    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: LOG_LEVEL or INFO)",
    )

    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default=None,
        help="Log output format (default: LOG_FORMAT or text)",
    )

    return parser


def build_config(args: argparse.Namespace) -> AppConfig:
    """Environment configuration with command line overrides applied."""
    config = AppConfig.from_env()

    if args.host is not None:
        config.server.host = args.host
    if args.port is not None:
        config.server.port = args.port
    if args.log_level is not None:
        config.server.log_level = args.log_level
    if args.log_format is not None:
        config.server.log_format = args.log_format
    if args.no_simulation:
        config.simulation.enabled = False
    if args.price_interval is not None:
        config.simulation.price_update_interval_seconds = args.price_interval

    return config


def print_banner(config: AppConfig) -> None:
    """Print startup banner."""
    print()
    print("=" * 60)
    print("  TRADING SCREEN INTERFACE")
    print(f"  Version {VERSION}")
    print("=" * 60)
    print(f"  Listen:     {config.server.host}:{config.server.port}")
    print(f"  Log Level:  {config.server.log_level}")
    print(f"  Simulation: {'ON' if config.simulation.enabled else 'OFF'}")
    if config.simulation.enabled:
        print(f"  Interval:   {config.simulation.price_update_interval_seconds}s")
    print("=" * 60)
    print()


# ============================================================
# MAIN FUNCTION
# ============================================================

def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    config = build_config(args)

    errors = config.validate()
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    setup_logging(
        level=config.server.log_level,
        log_format=config.server.log_format,
        service_name="screen_interface",
    )
    logger = logging.getLogger(__name__)

    print_banner(config)

    app = create_app(config)

    try:
        uvicorn.run(
            app,
            host=config.server.host,
            port=config.server.port,
            log_level=config.server.log_level.lower(),
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    return 0


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
