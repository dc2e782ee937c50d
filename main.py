# main.py

"""Entry point for dealfeed (HTTP server or one-shot CLI commands)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("dealfeed.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    parser = argparse.ArgumentParser(
        prog="dealfeed",
        description="Marketplace deal aggregator with affiliate links.",
        epilog=f"Configured sources: {valid_ids}",
    )
    parser.add_argument(
        "--host",
        default=Settings.HOST,
        help=f"Bind address for the server (default: {Settings.HOST}).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=Settings.PORT,
        help=f"Port for the server (default: {Settings.PORT}).",
    )
    parser.add_argument(
        "--snapshot",
        nargs="?",
        const="",
        default=None,
        metavar="PATH",
        help="Scrape once, write the snapshot JSON and exit.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on all sources.",
    )
    return parser


def _run_snapshot(output: str) -> None:
    """One-shot scrape into the snapshot file."""
    from src.cli.runner import run_snapshot

    exit_code = asyncio.run(run_snapshot(output or None))
    sys.exit(exit_code)


def _run_health_check() -> None:
    """Run source connectivity health check."""
    from src.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def _run_server(args: argparse.Namespace) -> None:
    from src.cli.runner import run_server

    try:
        run_server(args.host, args.port)
    except Exception:
        logger.critical("Fatal error while serving", exc_info=True)
        raise
    finally:
        logger.info("dealfeed server shutting down")


def main() -> None:
    """Route to the server (default) or a one-shot command."""
    parser = _build_parser()
    args = parser.parse_args()

    serving = args.snapshot is None and not args.health
    log_file = setup_logging(
        console_level=logging.INFO if serving else logging.WARNING
    )
    logger.info("dealfeed starting, log file: %s", log_file)

    if args.health:
        _run_health_check()
    elif args.snapshot is not None:
        _run_snapshot(args.snapshot)
    else:
        _run_server(args)


if __name__ == "__main__":
    main()
