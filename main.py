# main.py

"""Entry point for the marketplace listing page (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from marketplace.config.logging_config import setup_logging
from marketplace.config.settings import Settings

logger = logging.getLogger("marketplace.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="marketplace",
        description="Marketplace listing page and admin tools.",
    )
    parser.add_argument(
        "listing_id",
        nargs="?",
        default=None,
        help="Listing to open.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["tui", "json", "table"],
        default="tui",
        dest="output_format",
        help="Interactive TUI (default) or headless json/table output.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on the backend.",
    )
    parser.add_argument(
        "--apply-sql",
        nargs="+",
        default=None,
        metavar="FILE",
        dest="sql_files",
        help="Execute SQL files on the backend (needs the service role key).",
    )
    parser.add_argument(
        "--split",
        action="store_true",
        default=False,
        help="With --apply-sql: run each statement separately.",
    )
    parser.add_argument(
        "--rpc",
        choices=sorted(Settings.SQL_RPC_FUNCTIONS),
        default="exec_sql",
        help="With --apply-sql: remote SQL function to call.",
    )
    return parser


def _run_tui(listing_id: str) -> None:
    """Launch the interactive Textual TUI."""
    from marketplace.ui.app import ListingApp

    try:
        app = ListingApp(listing_id)
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("marketplace TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Print a single listing page and exit."""
    from marketplace.cli.runner import show_listing

    exit_code = asyncio.run(
        show_listing(args.listing_id, args.output_format)
    )
    sys.exit(exit_code)


def _run_health_check() -> None:
    """Run backend connectivity health check."""
    from marketplace.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def _run_apply_sql(args: argparse.Namespace) -> None:
    """Apply SQL patch files to the backend."""
    from marketplace.cli.runner import run_apply_sql

    exit_code = run_apply_sql(
        args.sql_files, split=args.split, function=args.rpc
    )
    sys.exit(exit_code)


def main() -> None:
    """Route to admin tools, the TUI, or headless output."""
    parser = _build_parser()
    args = parser.parse_args()

    tui = (
        not args.sql_files
        and not args.health
        and args.output_format == "tui"
    )
    log_file = setup_logging(console=not tui)
    logger.info("marketplace starting, log file: %s", log_file)

    if args.sql_files:
        _run_apply_sql(args)
    elif args.health:
        _run_health_check()
    elif not args.listing_id:
        parser.error("a listing id is required")
    elif args.output_format == "tui":
        _run_tui(args.listing_id)
    else:
        _run_cli(args)


if __name__ == "__main__":
    main()
