# marketplace/cli/runner.py

"""Headless CLI runners: listing view, health check, SQL deployment."""

import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from marketplace.config.settings import Settings
from marketplace.models.listing import Listing
from marketplace.models.rating import RatingSummary
from marketplace.services.backend_client import BackendClient
from marketplace.services.listing_page import (
    FAILED_MESSAGE,
    ListingPageController,
    PagePhase,
)
from marketplace.ui.render import format_price, render_rating

logger = logging.getLogger("marketplace.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def build_client(api_key: str | None = None) -> BackendClient:
    """Create a backend client.

    Raises ``SystemExit`` when the backend is not configured.
    """
    try:
        return BackendClient(api_key=api_key)
    except ValueError as exc:
        _err.print(f"[red]{exc}[/red]")
        raise SystemExit(1) from exc


def _page_to_dict(
    listing: Listing, rating: RatingSummary,
) -> dict[str, object]:
    """Serialise a loaded page to plain dicts for JSON output."""
    return {
        "listing": {
            "id": listing.id,
            "title": listing.title,
            "seller_id": listing.seller_id,
            "seller_name": listing.seller_name,
            "price": listing.price,
            "currency": listing.currency,
            "description": listing.description,
            "category": listing.category,
            "status": listing.status,
            "badges": listing.badges(),
        },
        "rating": {
            "rating": rating.rating,
            "count": rating.count,
        },
    }


def _print_listing(listing: Listing, rating: RatingSummary) -> None:
    """Render a Rich table with the loaded listing to stdout."""
    table = Table(
        title=listing.title,
        show_header=False,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Field", style="bold")
    table.add_column("Value", overflow="fold")

    table.add_row("ID", listing.id)
    table.add_row("Price", format_price(listing))
    table.add_row("Rating", render_rating(rating))
    table.add_row("Badges", ", ".join(listing.badges()) or "—")
    table.add_row(
        "Seller", listing.seller_name or listing.seller_id or "—"
    )
    table.add_row("Category", listing.category or "—")
    table.add_row("Description", listing.description or "—")

    Console().print(table)


async def show_listing(
    listing_id: str,
    output_format: str,
    client: BackendClient | None = None,
) -> int:
    """Load one listing page and print it; returns an exit code."""
    controller = ListingPageController(client or build_client())
    state = await controller.initialize(listing_id)

    listing = state.listing
    if state.phase is not PagePhase.LOADED or listing is None:
        _err.print(f"[red]{FAILED_MESSAGE}[/red]")
        if state.error is not None:
            _err.print(f"[dim]{state.error}[/dim]")
        return 1

    if output_format == "table":
        _print_listing(listing, state.rating)
    else:
        json.dump(
            _page_to_dict(listing, state.rating),
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


async def run_health_check(client: BackendClient | None = None) -> int:
    """Run connectivity health check against the backend."""
    from marketplace.services.health_checker import HealthChecker

    _err.print("[bold]Running backend health check...[/bold]")
    checker = HealthChecker(client or build_client())
    results = await checker.check_all()

    table = Table(
        title="Backend Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Probe", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.probe_id, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0


def run_apply_sql(
    paths: list[str],
    split: bool = False,
    function: str = "exec_sql",
    client: BackendClient | None = None,
) -> int:
    """Apply SQL files with the service role key; returns an exit code."""
    from marketplace.admin.sql_deployer import SqlDeployer

    if client is None:
        service_key = Settings.SUPABASE_SERVICE_ROLE_KEY
        if not service_key:
            _err.print(
                "[red]SUPABASE_SERVICE_ROLE_KEY is required for "
                "admin operations.[/red]"
            )
            return 1
        client = build_client(api_key=service_key)

    deployer = SqlDeployer(client)
    any_failed = False
    for raw_path in paths:
        path = Path(raw_path)
        _err.print(f"[bold]Applying {path}...[/bold]")
        try:
            report = deployer.apply_file(
                path, split=split, function=function
            )
        except OSError as exc:
            logger.error("Cannot read %s: %s", path, exc, exc_info=True)
            _err.print(f"[red]Cannot read {path}: {exc}[/red]")
            any_failed = True
            continue

        for failure in report.failures:
            _err.print(f"[red]❌ {failure}[/red]")
        if report.ok:
            _err.print(
                f"[green]✓ {path.name}: {report.executed} "
                f"statement(s) executed[/green]"
            )
        else:
            any_failed = True
            _err.print(
                f"[yellow]{path.name}: {report.executed} executed, "
                f"{len(report.failures)} failed[/yellow]"
            )

    return 1 if any_failed else 0
