# src/cli/runner.py

"""Headless CLI commands built on the async orchestrator."""

import json
import logging
import sys
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.models.comparison import ComparisonResult
from src.models.errors import GroceryCompareError
from src.models.product import CanonicalProduct, Store
from src.services.search_orchestrator import SearchOrchestrator
from src.storage.file_manager import (
    FileManager,
    comparison_to_dict,
    product_to_dict,
    search_to_dict,
)

logger = logging.getLogger("grocery_compare.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

_EXIT_CODES: dict[int, int] = {200: 0, 500: 1, 400: 2, 404: 3}


def exit_code_for(status: int) -> int:
    """Map a response status to a process exit code."""
    return _EXIT_CODES.get(status, 1)


def _dump_json(data: Any) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _price_str(p: CanonicalProduct) -> str:
    return f"{p.currency} {p.price:,.2f}" if p.price > 0 else "N/A"


def _print_products(
    products: list[CanonicalProduct], title: str,
) -> None:
    """Render a Rich table of products to stdout."""
    table = Table(title=title, show_lines=True, title_style="bold cyan")
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=60)
    table.add_column("Brand")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Store", style="magenta")
    table.add_column("Barcode", style="dim")

    for idx, p in enumerate(products, 1):
        table.add_row(
            str(idx),
            p.name[:60],
            p.brand or "-",
            _price_str(p),
            p.store.label,
            p.barcode or "-",
        )
    Console().print(table)


def _print_comparison(result: ComparisonResult) -> None:
    """One row per store with its cheapest listing."""
    table = Table(
        title=f"Price comparison: {result.query}",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Store", style="magenta")
    table.add_column("Cheapest listing", max_width=60)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Listings", justify="right", style="dim")

    best_store = result.best_price.store if result.best_price else None
    for store, products in result.products_by_store.items():
        priced = [p for p in products if p.price > 0]
        cheapest = min(priced, key=lambda p: p.price) if priced else None
        label = store.label
        if store is best_store:
            label = f"[bold green]{label} ★[/bold green]"
        elif store in result.failed_stores:
            label = f"[red]{label}[/red]"
        table.add_row(
            label,
            cheapest.name[:60] if cheapest else "-",
            _price_str(cheapest) if cheapest else "-",
            str(len(products)),
        )
    Console().print(table)

    if result.best_price is not None:
        bp = result.best_price
        _err.print(
            f"[green]Best price: {bp.store.label} "
            f"{Settings.CURRENCY} {bp.price:,.2f}"
            f" (saves {bp.savings:,.2f}, {bp.savings_percentage}%)[/green]"
        )
    else:
        _err.print("[yellow]No store returned a priced product.[/yellow]")


def _report_errors(errors: list[str]) -> None:
    for error_msg in errors:
        _err.print(f"[dim red]{error_msg}[/dim red]")


async def cli_search(
    query: str,
    store: str | None,
    page: int,
    page_size: int,
    output_format: str,
) -> int:
    """Run a ranked search and return an exit code."""
    orchestrator = SearchOrchestrator()
    _err.print(
        f"[bold]Searching:[/bold] {query}  "
        f"[dim]stores={store or 'all'}[/dim]"
    )
    try:
        response = await orchestrator.search(store, query, page, page_size)
    except GroceryCompareError as exc:
        _err.print(f"[red]{exc}[/red]")
        return exit_code_for(exc.status_code)

    _report_errors(response.errors)
    _err.print(
        f"[green]✓ {response.total} products"
        f"{' (more available)' if response.has_more else ''}[/green]"
    )
    if output_format == "table":
        _print_products(response.products, "Search Results")
    else:
        _dump_json(search_to_dict(response))
    return exit_code_for(response.status)


async def cli_compare(
    name: str,
    barcode: str | None,
    original_store: str | None,
    output_format: str,
    save: bool,
) -> int:
    """Compare one product across every store and return an exit code."""
    orchestrator = SearchOrchestrator()
    _err.print(f"[bold]Comparing:[/bold] {name}")
    try:
        hint = Store.parse(original_store) if original_store else None
        result = await orchestrator.compare(name, barcode, hint)
    except GroceryCompareError as exc:
        _err.print(f"[red]{exc}[/red]")
        return exit_code_for(exc.status_code)

    _report_errors(result.errors)
    if save:
        try:
            path = FileManager().save_comparison(result)
            _err.print(f"[dim]Saved → {path}[/dim]")
        except OSError as exc:
            logger.error("Save failed: %s", exc, exc_info=True)
            _err.print(f"[red]Save failed: {exc}[/red]")

    if output_format == "table":
        _print_comparison(result)
    else:
        _dump_json(comparison_to_dict(result))
    return exit_code_for(result.status)


async def cli_lookup(
    code: str, store: str | None, output_format: str,
) -> int:
    """Look up a barcode and return an exit code."""
    orchestrator = SearchOrchestrator()
    _err.print(f"[bold]Looking up barcode:[/bold] {code}")
    try:
        product = await orchestrator.lookup_by_code(store, code)
    except GroceryCompareError as exc:
        _err.print(f"[yellow]{exc}[/yellow]")
        return exit_code_for(exc.status_code)

    if output_format == "table":
        _print_products([product], "Barcode Match")
    else:
        _dump_json(product_to_dict(product))
    return 0


def run_dump_automercado(
    output: str | None,
    hits_per_page: int,
    max_pages: int | None,
) -> int:
    """Page through the whole Automercado catalog into one JSON file."""
    from rich.progress import Progress

    from src.scrapers.automercado_scraper import AutomercadoScraper

    client = AutomercadoScraper()
    file_manager = FileManager()
    target = Path(output) if output else None

    products: list[dict[str, Any]] = []
    page = 0
    total_pages = 0
    start = time.monotonic()

    _err.print("[bold]Dumping Automercado catalog...[/bold]")
    try:
        with Progress(console=_err) as progress:
            task = progress.add_task("Fetching pages...", total=None)
            has_more = True
            while has_more and (max_pages is None or page < max_pages):
                data = client.dump_catalog(page, hits_per_page)
                pagination = data["pagination"]
                if page == 0:
                    total_pages = pagination["totalPages"]
                    limit = (
                        min(total_pages, max_pages)
                        if max_pages is not None
                        else total_pages
                    )
                    progress.update(task, total=limit)
                    _err.print(
                        f"[dim]{pagination['totalHits']:,} products "
                        f"in {total_pages} pages[/dim]"
                    )
                products.extend(data["hits"])
                has_more = pagination["hasMore"]
                page += 1
                progress.advance(task)
                if has_more:
                    time.sleep(0.1)
    except GroceryCompareError as exc:
        logger.error("Catalog dump failed on page %d: %s", page, exc)
        _err.print(f"[red]Error during dump: {exc}[/red]")
        if products:
            path = file_manager.save_catalog_dump(
                products,
                {"pagesFetched": page, "error": str(exc)},
                target,
                partial=True,
            )
            _err.print(f"[yellow]Partial results saved → {path}[/yellow]")
        return 1

    duration = round(time.monotonic() - start, 2)
    path = file_manager.save_catalog_dump(
        products,
        {
            "pagesFetched": page,
            "hitsPerPage": hits_per_page,
            "durationSeconds": duration,
        },
        target,
    )
    _err.print(
        f"[green]✓ Saved {len(products):,} products"
        f" from {page} pages → {path}[/green]"
    )
    return 0


async def run_health_check() -> int:
    """Run a connectivity health check on all stores."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running store health check...[/bold]")
    results = await HealthChecker().check_all()

    table = Table(
        title="Store Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Store", style="bold")
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

        latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "-"
        table.add_row(r.source_id, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
