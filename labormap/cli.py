"""LaborMap CLI.

Commands:
- init: Initialize database schema
- detect-columns: Show the inferred column mapping of a catalog file
- import-catalog: Import a factory catalog (CSV/XLSX)
- classify: Classify a free-text description
- groups: Group unresolved order items by model/year
- candidates: List or rank catalog candidates for a series context
- catalog-stats: Catalog KPIs and data-quality summary
- rules: Show admission rules
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from pydantic import TypeAdapter
from rich.console import Console
from rich.table import Table

from labormap.config import get_config
from labormap.core.logging import configure_logging
from labormap.db.connection import close_db, init_db
from labormap.db.stores import SqlCatalogStore
from labormap.exceptions import ColumnDetectionError, ConfigurationError
from labormap.grouping.model_groups import build_model_groups, total_pending
from labormap.ingestion.catalog import import_catalog_rows, read_catalog_file
from labormap.ingestion.columns import detect_columns
from labormap.matching.candidates import list_candidates
from labormap.matching.scorer import rank_candidates
from labormap.models import CatalogEntry, ServiceOrder
from labormap.reporting.catalog_metrics import catalog_facets, catalog_stats, data_quality_issues
from labormap.rules.admission import load_rule_set
from labormap.rules.classification import classify, load_classification_rules

app = typer.Typer(
    name="labormap",
    help="LaborMap - Factory operation code reconciliation for service orders",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level"),
):
    configure_logging(log_level)


def _load_catalog(path: Path) -> list[CatalogEntry]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return TypeAdapter(list[CatalogEntry]).validate_python(data)


def _load_orders(path: Path) -> list[ServiceOrder]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return TypeAdapter(list[ServiceOrder]).validate_python(data)


def _load_rules():
    try:
        return load_rule_set(), load_classification_rules()
    except ConfigurationError as e:
        console.print(f"[bold red]✗ Rule configuration invalid:[/bold red] {e}")
        raise typer.Exit(code=1)


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        if drop:
            from labormap.db.connection import get_engine
            from labormap.db.models import Base

            async with get_engine().begin() as conn:
                console.print("[yellow]Dropping existing tables...[/yellow]")
                await conn.run_sync(Base.metadata.drop_all)
        await init_db()
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="detect-columns")
def detect_columns_cmd(
    file: Path = typer.Argument(..., help="Catalog file (CSV/XLSX)"),
):
    """Show which columns hold code, description, series, model and hours."""
    try:
        headers, _ = read_catalog_file(file)
        mapping = detect_columns(headers)
    except (ColumnDetectionError, ValueError) as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)

    table = Table(title=f"Column mapping: {file.name}")
    table.add_column("Field", style="cyan")
    table.add_column("Header", style="green")
    for field, header in mapping.as_dict().items():
        table.add_row(field, header or "[dim]-[/dim]")
    console.print(table)


@app.command(name="import-catalog")
def import_catalog_cmd(
    file: Path = typer.Argument(..., help="Catalog file (CSV/XLSX)"),
    output: Path | None = typer.Option(None, "--out", "-o", help="Write entries as JSON"),
    store: bool = typer.Option(False, "--store", help="Persist entries to the database"),
):
    """Import a factory catalog file."""
    rule_set, classification_rules = _load_rules()
    console.print(
        f"[bold]Importing catalog:[/bold] {file} (rule: {rule_set.active.name})"
    )

    try:
        headers, rows = read_catalog_file(file)
        result = import_catalog_rows(headers, rows, rule_set, classification_rules)
    except (ColumnDetectionError, ValueError) as e:
        console.print(f"[bold red]✗[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(f"  [green]✓[/green] {result.loaded} entries loaded")
    if result.rejected:
        console.print(f"  [yellow]⚠[/yellow] {result.rejected} rows rejected")
        for reason, count in result.rejection_reasons.items():
            console.print(f"      {reason}: {count}", style="dim")

    if output:
        payload = [entry.model_dump(mode="json") for entry in result.entries]
        output.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"\n[green]✓[/green] Entries saved to: {output}")

    if store:
        async def _store():
            await init_db()
            count = await SqlCatalogStore().create_many(result.entries)
            await close_db()
            return count

        count = asyncio.run(_store())
        console.print(f"[green]✓[/green] {count} entries stored")


@app.command(name="classify")
def classify_cmd(
    text: str = typer.Argument(..., help="Free-text description"),
):
    """Classify a description with the ordered keyword rules."""
    _, classification_rules = _load_rules()
    result = classify(text, classification_rules)
    if result is None:
        console.print("[yellow]No classification rule matched[/yellow]")
        return
    console.print(
        f"[bold]{result.category}[/bold] (keyword: {result.keyword}, priority: {result.priority.value})"
    )


@app.command()
def groups(
    orders_file: Path = typer.Argument(..., help="Service orders JSON file"),
):
    """Group unresolved order items by vehicle model and year."""
    rule_set, _ = _load_rules()
    orders = _load_orders(orders_file)
    model_groups = build_model_groups(orders, rule_set.active)

    if not model_groups:
        console.print("[green]No pending items[/green]")
        return

    table = Table(title="Pending items by model")
    table.add_column("Group", style="cyan")
    table.add_column("Items", justify="right", style="green")
    table.add_column("Orders", style="dim")
    for group in model_groups:
        orders_in_group = sorted({g.order_number for g in group.items})
        table.add_row(group.key, str(group.count), ", ".join(orders_in_group))
    console.print(table)
    console.print(f"\n[bold]Total pending:[/bold] {total_pending(model_groups)}")


@app.command()
def candidates(
    catalog_file: Path = typer.Argument(..., help="Catalog JSON file"),
    series: str = typer.Option(..., "--series", "-s", help="Vehicle series context"),
    search: str | None = typer.Option(None, "--search", help="Free-text filter"),
    keywords: list[str] = typer.Option([], "--keyword", "-k", help="Keyword hint (repeatable)"),
):
    """List candidates for a series, or rank them when keywords are given."""
    catalog = _load_catalog(catalog_file)

    table = Table(title=f"Candidates for {series}")
    table.add_column("Factory Code", style="cyan")
    table.add_column("Kind")
    table.add_column("Description")

    if keywords:
        ranked = rank_candidates(catalog, series, keywords)
        table.add_column("Score", justify="right", style="green")
        for candidate in ranked:
            entry = candidate.entry
            table.add_row(entry.factory_code, entry.kind.value, entry.description, str(candidate.match_score))
        count = len(ranked)
    else:
        listed = list_candidates(catalog, series, search)
        for entry in listed:
            table.add_row(entry.factory_code, entry.kind.value, entry.description)
        count = len(listed)

    if count == 0:
        console.print("[yellow]No candidates found[/yellow]")
        return
    console.print(table)


@app.command(name="catalog-stats")
def catalog_stats_cmd(
    catalog_file: Path = typer.Argument(..., help="Catalog JSON file"),
):
    """Show catalog KPIs, facets and entries with data-quality issues."""
    catalog = _load_catalog(catalog_file)
    stats = catalog_stats(catalog)
    facets = catalog_facets(catalog)

    table = Table(title="Catalog")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right", style="green")
    table.add_row("Entries", str(stats.total))
    table.add_row("Linked", str(stats.linked))
    table.add_row("Labor", str(stats.labor))
    table.add_row("Repair", str(stats.repair))
    table.add_row("Health score", f"{stats.health_score}%")
    table.add_row("Series", str(len(facets.series)))
    table.add_row("Categories", str(len(facets.categories)))
    console.print(table)

    flagged = [(e, data_quality_issues(e)) for e in catalog]
    flagged = [(e, issues) for e, issues in flagged if issues]
    if flagged:
        console.print(f"\n[yellow]⚠[/yellow] {len(flagged)} entries with data-quality issues")
        for entry, issues in flagged[:10]:
            console.print(f"  {entry.factory_code}: {', '.join(issues)}", style="dim")


@app.command()
def rules():
    """Show admission rules and the active one."""
    rule_set, classification_rules = _load_rules()

    table = Table(title="Admission rules")
    table.add_column("Active")
    table.add_column("Name", style="cyan")
    table.add_column("Strategy")
    table.add_column("Placeholders")
    for rule in rule_set.rules:
        table.add_row(
            "[green]●[/green]" if rule.active else "",
            rule.name,
            rule.strategy.value,
            ", ".join(rule.placeholder_codes) or "[dim](all codes)[/dim]",
        )
    console.print(table)
    console.print(f"\n{len(classification_rules)} classification rules loaded")


if __name__ == "__main__":
    app()
