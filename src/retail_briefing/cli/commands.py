"""CLI command definitions for the daily retail briefing."""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from retail_briefing.config import Config
from retail_briefing.domain.models.briefing import Briefing
from retail_briefing.settings.loader import load_settings
from retail_briefing.utils.logging import configure_logging
from retail_briefing.workflows.briefing import BriefingWorkflow, default_briefing_date

console = Console()
app = typer.Typer(help="Assemble the daily multi-branch retail briefing from the terminal.")


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config


def _init_context(debug_override: Optional[bool] = None) -> AppContext:
    """Create a context with configuration and logging."""
    config = load_settings(debug_override)
    configure_logging(debug=config.debug)
    config.ensure_directories()
    return AppContext(config=config)


def _parse_date(value: Optional[str]) -> date:
    if value is None:
        return default_briefing_date()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}") from exc


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
) -> None:
    """Attach the lazily constructed application context to Typer."""
    ctx.obj = _init_context(debug_override=debug)


@app.command()
def generate(
    ctx: typer.Context,
    day: Optional[str] = typer.Option(
        None,
        "--date",
        help="Briefing date (YYYY-MM-DD); defaults to yesterday. Live weather is only fetched for today's date.",
    ),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Persist the merged briefing to JSON."),
) -> None:
    """Run every briefing section for one date and present the outcome."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    report_date = _parse_date(day)
    console.rule(f"Briefing for {report_date.isoformat()}")

    workflow = BriefingWorkflow(context.config)
    with console.status("[bold cyan]Gathering sections..."):
        briefing = asyncio.run(_run_and_close(workflow, report_date))

    _print_sales(briefing)
    _print_context(briefing)

    if briefing.errors:
        console.print(f"[yellow]Completed with errors: {briefing.errors}[/yellow]")
    else:
        console.print("[bold green]Briefing completed successfully.[/bold green]")

    if json_path is not None:
        workflow.persist(briefing, json_path)
        console.print(f"Briefing saved to {json_path}")


async def _run_and_close(workflow: BriefingWorkflow, report_date: date) -> Briefing:
    try:
        return await workflow.run(report_date)
    finally:
        await workflow.aclose()


@app.command()
def sections(ctx: typer.Context) -> None:
    """Display the sections wired into the briefing."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    workflow = BriefingWorkflow(context.config)
    table = Table(title="Briefing Sections")
    table.add_column("Step", style="cyan")
    table.add_column("Description")

    for idx, step in enumerate(workflow.describe_sections(), start=1):
        table.add_row(str(idx), step)

    console.print(table)
    asyncio.run(workflow.aclose())


@app.command("seed-demo")
def seed_demo(
    ctx: typer.Context,
    day: Optional[str] = typer.Option(None, "--date", help="Day to fill (YYYY-MM-DD); defaults to yesterday."),
    orders: int = typer.Option(300, "--orders", min=1, help="Approximate orders per branch."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducible demo data."),
) -> None:
    """Insert random demo transactions for every registered branch."""
    if ctx.obj is None:
        raise typer.Exit(code=1)

    context: AppContext = ctx.obj
    report_date = _parse_date(day)
    workflow = BriefingWorkflow(context.config)
    try:
        repository = workflow.context.repository
        if repository is None:
            console.print("[red]Transaction database is not reachable; nothing seeded.[/red]")
            raise typer.Exit(code=1)
        branches = asyncio.run(workflow.context.registry.get_branch_list())
        rows = _demo_transactions([branch.id for branch in branches], report_date, orders, random.Random(seed))
        inserted = repository.insert_transactions(rows)
    finally:
        asyncio.run(workflow.aclose())
    console.print(f"Inserted {inserted} transactions for {report_date.isoformat()}")


def _demo_transactions(
    branch_ids: List[str], report_date: date, orders: int, rng: random.Random
) -> List[Dict[str, Any]]:
    opening = datetime.combine(report_date, time(hour=7))
    rows: List[Dict[str, Any]] = []
    for branch_id in branch_ids:
        for _ in range(max(1, int(orders * rng.uniform(0.8, 1.2)))):
            rows.append(
                {
                    "branch_id": branch_id,
                    "total": round(rng.uniform(60.0, 320.0), 2),
                    "created_at": opening + timedelta(minutes=rng.randint(0, 14 * 60)),
                }
            )
    return rows


def _print_sales(briefing: Briefing) -> None:
    """Pretty-print branch performance for operators."""
    sales = briefing.sections.get("sales")
    if not sales:
        console.print("[yellow]Sales section unavailable.[/yellow]")
        return

    table = Table(title="Sales vs. goal", show_header=True, header_style="bold magenta")
    table.add_column("Branch")
    table.add_column("Total", justify="right")
    table.add_column("Orders", justify="right")
    table.add_column("Avg ticket", justify="right")
    table.add_column("Goal", justify="right")
    table.add_column("vs goal", justify="right")

    for record in sales["byBranch"]:
        table.add_row(
            record["branch_id"],
            f"{record['total']:,.2f}",
            str(record["order_count"]),
            _fmt_money(record["avg_ticket"]),
            f"{record['goal']:,.0f}",
            _fmt_pct(record["vs_goal"]),
        )
    total = sales["total"]
    table.add_row(
        "TOTAL",
        f"{total['total']:,.2f}",
        str(total["order_count"]),
        _fmt_money(total["avg_ticket"]),
        f"{total['goal']:,.0f}",
        _fmt_pct(total["vs_goal"]),
        style="bold",
    )
    console.print(table)
    if "vs_last_week" in total:
        console.print(f"vs last week: {_fmt_pct(total['vs_last_week'])} (synthetic)")


def _print_context(briefing: Briefing) -> None:
    context = briefing.sections.get("context")
    if not context:
        console.print("[yellow]Context section unavailable.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value")
    table.add_row("Weather", context.get("weather") or "N/A")
    table.add_row("Holiday", context.get("holiday") or "N/A")
    table.add_row("Events", "\n".join(context.get("events") or []) or "N/A")
    table.add_row("Notes", "\n".join(context.get("notes") or []) or "N/A")
    console.print(table)


def _fmt_money(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:,.2f}"


def _fmt_pct(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:+.1f}%"
