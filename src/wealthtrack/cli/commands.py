"""CLI command definitions for the portfolio tracker."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from wealthtrack.config import Config, load_settings
from wealthtrack.domain.models.ledger import TransactionType
from wealthtrack.domain.services.entries import build_dividend, build_transaction, validate_transaction
from wealthtrack.infrastructure.data_providers.csv_files import (
    CsvImportError,
    default_export_name,
    read_dividends_csv,
    read_transactions_csv,
    write_dividends_csv,
    write_transactions_csv,
)
from wealthtrack.infrastructure.db.sqlite import SQLiteRepository
from wealthtrack.reports.charts import build_charts
from wealthtrack.reports.renderer import ReportRenderer, money, signed_pct
from wealthtrack.services.advisory import AdvisoryService, build_gemini_client
from wealthtrack.services.portfolio import PortfolioService, PortfolioSnapshot
from wealthtrack.utils.logging import configure_logging

logger = logging.getLogger(__name__)

console = Console()
app = typer.Typer(help="Track trades and dividends; derive holdings, realized gains and income.")


class DataKind(str, Enum):
    transactions = "transactions"
    dividends = "dividends"


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config
    repository: SQLiteRepository
    portfolio: PortfolioService

    def advisory(self) -> AdvisoryService:
        return AdvisoryService(build_gemini_client(self.config))


def _init_context(debug_override: Optional[bool] = None) -> AppContext:
    """Create a context with configuration, logging, and storage wiring."""
    config = load_settings(debug_override)
    configure_logging(debug=config.debug, echo_sql=config.sqlite_echo)
    repository = SQLiteRepository(config.database_uri, echo=config.sqlite_echo)
    portfolio = PortfolioService(repository, warning_threshold_pct=config.concentration_warning_pct)
    return AppContext(config=config, repository=repository, portfolio=portfolio)


def _context(ctx: typer.Context) -> AppContext:
    if ctx.obj is None:
        raise typer.Exit(code=1)
    return ctx.obj


def _check_year(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) != 4 or not value.isdigit():
        raise typer.BadParameter(f"expected a four-digit year, got {value!r}")
    return value


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


# ---------------
# Recording data
# ---------------
@app.command("add-trade")
def add_trade(
    ctx: typer.Context,
    date: str = typer.Argument(..., help="Trade date, YYYY-MM-DD."),
    ticker: str = typer.Argument(..., help="Instrument ticker, e.g. AAPL or 0050.TW"),
    side: TransactionType = typer.Argument(..., case_sensitive=False, help="BUY or SELL"),
    quantity: float = typer.Argument(..., help="Units traded."),
    price: float = typer.Argument(..., help="Price per unit."),
    fees: float = typer.Option(0.0, "--fees", help="Commission and taxes paid."),
    name: Optional[str] = typer.Option(None, "--name", help="Display name; defaults to the ticker."),
    notes: Optional[str] = typer.Option(None, "--notes"),
) -> None:
    """Record a buy or sell."""
    context = _context(ctx)
    transaction = build_transaction(date, ticker, side, quantity, price, fees, name=name, notes=notes)
    try:
        validate_transaction(transaction)
    except ValueError as exc:
        console.print(f"[red]Invalid trade: {exc}[/red]")
        raise typer.Exit(code=1)
    context.repository.add_transaction(transaction)
    console.print(
        f"[green]Recorded {transaction.type.value} {transaction.quantity:g} {transaction.ticker} "
        f"@ {transaction.price:g}[/green] (id {transaction.id})"
    )


@app.command("add-dividend")
def add_dividend(
    ctx: typer.Context,
    date: str = typer.Argument(..., help="Payment date, YYYY-MM-DD."),
    ticker: str = typer.Argument(...),
    amount: float = typer.Argument(..., help="Cash received; negative to correct an earlier entry."),
    name: Optional[str] = typer.Option(None, "--name"),
    notes: Optional[str] = typer.Option(None, "--notes"),
) -> None:
    """Record a dividend receipt."""
    context = _context(ctx)
    dividend = build_dividend(date, ticker, amount, name=name, notes=notes)
    context.repository.add_dividend(dividend)
    console.print(f"[green]Recorded dividend {money(dividend.amount)} from {dividend.ticker}[/green] (id {dividend.id})")


@app.command("remove-trade")
def remove_trade(ctx: typer.Context, transaction_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Delete a trade by id."""
    if _context(ctx).repository.delete_transaction(transaction_id):
        console.print(f"Removed trade {transaction_id}")
    else:
        console.print(f"[yellow]No trade with id {transaction_id}[/yellow]")


@app.command("remove-dividend")
def remove_dividend(ctx: typer.Context, dividend_id: str = typer.Argument(..., metavar="ID")) -> None:
    """Delete a dividend by id."""
    if _context(ctx).repository.delete_dividend(dividend_id):
        console.print(f"Removed dividend {dividend_id}")
    else:
        console.print(f"[yellow]No dividend with id {dividend_id}[/yellow]")


@app.command()
def estimate(
    ctx: typer.Context,
    ticker: str = typer.Argument(...),
    rate: float = typer.Argument(..., help="Estimated annual dividend per share."),
) -> None:
    """Set the estimated annual dividend per share used for income projections."""
    _context(ctx).repository.set_dividend_estimate(ticker, rate)
    console.print(f"Estimated dividend for {ticker.strip().upper()} set to {rate:g} per share")


# --------
# Listings
# --------
@app.command()
def trades(ctx: typer.Context) -> None:
    """List trades, newest first."""
    rows = sorted(_context(ctx).repository.list_transactions(), key=lambda t: t.date, reverse=True)
    table = Table(title="Transaction History")
    for column in ("ID", "Date", "Ticker", "Name", "Type", "Qty", "Price", "Fees"):
        table.add_column(column)
    for t in rows:
        style = "green" if t.type == TransactionType.BUY else "red"
        table.add_row(
            t.id, t.date, t.ticker, t.name, f"[{style}]{t.type.value}[/{style}]",
            f"{t.quantity:g}", f"{t.price:,.2f}", f"{t.fees:,.2f}",
        )
    console.print(table if rows else "[dim]No transactions recorded.[/dim]")


@app.command()
def dividends(ctx: typer.Context) -> None:
    """List dividend receipts, newest first."""
    rows = sorted(_context(ctx).repository.list_dividends(), key=lambda d: d.date, reverse=True)
    table = Table(title="Dividend Rewards")
    for column in ("ID", "Date", "Ticker", "Name", "Amount"):
        table.add_column(column)
    for d in rows:
        table.add_row(d.id, d.date, d.ticker, d.name, money(d.amount))
    console.print(table if rows else "[dim]No dividends recorded.[/dim]")
    if rows:
        console.print(f"Total received: {money(sum(d.amount for d in rows))}")


@app.command()
def holdings(ctx: typer.Context) -> None:
    """Show current holdings with weighted-average cost and estimated income."""
    snapshot = _context(ctx).portfolio.snapshot()
    _print_holdings(snapshot)


@app.command()
def dashboard(
    ctx: typer.Context,
    year: Optional[str] = typer.Option(
        None, "--year", callback=_check_year, help="Year to headline; defaults to the current year."
    ),
) -> None:
    """Headline dividend/gain cards, yearly ledger and health report."""
    snapshot = _context(ctx).portfolio.snapshot(year=year)
    _print_dashboard(snapshot)


# ---------------
# Reports and AI
# ---------------
@app.command()
def report(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", help="Markdown destination path."),
    charts: bool = typer.Option(False, "--charts", help="Render PNG charts next to the report."),
    advice: bool = typer.Option(False, "--advice", help="Append AI advisory commentary."),
    year: Optional[str] = typer.Option(None, "--year", callback=_check_year),
) -> None:
    """Render the dashboard as Markdown."""
    context = _context(ctx)
    snapshot = context.portfolio.snapshot(year=year)

    chart_refs = []
    if charts:
        chart_refs, errors = build_charts(
            snapshot.ledger.yearly, snapshot.allocation, context.config.output_dir / "charts"
        )
        for issue in errors:
            console.print(f"[yellow]{issue}[/yellow]")

    advice_text = None
    if advice:
        with console.status("[bold cyan]Requesting advisory..."):
            result = context.advisory().advise(snapshot.holdings, snapshot.ledger, snapshot.health)
        if result.error:
            console.print(f"[yellow]{result.error}[/yellow]")
        advice_text = result.text or None

    logger.debug("Rendering %s report with %d chart(s)", snapshot.ledger.current_year, len(chart_refs))
    markdown = ReportRenderer().render(snapshot, advice=advice_text, charts=chart_refs)
    target = output or context.config.output_dir / "dashboard.md"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(markdown, encoding="utf-8")
    console.print(f"Markdown report available at {target}")


@app.command()
def advise(ctx: typer.Context) -> None:
    """Ask the LLM for commentary on the current portfolio."""
    context = _context(ctx)
    snapshot = context.portfolio.snapshot()
    with console.status("[bold cyan]Requesting advisory..."):
        result = context.advisory().advise(snapshot.holdings, snapshot.ledger, snapshot.health)
    if result.error:
        console.print(f"[bold red]{result.error}[/bold red]")
        raise typer.Exit(code=1)
    console.print(result.text)


@app.command()
def search(ctx: typer.Context, query: str = typer.Argument(..., help="Ticker or company name.")) -> None:
    """Look up ticker symbols through the LLM."""
    service = _context(ctx).advisory()
    if not service.enabled:
        console.print("[yellow]Ticker search needs POE_API_KEY.[/yellow]")
        raise typer.Exit(code=1)
    suggestions = service.suggest_tickers(query)
    if not suggestions:
        console.print("[dim]No suggestions.[/dim]")
        return
    table = Table(title=f"Matches for {query!r}")
    table.add_column("Ticker", style="cyan")
    table.add_column("Name")
    table.add_column("Exchange")
    for s in suggestions:
        table.add_row(s.ticker, s.name, s.exchange)
    console.print(table)


# -----------------
# Data management
# -----------------
@app.command("import-csv")
def import_csv(
    ctx: typer.Context,
    kind: DataKind = typer.Argument(...),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
) -> None:
    """Append trades or dividends from a CSV export."""
    repository = _context(ctx).repository
    try:
        if kind is DataKind.transactions:
            count = repository.add_transactions(read_transactions_csv(path))
        else:
            count = repository.add_dividends(read_dividends_csv(path))
    except CsvImportError as exc:
        logger.debug("CSV import of %s aborted", path, exc_info=True)
        console.print(f"[bold red]Import failed, check the CSV format: {exc}[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Imported {count} {kind.value}.[/green]")


@app.command("export-csv")
def export_csv(
    ctx: typer.Context,
    kind: DataKind = typer.Argument(...),
    path: Optional[Path] = typer.Argument(None, help="Destination; defaults to <output_dir>/<kind>_<date>.csv"),
) -> None:
    """Write trades or dividends to CSV."""
    context = _context(ctx)
    target = path or context.config.output_dir / default_export_name(kind.value)
    if kind is DataKind.transactions:
        write_transactions_csv(context.repository.list_transactions(), target)
    else:
        write_dividends_csv(context.repository.list_dividends(), target)
    console.print(f"Exported {kind.value} to {target}")


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", help="Skip the confirmation prompt."),
) -> None:
    """Delete every trade, dividend and estimate."""
    context = _context(ctx)
    if not yes and not typer.confirm("Erase all portfolio data?"):
        raise typer.Abort()
    context.repository.reset()
    console.print("All data cleared.")


# ---------
# Printing
# ---------
def _print_holdings(snapshot: PortfolioSnapshot) -> None:
    console.print(f"Estimated Annual Passive Income: [bold green]{money(snapshot.estimated_annual_income)}[/bold green]")
    if not snapshot.holdings:
        console.print("[dim]No holdings found. Start by adding a transaction.[/dim]")
        return
    weights = {s.ticker: s.weight_pct for s in snapshot.allocation}
    table = Table(title="Current Holdings", show_header=True, header_style="bold magenta")
    for column in ("Ticker", "Name", "Shares", "Avg Cost", "Total Cost", "Est. Div/Share", "Est. Total Div", "Allocation"):
        table.add_column(column)
    for h in snapshot.holdings:
        table.add_row(
            h.ticker,
            h.name,
            f"{h.quantity:g}",
            money(h.average_cost),
            money(h.total_invested),
            money(h.estimated_dividend_per_share),
            money(h.estimated_total_dividend),
            f"{weights.get(h.ticker, 0.0):.1f}%",
        )
    console.print(table)
    console.print(f"Total cost (inventory): {money(snapshot.stats.total_invested)}")


def _print_dashboard(snapshot: PortfolioSnapshot) -> None:
    ledger = snapshot.ledger
    cards = Table(show_header=True, header_style="bold magenta")
    cards.add_column("Key")
    cards.add_column("Value")
    cards.add_row("Dividend Growth", f"{signed_pct(snapshot.dividend_growth_pct)} (YoY vs {ledger.previous_year})")
    cards.add_row(
        f"{ledger.current_year} Dividends",
        f"{money(ledger.current_year_stats.dividend)} (Lifetime: {money(ledger.lifetime_stats.dividend)})",
    )
    cards.add_row(
        f"{ledger.current_year} Realized Gains",
        f"{money(ledger.current_year_stats.capital_gain)} (Lifetime: {money(ledger.lifetime_stats.capital_gain)})",
    )
    cards.add_row("Monthly Average", f"{money(snapshot.monthly_average)} (current year, D+G)")
    console.print(cards)

    if ledger.yearly:
        table = Table(title="Portfolio Growth Evolution")
        table.add_column("Year", style="cyan")
        table.add_column("Realized Gain", justify="right")
        table.add_column("Dividends", justify="right")
        table.add_column("Cumulative", justify="right")
        for row in ledger.yearly:
            table.add_row(row.year, money(row.capital_gain), money(row.dividend), money(row.cumulative_profit))
        console.print(table)
    else:
        console.print("[dim]Provide data to see your growth evolution.[/dim]")

    health = snapshot.health
    if health.asset_count:
        console.rule("Portfolio Health Report")
        console.print(
            f"Concentration risk: [bold]{health.concentration}[/bold] "
            f"(largest position {health.max_allocation_pct:.1f}% of capital)"
        )
        console.print(f"Efficiency score: {health.efficiency_score:.0f} / 100 ({health.asset_count} tickers)")
        console.print(f"Top driver: {health.top_driver}  ·  Activity: {health.trade_count} trades")
        if health.warning:
            console.print(f"[bold yellow]Warning: {health.warning}[/bold yellow]")
