"""
Command-line interface for the bank statement / supplier ledger reconciliation tool.
"""

from pathlib import Path
from typing import Optional
import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ReconConfig, generate_default_config, load_config, override_matching
from .models.records import MatchedBankRecord, ReconciliationStats, StatementFormat
from .normalizers.currency import format_currency
from .parsers.statement_formats import get_layout, supported_statement_formats
from .service import ReconciliationService, SourceFile
from .utils.exceptions import ReconciliationError
from .utils.logging_config import setup_logging

console = Console()

FORMAT_CHOICE = click.Choice([f.value for f in StatementFormat], case_sensitive=False)
PREVIEW_ROWS = 20


def _truncate(text: Optional[str], width: int = 40) -> str:
    if not text:
        return "-"
    return text[:width] + "..." if len(text) > width else text


def _load(config: Optional[Path], verbose: bool = False) -> ReconConfig:
    recon_config = load_config(config)
    level = logging.DEBUG if verbose else recon_config.logging.level
    log_file = Path(recon_config.logging.file) if recon_config.logging.file else None
    setup_logging(level, log_file, recon_config.logging.format)
    return recon_config


def _fail(error: Exception, verbose: bool = False) -> None:
    console.print(f"[red]Error: {error}[/red]")
    if verbose:
        console.print_exception()
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def main():
    """Bank Statement / Supplier Ledger Reconciliation Tool."""
    pass


@main.command()
@click.option(
    "-s",
    "--statement",
    "statements",
    multiple=True,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Bank statement file (.pdf, .txt, .xlsx, .xls, .csv); repeatable",
)
@click.option(
    "-l",
    "--ledger",
    "ledgers",
    multiple=True,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Supplier ledger file; repeatable",
)
@click.option(
    "-b", "--bank-format", type=FORMAT_CHOICE, required=True, help="Bank statement format"
)
@click.option(
    "--sheet", "sheets", multiple=True, help="Workbook sheet to read from ledgers; repeatable"
)
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("--amount-tolerance", type=float, default=None, help="Override amount tolerance")
@click.option(
    "--no-accounting-date",
    is_flag=True,
    help="Compare supplier dates against the value date only",
)
@click.option(
    "--max-days",
    type=click.IntRange(min=0),
    default=None,
    help="Leave records unmatched when the closest date is further than this",
)
@click.option("--show-unmatched", is_flag=True, help="Include unmatched records in the listing")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def reconcile(
    statements: tuple[Path, ...],
    ledgers: tuple[Path, ...],
    bank_format: str,
    sheets: tuple[str, ...],
    config: Optional[Path],
    amount_tolerance: Optional[float],
    no_accounting_date: bool,
    max_days: Optional[int],
    show_unmatched: bool,
    verbose: bool,
):
    """
    Reconcile bank statements with supplier ledgers.

    Every bank movement is matched to at most one supplier entry by amount,
    with dates used to settle ambiguous amounts.
    """
    try:
        recon_config = _load(config, verbose)

        # Apply command-line overrides
        overrides: dict = {}
        if amount_tolerance is not None:
            overrides["amount_tolerance"] = amount_tolerance
        if no_accounting_date:
            overrides["use_accounting_date"] = False
        if max_days is not None:
            overrides["max_date_distance_days"] = max_days
        if overrides:
            recon_config.matching = override_matching(recon_config.matching, overrides)

        statement_format = StatementFormat(bank_format.lower())
        bank_sources = [SourceFile.from_path(p) for p in statements]
        ledger_sources = [
            SourceFile.from_path(p, selected_sheets=list(sheets) or None) for p in ledgers
        ]

        service = ReconciliationService(recon_config)
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Reading files and reconciling...", total=None)
            result = asyncio.run(
                service.reconcile_files(bank_sources, ledger_sources, statement_format)
            )
            progress.update(task, completed=True)

        _display_summary(result.stats)
        rows = result.records if show_unmatched else result.matched
        _display_matches(rows)

    except (ReconciliationError, OSError) as e:
        _fail(e, verbose)


@main.command("parse-statement")
@click.argument("statement_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-b", "--bank-format", type=FORMAT_CHOICE, required=True, help="Bank statement format"
)
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def parse_statement_command(statement_file: Path, bank_format: str, config: Optional[Path]):
    """
    Parse a bank statement and display its movements.

    STATEMENT_FILE: Path to the bank statement
    """
    try:
        recon_config = _load(config)
        service = ReconciliationService(recon_config)
        statement_format = StatementFormat(bank_format.lower())
        records = asyncio.run(
            service.parse_bank_file(SourceFile.from_path(statement_file), statement_format)
        )
    except (ReconciliationError, OSError) as e:
        _fail(e)
        return

    table = Table(title=f"Bank Movements: {statement_file.name}")
    table.add_column("Posting")
    table.add_column("Value")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Balance", justify="right")

    for record in records[:PREVIEW_ROWS]:
        table.add_row(
            record.posting_date,
            record.value_date,
            _truncate(record.description),
            format_currency(record.amount),
            format_currency(record.balance) if record.balance is not None else "-",
        )

    console.print(table)

    if len(records) > PREVIEW_ROWS:
        console.print(f"\n... and {len(records) - PREVIEW_ROWS} more movements")

    console.print(f"\nTotal movements: {len(records)}")


@main.command("parse-ledger")
@click.argument("ledger_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--sheet", "sheets", multiple=True, help="Workbook sheet to read; repeatable")
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def parse_ledger_command(ledger_file: Path, sheets: tuple[str, ...], config: Optional[Path]):
    """
    Parse a supplier ledger and display its entries.

    LEDGER_FILE: Path to the supplier listing or period workbook
    """
    try:
        recon_config = _load(config)
        service = ReconciliationService(recon_config)
        source = SourceFile.from_path(ledger_file, selected_sheets=list(sheets) or None)
        records = asyncio.run(service.parse_ledger_file(source))
    except (ReconciliationError, OSError) as e:
        _fail(e)
        return

    table = Table(title=f"Supplier Entries: {ledger_file.name}")
    table.add_column("Date")
    table.add_column("Code")
    table.add_column("Supplier")
    table.add_column("Document")
    table.add_column("Amount", justify="right")

    for record in records[:PREVIEW_ROWS]:
        table.add_row(
            record.date or "-",
            record.code or "-",
            _truncate(record.name, 30),
            record.document,
            format_currency(record.amount),
        )

    console.print(table)

    if len(records) > PREVIEW_ROWS:
        console.print(f"\n... and {len(records) - PREVIEW_ROWS} more entries")

    console.print(f"\nTotal entries: {len(records)}")


@main.command("list-sheets")
@click.argument("workbook", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def list_sheets(workbook: Path):
    """
    List the sheets of a period workbook.

    WORKBOOK: Path to the supplier workbook
    """
    try:
        service = ReconciliationService(_load(None))
        summaries = asyncio.run(service.describe_workbook(SourceFile.from_path(workbook)))
    except (ReconciliationError, OSError) as e:
        _fail(e)
        return

    table = Table(title=f"Sheets: {workbook.name}")
    table.add_column("Sheet", style="cyan")
    table.add_column("Month")
    table.add_column("Year")
    table.add_column("Records", justify="right")

    for summary in summaries:
        table.add_row(summary.name, summary.month, summary.year or "-", str(summary.record_count))

    console.print(table)


@main.command("list-formats")
def list_formats():
    """List the supported bank statement formats."""
    table = Table(title="Statement Formats")
    table.add_column("Format", style="cyan")
    table.add_column("Bank")
    table.add_column("Sources")

    for statement_format in supported_statement_formats():
        layout = get_layout(statement_format)
        sources = []
        if layout.supports_text:
            sources.append("PDF/text")
        if layout.supports_tabular:
            sources.append("spreadsheet")
        table.add_row(statement_format.value, statement_format.display_name, ", ".join(sources))

    console.print(table)


@main.command("init-config")
@click.option(
    "-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml")
)
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _display_summary(stats: ReconciliationStats) -> None:
    """Display reconciliation summary in console."""
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Bank Records", str(stats.bank_record_count))
    table.add_row("Supplier Records", str(stats.supplier_record_count))
    table.add_row("Matched", str(stats.matched_count))
    table.add_row("Unmatched", str(stats.unmatched_count))
    table.add_row("Match Rate", f"{stats.match_percentage:.1f}%")
    for tier, count in stats.matches_by_tier.items():
        table.add_row(f"  via {tier}", str(count))

    console.print(table)


def _display_matches(records: list[MatchedBankRecord]) -> None:
    """Display matched (and optionally unmatched) records."""
    if not records:
        console.print("\n[yellow]No records to display[/yellow]")
        return

    table = Table(title="Bank Movements")
    table.add_column("Value")
    table.add_column("Description")
    table.add_column("Amount", justify="right")
    table.add_column("Document")
    table.add_column("Supplier")
    table.add_column("Status")

    for record in records:
        status = "[green]matched[/green]" if record.is_matched else "[red]unmatched[/red]"
        table.add_row(
            record.value_date,
            _truncate(record.description, 30),
            format_currency(record.amount),
            record.matched_document or "-",
            _truncate(record.matched_supplier_name, 25),
            status,
        )

    console.print(table)


if __name__ == "__main__":
    main()
