"""
Command-line interface for the bank statement reconciliation tool.
"""

from pathlib import Path
from typing import Optional
import logging
import sys

import click
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import ReconConfig, generate_default_config, load_config
from .ledger import CsvLedger, DateRange
from .matching.engine import ReconciliationEngine
from .models.transaction import BankTransaction, ReconciliationResult
from .parsers.statement_parser import StatementParser
from .reports.excel_generator import ExcelReportGenerator
from .utils.exceptions import (
    InvalidFileFormatError,
    NoTransactionsFoundError,
    ReconciliationError,
)
from .utils.logging_config import setup_logging

console = Console()

PREVIEW_ROWS = 20


@click.group()
@click.version_option(version=__version__)
def main():
    """Bank statement to ledger reconciliation tool."""
    pass


@main.command()
@click.argument("statement_file", type=click.Path(exists=True, path_type=Path))
@click.argument("ledger_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file (YAML)",
)
@click.option("-a", "--account", default=None, help="Only use ledger rows for this account")
@click.option("-o", "--output", type=click.Path(path_type=Path), help="Output Excel file path")
@click.option("--date-tolerance", type=int, default=None, help="Override date tolerance in days")
@click.option(
    "--amount-tolerance", type=str, default=None, help="Override amount tolerance in currency units"
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option(
    "--dry-run", is_flag=True, help="Parse files and show summary without generating report"
)
def reconcile(
    statement_file: Path,
    ledger_file: Path,
    config: Optional[Path],
    account: Optional[str],
    output: Optional[Path],
    date_tolerance: Optional[int],
    amount_tolerance: Optional[str],
    verbose: bool,
    dry_run: bool,
):
    """
    Reconcile a bank statement spreadsheet with ledger transactions.

    STATEMENT_FILE: Path to the bank statement workbook
    LEDGER_FILE: Path to the ledger CSV export
    """
    try:
        recon_config = load_config(config)
        level = logging.getLevelName(recon_config.logging.level.upper())
        if verbose or not isinstance(level, int):
            level = logging.DEBUG if verbose else logging.INFO
        setup_logging(level, log_format=recon_config.logging.format)

        _apply_overrides(recon_config, date_tolerance, amount_tolerance)
        engine = ReconciliationEngine(recon_config)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("Parsing statement...", total=None)
            bank_transactions = StatementParser(recon_config).parse_file(
                statement_file, require_transactions=True
            )
            progress.update(task, completed=True)

            task = progress.add_task("Loading ledger...", total=None)
            date_range = DateRange.covering(
                bank_transactions, padding_days=engine.options.date_tolerance_days
            )
            ledger = CsvLedger(recon_config, ledger_file)
            ledger_transactions = ledger.list_transactions(account, date_range)
            progress.update(task, completed=True)

            task = progress.add_task("Running reconciliation...", total=None)
            result = engine.reconcile(bank_transactions, ledger_transactions)
            progress.update(task, completed=True)

        _display_summary(result)

        if dry_run:
            console.print("\n[yellow]Dry run - no report generated[/yellow]")
            return

        report_generator = ExcelReportGenerator(recon_config)
        if output is None:
            output = report_generator.default_output_path()
        report_path = report_generator.generate_report(
            result,
            output,
            statement_filename=statement_file.name,
            ledger_filename=ledger_file.name,
        )
        console.print(f"\n[green]Report generated: {report_path}[/green]")

    except InvalidFileFormatError as e:
        console.print(f"[red]Could not read this file: {escape(str(e))}[/red]")
        sys.exit(1)
    except NoTransactionsFoundError:
        console.print("[yellow]The file has no recognizable transactions.[/yellow]")
        sys.exit(2)
    except ReconciliationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@main.command()
@click.argument("statement_file", type=click.Path(exists=True, path_type=Path))
@click.option("-c", "--config", type=click.Path(exists=True, path_type=Path))
def extract(statement_file: Path, config: Optional[Path]):
    """
    Parse a bank statement and display the transactions found.

    STATEMENT_FILE: Path to the bank statement workbook
    """
    setup_logging(logging.WARNING)

    try:
        transactions = StatementParser(load_config(config)).parse_file(statement_file)
    except InvalidFileFormatError as e:
        console.print(f"[red]Could not read this file: {escape(str(e))}[/red]")
        sys.exit(1)
    except ReconciliationError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    if not transactions:
        console.print("[yellow]The file has no recognizable transactions.[/yellow]")
        return

    _display_transactions(transactions, title=f"Statement Transactions: {statement_file.name}")


@main.command("init-config")
@click.option("-o", "--output", type=click.Path(path_type=Path), default=Path("config.yaml"))
def init_config(output: Path):
    """Generate a sample configuration file."""
    generate_default_config(output)
    console.print(f"[green]Configuration file generated: {output}[/green]")


def _display_transactions(transactions: list[BankTransaction], title: str) -> None:
    table = Table(title=title)
    table.add_column("Date")
    table.add_column("Description")
    table.add_column("Amount", justify="right")

    for txn in transactions[:PREVIEW_ROWS]:
        description = txn.description
        if len(description) > 40:
            description = description[:40] + "..."
        table.add_row(str(txn.date), description, f"€{txn.amount:,.2f}")

    console.print(table)

    if len(transactions) > PREVIEW_ROWS:
        console.print(f"\n... and {len(transactions) - PREVIEW_ROWS} more transactions")

    console.print(f"\nTotal transactions: {len(transactions)}")


def _display_summary(result: ReconciliationResult) -> None:
    """Display reconciliation summary in console."""
    summary = result.summary
    table = Table(title="Reconciliation Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Bank Transactions", str(summary.total_bank))
    table.add_row("Ledger Transactions", str(summary.total_app))
    table.add_row("Matched", str(summary.matched))
    table.add_row("Unmatched Bank", str(summary.unmatched_bank))
    table.add_row("Unmatched Ledger", str(summary.unmatched_app))
    table.add_row("Bank Match Rate", f"{summary.match_rate:.1f}%")
    table.add_row("Balance Difference", f"€{summary.balance_difference:,.2f}")

    console.print(table)


def _apply_overrides(
    config: ReconConfig, date_tolerance: Optional[int], amount_tolerance: Optional[str]
) -> None:
    """Apply command-line tolerance overrides."""
    if date_tolerance is not None:
        config.matching.date_tolerance_days = date_tolerance
    if amount_tolerance is not None:
        config.matching.amount_tolerance = amount_tolerance


if __name__ == "__main__":
    main()
