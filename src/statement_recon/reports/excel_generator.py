"""
Excel report generator for reconciliation results.
Creates multi-sheet workbooks with formatted output.
"""

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional
import logging

from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side
from openpyxl.worksheet.worksheet import Worksheet

from ..models.transaction import (
    BankTransaction,
    LedgerTransaction,
    ReconciliationMatch,
    ReconciliationResult,
)
from ..utils.exceptions import ReportGenerationError

if TYPE_CHECKING:
    from ..config import ReconConfig

logger = logging.getLogger(__name__)

# Style definitions
HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True)
MATCH_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
ISSUE_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


class ExcelReportGenerator:
    """Writes a reconciliation result to a workbook, one sheet per category."""

    def __init__(self, config: "ReconConfig"):
        self.config = config
        self.sheet_config = config.output.sheets

    def default_output_path(self, now: Optional[datetime] = None) -> Path:
        """Report path built from the configured filename template."""
        now = now or datetime.now()
        template = self.config.output.excel.filename_template
        if not self.config.output.excel.include_timestamp:
            return Path(template.replace("_{date}", "").replace("_{time}", ""))
        return Path(template.format(date=now.strftime("%Y%m%d"), time=now.strftime("%H%M%S")))

    def generate_report(
        self,
        result: ReconciliationResult,
        output_path: Path,
        statement_filename: str = "",
        ledger_filename: str = "",
    ) -> Path:
        """
        Generate the reconciliation workbook.

        Args:
            result: Matcher output
            output_path: Path for output file
            statement_filename: Shown on the summary sheet
            ledger_filename: Shown on the summary sheet

        Returns:
            Path to generated report

        Raises:
            ReportGenerationError: If the workbook cannot be written
        """
        logger.info(f"Generating Excel report: {output_path}")

        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        sheets = self.sheet_config
        if sheets.summary.enabled:
            self._create_summary_sheet(wb, result, statement_filename, ledger_filename)
        if sheets.matched.enabled:
            self._create_matched_sheet(wb, result.matched)
        if sheets.unmatched_bank.enabled:
            self._create_unmatched_bank_sheet(wb, result.unmatched_bank)
        if sheets.unmatched_app.enabled:
            self._create_unmatched_app_sheet(wb, result.unmatched_app)

        # openpyxl refuses to save a workbook with no sheets
        if not wb.sheetnames:
            wb.create_sheet("Summary")

        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            wb.save(output_path)
        except OSError as e:
            raise ReportGenerationError(f"Could not write report {output_path}: {e}") from e

        logger.info(f"Report saved: {output_path}")
        return output_path

    def _create_summary_sheet(
        self,
        wb: Workbook,
        result: ReconciliationResult,
        statement_filename: str,
        ledger_filename: str,
    ) -> None:
        ws = wb.create_sheet(self.sheet_config.summary.name)
        summary = result.summary

        ws["A1"] = "Bank Reconciliation Summary"
        ws["A1"].font = Font(size=16, bold=True)
        ws.merge_cells("A1:D1")

        rows: list[tuple[str, Any]] = [
            ("Statement File:", statement_filename),
            ("Ledger File:", ledger_filename),
            ("Reconciliation Date:", datetime.now().strftime("%Y-%m-%d %H:%M:%S")),
            ("", ""),
            ("Total Bank Transactions:", summary.total_bank),
            ("Total Ledger Transactions:", summary.total_app),
            ("Matched:", summary.matched),
            ("Unmatched Bank:", summary.unmatched_bank),
            ("Unmatched Ledger:", summary.unmatched_app),
            ("Bank Match Rate:", f"{summary.match_rate:.1f}%"),
            ("Balance Difference:", f"€{summary.balance_difference:,.2f}"),
        ]

        for i, (label, value) in enumerate(rows, start=3):
            ws[f"A{i}"] = label
            ws[f"B{i}"] = value

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 40

    def _create_matched_sheet(self, wb: Workbook, matches: list[ReconciliationMatch]) -> None:
        ws = wb.create_sheet(self.sheet_config.matched.name)
        self._write_headers(
            ws,
            [
                "Bank Date",
                "Bank Description",
                "Bank Amount",
                "Ledger ID",
                "Ledger Date",
                "Ledger Description",
                "Ledger Amount",
                "Match Score",
                "Issues",
            ],
        )

        for row_num, match in enumerate(matches, start=2):
            bank_txn = match.bank_transaction
            ledger_txn = match.ledger_transaction
            row_data = [
                bank_txn.date,
                bank_txn.description,
                float(bank_txn.amount),
                ledger_txn.id if ledger_txn else "",
                ledger_txn.date if ledger_txn else "",
                ledger_txn.description if ledger_txn else "",
                float(ledger_txn.amount) if ledger_txn else "",
                float(match.match_score),
                ", ".join(match.issues or []),
            ]
            fill = MATCH_FILL if match.is_exact_match else ISSUE_FILL
            self._write_row(ws, row_num, row_data, fill)

        self._auto_fit_columns(ws)

    def _create_unmatched_bank_sheet(
        self, wb: Workbook, transactions: list[BankTransaction]
    ) -> None:
        ws = wb.create_sheet(self.sheet_config.unmatched_bank.name)
        self._write_headers(ws, ["Date", "Description", "Amount", "Balance"])

        for row_num, txn in enumerate(transactions, start=2):
            row_data = [
                txn.date,
                txn.description,
                float(txn.amount),
                float(txn.balance) if txn.balance is not None else "",
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _create_unmatched_app_sheet(
        self, wb: Workbook, transactions: list[LedgerTransaction]
    ) -> None:
        ws = wb.create_sheet(self.sheet_config.unmatched_app.name)
        self._write_headers(ws, ["ID", "Date", "Description", "Amount", "Type", "Account"])

        for row_num, txn in enumerate(transactions, start=2):
            row_data = [
                txn.id,
                txn.date,
                txn.description,
                float(txn.amount),
                txn.type.value if txn.type else "",
                txn.account_id or "",
            ]
            self._write_row(ws, row_num, row_data, UNMATCHED_FILL)

        self._auto_fit_columns(ws)

    def _write_headers(self, ws: Worksheet, headers: list[str]) -> None:
        for col, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.fill = HEADER_FILL
            cell.font = HEADER_FONT
            cell.border = THIN_BORDER

    def _write_row(
        self, ws: Worksheet, row_num: int, row_data: list[Any], fill: PatternFill
    ) -> None:
        for col, value in enumerate(row_data, start=1):
            cell = ws.cell(row=row_num, column=col, value=value)
            cell.border = THIN_BORDER
            cell.fill = fill

    def _auto_fit_columns(self, ws: Worksheet) -> None:
        """Auto-fit column widths based on content."""
        for column_cells in ws.columns:
            max_length = max(
                (len(str(cell.value)) for cell in column_cells if cell.value is not None),
                default=0,
            )
            ws.column_dimensions[column_cells[0].column_letter].width = min(max_length + 2, 50)
