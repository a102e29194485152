"""
Bank statement spreadsheet parser.

Reads the first sheet of a workbook into a grid of raw cells and turns rows
into bank transactions, either by scanning every cell for date, amount and
description signals (the default) or by reading a fixed column layout.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Sequence
import io
import logging

import pandas as pd
from openpyxl.utils.datetime import CALENDAR_MAC_1904

from ..models.transaction import BankTransaction
from ..utils.exceptions import InvalidFileFormatError, NoTransactionsFoundError
from .cells import (
    DATE_SERIAL_MAX,
    DATE_SERIAL_MIN,
    cell_text,
    classify_as_amount,
    classify_as_date,
    classify_as_description,
    is_number,
    normalize_cell,
    parse_amount,
    parse_date,
)

if TYPE_CHECKING:
    from ..config import ReconConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementGrid:
    """First sheet of a statement workbook, plus the workbook's date system."""

    rows: list[list[Any]]
    date1904: bool = False


def read_grid(data: bytes) -> StatementGrid:
    """
    Load the first sheet of a workbook (.xlsx or legacy .xls) as rows of raw cells.

    Blank cells come back as None. The workbook's date system is recorded so
    unformatted serial numbers can be converted with the right epoch.

    Raises:
        InvalidFileFormatError: If the bytes are not a readable workbook
    """
    try:
        with pd.ExcelFile(io.BytesIO(data)) as workbook:
            df = workbook.parse(
                sheet_name=0,
                header=None,
                dtype=object,
                keep_default_na=False,
            )
            date1904 = _uses_1904_epoch(workbook.book)
    except Exception as e:
        logger.error(f"Failed to read statement workbook: {e}")
        raise InvalidFileFormatError(f"Could not read statement as a spreadsheet: {e}") from e

    rows = [[normalize_cell(value) for value in row] for row in df.itertuples(index=False)]
    if date1904:
        logger.debug("Workbook uses the 1904 date system")
    return StatementGrid(rows=rows, date1904=date1904)


def _uses_1904_epoch(book: Any) -> bool:
    # openpyxl exposes the epoch, xlrd a datemode flag
    if getattr(book, "epoch", None) == CALENDAR_MAC_1904:
        return True
    return getattr(book, "datemode", 0) == 1


def scan_row(
    row: Sequence[Any],
    serial_min: float = DATE_SERIAL_MIN,
    serial_max: float = DATE_SERIAL_MAX,
    date1904: bool = False,
) -> tuple[Optional[date], Optional[Decimal], Optional[str]]:
    """
    Find the date, amount and description of one statement row.

    Cells are visited left to right. Each slot is filled at most once, by the
    first cell that qualifies, and a cell that fills the date or amount slot is
    not considered for later slots.
    """
    txn_date: Optional[date] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None

    for cell in row:
        if cell is None or not cell_text(cell) or (is_number(cell) and cell == 0):
            continue

        if txn_date is None:
            txn_date = classify_as_date(cell, serial_min, serial_max, date1904)
            if txn_date is not None:
                continue

        if amount is None:
            amount = classify_as_amount(cell)
            if amount is not None:
                continue

        if description is None:
            description = classify_as_description(cell)

    return txn_date, amount, description


class StatementParser:
    """
    Parser for spreadsheet bank statements.

    Targets the family of exports that put date, description and signed
    amount somewhere on each transaction row, surrounded by header and
    footer rows of free text.
    """

    def __init__(self, config: "ReconConfig"):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config
        self.extraction = config.extraction

    def parse_file(
        self, file_path: Path, require_transactions: bool = False
    ) -> list[BankTransaction]:
        """
        Parse a statement file from disk.

        Raises:
            InvalidFileFormatError: If the file cannot be read as a workbook
            NoTransactionsFoundError: If require_transactions is set and no row qualifies
        """
        logger.info(f"Parsing statement file: {file_path}")
        try:
            data = file_path.read_bytes()
        except OSError as e:
            raise InvalidFileFormatError(f"Could not open statement file: {e}") from e
        return self.parse_bytes(data, require_transactions=require_transactions)

    def parse_bytes(
        self,
        data: bytes,
        require_transactions: bool = False,
        run_timestamp: Optional[int] = None,
    ) -> list[BankTransaction]:
        """
        Parse statement bytes into bank transactions in row order.

        Args:
            data: Raw workbook bytes
            require_transactions: Raise NoTransactionsFoundError instead of
                returning an empty list
            run_timestamp: Millisecond timestamp used in synthesized ids;
                defaults to now

        Returns:
            List of bank transactions (possibly empty)
        """
        grid = read_grid(data)
        return self.parse_rows(
            grid.rows, require_transactions, run_timestamp, date1904=grid.date1904
        )

    def parse_rows(
        self,
        rows: Sequence[Sequence[Any]],
        require_transactions: bool = False,
        run_timestamp: Optional[int] = None,
        date1904: bool = False,
    ) -> list[BankTransaction]:
        """Turn an already loaded grid into bank transactions."""
        if run_timestamp is None:
            run_timestamp = int(datetime.now().timestamp() * 1000)

        if self.extraction.mode == "fixed_columns":
            transactions = self._parse_fixed_columns(rows, run_timestamp, date1904)
        else:
            transactions = self._parse_heuristic(rows, run_timestamp, date1904)

        logger.info(f"Extracted {len(transactions)} transactions from {len(rows)} rows")

        if require_transactions and not transactions:
            raise NoTransactionsFoundError(
                "The statement was read but contains no recognizable transactions"
            )
        return transactions

    def _parse_heuristic(
        self, rows: Sequence[Sequence[Any]], run_timestamp: int, date1904: bool
    ) -> list[BankTransaction]:
        transactions: list[BankTransaction] = []

        for idx, row in enumerate(rows):
            cells = [normalize_cell(value) for value in row]
            if all(cell is None for cell in cells):
                continue

            txn_date, amount, description = scan_row(
                cells,
                self.extraction.date_serial_min,
                self.extraction.date_serial_max,
                date1904,
            )
            if txn_date is None or amount is None:
                logger.debug(f"Row {idx}: no date/amount pair, skipping")
                continue

            transactions.append(
                self._build_transaction(idx, run_timestamp, txn_date, amount, description, cells)
            )

        return transactions

    def _parse_fixed_columns(
        self, rows: Sequence[Sequence[Any]], run_timestamp: int, date1904: bool
    ) -> list[BankTransaction]:
        mapping = self.extraction.column_mapping
        transactions: list[BankTransaction] = []

        for idx, row in enumerate(rows):
            if idx < mapping.skip_rows:
                continue

            cells = [normalize_cell(value) for value in row]
            txn_date = parse_date(_cell_at(cells, mapping.date_column), date1904)
            amount = parse_amount(_cell_at(cells, mapping.amount_column))
            if txn_date is None or amount is None or amount == 0:
                logger.debug(f"Row {idx}: missing date or amount in mapped columns, skipping")
                continue

            description = cell_text(_cell_at(cells, mapping.description_column)) or None
            balance = None
            if mapping.balance_column is not None:
                balance = parse_amount(_cell_at(cells, mapping.balance_column))

            transactions.append(
                self._build_transaction(
                    idx, run_timestamp, txn_date, amount, description, cells, balance
                )
            )

        return transactions

    def _build_transaction(
        self,
        idx: int,
        run_timestamp: int,
        txn_date: date,
        amount: Decimal,
        description: Optional[str],
        cells: list[Any],
        balance: Optional[Decimal] = None,
    ) -> BankTransaction:
        return BankTransaction(
            id=f"bank_{idx}_{run_timestamp}",
            date=txn_date,
            amount=amount,
            description=description or self.extraction.default_description,
            balance=balance,
            raw=tuple(cells),
        )


def _cell_at(cells: Sequence[Any], index: int) -> Any:
    return cells[index] if 0 <= index < len(cells) else None
