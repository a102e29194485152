"""
Ledger CSV export parser.
Reads application ledger transactions into the models the matcher compares.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional
import logging

import pandas as pd

from ..models.transaction import LedgerTransaction, LedgerTransactionType
from ..utils.exceptions import LedgerParseError
from .cells import CURRENCY_CHARS

if TYPE_CHECKING:
    from ..config import ReconConfig

logger = logging.getLogger(__name__)


class LedgerCsvParser:
    """
    Parser for ledger CSV exports.

    Column names come from ``ledger.column_mappings``. Amounts are stored as
    magnitudes; a negative amount in the export is folded into an expense.
    """

    def __init__(self, config: "ReconConfig"):
        """
        Initialize the parser with configuration.

        Args:
            config: Application configuration object
        """
        self.config = config
        self.ledger_config = config.ledger
        self.column_mappings = self.ledger_config.column_mappings

    def parse_file(self, file_path: Path) -> list[LedgerTransaction]:
        """
        Parse a ledger CSV file.

        Args:
            file_path: Path to the CSV file

        Returns:
            List of ledger transactions

        Raises:
            LedgerParseError: If the file cannot be read
        """
        logger.info(f"Parsing ledger CSV file: {file_path}")

        try:
            df = pd.read_csv(
                file_path,
                encoding=self.ledger_config.encoding,
                delimiter=self.ledger_config.delimiter,
                dtype=str,
                keep_default_na=False,
            )
        except Exception as e:
            logger.error(f"Failed to read CSV file: {e}")
            raise LedgerParseError(f"Failed to read CSV file: {e}") from e

        transactions = self.parse_dataframe(df)
        logger.info(f"Extracted {len(transactions)} transactions from ledger CSV")

        return transactions

    def parse_dataframe(self, df: pd.DataFrame) -> list[LedgerTransaction]:
        """Convert DataFrame rows to ledger transactions, skipping invalid rows."""
        transactions: list[LedgerTransaction] = []

        for idx, row in df.iterrows():
            txn = self._normalize_row(row, int(idx))
            if txn:
                transactions.append(txn)

        return transactions

    def _normalize_row(self, row: pd.Series, idx: int) -> Optional[LedgerTransaction]:
        """
        Convert a DataFrame row to a LedgerTransaction.

        Args:
            row: Pandas Series representing a row
            idx: Row index

        Returns:
            Ledger transaction or None if the row is invalid
        """
        cols = self.column_mappings

        txn_date = self._parse_date(row.get(cols.get("date", "date")))
        if not txn_date:
            logger.warning(f"Row {idx}: Invalid date, skipping")
            return None

        amount = self._parse_amount(row.get(cols.get("amount", "amount")))
        if amount is None:
            logger.warning(f"Row {idx}: No valid amount found, skipping")
            return None

        txn_type = self._parse_type(row.get(cols.get("type", "type")))
        if amount < 0:
            amount = -amount
            txn_type = txn_type or LedgerTransactionType.EXPENSE

        txn_id = _text(row.get(cols.get("id", "id"))) or f"LEDGER-{idx:05d}"

        return LedgerTransaction(
            id=txn_id,
            amount=amount,
            date=txn_date,
            description=_text(row.get(cols.get("description", "description"))) or "",
            type=txn_type,
            account_id=_text(row.get(cols.get("account_id", "account_id"))),
            raw=row.to_dict(),
        )

    def _parse_date(self, date_value: Any) -> Optional[date]:
        """Parse a date with the configured format, falling back to pandas."""
        text = _text(date_value)
        if text is None:
            return None

        try:
            return datetime.strptime(text, self.ledger_config.date_format).date()
        except ValueError:
            try:
                parsed = pd.to_datetime(text)
            except (ValueError, TypeError, OverflowError):
                return None
            return None if pd.isna(parsed) else parsed.date()

    def _parse_amount(self, amount_value: Any) -> Optional[Decimal]:
        text = _text(amount_value)
        if text is None:
            return None

        text = CURRENCY_CHARS.sub("", text)
        try:
            amount = Decimal(_normalize_separators(text))
        except (InvalidOperation, ValueError):
            return None
        return amount if amount.is_finite() else None

    def _parse_type(self, type_value: Any) -> Optional[LedgerTransactionType]:
        text = _text(type_value)
        if text is None:
            return None
        try:
            return LedgerTransactionType(text.lower())
        except ValueError:
            logger.warning(f"Unknown ledger transaction type: {text}")
            return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) and pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _normalize_separators(text: str) -> str:
    """
    Turn an amount written with either separator convention into ``1234.56`` form.

    With both separators present the rightmost one is the decimal point. A
    single comma is a decimal comma (``45,00``); repeated commas are thousands
    separators (``1,234,567``).
    """
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if text.count(",") == 1:
        return text.replace(",", ".")
    return text.replace(",", "")
