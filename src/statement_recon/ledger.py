"""
Ledger collaborator interfaces.

The engine never talks to a ledger itself. Callers fetch ledger transactions
for the statement's account and period through a ``LedgerReader``, and after
a person reviews an unmatched bank transaction they may record it through a
``LedgerWriter``. ``CsvLedger`` is a file-backed implementation of both.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional
import logging

import pandas as pd

from .models.transaction import BankTransaction, LedgerTransaction, LedgerTransactionType
from .parsers.ledger_parser import LedgerCsvParser
from .utils.exceptions import ValidationError

if TYPE_CHECKING:
    from .config import ReconConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValidationError(f"Date range ends before it starts: {self.start} > {self.end}")

    def contains(self, value: date) -> bool:
        return self.start <= value <= self.end

    @classmethod
    def covering(
        cls, bank_transactions: Iterable[BankTransaction], padding_days: int = 0
    ) -> "DateRange":
        """
        Smallest range holding every bank transaction date, widened on both
        sides by ``padding_days`` so ledger entries within date tolerance are
        fetched too.
        """
        dates = [txn.date for txn in bank_transactions]
        if not dates:
            raise ValidationError("Cannot build a date range from no transactions")
        padding = timedelta(days=padding_days)
        return cls(start=min(dates) - padding, end=max(dates) + padding)


@dataclass(frozen=True)
class NewTransactionRecord:
    """Fields for a ledger transaction that does not exist yet."""

    account_id: str
    date: date
    amount: Decimal
    type: LedgerTransactionType
    description: str = ""


def record_from_bank_transaction(
    bank_txn: BankTransaction, account_id: str
) -> NewTransactionRecord:
    """
    Prefill a ledger record from a reviewed unmatched bank transaction.

    The signed bank amount becomes a magnitude plus a direction: negative is
    an expense, anything else income.
    """
    txn_type = (
        LedgerTransactionType.EXPENSE if bank_txn.amount < 0 else LedgerTransactionType.INCOME
    )
    return NewTransactionRecord(
        account_id=account_id,
        date=bank_txn.date,
        amount=bank_txn.magnitude,
        type=txn_type,
        description=bank_txn.description,
    )


class LedgerReader(ABC):
    """Source of already recorded ledger transactions."""

    @abstractmethod
    def list_transactions(
        self, account_id: str, date_range: Optional[DateRange] = None
    ) -> list[LedgerTransaction]:
        """
        Return the account's transactions, optionally limited to a date range.

        Args:
            account_id: Ledger account identifier
            date_range: Inclusive range, or None for all dates

        Returns:
            Ledger transactions in ledger order
        """
        pass


class LedgerWriter(ABC):
    """Sink for new ledger transactions."""

    @abstractmethod
    def create_transaction(self, record: NewTransactionRecord) -> LedgerTransaction:
        """Persist a record and return it with its assigned identifier."""
        pass


class CsvLedger(LedgerReader, LedgerWriter):
    """Ledger kept in a CSV file, in the format ``LedgerCsvParser`` reads."""

    def __init__(self, config: "ReconConfig", file_path: Path):
        self.config = config
        self.file_path = file_path
        self.column_mappings = config.ledger.column_mappings
        if file_path.exists():
            self.transactions = LedgerCsvParser(config).parse_file(file_path)
        else:
            self.transactions = []

    def list_transactions(
        self, account_id: Optional[str], date_range: Optional[DateRange] = None
    ) -> list[LedgerTransaction]:
        """
        Transactions for one account.

        Passing ``account_id=None`` returns every account, for exports that
        hold a single account and carry no account column.
        """
        return [
            txn
            for txn in self.transactions
            if (account_id is None or txn.account_id == account_id)
            and (date_range is None or date_range.contains(txn.date))
        ]

    def create_transaction(self, record: NewTransactionRecord) -> LedgerTransaction:
        """Append the record to the CSV file and to the in-memory list."""
        existing_ids = {txn.id for txn in self.transactions}
        seq = len(self.transactions) + 1
        while f"LEDGER-{seq:05d}" in existing_ids:
            seq += 1

        txn = LedgerTransaction(
            id=f"LEDGER-{seq:05d}",
            amount=record.amount,
            date=record.date,
            description=record.description,
            type=record.type,
            account_id=record.account_id,
        )

        cols = self.column_mappings
        row = {
            cols.get("id", "id"): txn.id,
            cols.get("date", "date"): txn.date.strftime(self.config.ledger.date_format),
            cols.get("amount", "amount"): str(txn.amount),
            cols.get("description", "description"): txn.description,
            cols.get("type", "type"): txn.type.value,
            cols.get("account_id", "account_id"): txn.account_id,
        }
        frame = pd.DataFrame([row])
        write_header = not self.file_path.exists()
        if not write_header:
            # Follow the existing file's column order
            header = pd.read_csv(
                self.file_path,
                nrows=0,
                sep=self.config.ledger.delimiter,
                encoding=self.config.ledger.encoding,
            )
            frame = frame.reindex(columns=list(header.columns))
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(
            self.file_path,
            mode="a",
            header=write_header,
            index=False,
            sep=self.config.ledger.delimiter,
            encoding=self.config.ledger.encoding,
        )

        self.transactions.append(txn)
        logger.info(f"Recorded ledger transaction {txn.id} ({txn.type.value} {txn.amount})")
        return txn
