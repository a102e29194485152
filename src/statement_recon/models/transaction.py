"""Data models for statement transactions, ledger records and reconciliation results."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from ..utils.exceptions import InvalidConfigurationError, ValidationError

DEFAULT_DATE_TOLERANCE_DAYS = 2
DEFAULT_AMOUNT_TOLERANCE = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, floats and numeric strings to Decimal without float noise."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Not a decimal amount: {value!r}") from e


class LedgerTransactionType(Enum):
    """Direction of a ledger transaction; amounts themselves are unsigned."""

    EXPENSE = "expense"
    INCOME = "income"


class ReconciliationStatus(Enum):
    """Outcome tag for a reconciliation row."""

    MATCHED = "matched"
    UNMATCHED_BANK = "unmatched_bank"
    UNMATCHED_APP = "unmatched_app"
    DISCREPANCY = "discrepancy"


@dataclass(frozen=True)
class BankTransaction:
    """
    A transaction reconstructed from one row of a bank statement.

    The identifier is synthesized from the row index and the extraction run
    timestamp, so it is only unique within a single run.
    """

    id: str
    date: date

    # Signed, bank convention: negative is money out
    amount: Decimal

    description: str = ""

    # Only filled when the statement layout carries a running balance column
    balance: Optional[Decimal] = None

    raw: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        if self.balance is not None:
            object.__setattr__(self, "balance", to_decimal(self.balance))

    @property
    def magnitude(self) -> Decimal:
        return abs(self.amount)


@dataclass
class LedgerTransaction:
    """
    A transaction already recorded in the application ledger.

    Amount is a magnitude; direction lives in ``type``.
    """

    id: str
    amount: Decimal
    date: date
    description: str = ""
    type: Optional[LedgerTransactionType] = None
    account_id: Optional[str] = None
    raw: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.amount = to_decimal(self.amount)
        if self.amount < 0:
            raise ValidationError(
                f"Ledger transaction {self.id} has negative amount {self.amount}; "
                "ledger amounts are magnitudes"
            )


@dataclass(frozen=True)
class MatchingOptions:
    """Caller-supplied matching tolerances."""

    date_tolerance_days: int = DEFAULT_DATE_TOLERANCE_DAYS
    amount_tolerance: Decimal = DEFAULT_AMOUNT_TOLERANCE

    # Accepted for compatibility; description matching is not implemented
    use_fuzzy_matching: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.date_tolerance_days, bool) or not isinstance(
            self.date_tolerance_days, int
        ):
            raise InvalidConfigurationError(
                f"date_tolerance_days must be an integer, got {self.date_tolerance_days!r}"
            )
        if self.date_tolerance_days < 0:
            raise InvalidConfigurationError(
                f"date_tolerance_days must be >= 0, got {self.date_tolerance_days}"
            )
        try:
            tolerance = to_decimal(self.amount_tolerance)
        except ValidationError as e:
            raise InvalidConfigurationError(str(e)) from e
        if tolerance < 0:
            raise InvalidConfigurationError(
                f"amount_tolerance must be >= 0, got {tolerance}"
            )
        object.__setattr__(self, "amount_tolerance", tolerance)


@dataclass
class ReconciliationMatch:
    """Outcome of evaluating one bank transaction."""

    bank_transaction: BankTransaction
    ledger_transaction: Optional[LedgerTransaction]
    match_score: Decimal
    status: ReconciliationStatus
    issues: Optional[list[str]] = None

    def __post_init__(self) -> None:
        if self.status == ReconciliationStatus.MATCHED and self.ledger_transaction is None:
            raise ValidationError("A matched row must carry a ledger transaction")
        if (
            self.status == ReconciliationStatus.UNMATCHED_BANK
            and self.ledger_transaction is not None
        ):
            raise ValidationError("An unmatched bank row cannot carry a ledger transaction")

    @property
    def is_exact_match(self) -> bool:
        """Check if this is a perfect match."""
        return self.status == ReconciliationStatus.MATCHED and not self.issues


@dataclass
class ReconciliationSummary:
    """Counts and totals for one reconciliation run."""

    total_bank: int
    total_app: int
    matched: int
    unmatched_bank: int
    unmatched_app: int

    # Sum of bank magnitudes minus sum of ledger amounts; signed
    balance_difference: Decimal

    @property
    def match_rate(self) -> float:
        """Percentage of bank transactions matched."""
        if self.total_bank == 0:
            return 0.0
        return (self.matched / self.total_bank) * 100


@dataclass
class ReconciliationResult:
    """Full output of the matcher."""

    matched: list[ReconciliationMatch]
    unmatched_bank: list[BankTransaction]
    unmatched_app: list[LedgerTransaction]
    summary: ReconciliationSummary

    def display_rows(self, view: str = "all") -> list[ReconciliationMatch]:
        """
        Rows as a review screen lists them.

        Args:
            view: "all", "matched" or "unmatched"; unmatched bank transactions
                are presented as score-0 ``unmatched_bank`` rows

        Returns:
            Matched rows first, then unmatched bank rows, in input order
        """
        if view not in ("all", "matched", "unmatched"):
            raise ValueError(f"Unknown view: {view}")

        unmatched_rows = [
            ReconciliationMatch(
                bank_transaction=txn,
                ledger_transaction=None,
                match_score=Decimal("0"),
                status=ReconciliationStatus.UNMATCHED_BANK,
            )
            for txn in self.unmatched_bank
        ]

        if view == "matched":
            return list(self.matched)
        if view == "unmatched":
            return unmatched_rows
        return list(self.matched) + unmatched_rows
