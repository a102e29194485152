"""Data models for reconciliation."""

from .transaction import (
    BankTransaction,
    LedgerTransaction,
    LedgerTransactionType,
    MatchingOptions,
    ReconciliationMatch,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationSummary,
)

__all__ = [
    "BankTransaction",
    "LedgerTransaction",
    "LedgerTransactionType",
    "MatchingOptions",
    "ReconciliationMatch",
    "ReconciliationResult",
    "ReconciliationStatus",
    "ReconciliationSummary",
]
