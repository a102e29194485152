"""
Match scoring for bank/ledger transaction pairs.

A same-day, exact-amount pair scores 100. Every day of date drift costs
``DAY_PENALTY`` points and any amount difference costs
``AMOUNT_PENALTY_FACTOR`` points per currency unit, capped at
``AMOUNT_PENALTY_CAP``. Pairs scoring at least ``MIN_MATCH_SCORE`` are
accepted as matches.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from ..models.transaction import BankTransaction, LedgerTransaction

MAX_SCORE = 100
MIN_MATCH_SCORE = 80
DAY_PENALTY = 5
AMOUNT_PENALTY_FACTOR = 10
AMOUNT_PENALTY_CAP = 10

# Differences below this are rounding noise and not reported as issues
AMOUNT_ISSUE_THRESHOLD = Decimal("0.001")

CENT = Decimal("0.01")


@dataclass(frozen=True)
class ScoringWeights:
    """Overridable scoring constants."""

    min_match_score: Decimal = Decimal(MIN_MATCH_SCORE)
    day_penalty: Decimal = Decimal(DAY_PENALTY)
    amount_penalty_factor: Decimal = Decimal(AMOUNT_PENALTY_FACTOR)
    amount_penalty_cap: Decimal = Decimal(AMOUNT_PENALTY_CAP)


DEFAULT_WEIGHTS = ScoringWeights()


def days_between(bank_txn: BankTransaction, ledger_txn: LedgerTransaction) -> int:
    """Absolute calendar-day difference between the two transaction dates."""
    return abs((bank_txn.date - ledger_txn.date).days)


def amount_difference(bank_txn: BankTransaction, ledger_txn: LedgerTransaction) -> Decimal:
    """Difference between the bank magnitude and the ledger amount."""
    return abs(bank_txn.magnitude - ledger_txn.amount)


def calculate_match_score(
    bank_txn: BankTransaction,
    ledger_txn: LedgerTransaction,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> Decimal:
    """Score a pair between 0 and 100."""
    score = Decimal(MAX_SCORE)
    score -= weights.day_penalty * days_between(bank_txn, ledger_txn)

    amount_diff = amount_difference(bank_txn, ledger_txn)
    if amount_diff > 0:
        score -= min(weights.amount_penalty_cap, weights.amount_penalty_factor * amount_diff)

    return max(Decimal("0"), score)


def generate_issues(bank_txn: BankTransaction, ledger_txn: LedgerTransaction) -> list[str]:
    """Human-readable differences between a bank transaction and its ledger match."""
    issues: list[str] = []

    days = days_between(bank_txn, ledger_txn)
    if days > 0:
        issues.append(f"Date differs by {days} day{'' if days == 1 else 's'}")

    amount_diff = amount_difference(bank_txn, ledger_txn)
    if amount_diff > AMOUNT_ISSUE_THRESHOLD:
        shown = amount_diff.quantize(CENT, rounding=ROUND_HALF_UP)
        issues.append(f"Amount differs by €{shown}")

    return issues
