"""
Greedy best-match reconciliation of bank transactions against ledger transactions.

Each bank transaction, in input order, claims the highest-scoring eligible
ledger transaction not already claimed. A ledger transaction claimed by an
earlier bank transaction is never reassigned, even if a later one would
score higher, so the outcome depends on input order.

The scan is O(bank x ledger). That is fine for household volumes; a sorted
date window could replace the inner loop for large inputs as long as the
first-claimant rule and first-seen tie-break are kept.
"""

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional, Sequence
import logging

from ..models.transaction import (
    BankTransaction,
    LedgerTransaction,
    MatchingOptions,
    ReconciliationMatch,
    ReconciliationResult,
    ReconciliationStatus,
    ReconciliationSummary,
)
from ..utils.exceptions import ValidationError
from .scoring import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    amount_difference,
    calculate_match_score,
    days_between,
    generate_issues,
)

if TYPE_CHECKING:
    from ..config import ReconConfig

logger = logging.getLogger(__name__)


def match_transactions(
    bank_transactions: Sequence[BankTransaction],
    ledger_transactions: Sequence[LedgerTransaction],
    options: Optional[MatchingOptions] = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> ReconciliationResult:
    """
    Pair bank transactions with ledger transactions.

    Args:
        bank_transactions: Transactions extracted from the statement
        ledger_transactions: Ledger transactions already filtered to the
            statement's account and period
        options: Date and amount tolerances (defaults: 2 days, 0.01)
        weights: Scoring constants

    Returns:
        Reconciliation result with matched, unmatched-bank and unmatched-ledger lists

    Raises:
        ValidationError: If two ledger transactions share an identifier
    """
    if options is None:
        options = MatchingOptions()

    _check_unique_ids(ledger_transactions)

    if options.use_fuzzy_matching:
        logger.debug("use_fuzzy_matching is set but description matching is not implemented")

    matched: list[ReconciliationMatch] = []
    unmatched_bank: list[BankTransaction] = []
    claimed: frozenset[str] = frozenset()

    for bank_txn in bank_transactions:
        match, claimed = _match_one(bank_txn, ledger_transactions, claimed, options, weights)
        if match is None:
            unmatched_bank.append(bank_txn)
        else:
            matched.append(match)

    unmatched_app = [txn for txn in ledger_transactions if txn.id not in claimed]

    total_bank_amount = sum((t.magnitude for t in bank_transactions), Decimal("0"))
    total_ledger_amount = sum((t.amount for t in ledger_transactions), Decimal("0"))

    summary = ReconciliationSummary(
        total_bank=len(bank_transactions),
        total_app=len(ledger_transactions),
        matched=len(matched),
        unmatched_bank=len(unmatched_bank),
        unmatched_app=len(unmatched_app),
        balance_difference=total_bank_amount - total_ledger_amount,
    )

    return ReconciliationResult(
        matched=matched,
        unmatched_bank=unmatched_bank,
        unmatched_app=unmatched_app,
        summary=summary,
    )


def is_eligible(
    bank_txn: BankTransaction,
    ledger_txn: LedgerTransaction,
    options: MatchingOptions,
) -> bool:
    """Both the amount and the date fall within tolerance."""
    if amount_difference(bank_txn, ledger_txn) > options.amount_tolerance:
        return False
    return days_between(bank_txn, ledger_txn) <= options.date_tolerance_days


def _match_one(
    bank_txn: BankTransaction,
    ledger_transactions: Sequence[LedgerTransaction],
    claimed: frozenset[str],
    options: MatchingOptions,
    weights: ScoringWeights,
) -> tuple[Optional[ReconciliationMatch], frozenset[str]]:
    """
    Find the best unclaimed ledger transaction for one bank transaction.

    Returns:
        The match (or None) and the claimed-id set to carry forward
    """
    best: Optional[LedgerTransaction] = None
    best_score = Decimal("-1")

    for ledger_txn in ledger_transactions:
        if ledger_txn.id in claimed:
            continue
        if not is_eligible(bank_txn, ledger_txn, options):
            continue

        score = calculate_match_score(bank_txn, ledger_txn, weights)
        # Strictly greater: on a tie the first candidate seen is kept
        if score > best_score:
            best, best_score = ledger_txn, score

    if best is None or best_score < weights.min_match_score:
        logger.debug(f"Bank transaction {bank_txn.id}: no match")
        return None, claimed

    issues = generate_issues(bank_txn, best) if best_score < 100 else []
    logger.debug(f"Bank transaction {bank_txn.id} matched {best.id} (score {best_score})")

    match = ReconciliationMatch(
        bank_transaction=bank_txn,
        ledger_transaction=best,
        match_score=best_score,
        status=ReconciliationStatus.MATCHED,
        issues=issues or None,
    )
    return match, claimed | {best.id}


def _check_unique_ids(ledger_transactions: Sequence[LedgerTransaction]) -> None:
    seen: set[str] = set()
    for txn in ledger_transactions:
        if txn.id in seen:
            raise ValidationError(f"Duplicate ledger transaction id: {txn.id}")
        seen.add(txn.id)


class ReconciliationEngine:
    """Runs the matcher with tolerances and weights taken from configuration."""

    def __init__(self, config: "ReconConfig"):
        """
        Initialize the reconciliation engine.

        Args:
            config: Application configuration

        Raises:
            InvalidConfigurationError: If a tolerance is negative
        """
        self.config = config
        self.options = config.matching.to_options()
        self.weights = config.matching.to_weights()

    def reconcile(
        self,
        bank_transactions: Sequence[BankTransaction],
        ledger_transactions: Sequence[LedgerTransaction],
    ) -> ReconciliationResult:
        """Reconcile and log the outcome."""
        start_time = datetime.now()
        logger.info(
            f"Starting reconciliation: {len(bank_transactions)} bank txns, "
            f"{len(ledger_transactions)} ledger txns"
        )

        result = match_transactions(
            bank_transactions, ledger_transactions, self.options, self.weights
        )

        elapsed = (datetime.now() - start_time).total_seconds()
        summary = result.summary
        logger.info(
            f"Reconciliation complete in {elapsed:.2f}s: {summary.matched} matched, "
            f"{summary.unmatched_bank} bank-only, {summary.unmatched_app} ledger-only"
        )
        return result
