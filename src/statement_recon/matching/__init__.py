"""Matching engine and scoring."""

from .engine import ReconciliationEngine, is_eligible, match_transactions
from .scoring import (
    MIN_MATCH_SCORE,
    ScoringWeights,
    calculate_match_score,
    generate_issues,
)

__all__ = [
    "ReconciliationEngine",
    "is_eligible",
    "match_transactions",
    "MIN_MATCH_SCORE",
    "ScoringWeights",
    "calculate_match_score",
    "generate_issues",
]
