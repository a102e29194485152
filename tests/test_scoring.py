from datetime import date
from decimal import Decimal

from statement_recon.matching.scoring import (
    MIN_MATCH_SCORE,
    ScoringWeights,
    calculate_match_score,
    generate_issues,
)

from conftest import bank_txn, ledger_txn

DAY = date(2026, 1, 15)


def test_threshold_constant():
    assert MIN_MATCH_SCORE == 80
    assert ScoringWeights().min_match_score == 80


def test_perfect_pair_scores_100():
    score = calculate_match_score(bank_txn("b", DAY, "-45.00"), ledger_txn("l", DAY, "45.00"))
    assert score == 100


def test_each_day_costs_five_points():
    score = calculate_match_score(
        bank_txn("b", DAY, "-45.00"), ledger_txn("l", date(2026, 1, 17), "45.00")
    )
    assert score == 90


def test_amount_penalty_is_ten_per_unit():
    score = calculate_match_score(bank_txn("b", DAY, "-45.00"), ledger_txn("l", DAY, "45.01"))
    assert score == Decimal("99.90")


def test_amount_penalty_is_capped():
    score = calculate_match_score(bank_txn("b", DAY, "-45.00"), ledger_txn("l", DAY, "145.00"))
    assert score == 90


def test_score_never_negative():
    score = calculate_match_score(
        bank_txn("b", DAY, "-45.00"), ledger_txn("l", date(2026, 3, 1), "145.00")
    )
    assert score == 0


def test_sign_of_bank_amount_is_ignored():
    credit = calculate_match_score(bank_txn("b", DAY, "45.00"), ledger_txn("l", DAY, "45.00"))
    debit = calculate_match_score(bank_txn("b", DAY, "-45.00"), ledger_txn("l", DAY, "45.00"))
    assert credit == debit == 100


def test_custom_weights():
    weights = ScoringWeights(day_penalty=Decimal("10"))
    score = calculate_match_score(
        bank_txn("b", DAY, "-45.00"), ledger_txn("l", date(2026, 1, 16), "45.00"), weights
    )
    assert score == 90


class TestIssues:
    def test_no_issues_for_perfect_pair(self):
        assert generate_issues(bank_txn("b", DAY, "-45.00"), ledger_txn("l", DAY, "45.00")) == []

    def test_singular_day(self):
        issues = generate_issues(
            bank_txn("b", DAY, "-45.00"), ledger_txn("l", date(2026, 1, 16), "45.00")
        )
        assert issues == ["Date differs by 1 day"]

    def test_plural_days(self):
        issues = generate_issues(
            bank_txn("b", DAY, "-45.00"), ledger_txn("l", date(2026, 1, 13), "45.00")
        )
        assert issues == ["Date differs by 2 days"]

    def test_amount_issue(self):
        issues = generate_issues(bank_txn("b", DAY, "-45.00"), ledger_txn("l", DAY, "45.50"))
        assert issues == ["Amount differs by €0.50"]

    def test_both_issues(self):
        issues = generate_issues(
            bank_txn("b", DAY, "-45.00"), ledger_txn("l", date(2026, 1, 16), "45.01")
        )
        assert issues == ["Date differs by 1 day", "Amount differs by €0.01"]

    def test_sub_threshold_amount_difference_is_not_reported(self):
        issues = generate_issues(bank_txn("b", DAY, "-45.0000"), ledger_txn("l", DAY, "45.0005"))
        assert issues == []
