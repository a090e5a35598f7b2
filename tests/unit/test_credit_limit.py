"""Unit tests for credit limit estimation"""

import pytest
from decimal import Decimal
from spendmart_core.domain.credit_limit import calculate_risk_score, estimate_credit_limit


def test_risk_score_balanced_profile():
    """Income 100k, expenses 40k, budget 30k: stability 0.6, prudence 0.5"""
    score = calculate_risk_score(Decimal("100000"), Decimal("40000"), Decimal("30000"))
    assert score == Decimal("0.55")


def test_risk_score_no_income_is_riskiest():
    assert calculate_risk_score(Decimal("0"), Decimal("0"), Decimal("0")) == Decimal("0")


def test_estimate_credit_limit_reference_profile():
    """cushion 30,000 x multiplier 1.185 = 35,550, rounded to 35,500"""
    assert estimate_credit_limit(100000, 40000, 30000) == Decimal("35500")


def test_estimate_credit_limit_zero_income():
    assert estimate_credit_limit(0, 0, 0) == Decimal("0")


def test_estimate_credit_limit_negative_inputs_treated_as_zero():
    assert estimate_credit_limit(-5000, -100, -100) == Decimal("0")


def test_estimate_credit_limit_fully_budgeted_gets_floor():
    """No cushion left, but any income earns the minimum line"""
    assert estimate_credit_limit(100000, 40000, 60000) == Decimal("10000")


def test_estimate_credit_limit_income_cap():
    """Cushion 100,000 x 1.5 = 150,000, capped at 60% of income"""
    assert estimate_credit_limit(100000, 0, 0) == Decimal("60000")


def test_estimate_credit_limit_absolute_cap():
    assert estimate_credit_limit(2000000, 0, 0) == Decimal("500000")


def test_estimate_credit_limit_budget_above_disposable_is_clamped():
    """A budget larger than disposable income leaves no cushion"""
    assert estimate_credit_limit(50000, 20000, 90000) == Decimal("10000")


def test_estimate_credit_limit_floor_can_exceed_income_cap():
    """Floor is applied after the cap"""
    assert estimate_credit_limit(1000, 0, 0) == Decimal("10000")


@pytest.mark.parametrize(
    "income,expenses,budget",
    [
        (20000, 5000, 1000),
        (45000, 30000, 10000),
        (75000, 10000, 65000),
        (120000, 80000, 0),
        (250000, 90000, 40000),
        (999999, 123456, 54321),
        (3000000, 100, 100),
    ],
)
def test_estimate_credit_limit_bounds(income, expenses, budget):
    """Limit is a multiple of 500 between the floor and the cap"""
    limit = estimate_credit_limit(income, expenses, budget)
    cap = min(Decimal(income) * Decimal("0.60"), Decimal("500000"))

    assert limit % 500 == 0
    assert limit >= Decimal("10000")
    assert limit <= cap + 250  # rounding may lift a value up to half a step


def test_estimate_credit_limit_is_deterministic():
    first = estimate_credit_limit(Decimal("84250.75"), Decimal("31000"), Decimal("12000"))
    second = estimate_credit_limit(Decimal("84250.75"), Decimal("31000"), Decimal("12000"))
    assert first == second
