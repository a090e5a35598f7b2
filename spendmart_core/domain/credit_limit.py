"""Initial revolving-credit limit estimation from income, expenses and budget"""

from decimal import Decimal
from typing import Optional

from spendmart_core.config import Settings, settings as default_settings
from spendmart_core.domain.money import MoneyLike, ZERO, clamp, round_to_nearest, to_decimal

ONE = Decimal("1")
BASE_MULTIPLIER = Decimal("0.8")
RISK_MULTIPLIER_SPAN = Decimal("0.7")


def calculate_risk_score(income: Decimal, expenses: Decimal, budget: Decimal) -> Decimal:
    """
    Score from 0.0 (riskiest) to 1.0 (safest).

    Two equally weighted components:
    - stability: share of income not consumed by fixed expenses
    - prudence: share of disposable income the user leaves unbudgeted
    """
    disposable = max(income - expenses, ZERO)
    budget_clamped = clamp(budget, ZERO, disposable)

    expense_ratio = clamp(expenses / income, ZERO, ONE) if income > 0 else ONE
    stability = ONE - expense_ratio
    prudence = ONE - budget_clamped / disposable if disposable > 0 else ZERO

    return (stability + prudence) / 2


def estimate_credit_limit(
    income: MoneyLike,
    expenses: MoneyLike,
    budget: MoneyLike,
    config: Optional[Settings] = None,
) -> Decimal:
    """
    Map monthly income, expenses and budget to an initial credit limit.

    The unbudgeted cushion (disposable income minus budget) is scaled by a
    multiplier in [0.8, 1.5] driven by the risk score, then:
    - capped at min(income x 0.60, 500,000)
    - floored at 10,000 when there is any income, else 0
    - rounded to the nearest 500

    Example:
        income=100,000 expenses=40,000 budget=30,000
        cushion=30,000, risk=0.55, multiplier=1.185 -> 35,550 -> 35,500
    """
    config = config or default_settings
    income = max(to_decimal(income), ZERO)
    expenses = max(to_decimal(expenses), ZERO)
    budget = max(to_decimal(budget), ZERO)

    disposable = max(income - expenses, ZERO)
    cushion = disposable - clamp(budget, ZERO, disposable)

    multiplier = BASE_MULTIPLIER + RISK_MULTIPLIER_SPAN * calculate_risk_score(income, expenses, budget)
    limit = cushion * multiplier

    cap = min(income * config.credit_limit_income_ratio, config.credit_limit_cap)
    limit = min(limit, cap)

    # Floor applies after the cap, so very small incomes still get the minimum line
    floor = config.credit_limit_floor if income > 0 else ZERO
    limit = max(limit, floor)

    return round_to_nearest(limit, config.credit_limit_step)
