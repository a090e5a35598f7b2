"""Simple-interest installment plans and monthly due date generation"""

from datetime import date
from decimal import Decimal
from typing import Iterable, List

from spendmart_core.domain.models import InstallmentPlan
from spendmart_core.domain.money import MoneyLike, ZERO, to_decimal
from spendmart_core.utils.date_utils import add_months


def plan_installments(principal: MoneyLike, monthly_rate: MoneyLike, months: int) -> InstallmentPlan:
    """
    Compute a simple (non-compounding) monthly interest plan.

    interest = principal x rate x months
    total = principal + interest
    per_installment = total / months (0 when months is 0)

    Nothing is rounded here; callers quantize at presentation time so
    per-installment rounding never accumulates into totals.

    Example:
        12,000 at 1.5%/month over 6 months
        interest 1,080, total 13,080, per installment 2,180
    """
    principal = to_decimal(principal)
    monthly_rate = to_decimal(monthly_rate)

    interest = principal * monthly_rate * months
    total = principal + interest
    per_installment = total / months if months > 0 else ZERO

    return InstallmentPlan(
        principal=principal,
        monthly_rate=monthly_rate,
        months=months,
        interest=interest,
        total=total,
        per_installment=per_installment,
    )


def quote_terms(principal: MoneyLike, monthly_rate: MoneyLike, terms: Iterable[int]) -> List[InstallmentPlan]:
    """One plan per selectable term, for presenting a choice to the user"""
    return [plan_installments(principal, monthly_rate, months) for months in terms]


def generate_due_dates(purchase_date: date, count: int) -> List[date]:
    """
    Monthly due dates starting one month after purchase.

    Every date is derived from the first due date rather than chained, so a
    purchase on Jan 31 yields Feb 28/29 and then the 28th/29th onwards.
    """
    if count <= 0:
        return []

    first_due = add_months(purchase_date, 1)
    return [add_months(first_due, i) for i in range(count)]
