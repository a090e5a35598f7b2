"""Account ledger: the single place balance fields are mutated"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from spendmart_core.config import Settings, settings as default_settings
from spendmart_core.domain.credit_limit import estimate_credit_limit
from spendmart_core.domain.models import AccountSnapshot
from spendmart_core.domain.money import MoneyLike, ZERO, to_decimal
from spendmart_core.infrastructure.database.models import UserAccount
from spendmart_core.infrastructure.database.repositories import AccountRepository, to_snapshot
from spendmart_core.infrastructure.observability.metrics import record_credit_limit

logger = logging.getLogger(__name__)


class AccountLedger:
    """
    Atomic balance primitives over the account document.

    Every mutation is an increment evaluated by the database, never a
    read-modify-write in Python. Methods flush but do not commit: the
    caller owns the transaction boundary.
    """

    def __init__(self, db: Session, config: Optional[Settings] = None):
        self.db = db
        self.accounts = AccountRepository(db)
        self.config = config or default_settings

    # Increments

    def increment_wallet(self, uid: str, delta: MoneyLike) -> None:
        self.accounts.increment(uid, "current_balance", to_decimal(delta))

    def increment_budget_spent(self, uid: str, delta: MoneyLike) -> None:
        self.accounts.increment(uid, "budget_spent", to_decimal(delta))

    def increment_credit_used(self, uid: str, delta: MoneyLike) -> None:
        self.accounts.increment(uid, "credit_used", to_decimal(delta))

    def increment_emergency_fund(self, uid: str, delta: MoneyLike) -> None:
        self.accounts.increment(uid, "emergency_fund_balance", to_decimal(delta))

    # Reads

    def read_snapshot(self, uid: str) -> AccountSnapshot:
        """
        Advisory read of the current balances.

        Repairs a missing credit limit on the way: when income is known but
        no positive limit is stored, the estimate is written back. The write
        only lands if the limit is still unset, so racing repairs agree.
        """
        account = self.accounts.require(uid)
        if account.credit_limit <= 0 and account.monthly_income > 0:
            self._repair_credit_limit(account)
            account = self.accounts.require(uid)
        return to_snapshot(account)

    def lock_snapshot(self, uid: str) -> AccountSnapshot:
        """Read the account row locked until the current transaction ends"""
        return to_snapshot(self.accounts.require(uid, for_update=True))

    def recompute_net_after_expenses(self, uid: str) -> None:
        self.accounts.recompute_net_after_expenses(uid)

    # Setup

    def ensure_account(self, uid: str, email: Optional[str] = None, display_name: Optional[str] = None) -> None:
        self.accounts.upsert_profile(uid, email, display_name)

    def set_financials(self, uid: str, income: MoneyLike, expenses: MoneyLike, budget: MoneyLike) -> None:
        """Store the monthly income, expenses and budget from income setup"""
        changed = self.accounts.set_fields(
            uid,
            monthly_income=to_decimal(income),
            monthly_expenses=to_decimal(expenses),
            monthly_budget=to_decimal(budget),
        )
        if changed == 0:
            self.accounts.require(uid)

    def ensure_initial_balances(self, uid: str, income: MoneyLike, expenses: MoneyLike, budget: MoneyLike) -> None:
        """
        Initialise whatever balances are still unset.

        - wallet: max(income - expenses, 0) if unset or zero
        - emergency fund balance and goal: 0 if unset
        - credit limit: estimated if stored limit <= 0

        The row is locked for the read so concurrent onboarding flows
        serialise. Calling this repeatedly leaves the same state.
        """
        income = to_decimal(income)
        expenses = to_decimal(expenses)
        account = self.accounts.require(uid, for_update=True)

        values = {}
        if account.current_balance is None or account.current_balance == 0:
            values["current_balance"] = max(income - expenses, ZERO)
        if account.emergency_fund_balance is None:
            values["emergency_fund_balance"] = ZERO
        if account.emergency_fund_goal is None:
            values["emergency_fund_goal"] = ZERO
        if account.credit_limit <= 0:
            limit = estimate_credit_limit(income, expenses, budget, self.config)
            values["credit_limit"] = limit
            record_credit_limit(limit)

        if values:
            self.accounts.set_fields(uid, **values)
            self.db.flush()
            logger.info("Initial balances set", extra={"user_id": uid, "fields": sorted(values)})

    def _repair_credit_limit(self, account: UserAccount) -> Decimal:
        limit = estimate_credit_limit(
            account.monthly_income,
            account.monthly_expenses,
            account.monthly_budget,
            self.config,
        )
        self.accounts.set_fields(account.uid, UserAccount.credit_limit <= 0, credit_limit=limit)
        self.db.flush()
        record_credit_limit(limit)
        logger.info("Credit limit repaired", extra={"user_id": account.uid, "credit_limit": str(limit)})
        return limit
