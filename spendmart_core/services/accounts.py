"""Account setup, dashboard summary, emergency fund and categories"""

import logging
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spendmart_core.config import Settings, settings as default_settings
from spendmart_core.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from spendmart_core.domain.models import AccountSnapshot, Category, Item
from spendmart_core.domain.money import MoneyLike, ZERO, fits_money_precision, to_decimal
from spendmart_core.infrastructure.auth import AuthProvider
from spendmart_core.infrastructure.database.repositories import CategoryRepository, ItemRepository
from spendmart_core.services.ledger import AccountLedger

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class BudgetMode(str, Enum):
    PERCENTAGE = "percentage"  # Percentage of (income - expenses)
    CUSTOM = "custom"


def resolve_budget(income: Decimal, expenses: Decimal, mode: BudgetMode, value: Decimal) -> Decimal:
    """Monthly budget from the chosen mode"""
    if mode == BudgetMode.PERCENTAGE:
        return max(income - expenses, ZERO) * value / HUNDRED
    return value


class AccountService:
    """User-facing account operations outside the purchase flow"""

    def __init__(self, db: Session, auth: AuthProvider, config: Optional[Settings] = None):
        self.db = db
        self.auth = auth
        self.ledger = AccountLedger(db, config or default_settings)
        self.categories = CategoryRepository(db)
        self.items = ItemRepository(db)

    def register(self, email: Optional[str] = None, display_name: Optional[str] = None) -> AccountSnapshot:
        """Create or merge the signed-in user's account document"""
        uid = self.auth.require_user_id()
        with self._transaction():
            self.ledger.ensure_account(uid, email, display_name)
        return self.summary()

    def setup_income(
        self,
        income: MoneyLike,
        expenses: MoneyLike,
        budget_mode: BudgetMode = BudgetMode.PERCENTAGE,
        budget_value: MoneyLike = 0,
    ) -> AccountSnapshot:
        """
        Store monthly income, expenses and budget, then initialise balances.

        Raises:
            ValidationError: Income not positive, negative inputs, or budget
                above income minus expenses
        """
        uid = self.auth.require_user_id()
        income = to_decimal(income)
        expenses = to_decimal(expenses)
        budget_value = to_decimal(budget_value)

        errors: Dict[str, str] = {}
        if income <= 0 or not fits_money_precision(income):
            errors["income"] = "Please enter a valid monthly income amount."
        if expenses < 0:
            errors["expenses"] = "Expenses cannot be negative."
        elif not fits_money_precision(expenses):
            errors["expenses"] = "Please enter a valid expenses amount."
        if not fits_money_precision(budget_value):
            errors["budget"] = "Please enter a valid budget amount."
        elif budget_value < 0:
            errors["budget"] = "Budget cannot be negative."
        elif budget_mode == BudgetMode.PERCENTAGE and budget_value > HUNDRED:
            errors["budget"] = "Percentage cannot exceed 100."

        budget = resolve_budget(income, expenses, budget_mode, budget_value)
        if "budget" not in errors and budget > max(income - expenses, ZERO):
            errors["budget"] = "Budget cannot exceed Net After Expenses."
        if errors:
            raise ValidationError("Income setup is not valid", errors)

        with self._transaction():
            self.ledger.ensure_account(uid)
            self.ledger.set_financials(uid, income, expenses, budget)
            self.ledger.recompute_net_after_expenses(uid)
            self.ledger.ensure_initial_balances(uid, income, expenses, budget)

        logger.info("Income setup saved", extra={"user_id": uid, "budget": str(budget)})
        return self.summary()

    def summary(self) -> AccountSnapshot:
        """Current snapshot; repairs a missing credit limit as a side effect"""
        uid = self.auth.require_user_id()
        with self._transaction():
            return self.ledger.read_snapshot(uid)

    def add_to_emergency_fund(self, amount: MoneyLike) -> AccountSnapshot:
        """
        Move free cash into the emergency fund.

        Raises:
            ValidationError: Amount not positive or above current free cash
        """
        uid = self.auth.require_user_id()
        amount = to_decimal(amount)
        if amount <= 0 or not fits_money_precision(amount):
            raise ValidationError("Amount must be positive", {"amount": "Enter an amount above zero."})

        with self._transaction():
            snapshot = self.ledger.lock_snapshot(uid)
            if amount > snapshot.free_cash:
                raise ValidationError(
                    "Not enough free cash",
                    {"amount": f"At most {snapshot.free_cash} is available."},
                )
            self.ledger.increment_emergency_fund(uid, amount)
        return self.summary()

    def release_emergency_fund(self) -> AccountSnapshot:
        """Return the whole emergency fund to free cash"""
        uid = self.auth.require_user_id()
        with self._transaction():
            snapshot = self.ledger.lock_snapshot(uid)
            release = snapshot.balances.emergency_fund_balance or ZERO
            if release > 0:
                self.ledger.increment_emergency_fund(uid, -release)
        return self.summary()

    def create_category(self, name: str, color_hex: Optional[str] = None) -> Category:
        uid = self.auth.require_user_id()
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category is not valid", {"name": "Enter a category name."})
        with self._transaction():
            self.ledger.accounts.require(uid)
            return self.categories.create(uid, name, color_hex)

    def list_categories(self) -> List[Category]:
        uid = self.auth.require_user_id()
        with self._transaction():
            return self.categories.list(uid)

    def list_items(self, category_id: str) -> List[Item]:
        uid = self.auth.require_user_id()
        with self._transaction():
            if self.categories.get(uid, category_id) is None:
                raise NotFoundError(f"Category {category_id} not found")
            return self.items.list_by_category(uid, category_id)

    def _transaction(self) -> "_UnitOfWork":
        return _UnitOfWork(self.db)


class _UnitOfWork:
    """Commit on success, roll back and translate store errors on failure"""

    def __init__(self, db: Session):
        self.db = db

    def __enter__(self) -> Session:
        return self.db

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None:
            self.db.commit()
            return False
        self.db.rollback()
        if issubclass(exc_type, SQLAlchemyError):
            raise PersistenceError(str(exc)) from exc
        return False
