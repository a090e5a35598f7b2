"""Data access layer for accounts, categories, items and dues"""

from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from spendmart_core.domain.exceptions import AccountNotFoundError
from spendmart_core.domain.models import (
    AccountSnapshot,
    Balances,
    Category,
    Credit,
    CreditPayment,
    Due,
    DueStatus,
    Financials,
    InstallmentPlan,
    Item,
    ItemDetails,
    ItemStatus,
    PaymentMethod,
    SplitPayment,
    UntrackedPayment,
    WalletPayment,
)
from spendmart_core.infrastructure.database.models import (
    CategoryRecord,
    DueRecord,
    ItemRecord,
    UserAccount,
    new_id,
)


class AccountRepository:
    """Point reads, conditional writes and atomic increments on users/{uid}"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, uid: str, for_update: bool = False) -> Optional[UserAccount]:
        """Read the account row, bypassing any stale copy in the identity map"""
        stmt = select(UserAccount).where(UserAccount.uid == uid).execution_options(populate_existing=True)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def require(self, uid: str, for_update: bool = False) -> UserAccount:
        account = self.get(uid, for_update=for_update)
        if account is None:
            raise AccountNotFoundError(f"No account for user {uid}")
        return account

    def upsert_profile(self, uid: str, email: Optional[str], display_name: Optional[str]) -> UserAccount:
        """Create the account row or merge profile fields into it"""
        account = self.get(uid)
        if account is None:
            account = UserAccount(uid=uid, email=email, display_name=display_name)
            self.db.add(account)
        else:
            if email is not None:
                account.email = email
            if display_name is not None:
                account.display_name = display_name
        self.db.flush()
        return account

    def increment(self, uid: str, field: str, delta: Any) -> None:
        """
        Atomically add delta to a numeric field in SQL.

        Never reads the current value into Python, so concurrent
        increments commute.
        """
        column = getattr(UserAccount, field)
        result = self.db.execute(
            update(UserAccount)
            .where(UserAccount.uid == uid)
            .values({column: func.coalesce(column, 0) + delta})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AccountNotFoundError(f"No account for user {uid}")

    def set_fields(self, uid: str, *conditions: Any, **values: Any) -> int:
        """Write fields, optionally only where extra conditions hold. Returns rows changed."""
        result = self.db.execute(
            update(UserAccount)
            .where(UserAccount.uid == uid, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def recompute_net_after_expenses(self, uid: str) -> None:
        """net = (income - expenses) - spent, evaluated by the database"""
        self.set_fields(
            uid,
            net_after_expenses=(
                UserAccount.monthly_income - UserAccount.monthly_expenses - UserAccount.budget_spent
            ),
        )


class CategoryRepository:
    """Repository for spending categories"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, uid: str, name: str, color_hex: Optional[str] = None) -> Category:
        record = CategoryRecord(id=new_id(), user_id=uid, name=name, color_hex=color_hex)
        self.db.add(record)
        self.db.flush()
        return to_category(record)

    def get(self, uid: str, category_id: str) -> Optional[Category]:
        record = self.db.execute(
            select(CategoryRecord).where(CategoryRecord.user_id == uid, CategoryRecord.id == category_id)
        ).scalar_one_or_none()
        return to_category(record) if record else None

    def list(self, uid: str) -> List[Category]:
        records = self.db.execute(
            select(CategoryRecord).where(CategoryRecord.user_id == uid).order_by(CategoryRecord.name)
        ).scalars()
        return [to_category(r) for r in records]


class ItemRepository:
    """Repository for purchase items"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, item: Item) -> ItemRecord:
        """Persist a new item. Items are never updated afterwards."""
        record = ItemRecord(
            id=item.item_id,
            user_id=item.user_id,
            category_id=item.category_id,
            category_name=item.category_name,
            title=item.title,
            amount=item.amount,
            date=item.date,
            payment_method=item.payment.method.value,
            status=item.payment.status.value,
            untracked=isinstance(item.payment, UntrackedPayment),
            description=item.details.description,
            note=item.details.note,
            location_name=item.details.location_name,
            latitude=item.details.latitude,
            longitude=item.details.longitude,
            warranty_exp=item.details.warranty_exp,
        )

        payment = item.payment
        if isinstance(payment, CreditPayment):
            record.installments = payment.plan.months
            record.interest_monthly_rate = payment.plan.monthly_rate
            record.interest_total = payment.plan.interest
            record.total_payable = payment.plan.total
            record.per_installment = payment.plan.per_installment
        elif isinstance(payment, SplitPayment):
            record.wallet_paid = payment.wallet_paid
            record.credit_principal = payment.credit_plan.principal
            record.credit_installments = payment.credit_plan.months
            record.credit_interest_rate = payment.credit_plan.monthly_rate
            record.credit_interest_total = payment.credit_plan.interest
            record.credit_total_payable = payment.credit_plan.total
            record.credit_per_installment = payment.credit_plan.per_installment

        self.db.add(record)
        self.db.flush()
        return record

    def get(self, uid: str, item_id: str) -> Optional[Item]:
        record = self.db.execute(
            select(ItemRecord).where(ItemRecord.user_id == uid, ItemRecord.id == item_id)
        ).scalar_one_or_none()
        return to_item(record) if record else None

    def list_by_category(self, uid: str, category_id: str) -> List[Item]:
        records = self.db.execute(
            select(ItemRecord)
            .where(ItemRecord.user_id == uid, ItemRecord.category_id == category_id)
            .order_by(ItemRecord.date.desc(), ItemRecord.created_at.desc())
        ).scalars()
        return [to_item(r) for r in records]


class DueRepository:
    """Repository for scheduled installments"""

    def __init__(self, db: Session):
        self.db = db

    def create_many(self, dues: Iterable[Due]) -> None:
        for due in dues:
            self.db.add(
                DueRecord(
                    id=due.due_id,
                    user_id=due.user_id,
                    item_id=due.item_id,
                    category_id=due.category_id,
                    item_title=due.item_title,
                    installment_index=due.installment_index,
                    installments=due.installments,
                    amount=due.amount,
                    due_date=due.due_date,
                    status=due.status.value,
                )
            )
        self.db.flush()

    def get(self, uid: str, due_id: str) -> Optional[Due]:
        record = self.db.execute(
            select(DueRecord)
            .where(DueRecord.user_id == uid, DueRecord.id == due_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        return to_due(record) if record else None

    def list(
        self,
        uid: str,
        status: Optional[DueStatus] = None,
        due_before: Optional[date] = None,
        due_from: Optional[date] = None,
        item_id: Optional[str] = None,
    ) -> List[Due]:
        """Dues ordered by due date, with optional half-open date window"""
        stmt = select(DueRecord).where(DueRecord.user_id == uid)
        if status is not None:
            stmt = stmt.where(DueRecord.status == status.value)
        if due_from is not None:
            stmt = stmt.where(DueRecord.due_date >= due_from)
        if due_before is not None:
            stmt = stmt.where(DueRecord.due_date < due_before)
        if item_id is not None:
            stmt = stmt.where(DueRecord.item_id == item_id)
        stmt = stmt.order_by(DueRecord.due_date, DueRecord.installment_index)
        return [to_due(r) for r in self.db.execute(stmt).scalars()]

    def mark_paid(self, uid: str, due_id: str, paid_at: datetime) -> bool:
        """pending -> paid. Returns False when nothing changed."""
        result = self.db.execute(
            update(DueRecord)
            .where(
                DueRecord.user_id == uid,
                DueRecord.id == due_id,
                DueRecord.status == DueStatus.PENDING.value,
            )
            .values(status=DueStatus.PAID.value, paid_at=paid_at)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


def to_snapshot(record: UserAccount) -> AccountSnapshot:
    return AccountSnapshot(
        user_id=record.uid,
        email=record.email,
        display_name=record.display_name,
        financials=Financials(
            monthly_income=record.monthly_income,
            monthly_expenses=record.monthly_expenses,
            monthly_budget=record.monthly_budget,
            budget_spent=record.budget_spent,
            net_after_expenses=record.net_after_expenses,
        ),
        balances=Balances(
            current_balance=record.current_balance,
            emergency_fund_balance=record.emergency_fund_balance,
            emergency_fund_goal=record.emergency_fund_goal,
        ),
        credit=Credit(
            limit=record.credit_limit,
            used=record.credit_used,
            apr=record.credit_apr,
            score=record.credit_score,
        ),
    )


def to_category(record: CategoryRecord) -> Category:
    return Category(
        category_id=record.id,
        user_id=record.user_id,
        name=record.name,
        color_hex=record.color_hex,
        created_at=record.created_at,
    )


def to_item(record: ItemRecord) -> Item:
    method = PaymentMethod(record.payment_method)
    status = ItemStatus(record.status)

    if record.untracked:
        payment = UntrackedPayment(method=method, status=status)
    elif method == PaymentMethod.CREDIT:
        payment = CreditPayment(
            status=status,
            plan=InstallmentPlan(
                principal=record.amount,
                monthly_rate=record.interest_monthly_rate,
                months=record.installments,
                interest=record.interest_total,
                total=record.total_payable,
                per_installment=record.per_installment,
            ),
        )
    elif method == PaymentMethod.WALLET_CREDIT:
        payment = SplitPayment(
            wallet_paid=record.wallet_paid,
            credit_plan=InstallmentPlan(
                principal=record.credit_principal,
                monthly_rate=record.credit_interest_rate,
                months=record.credit_installments,
                interest=record.credit_interest_total,
                total=record.credit_total_payable,
                per_installment=record.credit_per_installment,
            ),
        )
    else:
        payment = WalletPayment(status=status)

    return Item(
        item_id=record.id,
        user_id=record.user_id,
        category_id=record.category_id,
        category_name=record.category_name,
        title=record.title,
        amount=record.amount,
        date=record.date,
        payment=payment,
        details=ItemDetails(
            description=record.description,
            note=record.note,
            location_name=record.location_name,
            latitude=record.latitude,
            longitude=record.longitude,
            warranty_exp=record.warranty_exp,
        ),
        created_at=record.created_at,
    )


def to_due(record: DueRecord) -> Due:
    return Due(
        due_id=record.id,
        user_id=record.user_id,
        item_id=record.item_id,
        category_id=record.category_id,
        item_title=record.item_title,
        installment_index=record.installment_index,
        installments=record.installments,
        amount=record.amount,
        due_date=record.due_date,
        status=DueStatus(record.status),
        created_at=record.created_at,
        paid_at=record.paid_at,
    )
