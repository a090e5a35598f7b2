"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from spendmart_core.domain.money import ZERO


class PaymentMethod(str, Enum):
    WALLET = "Wallet"
    CREDIT = "Credit"
    WALLET_CREDIT = "Wallet+Credit"


class ItemStatus(str, Enum):
    PAID = "Paid"
    PAY = "Pay"
    TO_BE_PAID = "To be paid"


class DueStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"


class DueBucket(str, Enum):
    """Dashboard grouping of dues relative to today"""

    UPCOMING = "upcoming"
    TODAY = "today"
    OVERDUE = "overdue"
    PAID = "paid"


# Statuses a caller may pick for each payment method
STATUS_OPTIONS = {
    PaymentMethod.WALLET: (ItemStatus.PAID, ItemStatus.PAY),
    PaymentMethod.CREDIT: (ItemStatus.PAY, ItemStatus.TO_BE_PAID),
}


@dataclass(frozen=True)
class Financials:
    monthly_income: Decimal = ZERO
    monthly_expenses: Decimal = ZERO
    monthly_budget: Decimal = ZERO
    budget_spent: Decimal = ZERO
    net_after_expenses: Optional[Decimal] = None


@dataclass(frozen=True)
class Balances:
    """Wallet and emergency fund. None means the field was never initialised."""

    current_balance: Optional[Decimal] = None
    emergency_fund_balance: Optional[Decimal] = None
    emergency_fund_goal: Optional[Decimal] = None

    @property
    def wallet(self) -> Decimal:
        return self.current_balance if self.current_balance is not None else ZERO


@dataclass(frozen=True)
class Credit:
    limit: Decimal = ZERO
    used: Decimal = ZERO
    apr: Optional[Decimal] = None
    score: Optional[Decimal] = None


@dataclass(frozen=True)
class AccountSnapshot:
    """Point-in-time view of a user's money"""

    user_id: str
    financials: Financials
    balances: Balances
    credit: Credit
    email: Optional[str] = None
    display_name: Optional[str] = None

    @property
    def net_after_expenses(self) -> Decimal:
        if self.financials.net_after_expenses is not None:
            return self.financials.net_after_expenses
        f = self.financials
        return (f.monthly_income - f.monthly_expenses) - f.budget_spent

    @property
    def budget_remaining(self) -> Decimal:
        return max(self.financials.monthly_budget - self.financials.budget_spent, ZERO)

    @property
    def credit_available(self) -> Decimal:
        return max(self.credit.limit - self.credit.used, ZERO)

    @property
    def emergency_left_to_goal(self) -> Decimal:
        goal = self.balances.emergency_fund_goal or ZERO
        fund = self.balances.emergency_fund_balance or ZERO
        return max(goal - fund, ZERO)

    @property
    def free_cash(self) -> Decimal:
        """Income minus expenses minus budget minus emergency fund, floored at zero"""
        f = self.financials
        fund = self.balances.emergency_fund_balance or ZERO
        return max((f.monthly_income - f.monthly_expenses) - f.monthly_budget - fund, ZERO)

    def to_document(self) -> Dict[str, Any]:
        """Render the persisted users/{uid} layout"""
        f, b, c = self.financials, self.balances, self.credit
        return {
            "uid": self.user_id,
            "email": self.email,
            "displayName": self.display_name,
            "financials": {
                "monthlyIncome": f.monthly_income,
                "monthlyExpenses": f.monthly_expenses,
                "monthlyBudget": f.monthly_budget,
                "budgetSpent": f.budget_spent,
                "netAfterExpenses": self.net_after_expenses,
            },
            "balances": {
                "currentBalance": b.current_balance,
                "emergencyFundBalance": b.emergency_fund_balance,
                "emergencyFundGoal": b.emergency_fund_goal,
            },
            "credit": {
                "limit": c.limit,
                "used": c.used,
                "apr": c.apr,
                "score": c.score,
            },
        }


@dataclass(frozen=True)
class InstallmentPlan:
    """Simple-interest repayment plan, unrounded"""

    principal: Decimal
    monthly_rate: Decimal
    months: int
    interest: Decimal
    total: Decimal
    per_installment: Decimal


# Payment variants: each carries only the fields its method needs


@dataclass(frozen=True)
class WalletPayment:
    status: ItemStatus
    method: PaymentMethod = field(default=PaymentMethod.WALLET, init=False)

    def to_document(self) -> Dict[str, Any]:
        return {"paymentMethod": self.method.value, "status": self.status.value}


@dataclass(frozen=True)
class CreditPayment:
    status: ItemStatus
    plan: InstallmentPlan
    method: PaymentMethod = field(default=PaymentMethod.CREDIT, init=False)

    def to_document(self) -> Dict[str, Any]:
        return {
            "paymentMethod": self.method.value,
            "status": self.status.value,
            "installments": self.plan.months,
            "interestMonthlyRate": self.plan.monthly_rate,
            "interestTotal": self.plan.interest,
            "totalPayable": self.plan.total,
            "perInstallment": self.plan.per_installment,
        }


@dataclass(frozen=True)
class SplitPayment:
    """Wallet drained first, remainder financed on credit"""

    wallet_paid: Decimal
    credit_plan: InstallmentPlan
    status: ItemStatus = field(default=ItemStatus.PAY, init=False)
    method: PaymentMethod = field(default=PaymentMethod.WALLET_CREDIT, init=False)

    def to_document(self) -> Dict[str, Any]:
        return {
            "paymentMethod": self.method.value,
            "status": self.status.value,
            "walletPaid": self.wallet_paid,
            "creditPrincipal": self.credit_plan.principal,
            "creditInstallments": self.credit_plan.months,
            "creditInterestRate": self.credit_plan.monthly_rate,
            "creditInterestTotal": self.credit_plan.interest,
            "creditTotalPayable": self.credit_plan.total,
            "creditPerInstallment": self.credit_plan.per_installment,
        }


@dataclass(frozen=True)
class UntrackedPayment:
    """Recorded as chosen without touching any balance"""

    method: PaymentMethod
    status: ItemStatus

    def to_document(self) -> Dict[str, Any]:
        return {"paymentMethod": self.method.value, "status": self.status.value, "untracked": True}


Payment = Union[WalletPayment, CreditPayment, SplitPayment, UntrackedPayment]


@dataclass(frozen=True)
class ItemDetails:
    """Non-financial attributes captured with a purchase"""

    description: Optional[str] = None
    note: Optional[str] = None
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    warranty_exp: Optional[date] = None


@dataclass(frozen=True)
class Item:
    """Purchase record; immutable once committed"""

    item_id: str
    user_id: str
    category_id: str
    title: str
    amount: Decimal
    date: date
    payment: Payment
    details: ItemDetails = field(default_factory=ItemDetails)
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        doc = {
            "title": self.title,
            "amount": self.amount,
            "date": self.date,
            "categoryId": self.category_id,
            "categoryName": self.category_name,
            "description": self.details.description,
            "note": self.details.note,
            "warrantyExp": self.details.warranty_exp,
            "createdAt": self.created_at,
        }
        if self.details.latitude is not None and self.details.longitude is not None:
            doc["latitude"] = self.details.latitude
            doc["longitude"] = self.details.longitude
            doc["locationName"] = self.details.location_name
        doc.update(self.payment.to_document())
        return doc


@dataclass(frozen=True)
class Due:
    """One scheduled installment of a financed item"""

    due_id: str
    user_id: str
    item_id: str
    category_id: str
    item_title: str
    installment_index: int
    installments: int
    amount: Decimal
    due_date: date
    status: DueStatus = DueStatus.PENDING
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    def to_document(self) -> Dict[str, Any]:
        return {
            "itemId": self.item_id,
            "categoryId": self.category_id,
            "itemTitle": self.item_title,
            "installmentIndex": self.installment_index,
            "installments": self.installments,
            "amount": self.amount,
            "dueDate": self.due_date,
            "status": self.status.value,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class Category:
    category_id: str
    user_id: str
    name: str
    color_hex: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class PurchaseDraft:
    """Caller-supplied purchase input, untrusted until validated"""

    title: str
    amount: Union[Decimal, str, int, float, None]
    category_id: Optional[str]
    purchase_date: date
    payment_method: PaymentMethod = PaymentMethod.WALLET
    status: ItemStatus = ItemStatus.PAID
    installments: int = 3
    shortfall_installments: Optional[int] = None  # Term chosen to resolve a wallet shortfall
    just_save: bool = False  # Record only, no balance effects
    details: ItemDetails = field(default_factory=ItemDetails)


@dataclass(frozen=True)
class ValidatedPurchase:
    title: str
    amount: Decimal
    category_id: str
    purchase_date: date
    payment_method: PaymentMethod
    status: ItemStatus
    installments: int
    shortfall_installments: Optional[int]
    just_save: bool
    details: ItemDetails


@dataclass(frozen=True)
class PurchaseCommitted:
    """Purchase written with all its ledger effects"""

    item: Item
    dues: List[Due]

    @property
    def item_id(self) -> str:
        return self.item.item_id


@dataclass(frozen=True)
class ShortfallRequired:
    """
    Wallet cannot cover a wallet purchase.

    Not an error: the caller picks one of the quoted terms and resubmits
    the same draft with shortfall_installments set.
    """

    amount: Decimal
    wallet_balance: Decimal
    shortfall: Decimal
    quotes: List[InstallmentPlan]


PurchaseResult = Union[PurchaseCommitted, ShortfallRequired]


@dataclass(frozen=True)
class ReceiptSuggestion:
    """Best-effort OCR output. Every field is optional and unverified."""

    merchant: Optional[str] = None
    amount: Optional[Decimal] = None
    date: Optional[date] = None
    raw_text: str = ""
