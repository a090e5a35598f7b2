"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from spendmart_core.domain.models import (
    AccountSnapshot,
    Category,
    CreditPayment,
    Due,
    InstallmentPlan,
    Item,
    ItemStatus,
    PaymentMethod,
    ShortfallRequired,
    SplitPayment,
    UntrackedPayment,
)
from spendmart_core.domain.money import quantize_money
from spendmart_core.services.accounts import BudgetMode


class PurchaseRequest(BaseModel):
    """Request body for POST /v1/purchases"""

    title: str = Field(..., description="Item title")
    amount: str = Field(..., description="Amount as entered, e.g. '1250.50'")
    category_id: Optional[str] = None
    purchase_date: date
    payment_method: PaymentMethod = PaymentMethod.WALLET
    status: ItemStatus = ItemStatus.PAID
    installments: int = Field(3, description="Credit term in months")
    shortfall_installments: Optional[int] = Field(None, description="Term chosen to finance a wallet shortfall")
    just_save: bool = Field(False, description="Record the item without balance effects")
    description: Optional[str] = None
    note: Optional[str] = None
    location_name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    warranty_exp: Optional[date] = None


class PlanSchema(BaseModel):
    principal: Decimal
    monthly_rate: Decimal
    months: int
    interest: Decimal
    total: Decimal
    per_installment: Decimal

    @classmethod
    def from_plan(cls, plan: InstallmentPlan) -> "PlanSchema":
        return cls(
            principal=quantize_money(plan.principal),
            monthly_rate=plan.monthly_rate,
            months=plan.months,
            interest=quantize_money(plan.interest),
            total=quantize_money(plan.total),
            per_installment=quantize_money(plan.per_installment),
        )


class DueSchema(BaseModel):
    due_id: str
    item_id: str
    category_id: str
    item_title: str
    installment_index: int
    installments: int
    amount: Decimal
    due_date: date
    status: str

    @classmethod
    def from_due(cls, due: Due) -> "DueSchema":
        return cls(
            due_id=due.due_id,
            item_id=due.item_id,
            category_id=due.category_id,
            item_title=due.item_title,
            installment_index=due.installment_index,
            installments=due.installments,
            amount=quantize_money(due.amount),
            due_date=due.due_date,
            status=due.status.value,
        )


class ItemSchema(BaseModel):
    item_id: str
    category_id: str
    title: str
    amount: Decimal
    purchase_date: date
    payment_method: str
    status: str
    untracked: bool = False
    plan: Optional[PlanSchema] = None
    wallet_paid: Optional[Decimal] = None

    @classmethod
    def from_item(cls, item: Item) -> "ItemSchema":
        payment = item.payment
        plan = None
        wallet_paid = None
        if isinstance(payment, CreditPayment):
            plan = PlanSchema.from_plan(payment.plan)
        elif isinstance(payment, SplitPayment):
            plan = PlanSchema.from_plan(payment.credit_plan)
            wallet_paid = quantize_money(payment.wallet_paid)
        return cls(
            item_id=item.item_id,
            category_id=item.category_id,
            title=item.title,
            amount=quantize_money(item.amount),
            purchase_date=item.date,
            payment_method=payment.method.value,
            status=payment.status.value,
            untracked=isinstance(payment, UntrackedPayment),
            plan=plan,
            wallet_paid=wallet_paid,
        )


class PurchaseResponse(BaseModel):
    """Response for a committed purchase"""

    item: ItemSchema
    dues: List[DueSchema]


class ShortfallResponse(BaseModel):
    """409 body: wallet cannot cover the purchase, pick a term"""

    amount: Decimal
    wallet_balance: Decimal
    shortfall: Decimal
    quotes: List[PlanSchema]

    @classmethod
    def from_shortfall(cls, result: ShortfallRequired) -> "ShortfallResponse":
        return cls(
            amount=quantize_money(result.amount),
            wallet_balance=quantize_money(result.wallet_balance),
            shortfall=quantize_money(result.shortfall),
            quotes=[PlanSchema.from_plan(q) for q in result.quotes],
        )


class FinancialsSchema(BaseModel):
    monthlyIncome: Decimal
    monthlyExpenses: Decimal
    monthlyBudget: Decimal
    budgetSpent: Decimal
    netAfterExpenses: Decimal


class BalancesSchema(BaseModel):
    currentBalance: Optional[Decimal] = None
    emergencyFundBalance: Optional[Decimal] = None
    emergencyFundGoal: Optional[Decimal] = None


class CreditSchema(BaseModel):
    limit: Decimal
    used: Decimal
    apr: Optional[Decimal] = None
    score: Optional[Decimal] = None


class DerivedSchema(BaseModel):
    budget_remaining: Decimal
    credit_available: Decimal
    emergency_left_to_goal: Decimal
    free_cash: Decimal


class AccountResponse(BaseModel):
    """users/{uid} document plus dashboard figures"""

    uid: str
    email: Optional[str] = None
    displayName: Optional[str] = None
    financials: FinancialsSchema
    balances: BalancesSchema
    credit: CreditSchema
    derived: DerivedSchema

    @classmethod
    def from_snapshot(cls, snapshot: AccountSnapshot) -> "AccountResponse":
        doc = snapshot.to_document()
        return cls(
            **doc,
            derived=DerivedSchema(
                budget_remaining=quantize_money(snapshot.budget_remaining),
                credit_available=quantize_money(snapshot.credit_available),
                emergency_left_to_goal=quantize_money(snapshot.emergency_left_to_goal),
                free_cash=quantize_money(snapshot.free_cash),
            ),
        )


class AccountRequest(BaseModel):
    """Request body for PUT /v1/account"""

    email: Optional[str] = None
    display_name: Optional[str] = None


class IncomeSetupRequest(BaseModel):
    """Request body for PUT /v1/account/financials"""

    monthly_income: Decimal
    monthly_expenses: Decimal = Decimal("0")
    budget_mode: BudgetMode = BudgetMode.PERCENTAGE
    budget_value: Decimal = Field(Decimal("0"), description="Percentage (0-100) or custom amount")


class EmergencyFundRequest(BaseModel):
    amount: Decimal = Field(..., gt=0)


class CategoryRequest(BaseModel):
    name: str = Field(..., min_length=1)
    color_hex: Optional[str] = None


class CategorySchema(BaseModel):
    category_id: str
    name: str
    color_hex: Optional[str] = None

    @classmethod
    def from_category(cls, category: Category) -> "CategorySchema":
        return cls(category_id=category.category_id, name=category.name, color_hex=category.color_hex)


class ReceiptDraftRequest(BaseModel):
    """OCR output to pre-fill a purchase form"""

    merchant: Optional[str] = None
    amount: Optional[Decimal] = None
    receipt_date: Optional[date] = None
    raw_text: str = ""
    category_id: Optional[str] = None


class DraftResponse(BaseModel):
    """Pre-filled, still unvalidated purchase form"""

    title: str
    amount: Optional[Decimal] = None
    category_id: Optional[str] = None
    purchase_date: date
    description: Optional[str] = None


class DueListResponse(BaseModel):
    dues: List[DueSchema]
