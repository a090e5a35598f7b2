"""
Purchase orchestration: validate, pick the payment branch, move money,
write the item and schedule its dues.

The whole purchase runs in one database transaction. The wallet row is
read with a row lock, so a sufficiency decision cannot be invalidated by
a concurrent purchase before this one commits, and a failure at any step
rolls every step back.

Reminders for the new dues are not requested here: callers pass
PurchaseCommitted.dues to remind() once the response is on its way.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spendmart_core.config import Settings, settings as default_settings
from spendmart_core.domain.exceptions import DomainException, PersistenceError, ValidationError
from spendmart_core.domain.installments import plan_installments, quote_terms
from spendmart_core.domain.models import (
    AccountSnapshot,
    Category,
    CreditPayment,
    Due,
    Item,
    ItemStatus,
    Payment,
    PaymentMethod,
    PurchaseCommitted,
    PurchaseDraft,
    PurchaseResult,
    ShortfallRequired,
    SplitPayment,
    UntrackedPayment,
    ValidatedPurchase,
    WalletPayment,
)
from spendmart_core.domain.money import ZERO
from spendmart_core.domain.validation import validate_purchase
from spendmart_core.infrastructure.auth import AuthProvider
from spendmart_core.infrastructure.clients.notifications import NotificationClient
from spendmart_core.infrastructure.database.models import new_id
from spendmart_core.infrastructure.database.repositories import CategoryRepository, ItemRepository
from spendmart_core.infrastructure.observability.metrics import record_purchase
from spendmart_core.services.dues import DueScheduler
from spendmart_core.services.ledger import AccountLedger

logger = logging.getLogger(__name__)


class PurchaseOrchestrator:
    """
    Entry point for recording a purchase.

    Branches by (payment method, status):
    - Wallet, funds cover it:   wallet -amount, budget spent +amount
    - Wallet, funds short:      ShortfallRequired until a term is chosen, then
                                wallet drained, remainder financed (Wallet+Credit)
    - Credit, Pay:              first installment paid now (wallet first, credit
                                for any gap), the rest owed on credit
    - Credit, To be paid:       whole plan owed on credit
    - just_save:                item recorded, no balance touched
    """

    def __init__(
        self,
        db: Session,
        auth: AuthProvider,
        notifier: NotificationClient,
        clock=datetime.now,
        config: Optional[Settings] = None,
    ):
        self.db = db
        self.auth = auth
        self.config = config or default_settings
        self.ledger = AccountLedger(db, self.config)
        self.items = ItemRepository(db)
        self.categories = CategoryRepository(db)
        self.scheduler = DueScheduler(db, notifier, clock=clock, config=self.config)

    async def submit_purchase(self, draft: PurchaseDraft) -> PurchaseResult:
        """
        Record a purchase and apply its financial effects.

        Returns:
            PurchaseCommitted with the new item and its dues (reminders not
            yet requested), or
            ShortfallRequired when a wallet purchase needs a credit term

        Raises:
            AuthenticationError: No signed-in user
            ValidationError: Bad input; nothing was written
            AccountNotFoundError: User has no account document yet
            PersistenceError: Store failure; nothing was written
        """
        uid = self.auth.require_user_id()
        method_label = draft.payment_method.value

        try:
            purchase = validate_purchase(draft, self.config.allowed_terms)
        except ValidationError:
            record_purchase(method_label, "invalid")
            raise

        try:
            category = self.categories.get(uid, purchase.category_id)
            if category is None:
                raise ValidationError("Purchase is not valid", {"category_id": "Please choose a category."})

            snapshot = self.ledger.lock_snapshot(uid)
            shortfall = self._detect_shortfall(purchase, snapshot)
            if shortfall is not None:
                self.db.rollback()
                record_purchase(method_label, "shortfall")
                logger.info(
                    "Wallet shortfall, credit term required",
                    extra={"user_id": uid, "shortfall": str(shortfall.shortfall)},
                )
                return shortfall

            item, dues = self._apply(uid, purchase, category, snapshot)
            self.ledger.recompute_net_after_expenses(uid)
            self._warn_if_over_limit(uid)
            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            record_purchase(method_label, "failed")
            logger.error(f"Purchase not saved: {e}", extra={"user_id": uid})
            raise PersistenceError(str(e)) from e
        except DomainException:
            self.db.rollback()
            record_purchase(method_label, "failed")
            raise

        record_purchase(item.payment.method.value, "committed", item.amount)
        return PurchaseCommitted(item=item, dues=dues)

    async def remind(self, dues: List[Due]) -> int:
        """Request reminders for committed dues. Never raises for notifier failures."""
        return await self.scheduler.remind(dues)

    def _detect_shortfall(self, purchase: ValidatedPurchase, snapshot: AccountSnapshot) -> Optional[ShortfallRequired]:
        """Wallet purchase the wallet cannot cover and no term chosen yet"""
        if purchase.just_save or purchase.payment_method != PaymentMethod.WALLET:
            return None
        if purchase.shortfall_installments is not None:
            return None

        wallet = snapshot.balances.wallet
        available = max(wallet, ZERO)
        if purchase.amount <= available:
            return None

        shortfall = purchase.amount - available
        return ShortfallRequired(
            amount=purchase.amount,
            wallet_balance=wallet,
            shortfall=shortfall,
            quotes=quote_terms(shortfall, self.config.credit_monthly_rate, self.config.allowed_terms),
        )

    def _apply(
        self,
        uid: str,
        purchase: ValidatedPurchase,
        category: Category,
        snapshot: AccountSnapshot,
    ) -> Tuple[Item, List[Due]]:
        """Write the item, then the ledger increments, then the dues"""
        rate = self.config.credit_monthly_rate
        wallet = max(snapshot.balances.wallet, ZERO)
        amount = purchase.amount

        if purchase.just_save:
            item = self._write_item(uid, purchase, category, UntrackedPayment(purchase.payment_method, purchase.status))
            return item, []

        if purchase.payment_method == PaymentMethod.WALLET:
            if purchase.shortfall_installments is not None and amount > wallet:
                plan = plan_installments(amount - wallet, rate, purchase.shortfall_installments)
                item = self._write_item(uid, purchase, category, SplitPayment(wallet_paid=wallet, credit_plan=plan))
                self.ledger.increment_wallet(uid, -wallet)
                self.ledger.increment_budget_spent(uid, wallet)
                self.ledger.increment_credit_used(uid, plan.total)
                dues = self._schedule(item, plan.months, plan.per_installment, first_already_paid=False)
                return item, dues

            # Wallet covers it (a term sent with no remaining shortfall is ignored)
            item = self._write_item(uid, purchase, category, WalletPayment(status=purchase.status))
            self.ledger.increment_wallet(uid, -amount)
            self.ledger.increment_budget_spent(uid, amount)
            return item, []

        plan = plan_installments(amount, rate, purchase.installments)

        if purchase.status == ItemStatus.PAY:
            first = plan.per_installment
            wallet_used = min(wallet, first)
            credit_now = first - wallet_used
            credit_later = plan.total - first

            item = self._write_item(uid, purchase, category, CreditPayment(status=ItemStatus.PAY, plan=plan))
            if wallet_used > 0:
                self.ledger.increment_wallet(uid, -wallet_used)
                self.ledger.increment_budget_spent(uid, wallet_used)
            if credit_now > 0:
                self.ledger.increment_credit_used(uid, credit_now)
            self.ledger.increment_credit_used(uid, credit_later)
            dues = self._schedule(item, plan.months - 1, first, first_already_paid=True)
            return item, dues

        item = self._write_item(uid, purchase, category, CreditPayment(status=ItemStatus.TO_BE_PAID, plan=plan))
        self.ledger.increment_credit_used(uid, plan.total)
        dues = self._schedule(item, plan.months, plan.per_installment, first_already_paid=False)
        return item, dues

    def _write_item(self, uid: str, purchase: ValidatedPurchase, category: Category, payment: Payment) -> Item:
        item = Item(
            item_id=new_id(),
            user_id=uid,
            category_id=category.category_id,
            category_name=category.name,
            title=purchase.title,
            amount=purchase.amount,
            date=purchase.purchase_date,
            payment=payment,
            details=purchase.details,
        )
        self.items.create(item)
        return item

    def _schedule(self, item: Item, months: int, per_installment: Decimal, first_already_paid: bool) -> List[Due]:
        return self.scheduler.schedule(
            user_id=item.user_id,
            item_id=item.item_id,
            category_id=item.category_id,
            title=item.title,
            total_months=months,
            per_installment=per_installment,
            purchase_date=item.date,
            first_already_paid=first_already_paid,
        )

    def _warn_if_over_limit(self, uid: str) -> None:
        """Credit limit is advisory; exceeding it is logged, not blocked"""
        snapshot = self.ledger.lock_snapshot(uid)
        if snapshot.credit.limit > 0 and snapshot.credit.used > snapshot.credit.limit:
            logger.warning(
                "Credit used exceeds limit",
                extra={
                    "user_id": uid,
                    "credit_used": str(snapshot.credit.used),
                    "credit_limit": str(snapshot.credit.limit),
                },
            )
