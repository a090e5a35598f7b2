"""Due scheduling, reminders, listing and settlement"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from spendmart_core.config import Settings, settings as default_settings
from spendmart_core.domain.exceptions import DueNotFoundError, PersistenceError, SchedulingError
from spendmart_core.domain.installments import generate_due_dates
from spendmart_core.domain.models import Due, DueBucket, DueStatus
from spendmart_core.domain.money import quantize_money
from spendmart_core.infrastructure.auth import AuthProvider
from spendmart_core.infrastructure.clients.notifications import NotificationClient
from spendmart_core.infrastructure.database.models import new_id
from spendmart_core.infrastructure.database.repositories import DueRepository
from spendmart_core.infrastructure.observability.metrics import (
    dues_created_counter,
    dues_paid_counter,
    reminder_failure_counter,
)
from spendmart_core.utils.date_utils import reminder_time

logger = logging.getLogger(__name__)

REMINDER_TITLE = "Installment due today"


class DueScheduler:
    """Expands a financed amount into monthly dues and their reminders"""

    def __init__(
        self,
        db: Session,
        notifier: NotificationClient,
        clock: Callable[[], datetime] = datetime.now,
        config: Optional[Settings] = None,
    ):
        self.dues = DueRepository(db)
        self.notifier = notifier
        self.clock = clock
        self.config = config or default_settings

    def schedule(
        self,
        user_id: str,
        item_id: str,
        category_id: str,
        title: str,
        total_months: int,
        per_installment: Decimal,
        purchase_date: date,
        first_already_paid: bool,
    ) -> List[Due]:
        """
        Persist one pending due per remaining installment.

        When the first installment was paid at purchase, indices run
        2..total_months+1 and every due records total_months+1 installments.
        Returns the created dues; reminders are requested separately via
        remind() once the surrounding transaction has committed.
        """
        if total_months <= 0:
            return []

        offset = 1 if first_already_paid else 0
        dues = [
            Due(
                due_id=new_id(),
                user_id=user_id,
                item_id=item_id,
                category_id=category_id,
                item_title=title,
                installment_index=index + offset,
                installments=total_months + offset,
                amount=per_installment,
                due_date=due_date,
            )
            for index, due_date in enumerate(generate_due_dates(purchase_date, total_months), start=1)
        ]
        self.dues.create_many(dues)
        dues_created_counter.inc(len(dues))
        return dues

    async def remind(self, dues: Iterable[Due]) -> int:
        """
        Request a reminder for each due. Failures are logged, not raised:
        the due exists whether or not its reminder registered.

        Returns the number of reminders registered.
        """
        registered = 0
        now = self.clock()
        for due in dues:
            try:
                at = reminder_time(
                    due.due_date,
                    now,
                    hour=self.config.reminder_hour,
                    grace_seconds=self.config.reminder_grace_seconds,
                )
                body = f"{due.item_title}: {self.config.currency} {quantize_money(due.amount)} is due"
                await self.notifier.schedule(due.due_id, REMINDER_TITLE, body, at)
                registered += 1
            except (SchedulingError, InvalidOperation) as e:
                reminder_failure_counter.inc()
                logger.warning(
                    f"Reminder not registered: {e}",
                    extra={"due_id": due.due_id, "user_id": due.user_id},
                )
        return registered


def classify_due(due: Due, today: date) -> DueBucket:
    if due.status == DueStatus.PAID:
        return DueBucket.PAID
    if due.due_date < today:
        return DueBucket.OVERDUE
    if due.due_date == today:
        return DueBucket.TODAY
    return DueBucket.UPCOMING


class DueService:
    """Read and settle a user's dues"""

    def __init__(
        self,
        db: Session,
        auth: AuthProvider,
        notifier: NotificationClient,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.auth = auth
        self.dues = DueRepository(db)
        self.notifier = notifier
        self.clock = clock

    def list_dues(self, bucket: Optional[DueBucket] = None) -> List[Due]:
        """Dues ordered by due date, optionally limited to one dashboard bucket"""
        uid = self.auth.require_user_id()
        today = self.clock().date()
        try:
            if bucket is None:
                return self.dues.list(uid)
            if bucket == DueBucket.PAID:
                return self.dues.list(uid, status=DueStatus.PAID)
            if bucket == DueBucket.OVERDUE:
                return self.dues.list(uid, status=DueStatus.PENDING, due_before=today)
            pending = self.dues.list(uid, status=DueStatus.PENDING, due_from=today)
            return [d for d in pending if classify_due(d, today) == bucket]
        except SQLAlchemyError as e:
            raise PersistenceError(str(e)) from e

    async def mark_paid(self, due_id: str) -> Due:
        """
        Settle a due. Marking an already-paid due is a no-op.

        Raises:
            DueNotFoundError: If the due is not the user's
        """
        uid = self.auth.require_user_id()
        try:
            changed = self.dues.mark_paid(uid, due_id, paid_at=self.clock())
            due = self.dues.get(uid, due_id)
            if due is None:
                self.db.rollback()
                raise DueNotFoundError(f"Due {due_id} not found")
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise PersistenceError(str(e)) from e

        if changed:
            dues_paid_counter.inc()
            try:
                await self.notifier.cancel(due_id)
            except SchedulingError as e:
                reminder_failure_counter.inc()
                logger.warning(f"Reminder not cancelled: {e}", extra={"due_id": due_id, "user_id": uid})
        return due
