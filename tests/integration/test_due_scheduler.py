"""Integration tests for due scheduling, listing and settlement"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock
from sqlalchemy.orm import Session
from spendmart_core.domain.exceptions import DueNotFoundError, SchedulingError
from spendmart_core.domain.models import Due, DueBucket, DueStatus, ItemStatus, PaymentMethod
from spendmart_core.infrastructure.auth import StaticAuthProvider
from spendmart_core.infrastructure.database.repositories import DueRepository
from spendmart_core.services.dues import DueScheduler, DueService, classify_due

USER_ID = "user_1"
NOW = datetime(2025, 1, 10, 8, 0)


@pytest.fixture
def scheduler(db: Session, notifier: AsyncMock) -> DueScheduler:
    return DueScheduler(db, notifier, clock=lambda: NOW)


def schedule(scheduler: DueScheduler, months: int, first_already_paid: bool, purchase_date=date(2025, 1, 10)):
    return scheduler.schedule(
        user_id=USER_ID,
        item_id="item_1",
        category_id="cat_1",
        title="Phone",
        total_months=months,
        per_installment=Decimal("2180"),
        purchase_date=purchase_date,
        first_already_paid=first_already_paid,
    )


def test_schedule_full_plan(db: Session, scheduler: DueScheduler):
    dues = schedule(scheduler, 6, first_already_paid=False)
    db.commit()

    assert [d.installment_index for d in dues] == [1, 2, 3, 4, 5, 6]
    assert all(d.installments == 6 for d in dues)
    assert all(d.status == DueStatus.PENDING for d in dues)
    assert dues[0].due_date == date(2025, 2, 10)
    assert dues[-1].due_date == date(2025, 7, 10)
    assert len(DueRepository(db).list(USER_ID)) == 6


def test_schedule_after_first_paid(db: Session, scheduler: DueScheduler):
    """Five remaining of six: indices 2..6, total recorded as 6"""
    dues = schedule(scheduler, 5, first_already_paid=True)

    assert [d.installment_index for d in dues] == [2, 3, 4, 5, 6]
    assert all(d.installments == 6 for d in dues)
    assert dues[0].due_date == date(2025, 2, 10)


def test_schedule_nothing_remaining(db: Session, scheduler: DueScheduler):
    assert schedule(scheduler, 0, first_already_paid=True) == []
    assert DueRepository(db).list(USER_ID) == []


def test_schedule_month_end_purchase(scheduler: DueScheduler):
    dues = schedule(scheduler, 3, first_already_paid=False, purchase_date=date(2025, 1, 31))
    assert [d.due_date for d in dues] == [date(2025, 2, 28), date(2025, 3, 28), date(2025, 4, 28)]


def test_due_document_layout(scheduler: DueScheduler):
    doc = schedule(scheduler, 3, first_already_paid=False)[0].to_document()

    assert doc["itemTitle"] == "Phone"
    assert doc["installmentIndex"] == 1
    assert doc["installments"] == 3
    assert doc["dueDate"] == date(2025, 2, 10)
    assert doc["status"] == "pending"


async def test_remind_future_due_fires_in_the_morning(scheduler: DueScheduler, notifier: AsyncMock):
    dues = schedule(scheduler, 1, first_already_paid=False)

    assert await scheduler.remind(dues) == 1
    notifier.schedule.assert_awaited_once_with(
        dues[0].due_id, "Installment due today", "Phone: LKR 2180.00 is due", datetime(2025, 2, 10, 9, 0)
    )


async def test_remind_past_due_fires_shortly(scheduler: DueScheduler, notifier: AsyncMock):
    """Backdated purchase: the first due date is already behind us"""
    dues = schedule(scheduler, 2, first_already_paid=False, purchase_date=date(2024, 11, 5))

    await scheduler.remind(dues)

    fired = [c.args[3] for c in notifier.schedule.await_args_list]
    assert fired == [NOW + timedelta(seconds=5), NOW + timedelta(seconds=5)]


async def test_remind_failures_are_counted_not_raised(scheduler: DueScheduler, notifier: AsyncMock):
    notifier.schedule.side_effect = [None, SchedulingError("rejected"), None]
    dues = schedule(scheduler, 3, first_already_paid=False)

    assert await scheduler.remind(dues) == 2
    assert notifier.schedule.await_count == 3


def _due(due_date: date, status: DueStatus = DueStatus.PENDING, amount: Decimal = Decimal("100")) -> Due:
    return Due(
        due_id="d1",
        user_id=USER_ID,
        item_id="item_1",
        category_id="cat_1",
        item_title="Phone",
        installment_index=1,
        installments=3,
        amount=amount,
        due_date=due_date,
        status=status,
    )


@pytest.mark.parametrize(
    "due_date,status,bucket",
    [
        (date(2025, 3, 9), DueStatus.PENDING, DueBucket.OVERDUE),
        (date(2025, 3, 10), DueStatus.PENDING, DueBucket.TODAY),
        (date(2025, 3, 11), DueStatus.PENDING, DueBucket.UPCOMING),
        (date(2025, 3, 9), DueStatus.PAID, DueBucket.PAID),
    ],
)
def test_classify_due(due_date, status, bucket):
    assert classify_due(_due(due_date, status), date(2025, 3, 10)) == bucket


@pytest.fixture
async def financed_dues(orchestrator, make_draft):
    """Three dues from a 3-month credit purchase on 2025-01-10"""
    result = await orchestrator.submit_purchase(
        make_draft("3000", payment_method=PaymentMethod.CREDIT, status=ItemStatus.TO_BE_PAID, installments=3)
    )
    return result.dues


@pytest.fixture
def due_service(db: Session, notifier: AsyncMock) -> DueService:
    # Feb 10 due is overdue, Mar 10 due today, Apr 10 upcoming
    return DueService(db, StaticAuthProvider(USER_ID), notifier, clock=lambda: datetime(2025, 3, 10, 12, 0))


async def test_list_dues_ordered_by_date(financed_dues, due_service: DueService):
    dues = due_service.list_dues()
    assert [d.due_date for d in dues] == [date(2025, 2, 10), date(2025, 3, 10), date(2025, 4, 10)]


@pytest.mark.parametrize(
    "bucket,expected",
    [
        (DueBucket.OVERDUE, [date(2025, 2, 10)]),
        (DueBucket.TODAY, [date(2025, 3, 10)]),
        (DueBucket.UPCOMING, [date(2025, 4, 10)]),
        (DueBucket.PAID, []),
    ],
)
async def test_list_dues_by_bucket(financed_dues, due_service: DueService, bucket, expected):
    assert [d.due_date for d in due_service.list_dues(bucket)] == expected


async def test_mark_paid_cancels_reminder(financed_dues, due_service: DueService, notifier: AsyncMock):
    target = financed_dues[0]

    due = await due_service.mark_paid(target.due_id)

    assert due.status == DueStatus.PAID
    assert due.paid_at is not None
    notifier.cancel.assert_awaited_once_with(target.due_id)
    assert [d.due_id for d in due_service.list_dues(DueBucket.PAID)] == [target.due_id]
    assert due_service.list_dues(DueBucket.OVERDUE) == []


async def test_mark_paid_is_idempotent(financed_dues, due_service: DueService, notifier: AsyncMock):
    target = financed_dues[1]

    first = await due_service.mark_paid(target.due_id)
    second = await due_service.mark_paid(target.due_id)

    assert first.status == second.status == DueStatus.PAID
    assert first.paid_at == second.paid_at
    assert notifier.cancel.await_count == 1


async def test_mark_paid_survives_cancel_failure(financed_dues, due_service: DueService, notifier: AsyncMock):
    notifier.cancel.side_effect = SchedulingError("notification service down")

    due = await due_service.mark_paid(financed_dues[2].due_id)

    assert due.status == DueStatus.PAID


async def test_mark_paid_unknown_due(onboarded, due_service: DueService):
    with pytest.raises(DueNotFoundError):
        await due_service.mark_paid("missing")


async def test_mark_paid_other_users_due(financed_dues, db: Session, notifier: AsyncMock):
    stranger = DueService(db, StaticAuthProvider("stranger"), notifier)

    with pytest.raises(DueNotFoundError):
        await stranger.mark_paid(financed_dues[0].due_id)
    notifier.cancel.assert_not_awaited()


async def test_remind_unformattable_amount_is_not_fatal(scheduler: DueScheduler, notifier: AsyncMock):
    """A due whose amount cannot be quantized is skipped, the rest still register"""
    dues = [_due(date(2025, 2, 10), amount=Decimal("1e40")), _due(date(2025, 3, 10))]

    assert await scheduler.remind(dues) == 1
    assert notifier.schedule.await_count == 1
