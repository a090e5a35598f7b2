"""Integration tests for the account ledger against a real database"""

import pytest
from decimal import Decimal
from sqlalchemy.orm import Session
from spendmart_core.domain.exceptions import AccountNotFoundError
from spendmart_core.services.ledger import AccountLedger

UID = "ledger_user"


@pytest.fixture
def account(db: Session, ledger: AccountLedger) -> str:
    ledger.ensure_account(UID, email="a@example.com")
    ledger.set_financials(UID, 100000, 40000, 30000)
    db.commit()
    return UID


def test_ensure_initial_balances_seeds_unset_fields(db: Session, ledger: AccountLedger, account: str):
    ledger.ensure_initial_balances(account, 100000, 40000, 30000)
    db.commit()

    snapshot = ledger.read_snapshot(account)
    assert snapshot.balances.current_balance == Decimal("60000")
    assert snapshot.balances.emergency_fund_balance == Decimal("0")
    assert snapshot.balances.emergency_fund_goal == Decimal("0")
    assert snapshot.credit.limit == Decimal("35500")
    assert snapshot.credit.used == Decimal("0")


def test_ensure_initial_balances_is_idempotent(db: Session, ledger: AccountLedger, account: str):
    ledger.ensure_initial_balances(account, 100000, 40000, 30000)
    db.commit()
    first = ledger.read_snapshot(account)

    ledger.ensure_initial_balances(account, 100000, 40000, 30000)
    db.commit()
    assert ledger.read_snapshot(account) == first


def test_ensure_initial_balances_keeps_existing_wallet(db: Session, ledger: AccountLedger, account: str):
    ledger.ensure_initial_balances(account, 100000, 40000, 30000)
    ledger.increment_wallet(account, Decimal("-1000"))
    db.commit()

    ledger.ensure_initial_balances(account, 200000, 10000, 0)
    db.commit()

    snapshot = ledger.read_snapshot(account)
    assert snapshot.balances.wallet == Decimal("59000")
    assert snapshot.credit.limit == Decimal("35500")


def test_increments_accumulate(db: Session, ledger: AccountLedger, account: str):
    ledger.ensure_initial_balances(account, 100000, 40000, 30000)
    ledger.increment_wallet(account, Decimal("-2500.50"))
    ledger.increment_wallet(account, Decimal("-499.50"))
    ledger.increment_budget_spent(account, Decimal("3000"))
    ledger.increment_credit_used(account, Decimal("2090"))
    ledger.increment_emergency_fund(account, Decimal("1500"))
    db.commit()

    snapshot = ledger.read_snapshot(account)
    assert snapshot.balances.wallet == Decimal("57000")
    assert snapshot.financials.budget_spent == Decimal("3000")
    assert snapshot.credit.used == Decimal("2090")
    assert snapshot.balances.emergency_fund_balance == Decimal("1500")


def test_increment_unset_field_starts_from_zero(db: Session, ledger: AccountLedger, account: str):
    ledger.increment_wallet(account, Decimal("250"))
    db.commit()
    assert ledger.read_snapshot(account).balances.wallet == Decimal("250")


def test_increment_missing_account(ledger: AccountLedger):
    with pytest.raises(AccountNotFoundError):
        ledger.increment_wallet("nobody", Decimal("1"))


def test_read_snapshot_missing_account(ledger: AccountLedger):
    with pytest.raises(AccountNotFoundError):
        ledger.read_snapshot("nobody")


def test_read_snapshot_repairs_missing_credit_limit(db: Session, ledger: AccountLedger, account: str):
    """Income known but no limit stored: the estimate is written back"""
    snapshot = ledger.read_snapshot(account)
    db.commit()

    assert snapshot.credit.limit == Decimal("35500")
    assert ledger.accounts.get(account).credit_limit == Decimal("35500")


def test_read_snapshot_keeps_positive_limit(db: Session, ledger: AccountLedger, account: str):
    ledger.accounts.set_fields(account, credit_limit=Decimal("12000"))
    db.commit()
    assert ledger.read_snapshot(account).credit.limit == Decimal("12000")


def test_recompute_net_after_expenses(db: Session, ledger: AccountLedger, account: str):
    ledger.increment_budget_spent(account, Decimal("7500"))
    ledger.recompute_net_after_expenses(account)
    db.commit()

    snapshot = ledger.read_snapshot(account)
    assert snapshot.financials.net_after_expenses == Decimal("52500")
    assert snapshot.to_document()["financials"]["netAfterExpenses"] == Decimal("52500")


def test_uncommitted_increments_roll_back(db: Session, ledger: AccountLedger, account: str):
    ledger.ensure_initial_balances(account, 100000, 40000, 30000)
    db.commit()

    ledger.increment_wallet(account, Decimal("-60000"))
    db.rollback()

    assert ledger.read_snapshot(account).balances.wallet == Decimal("60000")
