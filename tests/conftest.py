"""Pytest fixtures for testing"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from typing import Generator
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker, Session

from spendmart_core.api.dependencies import get_clock, get_notification_client
from spendmart_core.api.main import create_app
from spendmart_core.domain.models import Category, ItemStatus, PaymentMethod, PurchaseDraft
from spendmart_core.infrastructure.auth import StaticAuthProvider, USER_ID_HEADER
from spendmart_core.infrastructure.clients.notifications import NotificationClient
from spendmart_core.infrastructure.database.models import Base
from spendmart_core.infrastructure.database.session import build_engine, get_db
from spendmart_core.services.accounts import AccountService, BudgetMode
from spendmart_core.services.ledger import AccountLedger
from spendmart_core.services.purchases import PurchaseOrchestrator


# Test database. SQLite ignores FOR UPDATE and stores Numeric as floats;
# row locks and exact decimals are covered by tests marked postgres.
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = build_engine(TEST_DATABASE_URL)
TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

USER_ID = "user_1"
PURCHASE_DATE = date(2025, 1, 10)
NOW = datetime(2025, 1, 10, 8, 0, 0)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def auth() -> StaticAuthProvider:
    return StaticAuthProvider(USER_ID)


@pytest.fixture
def notifier() -> AsyncMock:
    """Notification client that records calls instead of hitting the network"""
    return AsyncMock(spec=NotificationClient)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def ledger(db: Session) -> AccountLedger:
    return AccountLedger(db)


@pytest.fixture
def account_service(db: Session, auth: StaticAuthProvider) -> AccountService:
    return AccountService(db, auth)


@pytest.fixture
def onboarded(account_service: AccountService):
    """
    Income 100,000, expenses 40,000, budget 30,000.
    Seeds wallet 60,000 and credit limit 35,500.
    """
    return account_service.setup_income(
        Decimal("100000"), Decimal("40000"), BudgetMode.CUSTOM, Decimal("30000")
    )


@pytest.fixture
def category(onboarded, account_service: AccountService) -> Category:
    return account_service.create_category("Electronics", "#3366FF")


@pytest.fixture
def orchestrator(db: Session, auth: StaticAuthProvider, notifier: AsyncMock, clock) -> PurchaseOrchestrator:
    return PurchaseOrchestrator(db, auth, notifier, clock=clock)


@pytest.fixture
def make_draft(category: Category):
    """Build a purchase draft against the seeded category"""

    def _make(amount="5000", **overrides) -> PurchaseDraft:
        values = dict(
            title="Headphones",
            amount=amount,
            category_id=category.category_id,
            purchase_date=PURCHASE_DATE,
            payment_method=PaymentMethod.WALLET,
            status=ItemStatus.PAID,
        )
        values.update(overrides)
        return PurchaseDraft(**values)

    return _make


@pytest.fixture
def set_wallet(db: Session, ledger: AccountLedger, onboarded):
    """Move the wallet to an exact balance through the increment primitive"""

    def _set(target) -> None:
        current = ledger.read_snapshot(USER_ID).balances.wallet
        ledger.increment_wallet(USER_ID, Decimal(target) - current)
        db.commit()

    return _set


@pytest.fixture
def client(db: Session, notifier: AsyncMock, clock) -> TestClient:
    """Create FastAPI test client with test database and stub notifier"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_client] = lambda: notifier
    app.dependency_overrides[get_clock] = lambda: clock
    return TestClient(app, headers={USER_ID_HEADER: USER_ID})
