"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from spendmart_core.infrastructure.auth import AuthProvider, HeaderAuthProvider
from spendmart_core.infrastructure.clients.notifications import NotificationClient
from spendmart_core.infrastructure.database.session import get_db
from spendmart_core.services.accounts import AccountService
from spendmart_core.services.dues import DueService
from spendmart_core.services.purchases import PurchaseOrchestrator


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_auth(request: Request) -> AuthProvider:
    """Identity from the upstream gateway's header"""
    return HeaderAuthProvider(request.headers)


def get_notification_client() -> NotificationClient:
    """Provide notification service client instance"""
    return NotificationClient()


def get_clock() -> Callable[[], datetime]:
    """Local wall clock; overridden in tests"""
    return datetime.now


def get_purchase_orchestrator(
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth),
    notifier: NotificationClient = Depends(get_notification_client),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> PurchaseOrchestrator:
    return PurchaseOrchestrator(db, auth, notifier, clock=clock)


def get_account_service(
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth),
) -> AccountService:
    return AccountService(db, auth)


def get_due_service(
    db: Session = Depends(get_db),
    auth: AuthProvider = Depends(get_auth),
    notifier: NotificationClient = Depends(get_notification_client),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> DueService:
    return DueService(db, auth, notifier, clock=clock)
