"""/v1/account and /v1/categories - account setup, dashboard and categories"""

from typing import List

from fastapi import APIRouter, Depends, Request

from spendmart_core.api.dependencies import get_account_service, get_request_id
from spendmart_core.api.errors import to_http_exception
from spendmart_core.api.v1.schemas import (
    AccountRequest,
    AccountResponse,
    CategoryRequest,
    CategorySchema,
    EmergencyFundRequest,
    IncomeSetupRequest,
    ItemSchema,
)
from spendmart_core.domain.exceptions import DomainException
from spendmart_core.services.accounts import AccountService

router = APIRouter()


@router.put("/account", response_model=AccountResponse)
def register_account(
    request_body: AccountRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
):
    """Create the signed-in user's account document, or merge profile fields"""
    try:
        snapshot = service.register(request_body.email, request_body.display_name)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return AccountResponse.from_snapshot(snapshot)


@router.get("/account", response_model=AccountResponse)
def get_account(request: Request, service: AccountService = Depends(get_account_service)):
    """Balances, credit and dashboard figures"""
    try:
        snapshot = service.summary()
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return AccountResponse.from_snapshot(snapshot)


@router.put("/account/financials", response_model=AccountResponse)
def setup_income(
    request_body: IncomeSetupRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
):
    """
    Save monthly income, expenses and budget.

    First call also seeds the wallet, emergency fund and credit limit;
    later calls leave already-initialised balances alone.
    """
    try:
        snapshot = service.setup_income(
            request_body.monthly_income,
            request_body.monthly_expenses,
            request_body.budget_mode,
            request_body.budget_value,
        )
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return AccountResponse.from_snapshot(snapshot)


@router.post("/account/emergency-fund", response_model=AccountResponse)
def add_to_emergency_fund(
    request_body: EmergencyFundRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
):
    """Move free cash into the emergency fund"""
    try:
        snapshot = service.add_to_emergency_fund(request_body.amount)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return AccountResponse.from_snapshot(snapshot)


@router.delete("/account/emergency-fund", response_model=AccountResponse)
def release_emergency_fund(request: Request, service: AccountService = Depends(get_account_service)):
    """Release the whole emergency fund back to free cash"""
    try:
        snapshot = service.release_emergency_fund()
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return AccountResponse.from_snapshot(snapshot)


@router.post("/categories", response_model=CategorySchema, status_code=201)
def create_category(
    request_body: CategoryRequest,
    request: Request,
    service: AccountService = Depends(get_account_service),
):
    try:
        category = service.create_category(request_body.name, request_body.color_hex)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return CategorySchema.from_category(category)


@router.get("/categories", response_model=List[CategorySchema])
def list_categories(request: Request, service: AccountService = Depends(get_account_service)):
    try:
        categories = service.list_categories()
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return [CategorySchema.from_category(c) for c in categories]


@router.get("/categories/{category_id}/items", response_model=List[ItemSchema])
def list_items(category_id: str, request: Request, service: AccountService = Depends(get_account_service)):
    """Items in a category, newest first"""
    try:
        items = service.list_items(category_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return [ItemSchema.from_item(i) for i in items]
