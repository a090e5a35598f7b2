"""POST /v1/purchases - record a purchase and apply its money movements"""

import time
from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import JSONResponse

from spendmart_core.api.dependencies import get_purchase_orchestrator, get_request_id
from spendmart_core.api.errors import to_http_exception
from spendmart_core.api.v1.schemas import (
    DraftResponse,
    PurchaseRequest,
    PurchaseResponse,
    ReceiptDraftRequest,
    ShortfallResponse,
    DueSchema,
    ItemSchema,
)
from spendmart_core.domain.exceptions import DomainException
from spendmart_core.domain.models import ItemDetails, PurchaseDraft, ReceiptSuggestion, ShortfallRequired
from spendmart_core.domain.receipts import draft_from_receipt
from spendmart_core.infrastructure.observability.logging import log_purchase
from spendmart_core.services.purchases import PurchaseOrchestrator

router = APIRouter()


@router.post(
    "/purchases",
    response_model=PurchaseResponse,
    status_code=201,
    responses={409: {"model": ShortfallResponse, "description": "Wallet shortfall, choose a credit term"}},
)
async def submit_purchase(
    request_body: PurchaseRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    orchestrator: PurchaseOrchestrator = Depends(get_purchase_orchestrator),
):
    """
    Record a purchase.

    Flow:
    1. Validate the form (category, title, amount, status, term)
    2. Lock the account and check wallet sufficiency for wallet purchases
    3. Write item, ledger increments, dues and net-after-expenses in one transaction
    4. Register due reminders as a background task after the response
       (failures do not undo the purchase)

    A wallet purchase the wallet cannot cover returns 409 with term quotes;
    resubmit with shortfall_installments set to finance the remainder.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    draft = PurchaseDraft(
        title=request_body.title,
        amount=request_body.amount,
        category_id=request_body.category_id,
        purchase_date=request_body.purchase_date,
        payment_method=request_body.payment_method,
        status=request_body.status,
        installments=request_body.installments,
        shortfall_installments=request_body.shortfall_installments,
        just_save=request_body.just_save,
        details=ItemDetails(
            description=request_body.description,
            note=request_body.note,
            location_name=request_body.location_name,
            latitude=request_body.latitude,
            longitude=request_body.longitude,
            warranty_exp=request_body.warranty_exp,
        ),
    )

    try:
        result = await orchestrator.submit_purchase(draft)
    except DomainException as e:
        raise to_http_exception(e, request_id)

    duration_ms = (time.time() - start_time) * 1000
    user_id = orchestrator.auth.current_user_id()

    if isinstance(result, ShortfallRequired):
        log_purchase(request_id, user_id, draft.payment_method.value, "shortfall", result.amount, duration_ms)
        return JSONResponse(
            status_code=409,
            content=ShortfallResponse.from_shortfall(result).model_dump(mode="json"),
        )

    log_purchase(
        request_id,
        user_id,
        result.item.payment.method.value,
        "committed",
        result.item.amount,
        duration_ms,
        item_id=result.item_id,
    )

    if result.dues:
        background_tasks.add_task(orchestrator.remind, result.dues)

    return PurchaseResponse(
        item=ItemSchema.from_item(result.item),
        dues=[DueSchema.from_due(d) for d in result.dues],
    )


@router.post("/purchases/draft", response_model=DraftResponse)
def draft_purchase(request_body: ReceiptDraftRequest):
    """
    Pre-fill a purchase form from receipt OCR output.

    Nothing is saved; the user reviews and edits the draft before submitting.
    """
    draft = draft_from_receipt(
        ReceiptSuggestion(
            merchant=request_body.merchant,
            amount=request_body.amount,
            date=request_body.receipt_date,
            raw_text=request_body.raw_text,
        ),
        category_id=request_body.category_id,
    )
    return DraftResponse(
        title=draft.title,
        amount=draft.amount,
        category_id=draft.category_id,
        purchase_date=draft.purchase_date,
        description=draft.details.description,
    )
