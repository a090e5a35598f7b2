"""/v1/dues - list and settle scheduled installments"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from spendmart_core.api.dependencies import get_due_service, get_request_id
from spendmart_core.api.errors import to_http_exception
from spendmart_core.api.v1.schemas import DueListResponse, DueSchema
from spendmart_core.domain.exceptions import DomainException
from spendmart_core.domain.models import DueBucket
from spendmart_core.services.dues import DueService

router = APIRouter()


@router.get("/dues", response_model=DueListResponse)
def list_dues(
    request: Request,
    bucket: Optional[DueBucket] = Query(None, description="upcoming | today | overdue | paid"),
    service: DueService = Depends(get_due_service),
):
    """Dues ordered by due date"""
    try:
        dues = service.list_dues(bucket)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return DueListResponse(dues=[DueSchema.from_due(d) for d in dues])


@router.post("/dues/{due_id}/paid", response_model=DueSchema)
async def mark_due_paid(due_id: str, request: Request, service: DueService = Depends(get_due_service)):
    """Mark a due paid and cancel its reminder. Repeating the call is harmless."""
    try:
        due = await service.mark_paid(due_id)
    except DomainException as e:
        raise to_http_exception(e, get_request_id(request))
    return DueSchema.from_due(due)
