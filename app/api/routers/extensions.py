from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_clock, get_current_user, get_db
from app.core.clock import Clock
from app.db.models.user import User
from app.schemas.extension import ExtensionCreate, ExtensionDecision, ExtensionRequest
from app.schemas.pagination import PaginatedResponse
from app.services.extension import (
    create_extension_request,
    decide_extension,
    list_extension_requests,
)

router = APIRouter(prefix="/contracts/{contract_id}/extensions", tags=["extensions"])


@router.get("", response_model=PaginatedResponse[ExtensionRequest])
def get_extension_requests(
    contract_id: int,
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    page_size: int = Query(10, ge=1, le=100, description="Number of items per page"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List a contract's extension requests, newest first."""
    requests, total = list_extension_requests(
        db, contract_id, current_user, page=page, page_size=page_size
    )
    return PaginatedResponse(
        items=[ExtensionRequest.model_validate(request) for request in requests],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=ExtensionRequest, status_code=status.HTTP_201_CREATED)
def create_new_extension_request(
    contract_id: int,
    extension_data: ExtensionCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Ask the landlord to move the contract end date. Tenant only."""
    request = create_extension_request(
        db,
        contract_id,
        current_user,
        new_end_date=extension_data.new_end_date,
        note=extension_data.note,
        now=clock.now(),
    )
    return ExtensionRequest.model_validate(request)


@router.post("/decision", response_model=ExtensionRequest)
def decide_extension_request(
    contract_id: int,
    decision: ExtensionDecision,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Accept or decline the pending extension request. Landlord only."""
    request = decide_extension(
        db,
        contract_id,
        current_user,
        action=decision.action,
        note=decision.note,
        now=clock.now(),
    )
    return ExtensionRequest.model_validate(request)
