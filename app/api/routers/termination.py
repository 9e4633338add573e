from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.api.deps import get_clock, get_current_user, get_db
from app.core.clock import Clock
from app.db.models.user import User
from app.schemas.contract import OtpIssued
from app.schemas.termination import (
    TerminationConsentSubmit,
    TerminationCreate,
    TerminationOtpRequest,
    TerminationRequest,
)
from app.services.termination import (
    decline_termination,
    get_termination_request,
    request_termination,
    request_termination_otp,
    submit_termination_consent,
)

router = APIRouter(prefix="/contracts/{contract_id}/termination", tags=["termination"])


@router.post("", response_model=TerminationRequest, status_code=status.HTTP_201_CREATED)
def create_termination_request(
    contract_id: int,
    termination_data: TerminationCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """
    Open a termination request on a SIGNED or ACTIVE contract.

    Every party must consent with an OTP before the termination completes.
    """
    request = request_termination(
        db,
        contract_id,
        current_user,
        termination_type=termination_data.type,
        reason=termination_data.reason,
        now=clock.now(),
    )
    return TerminationRequest.model_validate(request)


@router.get("", response_model=TerminationRequest)
def get_current_termination_request(
    contract_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get the active termination request with its consents, or the latest one."""
    request = get_termination_request(db, contract_id, current_user)
    return TerminationRequest.model_validate(request)


@router.post("/{request_id}/otp", response_model=OtpIssued)
async def request_consent_otp(
    contract_id: int,
    request_id: int,
    otp_request: TerminationOtpRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Email a termination OTP to a party whose consent is pending."""
    party, otp, delivered = await request_termination_otp(
        db, contract_id, request_id, otp_request.party_id, current_user, clock.now()
    )
    return OtpIssued.for_party(party.id, otp.expires_at, delivered)


@router.post("/{request_id}/consent", response_model=TerminationRequest)
def submit_consent(
    contract_id: int,
    request_id: int,
    consent_data: TerminationConsentSubmit,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Submit one party's consent to the termination, verified by OTP."""
    request = submit_termination_consent(
        db,
        contract_id,
        request_id,
        party_id=consent_data.party_id,
        otp=consent_data.otp,
        current_user=current_user,
        now=clock.now(),
        today=clock.today(),
    )
    return TerminationRequest.model_validate(request)


@router.post("/{request_id}/decline", response_model=TerminationRequest)
def decline_termination_request(
    contract_id: int,
    request_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(get_current_user),
):
    """Decline a termination request; the contract returns to its previous status."""
    request = decline_termination(db, contract_id, request_id, current_user, clock.now())
    return TerminationRequest.model_validate(request)
