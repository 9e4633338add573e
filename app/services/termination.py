"""Multi-party termination consent process."""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

import app.repositories.contract as contract_repo
import app.repositories.extension as extension_repo
import app.repositories.invoice as invoice_repo
import app.repositories.termination as termination_repo
from app.core.config import settings
from app.db.models.contract import Contract as ContractModel, ContractParty
from app.db.models.otp import ContractOtp
from app.db.models.termination import (
    TerminationConsent as TerminationConsentModel,
    TerminationRequest as TerminationRequestModel,
)
from app.db.models.user import User
from app.domain.contract_guards import (
    can_consent,
    can_decline_termination,
    can_request_termination,
    consent_complete,
)
from app.domain.contract_state import (
    ConsentStatus,
    ContractEvent,
    OtpPurpose,
    TerminationStatus,
    TerminationType,
    next_status,
    termination_outcome_event,
)
from app.domain.read_model import current_user_party
from app.errors import INVALID_STATUS, NOT_A_PARTY, ForbiddenError, NotFoundError, PreconditionError
from app.services.contract import ensure_contract_access, load_contract
from app.services.email import deliver_otp
from app.services.guard import ensure
from app.services.otp import consume_otp, issue_otp

logger = logging.getLogger(__name__)

CONSENT_METHOD_OTP = "OTP"
EXTENSION_CLOSED_NOTE = "Closed by contract termination"


def _acting_party(db: Session, contract: ContractModel, current_user: User) -> ContractParty:
    party = current_user_party(contract_repo.get_parties(db, contract.id), current_user.id)
    if party is None:
        raise ForbiddenError("You are not a party to this contract", code=NOT_A_PARTY)
    return party


def _load_request(db: Session, contract_id: int, request_id: int) -> TerminationRequestModel:
    request = termination_repo.get_request_by_id(db, contract_id, request_id)
    if not request:
        raise NotFoundError("Termination request not found")
    return request


def _consenting_party(
    db: Session,
    contract: ContractModel,
    request: TerminationRequestModel,
    party_id: int,
    current_user: User,
    now: datetime,
) -> tuple[ContractParty, TerminationConsentModel]:
    """Run the consent guards and return the party with its consent record."""
    party = contract_repo.get_party(db, contract.id, party_id)
    consent = termination_repo.get_consent(db, request.id, party_id) if party else None
    if party is None or consent is None:
        raise PreconditionError(
            f"Party {party_id} is not part of this termination request", code=NOT_A_PARTY
        )
    if party.user_id != current_user.id:
        raise ForbiddenError("You can only act for your own party", code=NOT_A_PARTY)
    ensure(can_consent(request.status, consent.status))
    if request.expires_at is not None and request.expires_at < now:
        raise PreconditionError("Termination request has expired", code=INVALID_STATUS)
    return party, consent


def _complete(
    contract: ContractModel, request: TerminationRequestModel, db: Session, now: datetime
) -> None:
    request.status = TerminationStatus.COMPLETED
    request.completed_at = now
    request.updated_at = now
    contract.status = next_status(contract.status, termination_outcome_event(request.type))
    contract.updated_at = now
    contract.pending_end_date = None
    cancelled = invoice_repo.cancel_open_invoices(db, contract.id)
    closed = extension_repo.decline_pending_requests(db, contract.id, now, EXTENSION_CLOSED_NOTE)
    logger.info(
        "Termination request %s completed; contract %s is now %s "
        "(%s open invoices cancelled, %s pending extensions closed)",
        request.id,
        contract.id,
        contract.status.value,
        cancelled,
        closed,
    )


def _reject(contract: ContractModel, request: TerminationRequestModel, now: datetime) -> None:
    request.status = TerminationStatus.REJECTED
    request.cancelled_at = now
    request.updated_at = now
    contract.status = request.previous_status
    contract.updated_at = now
    logger.info(
        "Termination request %s rejected; contract %s restored to %s",
        request.id,
        contract.id,
        contract.status.value,
    )


def request_termination(
    db: Session,
    contract_id: int,
    current_user: User,
    termination_type: TerminationType,
    reason: str | None,
    now: datetime,
) -> TerminationRequestModel:
    """
    Open a termination request on a SIGNED or ACTIVE contract.

    - NORMAL_EXPIRE always uses the configured expiry reason
    - EARLY_TERMINATE requires a non-blank reason
    - Creates one PENDING consent per party and moves the contract to TERMINATION_PENDING
    """
    contract = load_contract(db, contract_id, for_update=True)
    initiator = _acting_party(db, contract, current_user)

    if TerminationType(termination_type) == TerminationType.NORMAL_EXPIRE:
        reason = settings.normal_expire_reason

    active = termination_repo.get_active_request(db, contract.id)
    ensure(
        can_request_termination(
            contract.status,
            has_active_request=active is not None,
            termination_type=termination_type,
            reason=reason,
        )
    )

    parties = contract_repo.get_parties(db, contract.id)
    request = termination_repo.add_request(
        db,
        contract_id=contract.id,
        initiator_party_id=initiator.id,
        termination_type=TerminationType(termination_type),
        reason=reason.strip(),
        previous_status=contract.status,
        expires_at=now + timedelta(days=settings.termination_request_expire_days),
        created_at=now,
        consenting_parties=[(p.id, p.user_id) for p in parties],
    )
    contract.status = next_status(contract.status, ContractEvent.REQUEST_TERMINATION)
    contract.updated_at = now
    db.commit()
    logger.info(
        "Termination request %s (%s) opened on contract %s by party %s",
        request.id,
        request.type.value,
        contract.id,
        initiator.id,
    )
    return _load_request(db, contract.id, request.id)


def get_termination_request(
    db: Session, contract_id: int, current_user: User
) -> TerminationRequestModel:
    """Get the contract's active termination request, or its most recent one."""
    contract = load_contract(db, contract_id)
    ensure_contract_access(contract, current_user)
    request = termination_repo.get_active_request(db, contract.id)
    if request is None:
        request = termination_repo.get_latest_request(db, contract.id)
    if request is None:
        raise NotFoundError("No termination request for this contract")
    return request


async def request_termination_otp(
    db: Session,
    contract_id: int,
    request_id: int,
    party_id: int,
    current_user: User,
    now: datetime,
) -> tuple[ContractParty, ContractOtp, bool]:
    """Issue a termination OTP to a party whose consent is still pending; the flag reports delivery."""
    contract = load_contract(db, contract_id, for_update=True)
    request = _load_request(db, contract.id, request_id)
    party, _consent = _consenting_party(db, contract, request, party_id, current_user, now)
    record, code = issue_otp(
        db, contract, party, OtpPurpose.TERMINATION, now, termination_request=request
    )
    db.commit()

    delivered = await deliver_otp(party.email, code, OtpPurpose.TERMINATION, contract.id)
    if not delivered:
        logger.warning(
            "Termination OTP for party %s on request %s was not delivered", party.id, request.id
        )
    return party, record, delivered


def submit_termination_consent(
    db: Session,
    contract_id: int,
    request_id: int,
    party_id: int,
    otp: str,
    current_user: User,
    now: datetime,
    today: date,
) -> TerminationRequestModel:
    """
    Record one party's consent, verified by OTP.

    When every consent is SIGNED the request completes and the contract becomes
    CANCELLED (early termination) or EXPIRED (normal expiry). A normal expiry
    agreed before the end date is APPROVED instead and completed by the
    lifecycle sweep once the end date is reached.
    """
    contract = load_contract(db, contract_id, for_update=True)
    request = _load_request(db, contract.id, request_id)
    party, consent = _consenting_party(db, contract, request, party_id, current_user, now)

    consume_otp(db, contract, party, OtpPurpose.TERMINATION, otp, now, termination_request=request)

    consent.status = ConsentStatus.SIGNED
    consent.method = CONSENT_METHOD_OTP
    consent.signed_at = now
    request.updated_at = now
    db.flush()
    logger.info("Party %s consented to termination request %s", party.id, request.id)

    if consent_complete(c.status for c in request.consents):
        request.status = TerminationStatus.APPROVED
        if request.type == TerminationType.EARLY_TERMINATE or today >= contract.end_date:
            _complete(contract, request, db, now)
        else:
            logger.info(
                "Termination request %s approved; waiting for end date %s",
                request.id,
                contract.end_date,
            )

    db.commit()
    return _load_request(db, contract.id, request.id)


def decline_termination(
    db: Session, contract_id: int, request_id: int, current_user: User, now: datetime
) -> TerminationRequestModel:
    """Reject a SIGNING request and restore the contract's previous status."""
    contract = load_contract(db, contract_id, for_update=True)
    party = _acting_party(db, contract, current_user)
    request = _load_request(db, contract.id, request_id)
    ensure(can_decline_termination(request.status))

    _reject(contract, request, now)
    db.commit()
    logger.info("Party %s declined termination request %s", party.id, request.id)
    return _load_request(db, contract.id, request.id)


def expire_stale_terminations(db: Session, now: datetime) -> int:
    """Reject SIGNING requests whose consent window has closed."""
    expired = 0
    for request in termination_repo.get_stale_signing_requests(db, now):
        contract = load_contract(db, request.contract_id, for_update=True)
        _reject(contract, request, now)
        expired += 1
    db.commit()
    return expired


def finalize_approved_terminations(db: Session, today: date, now: datetime) -> int:
    """Complete APPROVED normal-expiry requests once the contract end date is reached."""
    finalized = 0
    for request in termination_repo.get_approved_requests_due(db, today):
        contract = load_contract(db, request.contract_id, for_update=True)
        _complete(contract, request, db, now)
        finalized += 1
    db.commit()
    return finalized
