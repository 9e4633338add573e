from datetime import date, datetime

from sqlalchemy.orm import Session, selectinload

from app.db.models.contract import Contract as ContractModel
from app.db.models.termination import (
    TerminationConsent as TerminationConsentModel,
    TerminationRequest as TerminationRequestModel,
)
from app.domain.contract_state import (
    ACTIVE_TERMINATION_STATUSES,
    ConsentStatus,
    ContractStatus,
    TerminationStatus,
    TerminationType,
)


def get_request_by_id(
    db: Session, contract_id: int, request_id: int
) -> TerminationRequestModel | None:
    return (
        db.query(TerminationRequestModel)
        .options(selectinload(TerminationRequestModel.consents))
        .filter(
            TerminationRequestModel.contract_id == contract_id,
            TerminationRequestModel.id == request_id,
        )
        .first()
    )


def get_active_request(db: Session, contract_id: int) -> TerminationRequestModel | None:
    """The request that currently blocks a new one (SIGNING or APPROVED), if any."""
    return (
        db.query(TerminationRequestModel)
        .options(selectinload(TerminationRequestModel.consents))
        .filter(
            TerminationRequestModel.contract_id == contract_id,
            TerminationRequestModel.status.in_(list(ACTIVE_TERMINATION_STATUSES)),
        )
        .order_by(TerminationRequestModel.id.desc())
        .first()
    )


def get_latest_request(db: Session, contract_id: int) -> TerminationRequestModel | None:
    return (
        db.query(TerminationRequestModel)
        .options(selectinload(TerminationRequestModel.consents))
        .filter(TerminationRequestModel.contract_id == contract_id)
        .order_by(TerminationRequestModel.id.desc())
        .first()
    )


def add_request(
    db: Session,
    contract_id: int,
    initiator_party_id: int,
    termination_type: TerminationType,
    reason: str,
    previous_status: ContractStatus,
    expires_at: datetime | None,
    created_at: datetime,
    consenting_parties: list[tuple[int, int]],
) -> TerminationRequestModel:
    """Stage a SIGNING request with one PENDING consent per (party_id, user_id)."""
    request = TerminationRequestModel(
        contract_id=contract_id,
        initiator_party_id=initiator_party_id,
        type=termination_type,
        reason=reason,
        status=TerminationStatus.SIGNING,
        previous_status=previous_status,
        expires_at=expires_at,
        created_at=created_at,
        updated_at=created_at,
    )
    for party_id, user_id in consenting_parties:
        request.consents.append(
            TerminationConsentModel(
                party_id=party_id,
                user_id=user_id,
                status=ConsentStatus.PENDING,
            )
        )
    db.add(request)
    db.flush()
    return request


def get_consent(
    db: Session, request_id: int, party_id: int
) -> TerminationConsentModel | None:
    return (
        db.query(TerminationConsentModel)
        .filter(
            TerminationConsentModel.termination_request_id == request_id,
            TerminationConsentModel.party_id == party_id,
        )
        .first()
    )


def get_stale_signing_requests(db: Session, now: datetime) -> list[TerminationRequestModel]:
    """SIGNING requests whose consent window has closed."""
    return (
        db.query(TerminationRequestModel)
        .filter(
            TerminationRequestModel.status == TerminationStatus.SIGNING,
            TerminationRequestModel.expires_at.isnot(None),
            TerminationRequestModel.expires_at < now,
        )
        .all()
    )


def get_approved_requests_due(db: Session, as_of: date) -> list[TerminationRequestModel]:
    """APPROVED normal-expiry requests whose contract end date has been reached."""
    return (
        db.query(TerminationRequestModel)
        .join(ContractModel, ContractModel.id == TerminationRequestModel.contract_id)
        .filter(
            TerminationRequestModel.status == TerminationStatus.APPROVED,
            TerminationRequestModel.type == TerminationType.NORMAL_EXPIRE,
            ContractModel.end_date <= as_of,
        )
        .all()
    )
