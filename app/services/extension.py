import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

import app.repositories.contract as contract_repo
import app.repositories.extension as extension_repo
from app.db.models.extension import ExtensionRequest as ExtensionRequestModel
from app.db.models.user import User
from app.domain.contract_guards import can_decide_extension, can_request_extension
from app.domain.contract_state import ContractEvent, ExtensionStatus, PartyRole, next_status
from app.domain.read_model import current_user_party, next_version_number
from app.errors import NOT_A_PARTY, ForbiddenError
from app.services.contract import ensure_contract_access, load_contract
from app.services.guard import ensure

logger = logging.getLogger(__name__)

ACCEPT = "accept"
DECLINE = "decline"


def create_extension_request(
    db: Session,
    contract_id: int,
    current_user: User,
    new_end_date: date,
    note: str | None,
    now: datetime,
) -> ExtensionRequestModel:
    """
    Ask the landlord to move the contract end date.

    - Only a non-landlord party (the tenant) can ask
    - At most one PENDING request per contract
    - The requested date is kept on the contract as pending_end_date
    """
    contract = load_contract(db, contract_id, for_update=True)
    party = current_user_party(contract_repo.get_parties(db, contract.id), current_user.id)
    if party is None:
        raise ForbiddenError("You are not a party to this contract", code=NOT_A_PARTY)
    if party.role == PartyRole.LANDLORD:
        raise ForbiddenError("The landlord decides extensions and cannot request one")

    pending = extension_repo.get_pending_request(db, contract.id)
    ensure(
        can_request_extension(
            contract.status,
            current_end_date=contract.end_date,
            new_end_date=new_end_date,
            has_pending_request=pending is not None,
        )
    )

    request = extension_repo.add_request(
        db,
        contract_id=contract.id,
        requested_by_party_id=party.id,
        current_end_date=contract.end_date,
        requested_end_date=new_end_date,
        note=note,
        created_at=now,
    )
    contract.pending_end_date = new_end_date
    contract.updated_at = now
    db.commit()
    db.refresh(request)
    logger.info(
        "Extension request %s on contract %s: %s -> %s",
        request.id,
        contract.id,
        request.current_end_date,
        new_end_date,
    )
    return request


def list_extension_requests(
    db: Session, contract_id: int, current_user: User, page: int = 1, page_size: int = 10
) -> tuple[list[ExtensionRequestModel], int]:
    contract = load_contract(db, contract_id)
    ensure_contract_access(contract, current_user)
    return extension_repo.get_requests_paginated(
        db, contract.id, page=page, page_size=page_size
    )


def decide_extension(
    db: Session,
    contract_id: int,
    current_user: User,
    action: str,
    note: str | None,
    now: datetime,
) -> ExtensionRequestModel:
    """
    Accept or decline the pending extension request. Landlord only.

    Accepting moves the end date, appends a new contract version and leaves
    the contract status as it was. Declining only closes the request.
    """
    contract = load_contract(db, contract_id, for_update=True)
    if contract.landlord_id != current_user.id:
        raise ForbiddenError("Only the landlord of this contract can decide extensions")

    pending = extension_repo.get_pending_request(db, contract.id)
    ensure(can_decide_extension(contract.status, has_pending_request=pending is not None))

    if action == ACCEPT:
        versions = contract_repo.get_versions(db, contract.id)
        contract_repo.add_version(
            db,
            contract_id=contract.id,
            version_no=next_version_number(versions),
            template_code=contract.template_code,
            content=contract.content,
            created_at=now,
        )
        contract.end_date = pending.requested_end_date
        contract.status = next_status(contract.status, ContractEvent.EXTENSION_ACCEPTED)
        pending.status = ExtensionStatus.ACCEPTED
    else:
        pending.status = ExtensionStatus.DECLINED

    pending.decision_note = note
    pending.decided_at = now
    contract.pending_end_date = None
    contract.updated_at = now
    db.commit()
    db.refresh(pending)
    logger.info(
        "Extension request %s on contract %s %s",
        pending.id,
        contract.id,
        pending.status.value,
    )
    return pending
