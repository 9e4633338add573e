import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

import app.repositories.contract as contract_repo
import app.repositories.unit as unit_repo
import app.repositories.user as user_repo
from app.core.config import settings
from app.db.models.contract import (
    Contract as ContractModel,
    ContractParty as ContractPartyModel,
    ContractVersion as ContractVersionModel,
)
from app.db.models.user import User
from app.domain.contract_guards import (
    can_delete,
    can_edit_draft,
    can_send,
    validate_contract_dates,
)
from app.domain.contract_state import ContractEvent, ContractStatus, PartyRole, next_status
from app.domain.read_model import next_version_number, party_for_role
from app.errors import DomainValidationError, ForbiddenError, NotFoundError
from app.services.guard import ensure

logger = logging.getLogger(__name__)


def ensure_contract_access(contract: ContractModel, current_user: User) -> None:
    """
    Check that the user may read a contract.

    - Admin: can see any contract
    - Landlord and Tenant: only contracts they are a party to
    """
    if current_user.role.name == "admin":
        return
    if current_user.id not in (contract.landlord_id, contract.tenant_id):
        raise ForbiddenError("Not enough permissions")


def _ensure_contract_landlord(contract: ContractModel, current_user: User) -> None:
    if contract.landlord_id != current_user.id:
        raise ForbiddenError("Only the landlord of this contract can do this")


def _resolve_tenant(db: Session, tenant_email: str) -> User:
    tenant = user_repo.get_user_by_email(db, tenant_email)
    if not tenant:
        raise NotFoundError(f"User with email {tenant_email} not found")
    if tenant.role.name != "tenant":
        raise DomainValidationError(f"User {tenant_email} must have 'tenant' role")
    return tenant


def _resolve_unit(db: Session, unit_id: int, landlord: User):
    unit = unit_repo.get_unit_by_id(db, unit_id)
    if not unit:
        raise NotFoundError(f"Unit with id {unit_id} not found")
    if unit.landlord_id != landlord.id:
        raise ForbiddenError(f"Unit {unit_id} does not belong to you")
    return unit


def load_contract(db: Session, contract_id: int, *, for_update: bool = False) -> ContractModel:
    if for_update:
        contract = contract_repo.get_contract_for_update(db, contract_id)
    else:
        contract = contract_repo.get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")
    return contract


def create_contract(
    db: Session,
    landlord: User,
    unit_id: int,
    tenant_email: str,
    start_date: date,
    end_date: date,
    deposit_amount,
    template_code: str,
    content: str,
    now: datetime,
    fee_detail: str | None = None,
) -> ContractModel:
    """
    Create a DRAFT contract with business logic validation.

    - Validates the unit exists and belongs to the landlord
    - Resolves the tenant by email and checks it has the "tenant" role
    - Validates the minimum contract term
    """
    _resolve_unit(db, unit_id, landlord)
    tenant = _resolve_tenant(db, tenant_email)
    ensure(validate_contract_dates(start_date, end_date, settings.contract_min_term_days))

    contract = contract_repo.create_contract(
        db,
        unit_id=unit_id,
        landlord_id=landlord.id,
        tenant_id=tenant.id,
        start_date=start_date,
        end_date=end_date,
        deposit_amount=deposit_amount,
        template_code=template_code,
        content=content,
        created_at=now,
        fee_detail=fee_detail,
    )
    logger.info("Contract %s created in DRAFT by landlord %s", contract.id, landlord.id)
    return contract


def update_contract(
    db: Session,
    contract_id: int,
    current_user: User,
    now: datetime,
    **update_fields,
) -> ContractModel:
    """
    Update a DRAFT contract.

    Only fields explicitly provided in update_fields are updated. The minimum
    term is checked against the resulting start and end dates.
    """
    contract = load_contract(db, contract_id)
    _ensure_contract_landlord(contract, current_user)
    ensure(can_edit_draft(contract.status))

    update_dict = {}
    if update_fields.get("unit_id") is not None:
        _resolve_unit(db, update_fields["unit_id"], current_user)
        update_dict["unit_id"] = update_fields["unit_id"]
    if update_fields.get("tenant_email") is not None:
        update_dict["tenant_id"] = _resolve_tenant(db, update_fields["tenant_email"]).id

    for field in ("start_date", "end_date", "deposit_amount", "template_code", "content"):
        if update_fields.get(field) is not None:
            update_dict[field] = update_fields[field]
    if "fee_detail" in update_fields:
        update_dict["fee_detail"] = update_fields["fee_detail"]  # Can be None to clear

    if "start_date" in update_dict or "end_date" in update_dict:
        ensure(
            validate_contract_dates(
                update_dict.get("start_date", contract.start_date),
                update_dict.get("end_date", contract.end_date),
                settings.contract_min_term_days,
            )
        )

    update_dict["updated_at"] = now
    return contract_repo.update_contract(db, contract_id=contract_id, **update_dict)


def delete_contract(db: Session, contract_id: int, current_user: User) -> None:
    """Delete a DRAFT contract. Sent contracts are never removed."""
    contract = load_contract(db, contract_id)
    _ensure_contract_landlord(contract, current_user)
    ensure(can_delete(contract.status))
    contract_repo.delete_contract(db, contract_id)
    logger.info("Contract %s deleted while DRAFT", contract_id)


def send_contract(db: Session, contract_id: int, current_user: User, now: datetime) -> ContractModel:
    """
    Issue a DRAFT contract to its parties.

    - Materializes the LANDLORD and TENANT parties if they are missing
    - Snapshots the draft content as ContractVersion #1
    - Moves the contract to SENT
    """
    contract = load_contract(db, contract_id, for_update=True)
    _ensure_contract_landlord(contract, current_user)
    ensure(
        can_send(
            contract.status,
            template_code=contract.template_code,
            content=contract.content,
            start_date=contract.start_date,
            end_date=contract.end_date,
            landlord_id=contract.landlord_id,
            tenant_id=contract.tenant_id,
            min_term_days=settings.contract_min_term_days,
        )
    )

    parties = contract_repo.get_parties(db, contract.id)
    for role, user in (
        (PartyRole.LANDLORD, contract.landlord),
        (PartyRole.TENANT, contract.tenant),
    ):
        if party_for_role(parties, role) is None:
            contract_repo.add_party(
                db,
                contract_id=contract.id,
                role=role,
                user_id=user.id,
                email=user.email,
                phone=user.phone,
            )

    versions = contract_repo.get_versions(db, contract.id)
    contract_repo.add_version(
        db,
        contract_id=contract.id,
        version_no=next_version_number(versions),
        template_code=contract.template_code,
        content=contract.content,
        created_at=now,
    )

    contract.status = next_status(contract.status, ContractEvent.SEND)
    contract.updated_at = now
    db.commit()
    logger.info("Contract %s sent to its parties", contract.id)
    return load_contract(db, contract.id)


def get_contract_detail(db: Session, contract_id: int, current_user: User) -> ContractModel:
    """Get a contract with its versions, parties and signatures."""
    contract = load_contract(db, contract_id)
    ensure_contract_access(contract, current_user)
    return contract


def get_contract_version(
    db: Session, contract_id: int, version_id: int, current_user: User
) -> ContractVersionModel:
    contract = load_contract(db, contract_id)
    ensure_contract_access(contract, current_user)
    version = contract_repo.get_version(db, contract.id, version_id)
    if not version:
        raise NotFoundError("Contract version not found")
    return version


def get_contract_party(
    db: Session, contract_id: int, party_id: int, current_user: User
) -> ContractPartyModel:
    contract = load_contract(db, contract_id)
    ensure_contract_access(contract, current_user)
    party = contract_repo.get_party(db, contract.id, party_id)
    if not party:
        raise NotFoundError("Contract party not found")
    return party


def list_contracts(
    db: Session,
    current_user: User,
    page: int = 1,
    page_size: int = 100,
    status: ContractStatus | None = None,
    landlord_id: int | None = None,
    tenant_id: int | None = None,
    unit_id: int | None = None,
) -> tuple[list[ContractModel], int]:
    """
    List contracts visible to the given user.

    - Admin: all contracts, optionally filtered by landlord, tenant and unit
    - Landlord: contracts they let, optionally filtered by tenant and unit
    - Tenant: contracts they rent, optionally filtered by landlord and unit

    Filtering on another landlord's or tenant's contracts is forbidden.
    """
    role = current_user.role.name
    if role == "landlord":
        if landlord_id not in (None, current_user.id):
            raise ForbiddenError("You can only list your own contracts")
        landlord_id = current_user.id
    elif role == "tenant":
        if tenant_id not in (None, current_user.id):
            raise ForbiddenError("You can only list your own contracts")
        tenant_id = current_user.id
    elif role != "admin":
        raise ForbiddenError("Not enough permissions")

    return contract_repo.get_contracts_paginated(
        db,
        page=page,
        page_size=page_size,
        landlord_id=landlord_id,
        tenant_id=tenant_id,
        unit_id=unit_id,
        status=status,
    )


def activate_due_contracts(db: Session, today: date, now: datetime) -> int:
    """Move SIGNED contracts whose start date has been reached to ACTIVE."""
    activated = 0
    for contract in contract_repo.get_signed_contracts_starting_by(db, today):
        contract.status = next_status(contract.status, ContractEvent.START_DATE_REACHED)
        contract.updated_at = now
        activated += 1
        logger.info("Contract %s is now ACTIVE (start date %s)", contract.id, contract.start_date)
    db.commit()
    return activated
