from datetime import date, datetime

from sqlalchemy.orm import Session, selectinload

from app.db.models.contract import (
    Contract as ContractModel,
    ContractParty as ContractPartyModel,
    ContractSignature as ContractSignatureModel,
    ContractVersion as ContractVersionModel,
)
from app.domain.contract_state import ContractStatus, PartyRole
from app.errors import NotFoundError


def get_contract_by_id(db: Session, contract_id: int) -> ContractModel | None:
    """Get a contract by ID with its parties, versions and signatures loaded."""
    return (
        db.query(ContractModel)
        .options(
            selectinload(ContractModel.parties),
            selectinload(ContractModel.versions),
            selectinload(ContractModel.signatures),
        )
        .filter(ContractModel.id == contract_id)
        .first()
    )


def get_contract_for_update(db: Session, contract_id: int) -> ContractModel | None:
    """Get a contract and lock its row until the current transaction ends.

    Workflow commands load the contract through here so that concurrent
    signatures or consents on the same contract are serialized.
    """
    return (
        db.query(ContractModel)
        .filter(ContractModel.id == contract_id)
        .with_for_update()
        .first()
    )


def create_contract(
    db: Session,
    unit_id: int,
    landlord_id: int,
    tenant_id: int,
    start_date: date,
    end_date: date,
    deposit_amount,
    template_code: str,
    content: str,
    created_at: datetime,
    fee_detail: str | None = None,
) -> ContractModel:
    """Create a new DRAFT contract in the database. Pure data access - no business logic."""
    db_contract = ContractModel(
        unit_id=unit_id,
        landlord_id=landlord_id,
        tenant_id=tenant_id,
        start_date=start_date,
        end_date=end_date,
        deposit_amount=deposit_amount,
        fee_detail=fee_detail,
        template_code=template_code,
        content=content,
        status=ContractStatus.DRAFT,
        created_at=created_at,
    )
    db.add(db_contract)
    db.commit()
    db.refresh(db_contract)
    return db_contract


def update_contract(
    db: Session,
    contract_id: int,
    **kwargs,
) -> ContractModel:
    """
    Update a contract. Only updates fields that are explicitly provided.

    Fields not provided are not updated.
    """
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    for field in (
        "unit_id",
        "tenant_id",
        "start_date",
        "end_date",
        "deposit_amount",
        "fee_detail",
        "template_code",
        "content",
        "updated_at",
    ):
        if field in kwargs:
            setattr(contract, field, kwargs[field])

    db.commit()
    db.refresh(contract)
    return contract


def delete_contract(db: Session, contract_id: int) -> None:
    """Delete a contract from the database. Pure data access - no business logic."""
    contract = get_contract_by_id(db, contract_id)
    if not contract:
        raise NotFoundError("Contract not found")

    db.delete(contract)
    db.commit()


def get_contracts_paginated(
    db: Session,
    page: int = 1,
    page_size: int = 100,
    landlord_id: int | None = None,
    tenant_id: int | None = None,
    unit_id: int | None = None,
    status: ContractStatus | None = None,
) -> tuple[list[ContractModel], int]:
    """
    Get contracts with pagination and optional filters, newest first.

    Returns:
        Tuple of (list of contracts, total count)
    """
    query = db.query(ContractModel)

    if landlord_id is not None:
        query = query.filter(ContractModel.landlord_id == landlord_id)
    if tenant_id is not None:
        query = query.filter(ContractModel.tenant_id == tenant_id)
    if unit_id is not None:
        query = query.filter(ContractModel.unit_id == unit_id)
    if status is not None:
        query = query.filter(ContractModel.status == status)

    total = query.count()
    skip = (page - 1) * page_size
    contracts = (
        query.order_by(ContractModel.created_at.desc(), ContractModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return contracts, total


def get_signed_contracts_starting_by(db: Session, as_of: date) -> list[ContractModel]:
    """SIGNED contracts whose start date has been reached."""
    return (
        db.query(ContractModel)
        .filter(
            ContractModel.status == ContractStatus.SIGNED,
            ContractModel.start_date <= as_of,
        )
        .all()
    )


# ----------------------------------------------------------------------------
# Parties, versions and signatures. These only stage rows in the session; the
# calling service commits once per workflow command.
# ----------------------------------------------------------------------------


def get_party(db: Session, contract_id: int, party_id: int) -> ContractPartyModel | None:
    return (
        db.query(ContractPartyModel)
        .filter(
            ContractPartyModel.contract_id == contract_id,
            ContractPartyModel.id == party_id,
        )
        .first()
    )


def get_parties(db: Session, contract_id: int) -> list[ContractPartyModel]:
    return (
        db.query(ContractPartyModel)
        .filter(ContractPartyModel.contract_id == contract_id)
        .order_by(ContractPartyModel.id)
        .all()
    )


def add_party(
    db: Session,
    contract_id: int,
    role: PartyRole,
    user_id: int,
    email: str,
    phone: str | None = None,
) -> ContractPartyModel:
    party = ContractPartyModel(
        contract_id=contract_id,
        role=role,
        user_id=user_id,
        email=email,
        phone=phone,
    )
    db.add(party)
    db.flush()
    return party


def get_signatures(db: Session, contract_id: int) -> list[ContractSignatureModel]:
    return (
        db.query(ContractSignatureModel)
        .filter(ContractSignatureModel.contract_id == contract_id)
        .order_by(ContractSignatureModel.id)
        .all()
    )


def add_signature(
    db: Session,
    contract_id: int,
    party_id: int,
    signed_at: datetime,
    signature_data: str,
) -> ContractSignatureModel:
    signature = ContractSignatureModel(
        contract_id=contract_id,
        party_id=party_id,
        signed_at=signed_at,
        signature_data=signature_data,
    )
    db.add(signature)
    db.flush()
    return signature


def get_versions(db: Session, contract_id: int) -> list[ContractVersionModel]:
    return (
        db.query(ContractVersionModel)
        .filter(ContractVersionModel.contract_id == contract_id)
        .order_by(ContractVersionModel.version_no)
        .all()
    )


def get_version(db: Session, contract_id: int, version_id: int) -> ContractVersionModel | None:
    return (
        db.query(ContractVersionModel)
        .filter(
            ContractVersionModel.contract_id == contract_id,
            ContractVersionModel.id == version_id,
        )
        .first()
    )


def add_version(
    db: Session,
    contract_id: int,
    version_no: int,
    template_code: str,
    content: str,
    created_at: datetime,
) -> ContractVersionModel:
    version = ContractVersionModel(
        contract_id=contract_id,
        version_no=version_no,
        template_code=template_code,
        content=content,
        created_at=created_at,
    )
    db.add(version)
    db.flush()
    return version
