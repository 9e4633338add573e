from datetime import date, datetime

from sqlalchemy.orm import Session

from app.db.models.extension import ExtensionRequest as ExtensionRequestModel
from app.domain.contract_state import ExtensionStatus


def get_pending_request(db: Session, contract_id: int) -> ExtensionRequestModel | None:
    return (
        db.query(ExtensionRequestModel)
        .filter(
            ExtensionRequestModel.contract_id == contract_id,
            ExtensionRequestModel.status == ExtensionStatus.PENDING,
        )
        .order_by(ExtensionRequestModel.id.desc())
        .first()
    )


def get_requests_paginated(
    db: Session, contract_id: int, page: int = 1, page_size: int = 10
) -> tuple[list[ExtensionRequestModel], int]:
    """Extension requests of one contract, newest first."""
    query = db.query(ExtensionRequestModel).filter(
        ExtensionRequestModel.contract_id == contract_id
    )
    total = query.count()
    skip = (page - 1) * page_size
    requests = (
        query.order_by(ExtensionRequestModel.created_at.desc(), ExtensionRequestModel.id.desc())
        .offset(skip)
        .limit(page_size)
        .all()
    )
    return requests, total


def add_request(
    db: Session,
    contract_id: int,
    requested_by_party_id: int,
    current_end_date: date,
    requested_end_date: date,
    note: str | None,
    created_at: datetime,
) -> ExtensionRequestModel:
    request = ExtensionRequestModel(
        contract_id=contract_id,
        requested_by_party_id=requested_by_party_id,
        current_end_date=current_end_date,
        requested_end_date=requested_end_date,
        note=note,
        status=ExtensionStatus.PENDING,
        created_at=created_at,
    )
    db.add(request)
    db.flush()
    return request


def decline_pending_requests(db: Session, contract_id: int, decided_at: datetime, note: str) -> int:
    """Stage a DECLINED decision on every PENDING request of a contract."""
    requests = (
        db.query(ExtensionRequestModel)
        .filter(
            ExtensionRequestModel.contract_id == contract_id,
            ExtensionRequestModel.status == ExtensionStatus.PENDING,
        )
        .all()
    )
    for request in requests:
        request.status = ExtensionStatus.DECLINED
        request.decision_note = note
        request.decided_at = decided_at
    db.flush()
    return len(requests)
