from datetime import datetime

from sqlalchemy.orm import Session

from app.db.models.otp import ContractOtp as ContractOtpModel
from app.domain.contract_state import OtpPurpose


def _scope(
    db: Session,
    contract_id: int,
    party_id: int,
    purpose: OtpPurpose,
    termination_request_id: int | None,
):
    query = db.query(ContractOtpModel).filter(
        ContractOtpModel.contract_id == contract_id,
        ContractOtpModel.party_id == party_id,
        ContractOtpModel.purpose == purpose,
    )
    if termination_request_id is None:
        return query.filter(ContractOtpModel.termination_request_id.is_(None))
    return query.filter(ContractOtpModel.termination_request_id == termination_request_id)


def get_latest_unconsumed_otp(
    db: Session,
    contract_id: int,
    party_id: int,
    purpose: OtpPurpose,
    termination_request_id: int | None = None,
) -> ContractOtpModel | None:
    """The most recently issued OTP in scope that has not been consumed."""
    return (
        _scope(db, contract_id, party_id, purpose, termination_request_id)
        .filter(ContractOtpModel.consumed_at.is_(None))
        .order_by(ContractOtpModel.created_at.desc(), ContractOtpModel.id.desc())
        .first()
    )


def invalidate_unconsumed_otps(
    db: Session,
    contract_id: int,
    party_id: int,
    purpose: OtpPurpose,
    now: datetime,
    termination_request_id: int | None = None,
) -> int:
    """Mark every outstanding OTP in scope as used, so only a newly issued one is valid."""
    otps = (
        _scope(db, contract_id, party_id, purpose, termination_request_id)
        .filter(ContractOtpModel.consumed_at.is_(None))
        .all()
    )
    for otp in otps:
        otp.consumed_at = now
    db.flush()
    return len(otps)


def add_otp(
    db: Session,
    contract_id: int,
    party_id: int,
    purpose: OtpPurpose,
    code_hash: str,
    expires_at: datetime,
    created_at: datetime,
    termination_request_id: int | None = None,
) -> ContractOtpModel:
    otp = ContractOtpModel(
        contract_id=contract_id,
        party_id=party_id,
        purpose=purpose,
        termination_request_id=termination_request_id,
        code_hash=code_hash,
        expires_at=expires_at,
        attempts=0,
        created_at=created_at,
    )
    db.add(otp)
    db.flush()
    return otp
