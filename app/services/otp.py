"""Issue and verify per-party one-time passwords."""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

import app.repositories.otp as otp_repo
from app.core.config import settings
from app.core.security import generate_otp_code, hash_otp, verify_otp_hash
from app.db.models.contract import Contract, ContractParty
from app.db.models.otp import ContractOtp
from app.db.models.termination import TerminationRequest
from app.domain.contract_state import OtpPurpose
from app.errors import OTP_EXPIRED, OTP_INVALID, OtpVerificationError

logger = logging.getLogger(__name__)


def issue_otp(
    db: Session,
    contract: Contract,
    party: ContractParty,
    purpose: OtpPurpose,
    now: datetime,
    termination_request: TerminationRequest | None = None,
) -> tuple[ContractOtp, str]:
    """
    Issue a fresh OTP for one party and return it with the plain code.

    Outstanding codes for the same party, purpose and termination request are
    invalidated, so only the latest issued code can be used. Nothing is
    committed here.
    """
    request_id = termination_request.id if termination_request is not None else None
    otp_repo.invalidate_unconsumed_otps(
        db, contract.id, party.id, purpose, now, termination_request_id=request_id
    )
    code = generate_otp_code()
    record = otp_repo.add_otp(
        db,
        contract_id=contract.id,
        party_id=party.id,
        purpose=purpose,
        code_hash=hash_otp(code),
        expires_at=now + timedelta(minutes=settings.otp_expire_minutes),
        created_at=now,
        termination_request_id=request_id,
    )
    logger.info(
        "Issued %s OTP for contract %s party %s (expires %s)",
        purpose.value,
        contract.id,
        party.id,
        record.expires_at.isoformat(),
    )
    return record, code


def consume_otp(
    db: Session,
    contract: Contract,
    party: ContractParty,
    purpose: OtpPurpose,
    code: str,
    now: datetime,
    termination_request: TerminationRequest | None = None,
) -> ContractOtp:
    """
    Verify ``code`` against the party's latest OTP and mark it used.

    A wrong code counts as an attempt. The attempt counter is committed before
    the error is raised so that it survives the request; no other state has
    been touched at that point.

    Raises:
        OtpVerificationError: OTP_EXPIRED when the code timed out, OTP_INVALID otherwise.
    """
    request_id = termination_request.id if termination_request is not None else None
    record = otp_repo.get_latest_unconsumed_otp(
        db, contract.id, party.id, purpose, termination_request_id=request_id
    )
    if record is None:
        raise OtpVerificationError("No OTP has been requested; request a new one", code=OTP_INVALID)

    if record.expires_at <= now:
        raise OtpVerificationError("OTP has expired; request a new one", code=OTP_EXPIRED)

    if record.attempts >= settings.otp_max_attempts:
        raise OtpVerificationError(
            "Too many incorrect attempts; request a new OTP", code=OTP_INVALID
        )

    if not verify_otp_hash(code, record.code_hash):
        record.attempts += 1
        db.commit()
        logger.warning(
            "Incorrect %s OTP for contract %s party %s (attempt %s)",
            purpose.value,
            contract.id,
            party.id,
            record.attempts,
        )
        raise OtpVerificationError("Incorrect OTP", code=OTP_INVALID)

    record.consumed_at = now
    db.flush()
    return record
