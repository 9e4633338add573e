"""Signing ceremony: per-party OTP issuance and signature capture."""

import hashlib
import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import app.repositories.contract as contract_repo
from app.db.models.contract import Contract as ContractModel, ContractParty
from app.db.models.otp import ContractOtp
from app.db.models.user import User
from app.domain.contract_guards import can_sign, can_sign_as
from app.domain.contract_state import ContractEvent, OtpPurpose, next_status
from app.domain.read_model import is_fully_signed, signed_party_ids
from app.errors import NOT_A_PARTY, PARTY_ALREADY_SIGNED, ForbiddenError, PreconditionError
from app.services.contract import load_contract
from app.services.email import deliver_otp
from app.services.guard import ensure
from app.services.otp import consume_otp, issue_otp

logger = logging.getLogger(__name__)


def _signing_party(
    db: Session, contract: ContractModel, party_id: int, current_user: User
) -> ContractParty:
    """Run the signing guards and return the party, which must belong to the current user."""
    parties = contract_repo.get_parties(db, contract.id)
    signatures = contract_repo.get_signatures(db, contract.id)
    ensure(
        can_sign(
            contract.status,
            party_id=party_id,
            party_ids=[p.id for p in parties],
            signed_party_ids=signed_party_ids(signatures),
        )
    )
    party = next(p for p in parties if p.id == party_id)
    if party.user_id != current_user.id:
        raise ForbiddenError("You can only act for your own party", code=NOT_A_PARTY)
    return party


def signature_fingerprint(contract_id: int, version_no: int, content: str, party_id: int, signed_at: datetime) -> str:
    """SHA-256 over the signed text and who signed it when."""
    digest = hashlib.sha256()
    for part in (str(contract_id), str(version_no), content, str(party_id), signed_at.isoformat()):
        digest.update(part.encode("utf-8"))
        digest.update(b"\x1f")
    return digest.hexdigest()


async def request_signing_otp(
    db: Session, contract_id: int, party_id: int, current_user: User, now: datetime
) -> tuple[ContractParty, ContractOtp, bool]:
    """
    Issue a signing OTP to a party's registered email.

    Requires the contract to be SENT and the party not to have signed yet.
    The OTP stays issued when the email cannot be sent; the returned flag
    tells the caller whether it was delivered.
    """
    contract = load_contract(db, contract_id, for_update=True)
    party = _signing_party(db, contract, party_id, current_user)
    record, code = issue_otp(db, contract, party, OtpPurpose.SIGN, now)
    db.commit()

    delivered = await deliver_otp(party.email, code, OtpPurpose.SIGN, contract.id)
    if not delivered:
        logger.warning("Signing OTP for party %s on contract %s was not delivered", party.id, contract.id)
    return party, record, delivered


def sign_contract(
    db: Session,
    contract_id: int,
    party_id: int,
    otp: str,
    role: str,
    current_user: User,
    now: datetime,
) -> ContractModel:
    """
    Sign a SENT contract as one party.

    - Verifies the party's OTP
    - Creates exactly one signature for the party
    - Moves the contract to SIGNED once every party has signed

    Raises:
        PreconditionError: PARTY_ALREADY_SIGNED on a repeat signature, INVALID_STATUS
            when the contract is not SENT, NOT_A_PARTY for a foreign party.
        OtpVerificationError: If the OTP is wrong or expired.
    """
    contract = load_contract(db, contract_id, for_update=True)
    party = _signing_party(db, contract, party_id, current_user)
    ensure(can_sign_as(party.role, role))

    consume_otp(db, contract, party, OtpPurpose.SIGN, otp, now)

    latest = contract_repo.get_versions(db, contract.id)[-1]
    try:
        contract_repo.add_signature(
            db,
            contract_id=contract.id,
            party_id=party.id,
            signed_at=now,
            signature_data=signature_fingerprint(
                contract.id, latest.version_no, latest.content, party.id, now
            ),
        )
    except IntegrityError as e:
        db.rollback()
        raise PreconditionError(
            "This party has already signed the contract", code=PARTY_ALREADY_SIGNED
        ) from e
    logger.info("Contract %s signed by party %s (%s)", contract.id, party.id, party.role.value)

    parties = contract_repo.get_parties(db, contract.id)
    signatures = contract_repo.get_signatures(db, contract.id)
    if is_fully_signed(parties, signatures):
        contract.status = next_status(contract.status, ContractEvent.ALL_SIGNED)
        logger.info("Contract %s fully signed by %s parties", contract.id, len(parties))
    contract.updated_at = now
    db.commit()
    return load_contract(db, contract.id)
