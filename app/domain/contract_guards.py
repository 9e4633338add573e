"""Precondition checks for contract workflow commands.

Every guard is a pure function over plain values and returns a ``GuardResult``
instead of raising, so the same check can run in the service layer (where a
denial becomes an exception) and in the client (where it short-circuits a
request before it reaches the network).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, timedelta

from app.domain.contract_state import (
    IN_FORCE_STATUSES,
    ConsentStatus,
    ContractStatus,
    PartyRole,
    TerminationStatus,
    TerminationType,
)
from app.errors import (
    CONSENT_ALREADY_SIGNED,
    CONTRACT_EXTENSION_PENDING,
    INVALID_STATUS,
    NO_PENDING_EXTENSION,
    NOT_A_PARTY,
    PARTY_ALREADY_SIGNED,
    TERMINATION_REQUEST_ACTIVE,
    VALIDATION_ERROR,
)

VALIDATION = "validation"
PRECONDITION = "precondition"

_OTP_PATTERN = re.compile(r"^\d{6}$")

IN_FORCE_STATUSES_ORDERED = [s for s in ContractStatus if s in IN_FORCE_STATUSES]
EXTENDABLE_STATUSES = [ContractStatus.SIGNED, ContractStatus.ACTIVE, ContractStatus.EXPIRED]


@dataclass(frozen=True, slots=True)
class GuardResult:
    ok: bool
    code: str | None = None
    message: str | None = None
    kind: str | None = None

    def __bool__(self) -> bool:
        return self.ok


ALLOWED = GuardResult(ok=True)


def _invalid(message: str) -> GuardResult:
    return GuardResult(ok=False, code=VALIDATION_ERROR, message=message, kind=VALIDATION)


def _blocked(code: str, message: str) -> GuardResult:
    return GuardResult(ok=False, code=code, message=message, kind=PRECONDITION)


def _status_is(status, allowed: Iterable[ContractStatus], action: str) -> GuardResult:
    status = ContractStatus(status)
    allowed = list(allowed)
    if status in allowed:
        return ALLOWED
    names = ", ".join(s.value for s in allowed)
    return _blocked(
        INVALID_STATUS,
        f"Cannot {action} a contract in status {status.value} (expected {names})",
    )


def validate_contract_dates(
    start_date: date | None, end_date: date | None, min_term_days: int
) -> GuardResult:
    if start_date is None or end_date is None:
        return _invalid("Start date and end date are required")
    if end_date <= start_date:
        return _invalid(f"End date ({end_date}) must be after start date ({start_date})")
    if end_date - start_date < timedelta(days=min_term_days):
        return _invalid(
            f"End date must be at least {min_term_days} days after start date"
        )
    return ALLOWED


def validate_otp_format(otp: str | None) -> GuardResult:
    if otp is None or not _OTP_PATTERN.match(otp):
        return _invalid("OTP must be exactly 6 digits")
    return ALLOWED


def can_edit_draft(status) -> GuardResult:
    return _status_is(status, [ContractStatus.DRAFT], "modify")


def can_delete(status) -> GuardResult:
    return _status_is(status, [ContractStatus.DRAFT], "delete")


def can_send(
    status,
    *,
    template_code: str | None,
    content: str | None,
    start_date: date | None,
    end_date: date | None,
    landlord_id: int | None,
    tenant_id: int | None,
    min_term_days: int,
) -> GuardResult:
    result = _status_is(status, [ContractStatus.DRAFT], "send")
    if not result:
        return result
    if not template_code or not (content or "").strip():
        return _invalid("Contract template code and content are required before sending")
    if landlord_id is None or tenant_id is None:
        return _invalid("Contract landlord and tenant must be set before sending")
    return validate_contract_dates(start_date, end_date, min_term_days)


def can_sign(
    status,
    *,
    party_id: int,
    party_ids: Iterable[int],
    signed_party_ids: Iterable[int],
) -> GuardResult:
    """Check that ``party_id`` may request a signing OTP or sign now."""
    result = _status_is(status, [ContractStatus.SENT], "sign")
    if not result:
        return result
    if party_id not in set(party_ids):
        return _blocked(NOT_A_PARTY, f"Party {party_id} is not part of this contract")
    if party_id in set(signed_party_ids):
        return _blocked(PARTY_ALREADY_SIGNED, "This party has already signed the contract")
    return ALLOWED


def can_sign_as(party_role, role: str) -> GuardResult:
    if PartyRole(party_role).value != role.upper():
        return _blocked(NOT_A_PARTY, f"Party does not sign as {role}")
    return ALLOWED


def can_request_termination(
    status,
    *,
    has_active_request: bool,
    termination_type,
    reason: str | None,
) -> GuardResult:
    result = _status_is(status, IN_FORCE_STATUSES_ORDERED, "terminate")
    if not result:
        if ContractStatus(status) == ContractStatus.TERMINATION_PENDING:
            return _blocked(
                TERMINATION_REQUEST_ACTIVE,
                "A termination request is already in progress for this contract",
            )
        return result
    if has_active_request:
        return _blocked(
            TERMINATION_REQUEST_ACTIVE,
            "A termination request is already in progress for this contract",
        )
    if TerminationType(termination_type) == TerminationType.EARLY_TERMINATE and not (
        reason or ""
    ).strip():
        return _invalid("A reason is required to terminate a contract early")
    return ALLOWED


def can_consent(request_status, consent_status) -> GuardResult:
    """Check that a party may request a termination OTP or submit its consent."""
    if TerminationStatus(request_status) != TerminationStatus.SIGNING:
        return _blocked(
            INVALID_STATUS,
            f"Termination request is {TerminationStatus(request_status).value}, not SIGNING",
        )
    if ConsentStatus(consent_status) == ConsentStatus.SIGNED:
        return _blocked(CONSENT_ALREADY_SIGNED, "This party has already consented")
    return ALLOWED


def can_decline_termination(request_status) -> GuardResult:
    if TerminationStatus(request_status) != TerminationStatus.SIGNING:
        return _blocked(
            INVALID_STATUS,
            f"Termination request is {TerminationStatus(request_status).value}, not SIGNING",
        )
    return ALLOWED


def can_request_extension(
    status,
    *,
    current_end_date: date,
    new_end_date: date | None,
    has_pending_request: bool,
) -> GuardResult:
    result = _status_is(status, EXTENDABLE_STATUSES, "extend")
    if not result:
        return result
    if has_pending_request:
        return _blocked(
            CONTRACT_EXTENSION_PENDING,
            "An extension request is already pending for this contract",
        )
    if new_end_date is None:
        return _invalid("A new end date is required")
    if new_end_date <= current_end_date:
        return _invalid(
            f"New end date ({new_end_date}) must be after the current end date ({current_end_date})"
        )
    return ALLOWED


def can_decide_extension(status, *, has_pending_request: bool) -> GuardResult:
    result = _status_is(status, EXTENDABLE_STATUSES, "extend")
    if not result:
        return result
    if not has_pending_request:
        return _blocked(NO_PENDING_EXTENSION, "There is no pending extension request")
    return ALLOWED


def can_issue_invoice(status) -> GuardResult:
    return _status_is(status, IN_FORCE_STATUSES_ORDERED, "invoice")


def consent_complete(consent_statuses: Iterable) -> bool:
    statuses = [ConsentStatus(s) for s in consent_statuses]
    return bool(statuses) and all(s == ConsentStatus.SIGNED for s in statuses)

