"""Contract lifecycle statuses and the legal transitions between them."""

from __future__ import annotations

from enum import Enum


class ContractStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    SIGNED = "SIGNED"
    ACTIVE = "ACTIVE"
    TERMINATION_PENDING = "TERMINATION_PENDING"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


class ContractEvent(str, Enum):
    UPDATE = "UPDATE"
    SEND = "SEND"
    DELETE = "DELETE"
    ALL_SIGNED = "ALL_SIGNED"
    START_DATE_REACHED = "START_DATE_REACHED"
    REQUEST_TERMINATION = "REQUEST_TERMINATION"
    TERMINATION_EARLY_COMPLETED = "TERMINATION_EARLY_COMPLETED"
    TERMINATION_EXPIRE_COMPLETED = "TERMINATION_EXPIRE_COMPLETED"
    EXTENSION_ACCEPTED = "EXTENSION_ACCEPTED"


class PartyRole(str, Enum):
    LANDLORD = "LANDLORD"
    TENANT = "TENANT"


class TerminationType(str, Enum):
    EARLY_TERMINATE = "EARLY_TERMINATE"
    NORMAL_EXPIRE = "NORMAL_EXPIRE"


class TerminationStatus(str, Enum):
    SIGNING = "SIGNING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"


class ConsentStatus(str, Enum):
    PENDING = "PENDING"
    SIGNED = "SIGNED"


class ExtensionStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    DECLINED = "DECLINED"


class OtpPurpose(str, Enum):
    SIGN = "SIGN"
    TERMINATION = "TERMINATION"


TERMINAL_STATUSES = frozenset({ContractStatus.CANCELLED, ContractStatus.EXPIRED})

# Statuses in which the contract is binding on both parties.
IN_FORCE_STATUSES = frozenset({ContractStatus.SIGNED, ContractStatus.ACTIVE})

# A termination request is "active" (blocks another one) while in these states.
ACTIVE_TERMINATION_STATUSES = frozenset(
    {TerminationStatus.SIGNING, TerminationStatus.APPROVED}
)

# (from, event) -> to. DELETE maps to None: the row is removed.
# A rejected termination is not listed: it restores the request's recorded
# previous status.
TRANSITIONS: dict[tuple[ContractStatus, ContractEvent], ContractStatus | None] = {
    (ContractStatus.DRAFT, ContractEvent.UPDATE): ContractStatus.DRAFT,
    (ContractStatus.DRAFT, ContractEvent.SEND): ContractStatus.SENT,
    (ContractStatus.DRAFT, ContractEvent.DELETE): None,
    (ContractStatus.SENT, ContractEvent.ALL_SIGNED): ContractStatus.SIGNED,
    (ContractStatus.SIGNED, ContractEvent.START_DATE_REACHED): ContractStatus.ACTIVE,
    (ContractStatus.ACTIVE, ContractEvent.START_DATE_REACHED): ContractStatus.ACTIVE,
    (ContractStatus.SIGNED, ContractEvent.REQUEST_TERMINATION): ContractStatus.TERMINATION_PENDING,
    (ContractStatus.ACTIVE, ContractEvent.REQUEST_TERMINATION): ContractStatus.TERMINATION_PENDING,
    (
        ContractStatus.TERMINATION_PENDING,
        ContractEvent.TERMINATION_EARLY_COMPLETED,
    ): ContractStatus.CANCELLED,
    (
        ContractStatus.TERMINATION_PENDING,
        ContractEvent.TERMINATION_EXPIRE_COMPLETED,
    ): ContractStatus.EXPIRED,
    (ContractStatus.SIGNED, ContractEvent.EXTENSION_ACCEPTED): ContractStatus.SIGNED,
    (ContractStatus.ACTIVE, ContractEvent.EXTENSION_ACCEPTED): ContractStatus.ACTIVE,
    (ContractStatus.EXPIRED, ContractEvent.EXTENSION_ACCEPTED): ContractStatus.EXPIRED,
}


def can_transition(status: ContractStatus, event: ContractEvent) -> bool:
    return (ContractStatus(status), event) in TRANSITIONS


def next_status(status: ContractStatus, event: ContractEvent) -> ContractStatus | None:
    """Return the target status of ``event`` from ``status``.

    Raises KeyError when the transition is not in the table; callers check
    ``can_transition`` (or a guard) first.
    """
    return TRANSITIONS[(ContractStatus(status), event)]


def allowed_events(status: ContractStatus) -> list[ContractEvent]:
    status = ContractStatus(status)
    return [event for (src, event) in TRANSITIONS if src == status]


def termination_outcome_event(termination_type: TerminationType) -> ContractEvent:
    if TerminationType(termination_type) == TerminationType.EARLY_TERMINATE:
        return ContractEvent.TERMINATION_EARLY_COMPLETED
    return ContractEvent.TERMINATION_EXPIRE_COMPLETED
