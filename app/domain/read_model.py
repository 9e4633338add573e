"""Derived flags over a contract read model.

These work on anything shaped like the ``GET /contracts/{id}`` payload: ORM rows
on the server, parsed schemas in the client. Parties need ``id``, ``user_id``
and ``role``; signatures need ``party_id``; versions need ``version_no``;
consents need ``party_id`` and ``status``.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date

from app.domain.contract_state import (
    ConsentStatus,
    ContractStatus,
    PartyRole,
)


def signed_party_ids(signatures: Iterable) -> set[int]:
    return {s.party_id for s in signatures}


def has_party_signed(party_id: int, signatures: Iterable) -> bool:
    return party_id in signed_party_ids(signatures)


def is_fully_signed(parties: Sequence, signatures: Sequence) -> bool:
    """Every party has exactly one signature and there are no strays."""
    if not parties:
        return False
    per_party = Counter(s.party_id for s in signatures)
    party_ids = {p.id for p in parties}
    return (
        len(signatures) >= len(parties)
        and set(per_party) == party_ids
        and all(count == 1 for count in per_party.values())
    )


def current_user_party(parties: Iterable, user_id: int):
    return next((p for p in parties if p.user_id == user_id), None)


def party_for_role(parties: Iterable, role: PartyRole):
    return next((p for p in parties if PartyRole(p.role) == role), None)


def has_user_signed(parties: Iterable, signatures: Iterable, user_id: int) -> bool:
    party = current_user_party(parties, user_id)
    return party is not None and has_party_signed(party.id, signatures)


def days_until_expiry(end_date: date, today: date) -> int:
    """Days left until ``end_date``; zero on the last day, negative once past."""
    return (end_date - today).days


def is_termination_pending(status) -> bool:
    return ContractStatus(status) == ContractStatus.TERMINATION_PENDING


def pending_consents(consents: Iterable) -> list:
    return [c for c in consents if ConsentStatus(c.status) == ConsentStatus.PENDING]


def next_version_number(versions: Iterable) -> int:
    return max((v.version_no for v in versions), default=0) + 1


def versions_are_contiguous(versions: Iterable) -> bool:
    numbers = sorted(v.version_no for v in versions)
    return numbers == list(range(1, len(numbers) + 1))
