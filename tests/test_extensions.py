from datetime import datetime

from sqlalchemy.orm import Session


def _activate(client, clock, admin_token: str) -> None:
    clock.current = datetime(2025, 2, 1, 8, 0)
    response = client.post(
        "/api/v1/admin/lifecycle/run",
        headers={"Authorization": f"Bearer {admin_token}"},
    )
    assert response.status_code == 200


def _request_extension(client, contract_id: int, token: str, new_end_date: str, note: str | None = None):
    return client.post(
        f"/api/v1/contracts/{contract_id}/extensions",
        json={"new_end_date": new_end_date, "note": note},
        headers={"Authorization": f"Bearer {token}"},
    )


def _decide(client, contract_id: int, token: str, action: str, note: str | None = None):
    return client.post(
        f"/api/v1/contracts/{contract_id}/extensions/decision",
        json={"action": action, "note": note},
        headers={"Authorization": f"Bearer {token}"},
    )


# ============================================================================
# REQUEST EXTENSION TESTS
# ============================================================================


def test_tenant_requests_extension(client, db: Session, flow, tenant_token: str):
    """Test tenant asks to move the end date; the contract remembers the pending date."""
    contract_id = flow.signed_contract()
    response = _request_extension(client, contract_id, tenant_token, "2027-01-31", "One more year")
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["current_end_date"] == "2026-01-31"
    assert data["requested_end_date"] == "2027-01-31"
    assert data["requested_by_party_id"] == flow.party_id(contract_id, "TENANT")

    contract = flow.detail(contract_id)["contract"]
    assert contract["pending_end_date"] == "2027-01-31"
    assert contract["end_date"] == "2026-01-31"


def test_second_pending_extension_rejected(
    client, db: Session, flow, clock, admin_token: str, tenant_token: str
):
    """ACTIVE contract with a PENDING extension refuses another one."""
    contract_id = flow.signed_contract()
    _activate(client, clock, admin_token)
    assert flow.detail(contract_id)["contract"]["status"] == "ACTIVE"

    assert _request_extension(client, contract_id, tenant_token, "2026-07-31").status_code == 201
    response = _request_extension(client, contract_id, tenant_token, "2027-01-31")
    assert response.status_code == 409
    assert response.json()["code"] == "CONTRACT_EXTENSION_PENDING"


def test_extension_must_move_end_date_forward(client, db: Session, flow, tenant_token: str):
    """Test the requested end date must be after the current one."""
    contract_id = flow.signed_contract()
    response = _request_extension(client, contract_id, tenant_token, "2026-01-31")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_landlord_cannot_request_extension(client, db: Session, flow, landlord_token: str):
    """Test the landlord decides extensions and cannot ask for one."""
    contract_id = flow.signed_contract()
    response = _request_extension(client, contract_id, landlord_token, "2027-01-31")
    assert response.status_code == 403


def test_extension_on_sent_contract_rejected(client, db: Session, flow, tenant_token: str):
    """Test a contract that is not yet signed cannot be extended."""
    contract_id = flow.sent_contract()
    response = _request_extension(client, contract_id, tenant_token, "2027-01-31")
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS"


# ============================================================================
# DECISION TESTS
# ============================================================================


def test_accept_extension_updates_end_date_and_versions(
    client, db: Session, flow, landlord_token: str, tenant_token: str
):
    """Accepting moves the end date and appends the next contract version."""
    contract_id = flow.signed_contract()
    _request_extension(client, contract_id, tenant_token, "2027-01-31")

    response = _decide(client, contract_id, landlord_token, "accept", "Happy to continue")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ACCEPTED"
    assert data["decision_note"] == "Happy to continue"
    assert data["decided_at"] == "2025-01-10T09:00:00"

    detail = flow.detail(contract_id)
    assert detail["contract"]["end_date"] == "2027-01-31"
    assert detail["contract"]["pending_end_date"] is None
    assert detail["contract"]["status"] == "SIGNED"
    assert [v["version_no"] for v in detail["versions"]] == [1, 2]


def test_versions_stay_contiguous_over_extensions(
    client, db: Session, flow, landlord_token: str, tenant_token: str
):
    """Test each accepted extension adds exactly one version."""
    contract_id = flow.signed_contract()
    for new_end in ("2026-07-31", "2027-01-31"):
        assert _request_extension(client, contract_id, tenant_token, new_end).status_code == 201
        assert _decide(client, contract_id, landlord_token, "accept").status_code == 200

    detail = flow.detail(contract_id)
    assert [v["version_no"] for v in detail["versions"]] == [1, 2, 3]
    assert detail["contract"]["end_date"] == "2027-01-31"


def test_decline_extension_keeps_end_date(
    client, db: Session, flow, landlord_token: str, tenant_token: str
):
    """Test declining closes the request without touching the contract terms."""
    contract_id = flow.signed_contract()
    _request_extension(client, contract_id, tenant_token, "2027-01-31")

    response = _decide(client, contract_id, landlord_token, "decline", "Selling the unit")
    assert response.status_code == 200
    assert response.json()["status"] == "DECLINED"

    detail = flow.detail(contract_id)
    assert detail["contract"]["end_date"] == "2026-01-31"
    assert detail["contract"]["pending_end_date"] is None
    assert len(detail["versions"]) == 1

    # The tenant may ask again
    assert _request_extension(client, contract_id, tenant_token, "2026-06-30").status_code == 201


def test_decide_without_pending_request(client, db: Session, flow, landlord_token: str):
    """Test deciding when nothing is pending."""
    contract_id = flow.signed_contract()
    response = _decide(client, contract_id, landlord_token, "accept")
    assert response.status_code == 409
    assert response.json()["code"] == "NO_PENDING_EXTENSION"


def test_tenant_cannot_decide_extension(client, db: Session, flow, tenant_token: str):
    """Test only the landlord decides."""
    contract_id = flow.signed_contract()
    _request_extension(client, contract_id, tenant_token, "2027-01-31")
    response = _decide(client, contract_id, tenant_token, "accept")
    assert response.status_code == 403


def test_decide_invalid_action(client, db: Session, flow, landlord_token: str):
    """Test the action must be accept or decline."""
    contract_id = flow.signed_contract()
    response = _decide(client, contract_id, landlord_token, "maybe")
    assert response.status_code == 422


# ============================================================================
# LIST TESTS
# ============================================================================


def test_list_extensions_newest_first(
    client, db: Session, flow, clock, landlord_token: str, tenant_token: str
):
    """Test the history is paginated and newest first."""
    contract_id = flow.signed_contract()
    _request_extension(client, contract_id, tenant_token, "2026-07-31")
    _decide(client, contract_id, landlord_token, "decline")
    clock.advance(hours=1)
    _request_extension(client, contract_id, tenant_token, "2026-09-30")

    response = client.get(
        f"/api/v1/contracts/{contract_id}/extensions?page=1&page_size=1",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["page_size"] == 1
    assert data["items"][0]["requested_end_date"] == "2026-09-30"
    assert data["items"][0]["status"] == "PENDING"


def test_list_extensions_non_party_forbidden(client, db: Session, flow, other_tenant_token: str):
    """Test users outside the contract cannot read its extensions."""
    contract_id = flow.signed_contract()
    response = client.get(
        f"/api/v1/contracts/{contract_id}/extensions",
        headers={"Authorization": f"Bearer {other_tenant_token}"},
    )
    assert response.status_code == 403
