from sqlalchemy.orm import Session

from app.core.security import get_password_hash
from app.db.models.contract import ContractParty, ContractVersion
from app.db.models.user import User as UserModel
from app.repositories.unit import create_unit


# ============================================================================
# CREATE CONTRACT TESTS
# ============================================================================


def test_create_contract_as_landlord_success(
    client, db: Session, flow, landlord_user_dict: dict, tenant_user_dict: dict, unit
):
    """Test landlord can create a DRAFT contract for their unit."""
    data = flow.create_draft()
    assert data["status"] == "DRAFT"
    assert data["unit_id"] == unit.id
    assert data["landlord_id"] == landlord_user_dict["id"]
    assert data["tenant_id"] == tenant_user_dict["id"]
    assert data["start_date"] == "2025-02-01"
    assert data["end_date"] == "2026-01-31"
    assert data["pending_end_date"] is None
    assert data["template_code"] == "RESIDENTIAL_V1"
    assert data["created_at"] == "2025-01-10T09:00:00"


def test_create_contract_below_minimum_term(client, db: Session, flow, landlord_token: str):
    """Test contract shorter than the minimum term is rejected."""
    response = client.post(
        "/api/v1/contracts",
        json=flow.draft_payload(start_date="2025-02-01", end_date="2025-02-20"),
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert "at least 30 days" in response.json()["detail"]


def test_create_contract_end_date_before_start_date(
    client, db: Session, flow, landlord_token: str
):
    """Test request validation rejects an end date before the start date."""
    response = client.post(
        "/api/v1/contracts",
        json=flow.draft_payload(start_date="2025-03-01", end_date="2025-02-01"),
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 422


def test_create_contract_unknown_tenant(client, db: Session, flow, landlord_token: str):
    """Test the tenant must be a registered user."""
    response = client.post(
        "/api/v1/contracts",
        json=flow.draft_payload(tenant_email="nobody@example.com"),
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 404
    assert "nobody@example.com" in response.json()["detail"]


def test_create_contract_tenant_must_have_tenant_role(
    client, db: Session, flow, landlord_token: str, landlord_user_dict: dict
):
    """Test a non-tenant user cannot be the tenant of a contract."""
    response = client.post(
        "/api/v1/contracts",
        json=flow.draft_payload(tenant_email=landlord_user_dict["email"]),
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 400
    assert "tenant" in response.json()["detail"]


def test_create_contract_for_foreign_unit_forbidden(
    client, db: Session, flow, landlord_token: str, landlord_user_dict: dict
):
    """Test landlord cannot create a contract for another landlord's unit."""
    other = UserModel(
        email="other.landlord@example.com",
        display_name="Other Landlord",
        password_hash=get_password_hash("OtherPass123!"),
        role_id=landlord_user_dict["role_id"],
    )
    db.add(other)
    db.commit()
    foreign_unit = create_unit(db, landlord_id=other.id, code="Z-9", property_name="Elsewhere")

    response = client.post(
        "/api/v1/contracts",
        json=flow.draft_payload(unit_id=foreign_unit.id),
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 403


def test_create_contract_as_tenant_forbidden(client, db: Session, flow, tenant_token: str):
    """Test tenant cannot create contracts."""
    response = client.post(
        "/api/v1/contracts",
        json=flow.draft_payload(),
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 403


# ============================================================================
# UPDATE / DELETE DRAFT TESTS
# ============================================================================


def test_update_draft_contract_success(client, db: Session, flow, landlord_token: str):
    """Test landlord can update a DRAFT; omitted fields are unchanged."""
    contract = flow.create_draft()
    response = client.patch(
        f"/api/v1/contracts/{contract['id']}",
        json={"end_date": "2026-07-31", "content": "Revised terms"},
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["end_date"] == "2026-07-31"
    assert data["content"] == "Revised terms"
    assert data["start_date"] == contract["start_date"]
    assert data["template_code"] == contract["template_code"]
    assert data["updated_at"] == "2025-01-10T09:00:00"


def test_update_draft_contract_checks_minimum_term(
    client, db: Session, flow, landlord_token: str
):
    """Test the minimum term is checked against the merged dates."""
    contract = flow.create_draft()
    response = client.patch(
        f"/api/v1/contracts/{contract['id']}",
        json={"end_date": "2025-02-10"},
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_update_sent_contract_rejected(client, db: Session, flow, landlord_token: str):
    """Test a SENT contract can no longer be edited."""
    contract_id = flow.sent_contract()
    response = client.patch(
        f"/api/v1/contracts/{contract_id}",
        json={"content": "Too late"},
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS"


def test_delete_draft_contract_success(client, db: Session, flow, landlord_token: str):
    """Test a DRAFT contract can be deleted."""
    contract = flow.create_draft()
    response = client.delete(
        f"/api/v1/contracts/{contract['id']}",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 204

    response = client.get(
        f"/api/v1/contracts/{contract['id']}",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 404


def test_delete_sent_contract_rejected(client, db: Session, flow, landlord_token: str):
    """Test a SENT contract is never removed."""
    contract_id = flow.sent_contract()
    response = client.delete(
        f"/api/v1/contracts/{contract_id}",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS"


# ============================================================================
# SEND CONTRACT TESTS
# ============================================================================


def test_send_contract_creates_version_and_parties(
    client, db: Session, flow, landlord_user_dict: dict, tenant_user_dict: dict
):
    """DRAFT -> send -> SENT with version #1 and a LANDLORD and a TENANT party."""
    contract = flow.create_draft()
    detail = flow.send(contract["id"])

    assert detail["contract"]["status"] == "SENT"
    assert [v["version_no"] for v in detail["versions"]] == [1]
    assert detail["versions"][0]["content"] == contract["content"]
    roles = {p["role"]: p for p in detail["parties"]}
    assert set(roles) == {"LANDLORD", "TENANT"}
    assert roles["LANDLORD"]["user_id"] == landlord_user_dict["id"]
    assert roles["TENANT"]["user_id"] == tenant_user_dict["id"]
    assert roles["TENANT"]["email"] == tenant_user_dict["email"]
    assert detail["signatures"] == []

    assert db.query(ContractParty).filter(ContractParty.contract_id == contract["id"]).count() == 2
    assert db.query(ContractVersion).filter(ContractVersion.contract_id == contract["id"]).count() == 1


def test_send_contract_twice_rejected(client, db: Session, flow, landlord_token: str):
    """Test only a DRAFT can be sent."""
    contract_id = flow.sent_contract()
    response = client.post(
        f"/api/v1/contracts/{contract_id}/send",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS"
    # No extra version or party rows
    assert len(flow.detail(contract_id)["versions"]) == 1
    assert len(flow.detail(contract_id)["parties"]) == 2


def test_send_contract_as_tenant_forbidden(client, db: Session, flow, tenant_token: str):
    """Test tenant cannot send contracts."""
    contract = flow.create_draft()
    response = client.post(
        f"/api/v1/contracts/{contract['id']}/send",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 403


# ============================================================================
# LIST / DETAIL ACCESS TESTS
# ============================================================================


def test_list_contracts_scoped_to_user(
    client,
    db: Session,
    flow,
    landlord_token: str,
    tenant_token: str,
    other_tenant_token: str,
    admin_token: str,
):
    """Test landlord and tenant see their contracts; an unrelated tenant sees none."""
    first = flow.create_draft()
    flow.sent_contract()

    for token, expected in ((landlord_token, 2), (tenant_token, 2), (admin_token, 2), (other_tenant_token, 0)):
        response = client.get("/api/v1/contracts", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["total"] == expected

    response = client.get(
        "/api/v1/contracts?status=DRAFT",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == first["id"]


def test_list_contracts_filters(
    client,
    db: Session,
    flow,
    landlord_user_dict: dict,
    tenant_user_dict: dict,
    other_tenant_user_dict: dict,
    admin_token: str,
):
    """Test admin can narrow the list by landlord, tenant and unit."""
    second_unit = create_unit(
        db, landlord_id=landlord_user_dict["id"], code="B-202", property_name="Riverside Residence"
    )
    first = flow.create_draft()
    second = flow.create_draft(unit_id=second_unit.id, tenant_email=other_tenant_user_dict["email"])
    headers = {"Authorization": f"Bearer {admin_token}"}

    response = client.get(f"/api/v1/contracts?unit_id={second_unit.id}", headers=headers)
    assert response.status_code == 200
    assert [c["id"] for c in response.json()["items"]] == [second["id"]]

    response = client.get(f"/api/v1/contracts?tenant_id={tenant_user_dict['id']}", headers=headers)
    assert [c["id"] for c in response.json()["items"]] == [first["id"]]

    response = client.get(
        f"/api/v1/contracts?landlord_id={landlord_user_dict['id']}&tenant_id={other_tenant_user_dict['id']}",
        headers=headers,
    )
    assert [c["id"] for c in response.json()["items"]] == [second["id"]]

    response = client.get("/api/v1/contracts?landlord_id=99999", headers=headers)
    assert response.json()["total"] == 0


def test_list_contracts_filter_on_other_party_forbidden(
    client,
    db: Session,
    flow,
    landlord_user_dict: dict,
    tenant_user_dict: dict,
    tenant_token: str,
    landlord_token: str,
):
    """Test non-admins can filter only within their own contracts."""
    flow.create_draft()

    response = client.get(
        f"/api/v1/contracts?landlord_id={landlord_user_dict['id']}",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 200
    assert response.json()["total"] == 1

    response = client.get(
        f"/api/v1/contracts?tenant_id={tenant_user_dict['id'] + 100}",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 403

    response = client.get(
        f"/api/v1/contracts?landlord_id={landlord_user_dict['id'] + 100}",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 403


def test_get_single_version_and_party(
    client, db: Session, flow, tenant_token: str, other_tenant_token: str
):
    """Test reading one version and one party of a sent contract."""
    contract_id = flow.sent_contract()
    detail = flow.detail(contract_id)
    version_id = detail["versions"][0]["id"]
    party_id = flow.party_id(contract_id, "TENANT")
    headers = {"Authorization": f"Bearer {tenant_token}"}

    response = client.get(f"/api/v1/contracts/{contract_id}/versions/{version_id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["version_no"] == 1
    assert response.json()["content"] == detail["contract"]["content"]

    response = client.get(f"/api/v1/contracts/{contract_id}/parties/{party_id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["role"] == "TENANT"
    assert response.json()["email"] == "tenant@example.com"

    response = client.get(f"/api/v1/contracts/{contract_id}/versions/99999", headers=headers)
    assert response.status_code == 404
    response = client.get(f"/api/v1/contracts/{contract_id}/parties/99999", headers=headers)
    assert response.status_code == 404

    response = client.get(
        f"/api/v1/contracts/{contract_id}/parties/{party_id}",
        headers={"Authorization": f"Bearer {other_tenant_token}"},
    )
    assert response.status_code == 403


def test_get_contract_as_unrelated_tenant_forbidden(
    client, db: Session, flow, other_tenant_token: str
):
    """Test users who are not a party cannot read a contract."""
    contract_id = flow.sent_contract()
    response = client.get(
        f"/api/v1/contracts/{contract_id}",
        headers={"Authorization": f"Bearer {other_tenant_token}"},
    )
    assert response.status_code == 403


def test_get_contract_not_found(client, db: Session, landlord_token: str):
    """Test getting non-existent contract returns 404."""
    response = client.get(
        "/api/v1/contracts/99999",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
