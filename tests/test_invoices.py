from decimal import Decimal

from sqlalchemy.orm import Session

CONTRACT_INVOICE = {
    "kind": "CONTRACT",
    "cycle_month": "2025-02-15",
    "due_at": "2025-02-05T00:00:00",
    "rent": "1000.00",
    "deposit": "1500.00",
}

SERVICE_INVOICE = {
    "kind": "SERVICE",
    "cycle_month": "2025-02-01",
    "due_at": "2025-03-05T00:00:00",
    "tax_amount": "4.50",
    "items": [
        {"item_type": "ELECTRICITY", "description": "Electricity Feb", "quantity": "120", "unit_price": "0.25"},
        {"item_type": "WATER", "description": "Water Feb", "quantity": "10", "unit_price": "1.50"},
    ],
}


def _issue(client, contract_id: int, token: str, payload: dict):
    return client.post(
        f"/api/v1/contracts/{contract_id}/invoices",
        json=payload,
        headers={"Authorization": f"Bearer {token}"},
    )


# ============================================================================
# CONTRACT INVOICE TESTS
# ============================================================================


def test_issue_contract_invoice_with_discount(client, db: Session, flow, landlord_token: str):
    """Test rent and deposit lines with the discount taken off the rent first."""
    contract_id = flow.signed_contract()
    response = _issue(client, contract_id, landlord_token, {**CONTRACT_INVOICE, "adjustment_amount": "200.00"})
    assert response.status_code == 201
    data = response.json()
    assert data["kind"] == "CONTRACT"
    assert data["status"] == "ISSUED"
    assert data["cycle_month"] == "2025-02-01"
    assert data["issued_at"] == "2025-01-10T09:00:00"
    assert Decimal(data["adjustment_amount"]) == Decimal("200.00")
    assert Decimal(data["subtotal"]) == Decimal("2300.00")
    assert Decimal(data["total_amount"]) == Decimal("2300.00")

    lines = {item["item_type"]: Decimal(item["amount"]) for item in data["items"]}
    assert lines == {"RENT": Decimal("800.00"), "DEPOSIT": Decimal("1500.00")}


def test_contract_invoice_adjustment_capped_by_deposit(client, db: Session, flow, landlord_token: str):
    """Test the discount cannot exceed the contract deposit."""
    contract_id = flow.signed_contract()
    response = _issue(client, contract_id, landlord_token, {**CONTRACT_INVOICE, "adjustment_amount": "1600.00"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert "1500.00" in response.json()["detail"]


def test_contract_invoice_duplicate_cycle(client, db: Session, flow, landlord_token: str):
    """Test one contract invoice per cycle month."""
    contract_id = flow.signed_contract()
    assert _issue(client, contract_id, landlord_token, CONTRACT_INVOICE).status_code == 201

    response = _issue(client, contract_id, landlord_token, {**CONTRACT_INVOICE, "cycle_month": "2025-02-28"})
    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESOURCE"

    response = _issue(client, contract_id, landlord_token, {**CONTRACT_INVOICE, "cycle_month": "2025-03-01"})
    assert response.status_code == 201


def test_invoice_on_unsigned_contract_rejected(client, db: Session, flow, landlord_token: str):
    """Test invoices are only issued on SIGNED or ACTIVE contracts."""
    contract_id = flow.sent_contract()
    response = _issue(client, contract_id, landlord_token, CONTRACT_INVOICE)
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_STATUS"


def test_invoice_unknown_kind(client, db: Session, flow, landlord_token: str):
    """Test the kind discriminator is required and closed."""
    contract_id = flow.signed_contract()
    response = _issue(client, contract_id, landlord_token, {**CONTRACT_INVOICE, "kind": "OTHER"})
    assert response.status_code == 422


# ============================================================================
# SERVICE INVOICE TESTS
# ============================================================================


def test_issue_service_invoice(client, db: Session, flow, landlord_token: str):
    """Test metered items are priced quantity times unit price plus tax."""
    contract_id = flow.signed_contract()
    response = _issue(client, contract_id, landlord_token, SERVICE_INVOICE)
    assert response.status_code == 201
    data = response.json()
    assert data["kind"] == "SERVICE"
    assert [item["item_type"] for item in data["items"]] == ["ELECTRICITY", "WATER"]
    assert Decimal(data["items"][0]["amount"]) == Decimal("30.00")
    assert Decimal(data["subtotal"]) == Decimal("45.00")
    assert Decimal(data["tax_amount"]) == Decimal("4.50")
    assert Decimal(data["total_amount"]) == Decimal("49.50")
    assert Decimal(data["adjustment_amount"]) == Decimal("0")


def test_service_invoice_rejects_rent_items(client, db: Session, flow, landlord_token: str):
    """Test rent belongs on contract invoices only."""
    contract_id = flow.signed_contract()
    payload = {
        **SERVICE_INVOICE,
        "items": [{"item_type": "RENT", "description": "Rent", "quantity": "1", "unit_price": "1000"}],
    }
    response = _issue(client, contract_id, landlord_token, payload)
    assert response.status_code == 422


def test_service_invoice_requires_items(client, db: Session, flow, landlord_token: str):
    """Test a service invoice needs at least one item."""
    contract_id = flow.signed_contract()
    response = _issue(client, contract_id, landlord_token, {**SERVICE_INVOICE, "items": []})
    assert response.status_code == 422


# ============================================================================
# ACCESS / LIST TESTS
# ============================================================================


def test_tenant_cannot_issue_but_can_list(client, db: Session, flow, landlord_token: str, tenant_token: str):
    """Test tenant reads invoices but only the landlord issues them."""
    contract_id = flow.signed_contract()
    assert _issue(client, contract_id, tenant_token, CONTRACT_INVOICE).status_code == 403

    _issue(client, contract_id, landlord_token, CONTRACT_INVOICE)
    _issue(client, contract_id, landlord_token, SERVICE_INVOICE)

    response = client.get(
        f"/api/v1/contracts/{contract_id}/invoices",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 200
    assert len(response.json()) == 2

    response = client.get(
        f"/api/v1/contracts/{contract_id}/invoices?kind=SERVICE",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 200
    assert [invoice["kind"] for invoice in response.json()] == ["SERVICE"]


def test_get_invoice_by_id(
    client, db: Session, flow, landlord_token: str, tenant_token: str, other_tenant_token: str
):
    """Test parties can read an invoice and outsiders cannot."""
    contract_id = flow.signed_contract()
    invoice = _issue(client, contract_id, landlord_token, CONTRACT_INVOICE).json()

    response = client.get(
        f"/api/v1/invoices/{invoice['id']}",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 200
    assert response.json()["id"] == invoice["id"]

    response = client.get(
        f"/api/v1/invoices/{invoice['id']}",
        headers={"Authorization": f"Bearer {other_tenant_token}"},
    )
    assert response.status_code == 403

    response = client.get(
        "/api/v1/invoices/99999",
        headers={"Authorization": f"Bearer {tenant_token}"},
    )
    assert response.status_code == 404


def test_early_termination_cancels_open_invoices(client, db: Session, flow, landlord_token: str):
    """Test completing an early termination cancels unpaid invoices."""
    contract_id = flow.signed_contract()
    invoice = _issue(client, contract_id, landlord_token, CONTRACT_INVOICE).json()

    request = flow.request_termination(contract_id, "TENANT", "EARLY_TERMINATE", "relocating").json()
    flow.consent(contract_id, request["id"], "LANDLORD")
    flow.consent(contract_id, request["id"], "TENANT")

    response = client.get(
        f"/api/v1/invoices/{invoice['id']}",
        headers={"Authorization": f"Bearer {landlord_token}"},
    )
    assert response.json()["status"] == "CANCELLED"

    # And no new invoices on a cancelled contract
    response = _issue(client, contract_id, landlord_token, {**CONTRACT_INVOICE, "cycle_month": "2025-03-01"})
    assert response.status_code == 409
