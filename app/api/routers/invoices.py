from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_clock, get_current_user, get_db, require_roles
from app.core.clock import Clock
from app.db.models.user import User
from app.domain.invoice import InvoiceKind
from app.schemas.invoice import Invoice, InvoiceCreate
from app.services.invoice import get_invoice, issue_invoice, list_invoices

router = APIRouter(tags=["invoices"])


@router.post(
    "/contracts/{contract_id}/invoices",
    response_model=Invoice,
    status_code=status.HTTP_201_CREATED,
)
def create_invoice(
    contract_id: int,
    invoice_data: InvoiceCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
    current_user: User = Depends(require_roles("landlord")),
):
    """
    Issue an invoice on a SIGNED or ACTIVE contract.

    `kind` selects the shape: CONTRACT bills rent and deposit for a cycle month,
    SERVICE bills electricity, water and other items.
    """
    invoice = issue_invoice(db, contract_id, current_user, invoice_data.to_draft(), clock.now())
    return Invoice.model_validate(invoice)


@router.get("/contracts/{contract_id}/invoices", response_model=list[Invoice])
def get_contract_invoices(
    contract_id: int,
    kind: InvoiceKind | None = Query(None, description="Filter by invoice kind"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List a contract's invoices, newest first."""
    invoices = list_invoices(db, contract_id, current_user, kind=kind)
    return [Invoice.model_validate(invoice) for invoice in invoices]


@router.get("/invoices/{invoice_id}", response_model=Invoice)
def get_invoice_by_id(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get an invoice with its items."""
    return Invoice.model_validate(get_invoice(db, invoice_id, current_user))
