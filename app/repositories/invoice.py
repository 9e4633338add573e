from datetime import date, datetime

from sqlalchemy.orm import Session, selectinload

from app.db.models.invoice import Invoice as InvoiceModel, InvoiceItem as InvoiceItemModel
from app.domain.invoice import (
    OPEN_INVOICE_STATUSES,
    InvoiceKind,
    InvoiceStatus,
    InvoiceTotals,
)


def get_invoice_by_id(db: Session, invoice_id: int) -> InvoiceModel | None:
    """Get an invoice by ID with its items and contract loaded."""
    return (
        db.query(InvoiceModel)
        .options(selectinload(InvoiceModel.items), selectinload(InvoiceModel.contract))
        .filter(InvoiceModel.id == invoice_id)
        .first()
    )


def get_invoices_by_contract_id(
    db: Session, contract_id: int, kind: InvoiceKind | None = None
) -> list[InvoiceModel]:
    """Get all invoices for a contract, optionally filtered by kind."""
    query = (
        db.query(InvoiceModel)
        .options(selectinload(InvoiceModel.items))
        .filter(InvoiceModel.contract_id == contract_id)
    )
    if kind is not None:
        query = query.filter(InvoiceModel.kind == kind)
    return query.order_by(InvoiceModel.created_at.desc(), InvoiceModel.id.desc()).all()


def get_invoice_by_contract_and_cycle(
    db: Session, contract_id: int, kind: InvoiceKind, cycle_month: date
) -> InvoiceModel | None:
    """Used to check for duplicates: one invoice per kind and cycle month, ignoring cancelled ones."""
    return (
        db.query(InvoiceModel)
        .filter(
            InvoiceModel.contract_id == contract_id,
            InvoiceModel.kind == kind,
            InvoiceModel.cycle_month == cycle_month,
            InvoiceModel.status != InvoiceStatus.CANCELLED,
        )
        .first()
    )


def create_invoice(
    db: Session,
    contract_id: int,
    kind: InvoiceKind,
    cycle_month: date | None,
    due_at: datetime,
    totals: InvoiceTotals,
    issued_at: datetime,
) -> InvoiceModel:
    """Create an ISSUED invoice with its items. Pure data access - no business logic."""
    invoice = InvoiceModel(
        contract_id=contract_id,
        kind=kind,
        cycle_month=cycle_month,
        status=InvoiceStatus.ISSUED,
        subtotal=totals.subtotal,
        tax_amount=totals.tax_amount,
        adjustment_amount=totals.adjustment_amount,
        total_amount=totals.total_amount,
        issued_at=issued_at,
        due_at=due_at,
        created_at=issued_at,
    )
    for item in totals.items:
        invoice.items.append(
            InvoiceItemModel(
                item_type=item.item_type,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=item.amount,
            )
        )
    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


def cancel_open_invoices(db: Session, contract_id: int) -> int:
    """Stage cancellation of every unpaid invoice of a contract."""
    invoices = (
        db.query(InvoiceModel)
        .filter(
            InvoiceModel.contract_id == contract_id,
            InvoiceModel.status.in_(list(OPEN_INVOICE_STATUSES)),
        )
        .all()
    )
    for invoice in invoices:
        invoice.status = InvoiceStatus.CANCELLED
    db.flush()
    return len(invoices)
