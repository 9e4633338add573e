import logging
from datetime import datetime

from sqlalchemy.orm import Session

import app.repositories.invoice as invoice_repo
from app.db.models.invoice import Invoice as InvoiceModel
from app.db.models.user import User
from app.domain.contract_guards import can_issue_invoice
from app.domain.invoice import (
    ContractInvoiceDraft,
    InvoiceDraft,
    InvoiceDraftError,
    InvoiceKind,
    build_invoice_lines,
)
from app.errors import DomainValidationError, DuplicateResourceError, ForbiddenError, NotFoundError
from app.services.contract import ensure_contract_access, load_contract
from app.services.guard import ensure

logger = logging.getLogger(__name__)


def issue_invoice(
    db: Session,
    contract_id: int,
    current_user: User,
    draft: InvoiceDraft,
    now: datetime,
) -> InvoiceModel:
    """
    Issue a contract or service invoice.

    - Only the landlord of the contract can issue invoices
    - The contract must be SIGNED or ACTIVE
    - At most one contract invoice per cycle month
    """
    contract = load_contract(db, contract_id)
    if contract.landlord_id != current_user.id:
        raise ForbiddenError("Only the landlord of this contract can issue invoices")
    ensure(can_issue_invoice(contract.status))

    if isinstance(draft, ContractInvoiceDraft):
        existing = invoice_repo.get_invoice_by_contract_and_cycle(
            db, contract.id, InvoiceKind.CONTRACT, draft.cycle_month
        )
        if existing:
            raise DuplicateResourceError(
                f"A contract invoice already exists for {draft.cycle_month.strftime('%Y-%m')}"
            )

    try:
        totals = build_invoice_lines(draft, contract.deposit_amount)
    except InvoiceDraftError as e:
        raise DomainValidationError(str(e)) from e

    invoice = invoice_repo.create_invoice(
        db,
        contract_id=contract.id,
        kind=draft.kind,
        cycle_month=draft.cycle_month,
        due_at=draft.due_at,
        totals=totals,
        issued_at=now,
    )
    logger.info(
        "Issued %s invoice %s on contract %s for %s",
        invoice.kind.value,
        invoice.id,
        contract.id,
        invoice.total_amount,
    )
    return invoice


def list_invoices(
    db: Session, contract_id: int, current_user: User, kind: InvoiceKind | None = None
) -> list[InvoiceModel]:
    contract = load_contract(db, contract_id)
    ensure_contract_access(contract, current_user)
    return invoice_repo.get_invoices_by_contract_id(db, contract.id, kind=kind)


def get_invoice(db: Session, invoice_id: int, current_user: User) -> InvoiceModel:
    invoice = invoice_repo.get_invoice_by_id(db, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    ensure_contract_access(invoice.contract, current_user)
    return invoice
