"""Invoice drafts for a contract.

A contract produces two kinds of invoice. A ``CONTRACT`` invoice bills the
rent and the deposit, with an optional discount. A ``SERVICE`` invoice bills
metered utilities and other services. The kinds are a closed union and every
consumer matches on them exhaustively.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Literal, assert_never


class InvoiceKind(str, Enum):
    CONTRACT = "CONTRACT"
    SERVICE = "SERVICE"


class InvoiceStatus(str, Enum):
    DRAFT = "DRAFT"
    ISSUED = "ISSUED"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class InvoiceItemType(str, Enum):
    RENT = "RENT"
    DEPOSIT = "DEPOSIT"
    ELECTRICITY = "ELECTRICITY"
    WATER = "WATER"
    OTHER = "OTHER"


SERVICE_ITEM_TYPES = frozenset(
    {InvoiceItemType.ELECTRICITY, InvoiceItemType.WATER, InvoiceItemType.OTHER}
)

# Invoices still awaiting payment; cancelled along with their contract.
OPEN_INVOICE_STATUSES = frozenset({InvoiceStatus.ISSUED, InvoiceStatus.OVERDUE})

_CENT = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class LineItem:
    item_type: InvoiceItemType
    description: str
    quantity: Decimal
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        return (self.quantity * self.unit_price).quantize(_CENT, ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class ContractInvoiceDraft:
    cycle_month: date
    due_at: datetime
    rent: Decimal
    deposit: Decimal
    tax_amount: Decimal = Decimal("0")
    adjustment_amount: Decimal = Decimal("0")
    kind: Literal[InvoiceKind.CONTRACT] = InvoiceKind.CONTRACT


@dataclass(frozen=True, slots=True)
class ServiceInvoiceDraft:
    due_at: datetime
    items: tuple[LineItem, ...]
    tax_amount: Decimal = Decimal("0")
    cycle_month: date | None = None
    kind: Literal[InvoiceKind.SERVICE] = InvoiceKind.SERVICE


InvoiceDraft = ContractInvoiceDraft | ServiceInvoiceDraft


@dataclass(frozen=True, slots=True)
class InvoiceTotals:
    items: tuple[LineItem, ...]
    subtotal: Decimal
    tax_amount: Decimal
    adjustment_amount: Decimal
    total_amount: Decimal


class InvoiceDraftError(ValueError):
    """Raised when a draft cannot be priced."""


def _apply_adjustment(rent: Decimal, deposit: Decimal, adjustment: Decimal) -> tuple[Decimal, Decimal]:
    # Discount comes off the rent first; any remainder comes off the deposit.
    from_rent = min(rent, adjustment)
    from_deposit = min(deposit, adjustment - from_rent)
    return rent - from_rent, deposit - from_deposit


def build_invoice_lines(draft: InvoiceDraft, contract_deposit: Decimal) -> InvoiceTotals:
    """Price a draft into line items and totals."""
    match draft:
        case ContractInvoiceDraft():
            if draft.rent < 0 or draft.deposit < 0 or draft.tax_amount < 0:
                raise InvoiceDraftError("Invoice amounts must be zero or greater")
            if draft.adjustment_amount < 0:
                raise InvoiceDraftError("Adjustment amount must be zero or greater")
            before_adjustment = draft.rent + draft.deposit + draft.tax_amount
            ceiling = contract_deposit if contract_deposit > 0 else before_adjustment
            if draft.adjustment_amount > ceiling:
                raise InvoiceDraftError(
                    f"Adjustment amount cannot exceed {ceiling.quantize(_CENT)}"
                )
            rent, deposit = _apply_adjustment(draft.rent, draft.deposit, draft.adjustment_amount)
            items = (
                LineItem(InvoiceItemType.RENT, "Rent", Decimal("1"), rent),
                LineItem(InvoiceItemType.DEPOSIT, "Deposit", Decimal("1"), deposit),
            )
            adjustment = (draft.rent - rent) + (draft.deposit - deposit)
        case ServiceInvoiceDraft():
            if not draft.items:
                raise InvoiceDraftError("A service invoice needs at least one item")
            for item in draft.items:
                if item.item_type not in SERVICE_ITEM_TYPES:
                    raise InvoiceDraftError(
                        f"{item.item_type.value} items are not allowed on a service invoice"
                    )
                if item.quantity <= 0:
                    raise InvoiceDraftError("Item quantity must be greater than 0")
                if item.unit_price < 0:
                    raise InvoiceDraftError("Item unit price must be zero or greater")
            if draft.tax_amount < 0:
                raise InvoiceDraftError("Tax amount must be zero or greater")
            items = draft.items
            adjustment = Decimal("0")
        case _:
            assert_never(draft)

    subtotal = sum((item.amount for item in items), Decimal("0"))
    return InvoiceTotals(
        items=items,
        subtotal=subtotal,
        tax_amount=draft.tax_amount,
        adjustment_amount=adjustment,
        total_amount=subtotal + draft.tax_amount,
    )
