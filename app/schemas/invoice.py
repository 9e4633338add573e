from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.domain.invoice import (
    ContractInvoiceDraft,
    InvoiceItemType,
    InvoiceKind,
    InvoiceStatus,
    LineItem,
    ServiceInvoiceDraft,
)

Money = Annotated[Decimal, Field(ge=0, max_digits=14, decimal_places=2)]


class InvoiceItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    item_type: InvoiceItemType
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


class Invoice(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    contract_id: int
    kind: InvoiceKind
    cycle_month: date | None = None
    status: InvoiceStatus
    subtotal: Decimal
    tax_amount: Decimal
    adjustment_amount: Decimal
    total_amount: Decimal
    issued_at: datetime | None = None
    due_at: datetime
    paid_at: datetime | None = None
    items: list[InvoiceItem]


class ServiceItemCreate(BaseModel):
    item_type: Literal["ELECTRICITY", "WATER", "OTHER"]
    description: str = Field(..., min_length=1, max_length=255)
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    unit_price: Money


class ContractInvoiceCreate(BaseModel):
    kind: Literal["CONTRACT"]
    cycle_month: date = Field(..., description="Any day in the billed month")
    due_at: datetime
    rent: Money
    deposit: Money = Decimal("0")
    tax_amount: Money = Decimal("0")
    adjustment_amount: Money = Decimal("0")

    def to_draft(self) -> ContractInvoiceDraft:
        return ContractInvoiceDraft(
            cycle_month=self.cycle_month.replace(day=1),
            due_at=self.due_at,
            rent=self.rent,
            deposit=self.deposit,
            tax_amount=self.tax_amount,
            adjustment_amount=self.adjustment_amount,
        )


class ServiceInvoiceCreate(BaseModel):
    kind: Literal["SERVICE"]
    cycle_month: date | None = None
    due_at: datetime
    tax_amount: Money = Decimal("0")
    items: list[ServiceItemCreate] = Field(..., min_length=1)

    def to_draft(self) -> ServiceInvoiceDraft:
        return ServiceInvoiceDraft(
            due_at=self.due_at,
            items=tuple(
                LineItem(InvoiceItemType(item.item_type), item.description, item.quantity, item.unit_price)
                for item in self.items
            ),
            tax_amount=self.tax_amount,
            cycle_month=self.cycle_month.replace(day=1) if self.cycle_month else None,
        )


InvoiceCreate = Annotated[
    ContractInvoiceCreate | ServiceInvoiceCreate, Field(discriminator="kind")
]
