"""Invoice line item models for the external ledger."""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field


class LedgerLineItem(BaseModel):
    """One line of an external invoice, keyed by product name."""

    product_name: str
    description: str = ""
    quantity: Decimal = Field(..., gt=0)
    price: Decimal = Field(..., ge=0)

    @property
    def total(self) -> Decimal:
        return self.quantity * self.price


class InvoicePreparation(BaseModel):
    """External customer id plus the ordered lines derived from a job."""

    customer_id: str
    line_items: list[LedgerLineItem]

    @property
    def total(self) -> Decimal:
        return sum((line.total for line in self.line_items), Decimal("0"))


class SubmittedInvoice(BaseModel):
    """Invoice created in the external ledger for a job."""

    job_id: UUID
    invoice_id: str
    invoice_number: str | None = None
    view_url: str | None = None
    reference_number: str
    line_items: list[LedgerLineItem]
