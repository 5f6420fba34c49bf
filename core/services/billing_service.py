"""
Billing service: turns a job into an invoice in the external ledger.

Line derivation:
- job items with quantity > 0 are billed; zero-quantity items are work not
  yet performed and are left off
- catalog-backed items bill under the catalog item's name and description
  at the price captured on the job
- custom items all bill under one shared product, described by their own
  description (or name)
- a permit line is appended when the job requires one

Products are looked up by name (case-insensitive) and created on demand
before the invoice call. The two are separate remote calls with no
compensation: a product created for an invoice that then fails stays in
the ledger.
"""

import logging
from datetime import date
from decimal import Decimal
from uuid import UUID

from clients.ledger_client import (
    LedgerClient,
    LedgerError,
    LedgerInvoiceLine,
    LedgerUnavailableError,
)
from core.config import BillingConfig
from core.errors import (
    ExternalNotFoundError,
    ExternalUnavailableError,
    NoBillableItemsError,
    NotFoundError,
)
from core.models import InvoicePreparation, Job, JobItem, LedgerLineItem, SubmittedInvoice
from core.repositories.customer_repository import CustomerRepository
from core.repositories.item_repository import ItemRepository
from core.services.job_service import JobService, parse_price
from utils.timezone import today_utc

logger = logging.getLogger(__name__)


def format_reference_number(customer_name: str, address: str) -> str:
    """
    Build the invoice reference as "{customer} - {city}".

    The city is the second-to-last comma-separated part of the address;
    with fewer than two parts the whole address is used.
    """
    parts = address.split(",")
    city = parts[-2].strip() if len(parts) > 1 else address
    return f"{customer_name} - {city}"


class BillingService:
    """Derive invoice lines from jobs and submit them to the ledger."""

    def __init__(
        self,
        jobs: JobService,
        items: ItemRepository,
        customers: CustomerRepository,
        ledger: LedgerClient,
        config: BillingConfig | None = None,
    ):
        self.jobs = jobs
        self.items = items
        self.customers = customers
        self.ledger = ledger
        self.config = config or BillingConfig()

    def _resolve_customer_id(self) -> str:
        if self.config.ledger_customer_id:
            return self.config.ledger_customer_id

        name = self.config.ledger_customer_name
        try:
            customer = self.ledger.find_customer_by_name(name)
        except LedgerUnavailableError as e:
            raise ExternalUnavailableError("ledger", str(e))

        if customer is None:
            raise ExternalNotFoundError(
                f"customer '{name}' not found in ledger; create it there first"
            )
        return customer.id

    def _catalog_line(self, job_item: JobItem) -> LedgerLineItem | None:
        item = self.items.get_by_id(job_item.item_id) if job_item.item_id else None
        if item is None:
            logger.warning(
                f"Catalog item {job_item.item_id} for job item {job_item.id} not found, "
                f"leaving it off the invoice"
            )
            return None
        return LedgerLineItem(
            product_name=item.name,
            description=item.description or "",
            quantity=job_item.quantity,
            price=item.unit_price,
        )

    def _custom_line(self, job_item: JobItem) -> LedgerLineItem:
        price = parse_price(job_item.custom_price) if job_item.custom_price else job_item.price
        return LedgerLineItem(
            product_name=self.config.custom_product_name,
            description=job_item.custom_description or job_item.custom_name or "",
            quantity=job_item.quantity,
            price=price,
        )

    def prepare_invoice_lines(self, job: Job) -> InvoicePreparation:
        """
        Derive the external customer and ordered invoice lines for a job.

        Args:
            job: Job with its items

        Returns:
            Ledger customer id and line items

        Raises:
            ExternalNotFoundError: If the billing customer is not in the ledger
            ExternalUnavailableError: If the ledger cannot be reached
            InvalidFieldError: If a custom item's price is not a valid decimal
            NoBillableItemsError: If nothing on the job is billable
        """
        customer_id = self._resolve_customer_id()

        lines = []
        for job_item in job.items:
            if job_item.quantity <= 0:
                continue
            if job_item.is_custom:
                lines.append(self._custom_line(job_item))
            else:
                line = self._catalog_line(job_item)
                if line is not None:
                    lines.append(line)

        if job.permit_required:
            lines.append(
                LedgerLineItem(
                    product_name=self.config.permit_product_name,
                    description=self.config.permit_description,
                    quantity=Decimal("1"),
                    price=self.config.permit_price,
                )
            )

        if not lines:
            raise NoBillableItemsError("no billable items found in job")

        return InvoicePreparation(customer_id=customer_id, line_items=lines)

    def resolve_products(self, line_items: list[LedgerLineItem]) -> dict[str, str]:
        """
        Find or create a ledger product for every distinct product name.

        Returns:
            Mapping of lowercased product name to ledger product id

        Raises:
            ExternalUnavailableError: If the ledger cannot be reached
            LedgerError: If the ledger rejects a product
        """
        try:
            existing = {p.name.lower(): p.id for p in self.ledger.list_products()}
            resolved: dict[str, str] = {}
            income_account_id = None

            for line in line_items:
                key = line.product_name.lower()
                if key in resolved:
                    continue
                if key in existing:
                    resolved[key] = existing[key]
                    continue

                if income_account_id is None:
                    income_account_id = self.ledger.find_default_income_account()
                logger.info(f"Product '{line.product_name}' not in ledger, creating")
                product = self.ledger.create_product(line.product_name, income_account_id)
                resolved[key] = product.id
        except LedgerUnavailableError as e:
            raise ExternalUnavailableError("ledger", str(e))

        return resolved

    def submit_invoice(self, job_id: UUID, invoice_date: date | None = None) -> SubmittedInvoice:
        """
        Create the ledger invoice for a job and record it on the job.

        Raises:
            NotFoundError: If job or its customer not found
            ExternalNotFoundError: If the billing customer is not in the ledger
            ExternalUnavailableError: If the ledger cannot be reached
            NoBillableItemsError: If nothing on the job is billable
            LedgerError: If the ledger rejects a product or the invoice
        """
        job = self.jobs.require(job_id)
        customer = self.customers.get_by_id(job.customer_id)
        if customer is None:
            raise NotFoundError("Customer", job.customer_id)

        preparation = self.prepare_invoice_lines(job)
        products = self.resolve_products(preparation.line_items)
        reference = format_reference_number(customer.name, job.address)

        invoice_lines = [
            LedgerInvoiceLine(
                product_id=products[line.product_name.lower()],
                quantity=line.quantity,
                unit_price=line.price,
                description=line.description,
            )
            for line in preparation.line_items
        ]

        try:
            invoice = self.ledger.create_invoice(
                customer_id=preparation.customer_id,
                lines=invoice_lines,
                po_number=reference,
                invoice_date=invoice_date or today_utc(),
            )
        except LedgerUnavailableError as e:
            logger.warning(f"Invoice for job {job.id} not created; products may need reconciliation")
            raise ExternalUnavailableError("ledger", str(e))

        self.jobs.record_invoice(job.id, invoice.id, invoice.view_url or None)
        logger.info(f"Invoiced job {job.id} as {invoice.invoice_number}")

        return SubmittedInvoice(
            job_id=job.id,
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number or None,
            view_url=invoice.view_url or None,
            reference_number=reference,
            line_items=preparation.line_items,
        )

    def check_connection(self) -> None:
        """
        Raises:
            ExternalUnavailableError: If the ledger cannot be reached or rejects credentials
        """
        try:
            self.ledger.check_connection()
        except LedgerError as e:
            raise ExternalUnavailableError("ledger", str(e))
