"""
Job lifecycle service.

Jobs are materialized from templates. Creation snapshots the current
catalog price of every template item into a job item at quantity zero;
technicians then fill in quantities as work progresses. Every item
mutation rolls into the job total before the job row is written back.

Writes are sequential and independently committed
(item row, then job row). Concurrent edits to one job are last-write-wins.
"""

import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from core.audit import AuditLogger, AuditAction, compute_changes
from core.config import JobsConfig
from core.errors import InvalidFieldError, NotFoundError
from core.models import (
    CustomJobItemCreate,
    Item,
    Job,
    JobCreate,
    JobItem,
    JobStatus,
    JobUpdate,
    parse_job_status,
)
from core.repositories.customer_repository import CustomerRepository
from core.repositories.item_repository import ItemRepository
from core.repositories.job_repository import JobRepository
from core.repositories.template_repository import TemplateRepository
from utils.timezone import now_utc

if TYPE_CHECKING:
    from core.services.photo_service import PhotoService

logger = logging.getLogger(__name__)


def _job_item_from_catalog(job_id: UUID, item: Item, quantity: Decimal) -> JobItem:
    job_item = JobItem(
        id=uuid4(),
        job_id=job_id,
        item_id=item.id,
        name=item.name,
        nickname=item.nickname,
        quantity=quantity,
        price=item.unit_price,
    )
    job_item.recalculate()
    return job_item


def parse_price(value: str) -> Decimal:
    """Parse a decimal price string. Raises InvalidFieldError if unparseable or negative."""
    try:
        price = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise InvalidFieldError(f"invalid price: {value!r}")
    if not price.is_finite():
        raise InvalidFieldError(f"invalid price: {value!r}")
    if price < 0:
        raise InvalidFieldError("price must not be negative")
    return price


class JobService:
    """Service for job operations."""

    def __init__(
        self,
        jobs: JobRepository,
        templates: TemplateRepository,
        items: ItemRepository,
        customers: CustomerRepository,
        audit: AuditLogger,
        config: JobsConfig | None = None,
        photos: "PhotoService | None" = None,
    ):
        self.jobs = jobs
        self.templates = templates
        self.items = items
        self.customers = customers
        self.audit = audit
        self.config = config or JobsConfig()
        self.photos = photos

    def _log_update(self, before: dict, job: Job) -> None:
        changes = compute_changes(before, job.model_dump(mode="json", exclude={"items", "photos"}))
        if changes:
            self.audit.log_change(
                entity_type="job",
                entity_id=job.id,
                action=AuditAction.UPDATE,
                changes=changes
            )

    def create_from_template(self, data: JobCreate) -> Job:
        """
        Create a scheduled job seeded from a template.

        Every template item whose catalog item still exists becomes a job
        item at quantity zero, priced at today's catalog price. Missing
        catalog items are logged and skipped.

        Args:
            data: Customer, template, address, optional scheduled date and notes

        Returns:
            Created job with total zero

        Raises:
            NotFoundError: If customer or template not found
            InvalidFieldError: If the scheduled date is in the past
        """
        if self.customers.get_by_id(data.customer_id) is None:
            raise NotFoundError("Customer", data.customer_id)

        template = self.templates.get_by_id(data.template_id)
        if template is None:
            raise NotFoundError("Template", data.template_id)

        scheduled_date = data.scheduled_date or (
            now_utc() + timedelta(hours=self.config.default_schedule_offset_hours)
        )

        job = Job.new(
            customer_id=data.customer_id,
            template_id=template.id,
            address=data.address,
            scheduled_date=scheduled_date,
            notes=data.notes,
        )

        for template_item in template.items:
            item = self.items.get_by_id(template_item.item_id)
            if item is None:
                logger.warning(
                    f"Catalog item {template_item.item_id} on template {template.id} "
                    f"not found, skipping"
                )
                continue
            job.items.append(_job_item_from_catalog(job.id, item, Decimal("0")))

        job.calculate_total()
        self.jobs.create(job)

        self.audit.log_change(
            entity_type="job",
            entity_id=job.id,
            action=AuditAction.CREATE,
            changes={"created": job.model_dump(mode="json", exclude={"items", "photos"})}
        )
        logger.info(f"Created job {job.id} from template {template.id} with {len(job.items)} items")

        return job

    def get_by_id(self, job_id: UUID) -> Job | None:
        return self.jobs.get_by_id(job_id)

    def require(self, job_id: UUID) -> Job:
        job = self.jobs.get_by_id(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    def list(
        self,
        status: JobStatus | str | None = None,
        customer_id: UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Job]:
        """
        List jobs, optionally filtered.

        Raises:
            InvalidFieldError: If status is not a known value
        """
        parsed = parse_job_status(status) if status else None
        return self.jobs.list(status=parsed, customer_id=customer_id, limit=limit, offset=offset)

    def update_item_quantity(self, job_id: UUID, job_item_id: UUID, quantity: Decimal) -> Job:
        """
        Set a job item's quantity and recompute totals.

        Raises:
            NotFoundError: If job or job item not found
            InvalidFieldError: If quantity is negative
        """
        job = self.require(job_id)
        old_quantity = job.get_item(job_item_id).quantity

        job_item = job.set_item_quantity(job_item_id, quantity)
        self.jobs.update_item(job_item)
        self.jobs.update(job)

        self.audit.log_change(
            entity_type="job",
            entity_id=job_id,
            action=AuditAction.UPDATE,
            changes={
                f"items.{job_item_id}.quantity": {"old": str(old_quantity), "new": str(quantity)},
                "total_amount": {"new": str(job.total_amount)},
            }
        )
        return job

    def add_item(self, job_id: UUID, item_id: UUID, quantity: Decimal = Decimal("0")) -> Job:
        """
        Add a catalog item to a job at its current catalog price.

        Raises:
            NotFoundError: If job or catalog item not found
            InvalidFieldError: If quantity is negative
        """
        if quantity < 0:
            raise InvalidFieldError("quantity must not be negative")

        job = self.require(job_id)
        item = self.items.get_by_id(item_id)
        if item is None:
            raise NotFoundError("Item", item_id)

        job_item = job.add_item(_job_item_from_catalog(job.id, item, quantity))
        self.jobs.add_item(job_item)
        self.jobs.update(job)

        self.audit.log_change(
            entity_type="job",
            entity_id=job_id,
            action=AuditAction.UPDATE,
            changes={"items": {"added": job_item.model_dump(mode="json")}}
        )
        return job

    def add_custom_item(self, job_id: UUID, data: CustomJobItemCreate) -> Job:
        """
        Add ad-hoc work with no catalog item behind it.

        Raises:
            NotFoundError: If job not found
            InvalidFieldError: If name is empty or price is not a valid decimal
        """
        if not data.name.strip():
            raise InvalidFieldError("custom item name is required")
        price = parse_price(data.price)

        job = self.require(job_id)
        job_item = job.add_item(
            JobItem(
                id=uuid4(),
                job_id=job.id,
                item_id=None,
                name=data.name,
                quantity=data.quantity,
                price=price,
                is_custom=True,
                custom_name=data.name,
                custom_description=data.description,
                custom_price=data.price.strip(),
            )
        )
        self.jobs.add_item(job_item)
        self.jobs.update(job)

        self.audit.log_change(
            entity_type="job",
            entity_id=job_id,
            action=AuditAction.UPDATE,
            changes={"items": {"added": job_item.model_dump(mode="json")}}
        )
        return job

    def remove_item(self, job_id: UUID, job_item_id: UUID) -> Job:
        """
        Raises:
            NotFoundError: If job or job item not found
        """
        job = self.require(job_id)
        removed = job.remove_item(job_item_id)

        self.jobs.remove_item(job_item_id)
        self.jobs.update(job)

        self.audit.log_change(
            entity_type="job",
            entity_id=job_id,
            action=AuditAction.UPDATE,
            changes={"items": {"removed": removed.model_dump(mode="json")}}
        )
        return job

    def update_status(self, job_id: UUID, status: JobStatus | str) -> Job:
        """
        Move a job to any status. Start and end dates are stamped as a side effect.

        Raises:
            NotFoundError: If job not found
            InvalidFieldError: If status is not a known value
        """
        job = self.require(job_id)
        before = job.model_dump(mode="json", exclude={"items", "photos"})

        job.update_status(status)
        self.jobs.update(job)

        self._log_update(before, job)
        logger.info(f"Job {job_id} status -> {job.status.value}")
        return job

    def update(self, job_id: UUID, data: JobUpdate) -> Job:
        """
        Apply a partial update to job fields.

        Raises:
            NotFoundError: If job not found
            InvalidFieldError: If status, address or scheduled date is invalid
        """
        job = self.require(job_id)
        before = job.model_dump(mode="json", exclude={"items", "photos"})

        job.apply_update(data)
        self.jobs.update(job)

        self._log_update(before, job)
        return job

    def update_phase(self, job_id: UUID, phase_id: UUID | None) -> Job:
        """
        Set or clear the job's current phase.

        Raises:
            NotFoundError: If job not found, or phase is not on the job's template
        """
        job = self.require(job_id)

        if phase_id is not None:
            template = self.templates.get_by_id(job.template_id)
            phase_ids = {phase.id for phase in template.phases} if template else set()
            if phase_id not in phase_ids:
                raise NotFoundError("Phase", phase_id)

        before = job.model_dump(mode="json", exclude={"items", "photos"})
        job.update_phase(phase_id)
        self.jobs.update(job)

        self._log_update(before, job)
        return job

    def calculate_total(self, job_id: UUID) -> Job:
        """Recompute item and job totals from stored quantities and write them back."""
        job = self.require(job_id)
        job.calculate_total()
        for item in job.items:
            self.jobs.update_item(item)
        self.jobs.update(job)
        return job

    def record_invoice(self, job_id: UUID, invoice_id: str, invoice_url: str | None) -> Job:
        """Store the external invoice reference on a job."""
        job = self.require(job_id)
        before = job.model_dump(mode="json", exclude={"items", "photos"})

        job.invoice_id = invoice_id
        job.invoice_url = invoice_url
        job.updated_at = now_utc()
        self.jobs.update(job)

        self._log_update(before, job)
        return job

    def delete(self, job_id: UUID) -> None:
        """
        Delete a job with its items and photos.

        Stored photo objects are purged first; if that fails the job is kept.

        Raises:
            NotFoundError: If job not found
        """
        job = self.require(job_id)

        if self.photos is not None:
            self.photos.purge_job_photos(job_id)

        self.jobs.delete(job_id)

        self.audit.log_change(
            entity_type="job",
            entity_id=job_id,
            action=AuditAction.DELETE,
            changes={"deleted": job.model_dump(mode="json")}
        )
        logger.info(f"Deleted job {job_id}")
