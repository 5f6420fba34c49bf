"""Job domain models.

A job is materialized from a template: every template item becomes a job
item at quantity zero, priced at the catalog price of the moment. Field
technicians fill in quantities as work is done; the job total is the sum
of quantity x price over its items.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from core.errors import InvalidFieldError, NotFoundError
from utils.timezone import now_utc, to_utc


class JobStatus(str, Enum):
    """Job lifecycle status."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _scheduled_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise InvalidFieldError("scheduled date must include a timezone")
    return to_utc(value)


def parse_job_status(value: "JobStatus | str") -> JobStatus:
    """Coerce a raw value to JobStatus, raising InvalidFieldError if unknown."""
    try:
        return JobStatus(value)
    except ValueError:
        raise InvalidFieldError(f"invalid job status: {value}")


class JobCreate(BaseModel):
    """Data required to create a job from a template."""

    customer_id: UUID
    template_id: UUID
    address: str = Field(..., min_length=1, max_length=500)
    scheduled_date: datetime | None = None
    notes: str | None = Field(None, max_length=10000)


class JobUpdate(BaseModel):
    """Job fields that can be updated. All optional."""

    address: str | None = Field(None, max_length=500)
    status: str | None = None
    scheduled_date: datetime | None = None
    permit_required: bool | None = None
    permit_number: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=10000)


class JobItemAdd(BaseModel):
    """Catalog item to add to a job."""

    item_id: UUID
    quantity: Decimal = Field(Decimal("0"), ge=0)


class CustomJobItemCreate(BaseModel):
    """Ad-hoc work that has no catalog item. Price is a decimal string."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    price: str
    quantity: Decimal = Field(Decimal("0"), ge=0)


class JobItem(BaseModel):
    """Billable line on a job."""

    id: UUID
    job_id: UUID
    item_id: UUID | None = None
    name: str
    nickname: str | None = None
    quantity: Decimal = Decimal("0")
    price: Decimal
    total: Decimal = Decimal("0")
    is_custom: bool = False
    custom_name: str | None = None
    custom_description: str | None = None
    custom_price: str | None = None

    model_config = {"from_attributes": True}

    def recalculate(self) -> Decimal:
        """Recompute and return total = quantity x price."""
        self.total = self.quantity * self.price
        return self.total


class JobPhoto(BaseModel):
    """Photo stored in blob storage for a job."""

    id: UUID
    job_id: UUID
    url: str
    caption: str | None = None
    uploaded_at: datetime

    model_config = {"from_attributes": True}


class Job(BaseModel):
    """Full job as stored, with its items and photos."""

    id: UUID
    customer_id: UUID
    template_id: UUID
    address: str
    status: JobStatus = JobStatus.SCHEDULED
    current_phase_id: UUID | None = None
    scheduled_date: datetime
    start_date: datetime | None = None
    end_date: datetime | None = None
    permit_required: bool = False
    permit_number: str | None = None
    total_amount: Decimal = Decimal("0")
    items: list[JobItem] = []
    photos: list[JobPhoto] = []
    notes: str | None = None
    invoice_id: str | None = None
    invoice_url: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @classmethod
    def new(
        cls,
        customer_id: UUID,
        template_id: UUID,
        address: str,
        scheduled_date: datetime,
        notes: str | None = None,
    ) -> "Job":
        """
        Build a scheduled job with no items.

        Raises:
            InvalidFieldError: If scheduled_date is in the past
        """
        now = now_utc()
        scheduled_date = _scheduled_utc(scheduled_date)
        if scheduled_date < now:
            raise InvalidFieldError("scheduled date cannot be in the past")

        return cls(
            id=uuid4(),
            customer_id=customer_id,
            template_id=template_id,
            address=address,
            status=JobStatus.SCHEDULED,
            scheduled_date=scheduled_date,
            notes=notes,
            created_at=now,
            updated_at=now,
        )

    def update_status(self, status: "JobStatus | str") -> None:
        """
        Move the job to a new status.

        Any status may follow any other. Entering IN_PROGRESS stamps the
        start date once; entering COMPLETED stamps the start date if it is
        still unset and always stamps the end date.

        Raises:
            InvalidFieldError: If status is not a known value
        """
        new_status = parse_job_status(status)
        now = now_utc()

        self.status = new_status
        if new_status == JobStatus.IN_PROGRESS:
            if self.start_date is None:
                self.start_date = now
        elif new_status == JobStatus.COMPLETED:
            if self.start_date is None:
                self.start_date = now
            self.end_date = now

        self.updated_at = now

    def calculate_total(self) -> Decimal:
        """Recompute every item total and the job total."""
        self.total_amount = sum(
            (item.recalculate() for item in self.items), Decimal("0")
        )
        self.updated_at = now_utc()
        return self.total_amount

    def get_item(self, job_item_id: UUID) -> JobItem:
        for item in self.items:
            if item.id == job_item_id:
                return item
        raise NotFoundError("Job item", job_item_id)

    def add_item(self, job_item: JobItem) -> JobItem:
        job_item.job_id = self.id
        job_item.recalculate()
        self.items.append(job_item)
        self.calculate_total()
        return job_item

    def set_item_quantity(self, job_item_id: UUID, quantity: Decimal) -> JobItem:
        """
        Set a job item's quantity and roll the change into the job total.

        Raises:
            InvalidFieldError: If quantity is negative
            NotFoundError: If the item is not on this job
        """
        if quantity < 0:
            raise InvalidFieldError("quantity must not be negative")

        item = self.get_item(job_item_id)
        item.quantity = quantity
        item.recalculate()
        self.calculate_total()
        return item

    def remove_item(self, job_item_id: UUID) -> JobItem:
        item = self.get_item(job_item_id)
        self.items = [i for i in self.items if i.id != job_item_id]
        self.calculate_total()
        return item

    def update_phase(self, phase_id: UUID | None) -> None:
        """Set the current phase, or clear it with None."""
        self.current_phase_id = phase_id
        self.updated_at = now_utc()

    def get_photo(self, photo_id: UUID) -> JobPhoto:
        for photo in self.photos:
            if photo.id == photo_id:
                return photo
        raise NotFoundError("Photo", photo_id)

    def apply_update(self, data: JobUpdate) -> None:
        """
        Apply a partial update. Status goes through update_status rules.

        Everything is validated before any field is touched.
        """
        new_status = parse_job_status(data.status) if data.status else None
        if data.address is not None and not data.address.strip():
            raise InvalidFieldError("address must not be empty")
        scheduled_date = (
            _scheduled_utc(data.scheduled_date) if data.scheduled_date is not None else None
        )

        if data.address is not None:
            self.address = data.address
        if new_status is not None:
            self.update_status(new_status)
        if scheduled_date is not None:
            self.scheduled_date = scheduled_date
        if data.permit_required is not None:
            self.permit_required = data.permit_required
        if data.permit_number is not None:
            self.permit_number = data.permit_number
        if data.notes is not None:
            self.notes = data.notes
        self.updated_at = now_utc()
