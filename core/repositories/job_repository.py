"""
Job persistence: jobs, job_items and job_photos.

Writes are independent statements; the job engine sequences them
(write item, recompute total, write job) and concurrent edits to one job
are last-write-wins.
"""

from collections import defaultdict
from uuid import UUID

from clients.postgres_client import PostgresClient
from core.models import Job, JobItem, JobPhoto, JobStatus

_JOB_UPDATABLE_COLUMNS = (
    "address", "status", "current_phase_id", "scheduled_date", "start_date",
    "end_date", "permit_required", "permit_number", "total_amount", "notes",
    "invoice_id", "invoice_url",
)

_ITEM_COLUMNS = (
    "id", "job_id", "item_id", "name", "nickname", "quantity", "price", "total",
    "is_custom", "custom_name", "custom_description", "custom_price",
)


def _column_value(model, column: str):
    value = getattr(model, column)
    if isinstance(value, JobStatus):
        return value.value
    return value


class JobRepository:
    """SQL access to jobs and their owned rows."""

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def _attach_children(self, rows: list[dict]) -> list[Job]:
        if not rows:
            return []

        ids = [str(row["id"]) for row in rows]
        items = defaultdict(list)
        for row in self.postgres.execute(
            "SELECT * FROM job_items WHERE job_id = ANY(%s::uuid[]) ORDER BY created_at ASC",
            (ids,)
        ):
            items[row["job_id"]].append(JobItem.model_validate(row))

        photos = defaultdict(list)
        for row in self.postgres.execute(
            "SELECT * FROM job_photos WHERE job_id = ANY(%s::uuid[]) ORDER BY uploaded_at ASC",
            (ids,)
        ):
            photos[row["job_id"]].append(JobPhoto.model_validate(row))

        return [
            Job.model_validate({**row, "items": items[row["id"]], "photos": photos[row["id"]]})
            for row in rows
        ]

    def create(self, job: Job) -> None:
        """Insert the job row, then each of its items."""
        columns = ("id", "customer_id", "template_id", "created_at", "updated_at") + _JOB_UPDATABLE_COLUMNS
        self.postgres.execute(
            f"""
            INSERT INTO jobs ({', '.join(columns)})
            VALUES ({', '.join(['%s'] * len(columns))})
            """,
            tuple(_column_value(job, column) for column in columns)
        )
        for item in job.items:
            self.add_item(item)

    def get_by_id(self, job_id: UUID) -> Job | None:
        row = self.postgres.execute_single("SELECT * FROM jobs WHERE id = %s", (job_id,))
        if row is None:
            return None
        return self._attach_children([row])[0]

    def list(
        self,
        status: JobStatus | None = None,
        customer_id: UUID | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Job]:
        """Jobs by scheduled date, newest first, with optional filters."""
        conditions = []
        params: list = []
        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        if customer_id is not None:
            conditions.append("customer_id = %s")
            params.append(customer_id)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"SELECT * FROM jobs {where} ORDER BY scheduled_date DESC LIMIT %s OFFSET %s",
            tuple(params)
        )
        return self._attach_children(rows)

    def update(self, job: Job) -> None:
        set_parts = [f"{column} = %s" for column in _JOB_UPDATABLE_COLUMNS]
        params = [_column_value(job, column) for column in _JOB_UPDATABLE_COLUMNS]
        params.extend([job.updated_at, job.id])

        self.postgres.execute(
            f"UPDATE jobs SET {', '.join(set_parts)}, updated_at = %s WHERE id = %s",
            tuple(params)
        )

    def delete(self, job_id: UUID) -> bool:
        """Items and photos go with the job via ON DELETE CASCADE."""
        rows = self.postgres.execute_returning(
            "DELETE FROM jobs WHERE id = %s RETURNING id", (job_id,)
        )
        return bool(rows)

    def add_item(self, item: JobItem) -> None:
        self.postgres.execute(
            f"""
            INSERT INTO job_items ({', '.join(_ITEM_COLUMNS)})
            VALUES ({', '.join(['%s'] * len(_ITEM_COLUMNS))})
            """,
            tuple(getattr(item, column) for column in _ITEM_COLUMNS)
        )

    def update_item(self, item: JobItem) -> None:
        self.postgres.execute(
            "UPDATE job_items SET quantity = %s, price = %s, total = %s WHERE id = %s",
            (item.quantity, item.price, item.total, item.id)
        )

    def remove_item(self, job_item_id: UUID) -> None:
        self.postgres.execute("DELETE FROM job_items WHERE id = %s", (job_item_id,))

    def add_photo(self, photo: JobPhoto) -> None:
        self.postgres.execute(
            """
            INSERT INTO job_photos (id, job_id, url, caption, uploaded_at)
            VALUES (%s, %s, %s, %s, %s)
            """,
            (photo.id, photo.job_id, photo.url, photo.caption, photo.uploaded_at)
        )

    def remove_photo(self, photo_id: UUID) -> None:
        self.postgres.execute("DELETE FROM job_photos WHERE id = %s", (photo_id,))
