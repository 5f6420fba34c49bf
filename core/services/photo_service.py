"""
Job photo service.

Photo bytes live in blob storage, photo rows in the database. The two are
not written transactionally, so uploads compensate: when any step of a
batch fails, every object the batch already stored is deleted (along with
its row) before the error propagates, leaving no orphaned objects.
"""

import logging
import os
import time
from dataclasses import dataclass
from uuid import UUID, uuid4

from clients.blob_storage_client import BlobStorageClient, BlobStorageError
from core.audit import AuditLogger, AuditAction
from core.config import StorageConfig
from core.errors import ExternalUnavailableError, InvalidFieldError, NotFoundError
from core.models import Job, JobPhoto
from core.repositories.job_repository import JobRepository
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
_DEFAULT_EXTENSION = ".jpg"
_DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass
class PhotoUpload:
    """One file from an upload request."""

    filename: str
    content: bytes
    caption: str | None = None


def photo_content_type(extension: str) -> str:
    return _CONTENT_TYPES.get(extension.lower(), _DEFAULT_CONTENT_TYPE)


class PhotoService:
    """Upload and remove job photos, keeping storage and rows consistent."""

    def __init__(
        self,
        jobs: JobRepository,
        storage: BlobStorageClient,
        audit: AuditLogger,
        config: StorageConfig | None = None,
    ):
        self.jobs = jobs
        self.storage = storage
        self.audit = audit
        self.config = config or StorageConfig()

    def job_prefix(self, job_id: UUID) -> str:
        return f"{self.config.photo_prefix}/{job_id}/"

    def photo_path(self, job_id: UUID, filename: str) -> str:
        """Storage path: {prefix}/{job_id}/{unix}_{uuid}{ext}, .jpg when no extension."""
        extension = os.path.splitext(filename or "")[1] or _DEFAULT_EXTENSION
        return f"{self.job_prefix(job_id)}{int(time.time())}_{uuid4()}{extension}"

    def _require_job(self, job_id: UUID) -> Job:
        job = self.jobs.get_by_id(job_id)
        if job is None:
            raise NotFoundError("Job", job_id)
        return job

    def _compensate(self, stored: list[JobPhoto], orphan_url: str | None = None) -> None:
        """Delete objects (and rows) written earlier in a failed batch."""
        urls = [orphan_url] if orphan_url else []
        urls.extend(photo.url for photo in stored)

        for url in urls:
            try:
                self.storage.delete(url)
            except BlobStorageError as e:
                logger.error(f"Compensating delete failed for {url}: {e}")

        # Row deletes run even when the database is what failed the batch;
        # the caller re-raises the original error.
        for photo in stored:
            try:
                self.jobs.remove_photo(photo.id)
            except Exception as e:
                logger.error(f"Compensating row delete failed for photo {photo.id}: {e}")

        logger.warning(f"Rolled back {len(urls)} uploaded photos after batch failure")

    def upload_photos(self, job_id: UUID, uploads: list[PhotoUpload]) -> list[JobPhoto]:
        """
        Upload a batch of photos to a job.

        Args:
            job_id: Job to attach photos to
            uploads: Files from the request

        Returns:
            Created photo records, in upload order

        Raises:
            NotFoundError: If job not found
            InvalidFieldError: If no photos were provided
            ExternalUnavailableError: If storage fails (batch rolled back)
        """
        if not uploads:
            raise InvalidFieldError("no photos provided")

        job = self._require_job(job_id)
        stored: list[JobPhoto] = []

        for upload in uploads:
            path = self.photo_path(job.id, upload.filename)
            content_type = photo_content_type(os.path.splitext(path)[1])

            try:
                url = self.storage.upload(upload.content, content_type, path)
            except BlobStorageError as e:
                self._compensate(stored)
                raise ExternalUnavailableError("blob storage", str(e))

            photo = JobPhoto(
                id=uuid4(),
                job_id=job.id,
                url=url,
                caption=upload.caption,
                uploaded_at=now_utc(),
            )

            try:
                self.jobs.add_photo(photo)
            except Exception:
                self._compensate(stored, orphan_url=url)
                raise

            stored.append(photo)

        self.audit.log_change(
            entity_type="job",
            entity_id=job.id,
            action=AuditAction.UPDATE,
            changes={"photos": {"added": [p.model_dump(mode="json") for p in stored]}}
        )
        logger.info(f"Uploaded {len(stored)} photos to job {job.id}")

        return stored

    def remove_photo(self, job_id: UUID, photo_id: UUID) -> None:
        """
        Delete the stored object, then the photo row.

        Raises:
            NotFoundError: If job or photo not found
            ExternalUnavailableError: If the object cannot be deleted (row kept)
        """
        job = self._require_job(job_id)
        photo = job.get_photo(photo_id)

        try:
            self.storage.delete(photo.url)
        except BlobStorageError as e:
            raise ExternalUnavailableError("blob storage", str(e))

        self.jobs.remove_photo(photo_id)

        self.audit.log_change(
            entity_type="job",
            entity_id=job_id,
            action=AuditAction.UPDATE,
            changes={"photos": {"removed": photo.model_dump(mode="json")}}
        )

    def purge_job_photos(self, job_id: UUID) -> int:
        """
        Delete every stored object under the job's prefix.

        Raises:
            ExternalUnavailableError: If storage fails
        """
        try:
            deleted = self.storage.delete_prefix(self.job_prefix(job_id))
        except BlobStorageError as e:
            raise ExternalUnavailableError("blob storage", str(e))

        logger.info(f"Purged {deleted} photo objects for job {job_id}")
        return deleted

    def check_connection(self) -> None:
        """
        Raises:
            ExternalUnavailableError: If storage cannot be reached in time
        """
        try:
            self.storage.head_bucket(timeout=self.config.probe_timeout_seconds)
        except BlobStorageError as e:
            raise ExternalUnavailableError("blob storage", str(e))
