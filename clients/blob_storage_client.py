"""
Azure Blob Storage client for job photos.

Every object lives in one container. Uploads return a read-only SAS URL
valid for up to seven days; when no account key is available for signing,
the plain blob URL is returned instead.
"""

import logging
from datetime import timedelta
from urllib.parse import unquote, urlparse

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.storage.blob import (
    BlobSasPermissions,
    BlobServiceClient,
    ContentSettings,
    generate_blob_sas,
)

from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class BlobStorageError(Exception):
    """Raised when a storage operation fails."""


class BlobStorageUnavailableError(BlobStorageError):
    """Raised when the storage account cannot be reached."""


class BlobStorageClient:
    """Upload, delete, list and presign objects in a single container."""

    def __init__(
        self,
        connection_string: str | None,
        container_name: str,
        presign_expiry_hours: int = 168,
        service_client: BlobServiceClient | None = None,
    ):
        """
        Initialize with storage credentials.

        Args:
            connection_string: Azure storage connection string
            container_name: Container holding all photo objects
            presign_expiry_hours: Lifetime of signed read URLs
            service_client: Pre-built service client (skips connection string)

        Raises:
            ValueError: If neither credentials nor a client are supplied
        """
        if not container_name:
            raise ValueError("container_name is required")
        if service_client is None and not connection_string:
            raise ValueError("connection_string is required")

        self.container_name = container_name
        self.presign_expiry_hours = presign_expiry_hours
        self._service = service_client or BlobServiceClient.from_connection_string(
            connection_string
        )
        self._container = self._service.get_container_client(container_name)

    def _blob_name_from_url(self, url: str) -> str:
        """Strip scheme, host, container and SAS query from an object URL."""
        path = unquote(urlparse(url).path).lstrip("/")
        prefix = f"{self.container_name}/"
        if path.startswith(prefix):
            return path[len(prefix):]
        return path

    def _presign(self, blob_name: str, blob_url: str) -> str:
        credential = getattr(self._service, "credential", None)
        account_key = getattr(credential, "account_key", None)
        if not account_key:
            return blob_url

        try:
            sas_token = generate_blob_sas(
                account_name=self._service.account_name,
                container_name=self.container_name,
                blob_name=blob_name,
                account_key=account_key,
                permission=BlobSasPermissions(read=True),
                expiry=now_utc() + timedelta(hours=self.presign_expiry_hours),
            )
        except (AzureError, ValueError) as e:
            logger.warning(f"Signed URL generation failed for {blob_name}, using public URL: {e}")
            return blob_url

        return f"{blob_url}?{sas_token}"

    def upload(self, content: bytes, content_type: str, path: str) -> str:
        """
        Upload bytes to path.

        Returns:
            Signed read URL, or the public blob URL when signing is unavailable

        Raises:
            BlobStorageError: On upload failure
        """
        blob_client = self._service.get_blob_client(container=self.container_name, blob=path)

        try:
            blob_client.upload_blob(
                content,
                overwrite=True,
                content_settings=ContentSettings(content_type=content_type),
            )
        except AzureError as e:
            logger.error(f"Blob upload failed for {path}: {e}")
            raise BlobStorageError(f"Upload failed: {e}")

        logger.info(f"Uploaded blob: {path}")
        return self._presign(path, blob_client.url)

    def delete(self, url: str) -> None:
        """
        Delete the object behind a URL. Missing objects count as deleted.

        Raises:
            BlobStorageError: On delete failure
        """
        blob_name = self._blob_name_from_url(url)
        try:
            self._service.get_blob_client(
                container=self.container_name, blob=blob_name
            ).delete_blob()
        except ResourceNotFoundError:
            logger.info(f"Blob already gone: {blob_name}")
            return
        except AzureError as e:
            logger.error(f"Blob delete failed for {blob_name}: {e}")
            raise BlobStorageError(f"Delete failed: {e}")

        logger.info(f"Deleted blob: {blob_name}")

    def list_by_prefix(self, prefix: str) -> list[str]:
        """Return names of every object under prefix."""
        try:
            return [blob.name for blob in self._container.list_blobs(name_starts_with=prefix)]
        except AzureError as e:
            logger.error(f"Blob listing failed for {prefix}: {e}")
            raise BlobStorageError(f"List failed: {e}")

    def delete_prefix(self, prefix: str) -> int:
        """
        Delete every object under prefix.

        Returns:
            Number of objects deleted
        """
        names = self.list_by_prefix(prefix)
        for name in names:
            try:
                self._container.delete_blob(name)
            except ResourceNotFoundError:
                continue
            except AzureError as e:
                logger.error(f"Blob delete failed for {name}: {e}")
                raise BlobStorageError(f"Delete failed: {e}")

        logger.info(f"Deleted {len(names)} blobs under {prefix}")
        return len(names)

    def head_bucket(self, timeout: int = 5) -> None:
        """
        Connectivity probe.

        Raises:
            BlobStorageUnavailableError: If the container cannot be reached
        """
        try:
            self._container.get_container_properties(timeout=timeout)
        except AzureError as e:
            logger.error(f"Blob storage probe failed: {e}")
            raise BlobStorageUnavailableError(str(e))
