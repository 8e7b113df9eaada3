"""
Cloud Relay — Azure Blob Storage Service
==========================================

What:  Issues SAS URLs for blobs and lists image blobs in the container.
How:   SAS tokens are signed locally with the account key
       (`generate_blob_sas`); listing uses the async ContainerClient, whose
       pager follows continuation tokens transparently.
Who:   Built once in the app lifespan; used by GET /generate-sas-url and
       GET /get-images.

Permission scopes:
    upload staging  → write only ("w")
    listing         → read only  ("r")
    Both expire `sas_expiry_seconds` (default one hour) after issuance.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from azure.core.exceptions import AzureError
from azure.storage.blob import BlobSasPermissions, generate_blob_sas
from azure.storage.blob.aio import BlobServiceClient, ContainerClient

from cloudrelay.config import Settings
from cloudrelay.exceptions import StorageServiceError

logger = logging.getLogger(__name__)

IMAGE_NAME_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|jfif)$", re.IGNORECASE)

WRITE_PERMISSION = BlobSasPermissions(write=True)
READ_PERMISSION = BlobSasPermissions(read=True)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_image_blob(name: str) -> bool:
    """True when the blob name ends in a supported image extension."""
    return bool(IMAGE_NAME_PATTERN.search(name))


class BlobStorageService:
    """
    SAS issuance and image listing for one container.

    Args:
        config:            Application settings (account, key, container, expiry)
        container_client:  Injected container client; built from the
                           settings when omitted
        clock:             UTC time source for SAS expiry; tests pass a
                           fixed clock
    """

    def __init__(
        self,
        config: Settings,
        container_client: Optional[ContainerClient] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.account_name = config.azure_storage_account_name
        self.container_name = config.azure_container_name
        self._account_key = config.azure_storage_account_key
        self.expiry = timedelta(seconds=config.sas_expiry_seconds)
        self._clock = clock
        self._service_client: Optional[BlobServiceClient] = None

        if container_client is None:
            self._service_client = BlobServiceClient(
                account_url=f"https://{self.account_name}.blob.core.windows.net",
                credential={
                    "account_name": self.account_name,
                    "account_key": self._account_key,
                },
            )
            container_client = self._service_client.get_container_client(self.container_name)
        self.container_client = container_client

        logger.info(
            "BlobStorageService initialized for account=%s container=%s (sas expiry %ds)",
            self.account_name,
            self.container_name,
            config.sas_expiry_seconds,
        )

    def signed_url(self, blob_name: str, permission: BlobSasPermissions) -> str:
        """
        Build a SAS URL for `blob_name` scoped to `permission`.

        Raises:
            StorageServiceError: signing failed (bad key, bad name).
        """
        expires_on = self._clock() + self.expiry
        try:
            blob_client = self.container_client.get_blob_client(blob_name)
            token = generate_blob_sas(
                account_name=self.account_name,
                container_name=self.container_name,
                blob_name=blob_name,
                account_key=self._account_key,
                permission=permission,
                expiry=expires_on,
            )
        except (AzureError, ValueError, TypeError) as e:
            logger.error("Failed to sign SAS URL for %s: %s", blob_name, str(e))
            raise StorageServiceError(
                message=str(e) or "Failed to generate SAS URL",
                context={"blob_name": blob_name},
            ) from e
        return f"{blob_client.url}?{token}"

    def upload_url(self, blob_name: str) -> str:
        """Write-only SAS URL for staging an upload to `blob_name`."""
        url = self.signed_url(blob_name, WRITE_PERMISSION)
        logger.info("Issued write SAS URL for blob %s", blob_name)
        return url

    async def list_image_urls(self) -> List[str]:
        """
        Read-only SAS URLs for every image blob, in listing order.

        Returns an empty list when the container holds no images; the
        route decides how to report that.

        Raises:
            StorageServiceError: listing or signing failed.
        """
        urls: List[str] = []
        blob_count = 0
        try:
            async for blob in self.container_client.list_blobs():
                blob_count += 1
                if is_image_blob(blob.name):
                    logger.debug("Image matched: %s", blob.name)
                    urls.append(self.signed_url(blob.name, READ_PERMISSION))
                else:
                    logger.debug("Blob is not an image: %s", blob.name)
        except AzureError as e:
            logger.error("Listing container %s failed: %s", self.container_name, str(e))
            raise StorageServiceError(
                message=getattr(e, "message", None) or str(e),
                code=getattr(e, "error_code", None),
                context={"container": self.container_name},
            ) from e

        logger.info(
            "Processed %d blob(s), generated %d image URL(s)", blob_count, len(urls)
        )
        return urls

    async def aclose(self) -> None:
        if self._service_client is not None:
            await self._service_client.close()
