"""
Cloud Relay — Blob Storage Routes
===================================

What:  GET /generate-sas-url/{blobName} issues a write-only SAS URL;
       GET /get-images lists read-only SAS URLs for every image blob.
How:   Both delegate to BlobStorageService. StorageServiceError maps to
       500 {"error": <provider message>} in the global handlers.

An empty listing is reported as 404 {"error": "No images found"}, not as
an empty array.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from cloudrelay.dependencies import ProviderContext, get_providers
from cloudrelay.exceptions import NotFoundError
from cloudrelay.schemas.relay import ErrorResponse, SasUrlResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Storage"])


@router.get(
    "/generate-sas-url/{blob_name}",
    response_model=SasUrlResponse,
    responses={500: {"description": "Signing failed", "model": ErrorResponse}},
    summary="Issue a write-only SAS URL for one blob",
)
async def generate_sas_url(
    blob_name: str,
    providers: ProviderContext = Depends(get_providers),
) -> SasUrlResponse:
    return SasUrlResponse(sas_url=providers.storage.upload_url(blob_name))


@router.get(
    "/get-images",
    response_model=List[str],
    responses={
        404: {"description": "No image blobs in the container", "model": ErrorResponse},
        500: {"description": "Listing failed", "model": ErrorResponse},
    },
    summary="List read-only SAS URLs for every image blob",
)
async def get_images(providers: ProviderContext = Depends(get_providers)) -> List[str]:
    urls = await providers.storage.list_image_urls()
    if not urls:
        logger.info("No image URLs generated")
        raise NotFoundError(message="No images found")
    return urls
