"""
Cloud Relay — Text Extraction Route
=====================================

What:  POST /extract-text: OCR an uploaded image and translate the text.
How:   Reads the multipart field `image` and hands the bytes to
       TextExtractionService. A missing file or a plain-text `image` field is
       a 400; any pipeline failure is a 500 with a fixed message (see the
       handlers in main.py).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from cloudrelay.dependencies import ProviderContext, get_providers
from cloudrelay.exceptions import ValidationError
from cloudrelay.schemas.relay import ErrorResponse, ExtractTextResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Extraction"])

NO_IMAGE_MESSAGE = "No image file uploaded."


@router.post(
    "/extract-text",
    response_model=ExtractTextResponse,
    responses={
        400: {"description": "No image uploaded, or image too large", "model": ErrorResponse},
        500: {"description": "OCR or translation failed", "model": ErrorResponse},
    },
    summary="Extract text from an image and translate it to English",
)
async def extract_text(
    image: Optional[UploadFile] = File(default=None, description="Image to run OCR on"),
    providers: ProviderContext = Depends(get_providers),
) -> ExtractTextResponse:
    if image is None:
        raise ValidationError(message=NO_IMAGE_MESSAGE, field="image")

    try:
        content = await image.read()
        logger.info(
            "Received extract-text request: filename=%s, size=%d bytes",
            image.filename or "unknown",
            len(content),
        )
        result = await providers.extraction.extract_and_translate(
            content,
            filename=image.filename,
            content_length=image.size,
        )
    finally:
        await image.close()

    return ExtractTextResponse(
        extracted_text=result.extracted_text,
        translated_text=result.translated_text,
    )
