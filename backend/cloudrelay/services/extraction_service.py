"""
Cloud Relay — OCR + Translation Pipeline
==========================================

What:  Orchestrates POST /extract-text: stage upload → OCR → translate.
How:   Each step depends on the previous one succeeding; there is no
       fan-out and no retry. The staged upload is removed on every exit
       path via UploadService.staged().
Who:   Built once in the app lifespan and resolved through ProviderContext.

Error model:
    Every failure after input validation surfaces as PipelineError. The
    HTTP handler masks its message, so callers only ever see a fixed
    "An error occurred while processing the image." with status 500.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from cloudrelay.config import Settings
from cloudrelay.exceptions import PipelineError
from cloudrelay.services.ocr_service import VisionOcrClient, extract_text
from cloudrelay.services.translator_service import TranslatorClient
from cloudrelay.services.upload_service import UploadService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionResult:
    extracted_text: str
    translated_text: str


class TextExtractionService:
    """
    OCR and translation over one shared httpx.AsyncClient.

    Args:
        config:       Application settings (endpoints, keys, target language)
        uploads:      Temporary upload storage
        http_client:  Injected client; tests pass one over httpx.MockTransport
    """

    def __init__(
        self,
        config: Settings,
        uploads: UploadService,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.uploads = uploads
        self.target_language = config.translation_target_language
        self.http_client = http_client or httpx.AsyncClient(timeout=config.pipeline_timeout)
        self.ocr = VisionOcrClient(
            self.http_client,
            endpoint=config.azure_vision_endpoint,
            key=config.azure_vision_key,
        )
        self.translator = TranslatorClient(
            self.http_client,
            endpoint=config.azure_translator_endpoint,
            key=config.azure_translator_key,
            region=config.azure_translator_region,
        )

        if not config.ocr_pipeline_configured:
            logger.warning(
                "OCR pipeline is not fully configured; POST /extract-text will fail "
                "until AZURE_VISION_* and AZURE_TRANSLATOR_* are set"
            )

    async def extract_and_translate(
        self,
        content: bytes,
        filename: Optional[str] = None,
        content_length: Optional[int] = None,
    ) -> ExtractionResult:
        """
        Run the full pipeline over one uploaded image.

        Raises:
            ValidationError: upload over the size limit (before staging).
            PipelineError: any later stage failed.
        """
        self.uploads.validate_size(content_length, len(content))

        try:
            async with self.uploads.staged(content, filename) as path:
                image = await self.uploads.read(path)

                logger.info("Submitting %d bytes to OCR", len(image))
                payload = await self.ocr.recognize(image)

                extracted = extract_text(payload)
                if not extracted:
                    raise PipelineError(message="No text extracted from the image.", stage="ocr")
                logger.info("Extracted %d chars of text", len(extracted))

                translated = await self.translator.translate(extracted, self.target_language)
        except PipelineError as e:
            logger.error(
                "Image processing failed at stage=%s: %s", e.stage or "unknown", e.message
            )
            raise
        except Exception as e:
            logger.error("Unexpected image processing error: %s", str(e), exc_info=True)
            raise PipelineError(
                message="An unexpected error occurred during image processing.",
                context={"error_type": type(e).__name__},
            ) from e

        return ExtractionResult(extracted_text=extracted, translated_text=translated)

    async def aclose(self) -> None:
        await self.http_client.aclose()
