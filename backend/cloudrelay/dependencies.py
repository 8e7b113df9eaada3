"""
Cloud Relay — Provider Context & Dependencies
===============================================

What:  The long-lived provider clients, bundled and injected into routes.
How:   build_providers() constructs every client from settings during the
       app lifespan and stores the bundle on `app.state.providers`.
       Routes declare `Depends(get_providers)`; tests swap in fakes via
       `app.dependency_overrides[get_providers]`.
"""

import logging
from dataclasses import dataclass

from fastapi import Request

from cloudrelay.config import Settings
from cloudrelay.services.anthropic_service import AnthropicChatService
from cloudrelay.services.blob_service import BlobStorageService
from cloudrelay.services.extraction_service import TextExtractionService
from cloudrelay.services.llm_base import ChatService
from cloudrelay.services.upload_service import UploadService

logger = logging.getLogger(__name__)


@dataclass
class ProviderContext:
    chat: ChatService
    storage: BlobStorageService
    extraction: TextExtractionService

    async def aclose(self) -> None:
        """Close every client, logging (not raising) individual failures."""
        for name, service in (
            ("chat", self.chat),
            ("storage", self.storage),
            ("extraction", self.extraction),
        ):
            try:
                await service.aclose()
            except Exception as e:
                logger.warning("Failed to close %s client: %s", name, str(e))


def build_providers(config: Settings) -> ProviderContext:
    """Construct one client per provider from `config`."""
    uploads = UploadService(config.upload_dir, config.max_upload_size)
    return ProviderContext(
        chat=AnthropicChatService(config),
        storage=BlobStorageService(config),
        extraction=TextExtractionService(config, uploads),
    )


def get_providers(request: Request) -> ProviderContext:
    """FastAPI dependency returning the process-wide ProviderContext."""
    return request.app.state.providers
