"""
Cloud Relay — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before any `cloudrelay` import so the
       settings singleton never sees real credentials. Endpoint tests talk
       to the app through httpx's ASGITransport (no server, no lifespan)
       with the ProviderContext replaced by mocks.

Fixture Hierarchy:
    ├── fake_providers: ProviderContext built from mocks
    ├── app: fresh FastAPI app per test (fresh rate limiter)
    ├── test_client: HTTPX AsyncClient bound to `app`
    ├── relay_settings: Settings with test credentials and a temp upload dir
    └── sample_image_bytes: minimal JPEG bytes
"""

import base64
import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Must run before cloudrelay.config is imported anywhere
os.environ["ANTHROPIC_API_KEY"] = "test-key-not-real"
os.environ["AZURE_STORAGE_ACCOUNT_NAME"] = "testaccount"
os.environ["AZURE_STORAGE_ACCOUNT_KEY"] = base64.b64encode(b"test-account-key").decode()
os.environ["AZURE_CONTAINER_NAME"] = "images"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="cloudrelay_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cloudrelay.config import Settings
from cloudrelay.dependencies import ProviderContext, get_providers
from cloudrelay.main import create_app
from cloudrelay.middleware.rate_limit import FixedWindowRateLimiter

TEST_ACCOUNT_KEY = os.environ["AZURE_STORAGE_ACCOUNT_KEY"]


@pytest.fixture
def fake_providers():
    """
    ProviderContext whose services are mocks.

    Usage:
        fake_providers.chat.complete.return_value = [{"type": "text", "text": "hi"}]
    """
    chat = MagicMock()
    chat.complete = AsyncMock(return_value=[{"type": "text", "text": "Hello!"}])
    chat.probe = AsyncMock()
    chat.aclose = AsyncMock()

    storage = MagicMock()
    storage.list_image_urls = AsyncMock(return_value=[])
    storage.aclose = AsyncMock()

    extraction = MagicMock()
    extraction.extract_and_translate = AsyncMock()
    extraction.aclose = AsyncMock()

    return ProviderContext(chat=chat, storage=storage, extraction=extraction)


@pytest.fixture
def app(fake_providers):
    """A fresh app with mocked providers and a generous rate limit."""
    application = create_app(
        rate_limiter=FixedWindowRateLimiter(limit=1000, window_seconds=900)
    )
    application.dependency_overrides[get_providers] = lambda: fake_providers
    return application


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def relay_settings(tmp_path):
    """Settings with test credentials, pipeline endpoints and a temp upload dir."""
    return Settings(
        anthropic_api_key="test-key-not-real",
        azure_storage_account_name="testaccount",
        azure_storage_account_key=TEST_ACCOUNT_KEY,
        azure_container_name="images",
        azure_vision_endpoint="https://vision.test/",
        azure_vision_key="vision-key",
        azure_translator_endpoint="https://translator.test",
        azure_translator_key="translator-key",
        azure_translator_region="westeurope",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def sample_image_bytes():
    """Minimal JPEG: SOI marker + JFIF header + EOI marker."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )
