"""
Cloud Relay — Application Configuration
=========================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; required credentials are checked
       by the entry point and again during the app lifespan.

Required variables (the process refuses to start without them):
    ANTHROPIC_API_KEY, AZURE_STORAGE_ACCOUNT_NAME,
    AZURE_STORAGE_ACCOUNT_KEY, AZURE_CONTAINER_NAME

Optional variables enable the OCR + translation pipeline
(AZURE_VISION_*, AZURE_TRANSLATOR_*).
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from cloudrelay.exceptions import ConfigurationError

# Environment variable names checked at startup, in reporting order.
REQUIRED_ENV_VARS = {
    "ANTHROPIC_API_KEY": "anthropic_api_key",
    "AZURE_STORAGE_ACCOUNT_NAME": "azure_storage_account_name",
    "AZURE_STORAGE_ACCOUNT_KEY": "azure_storage_account_key",
    "AZURE_CONTAINER_NAME": "azure_container_name",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Credentials default to empty strings so the module can always be
    imported; `missing_required()` reports which ones are absent.
    """

    # ── Anthropic (chat relay) ────────────────────────────────────────────
    anthropic_api_key: str = Field(default="", description="Anthropic API key")

    # What: Outbound HTTP proxy applied to the LLM client only
    # Example: http://proxy.example.com:8080
    anthropic_proxy_url: Optional[str] = Field(default=None)

    chat_model: str = Field(default="claude-3-5-sonnet-20241022")
    chat_max_tokens: int = Field(default=1024, ge=1, le=8192)

    # What: Token budget for the GET /test-api connectivity probe
    probe_max_tokens: int = Field(default=50, ge=1, le=1024)

    # What: Outbound timeout for chat completions, in seconds
    chat_timeout: float = Field(default=60.0, gt=0, le=600)

    # ── Azure Blob Storage ────────────────────────────────────────────────
    azure_storage_account_name: str = Field(default="")
    azure_storage_account_key: str = Field(default="")
    azure_container_name: str = Field(default="")

    # What: Lifetime of every issued SAS URL, in seconds
    sas_expiry_seconds: int = Field(default=3600, ge=60, le=7 * 24 * 3600)

    # ── OCR + Translation pipeline ────────────────────────────────────────
    azure_vision_endpoint: str = Field(default="")
    azure_vision_key: str = Field(default="")
    azure_translator_endpoint: str = Field(default="")
    azure_translator_key: str = Field(default="")
    azure_translator_region: str = Field(default="eastus")
    translation_target_language: str = Field(default="en")
    pipeline_timeout: float = Field(default=30.0, gt=0, le=300)

    # What: Directory holding uploads for the duration of one request
    upload_dir: str = Field(default="./uploads")

    # Default: 10MB = 10 * 1024 * 1024
    max_upload_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    @field_validator(
        "azure_vision_endpoint", "azure_translator_endpoint", mode="after"
    )
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Endpoints are joined with paths that already start with '/'."""
        return v.strip().rstrip("/")

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated origins, "*" for any
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Rate Limiting ─────────────────────────────────────────────────────
    # What: Per-IP fixed window (100 requests per 15 minutes)
    rate_limit_requests: int = Field(default=100, ge=1, le=100_000)
    rate_limit_window: int = Field(default=900, ge=1, le=86_400)  # seconds

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def ocr_pipeline_configured(self) -> bool:
        """True when both the vision and translator endpoints have keys."""
        return all(
            (
                self.azure_vision_endpoint,
                self.azure_vision_key,
                self.azure_translator_endpoint,
                self.azure_translator_key,
            )
        )

    def missing_required(self) -> List[str]:
        """Names of required environment variables that are unset or blank."""
        return [
            env_name
            for env_name, field_name in REQUIRED_ENV_VARS.items()
            if not str(getattr(self, field_name) or "").strip()
        ]

    def validate_required(self) -> None:
        """
        Raise ConfigurationError listing every missing required variable.

        Called from the lifespan so that serving the app with a bare
        `uvicorn cloudrelay.main:app` still refuses to start.
        """
        missing = self.missing_required()
        if missing:
            raise ConfigurationError(
                message="Missing environment variables: " + ", ".join(missing),
                missing=missing,
            )


settings = Settings()
