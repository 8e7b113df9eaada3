"""
Cloud Relay — Pydantic Response Schemas
=========================================

What:  The API contract of the relay's JSON responses.
How:   Fields are snake_case in Python and camelCase on the wire
       (alias_generator=to_camel); FastAPI serialises response models by
       alias, so `sas_url` goes out as `sasUrl`.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Success responses
# ══════════════════════════════════════════════════════════════════════════


class AskResponse(CamelModel):
    """POST /ask. `response` is the provider's content blocks, unmodified."""

    response: List[Dict[str, Any]] = Field(description="Provider content blocks")


class ProbeResponse(CamelModel):
    """GET /test-api on success."""

    status: str = Field(default="success")
    response_time: int = Field(description="Round trip to the chat provider in ms")
    content: str = Field(description="Text blocks of the reply joined by spaces")


class SasUrlResponse(CamelModel):
    """GET /generate-sas-url/{blobName}."""

    sas_url: str = Field(description="Write-only SAS URL, valid for one hour")


class ExtractTextResponse(CamelModel):
    """POST /extract-text."""

    extracted_text: str = Field(description="Text recognised in the image")
    translated_text: str = Field(description="The recognised text translated to English")


class HealthResponse(BaseModel):
    """GET /health."""

    status: str = Field(description="Always 'ok' while the process serves requests")
    version: str = Field(description="Application version")
    uptime_seconds: float = Field(description="Seconds since the module loaded")
    ocr_pipeline: str = Field(description="'configured' or 'not_configured'")


# ══════════════════════════════════════════════════════════════════════════
# Error responses
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """Default error body: {"error": "..."}."""

    error: str = Field(description="Human-readable error description")


class AskErrorResponse(ErrorResponse):
    """POST /ask when the provider call fails."""

    details: str = Field(description="Provider error message")


class ProbeErrorResponse(ErrorResponse):
    """GET /test-api when the provider call fails."""

    status: str = Field(default="error")
    code: Optional[Any] = Field(default=None, description="Provider error code")
    type: Optional[str] = Field(default=None, description="Provider error type")
