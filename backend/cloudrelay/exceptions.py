"""
Cloud Relay — Custom Exception Hierarchy
==========================================

What:  Application-specific exceptions for the relay's failure modes.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) turn them into
       JSON error responses with the right HTTP status code.
Who:   Raised by services and routes; caught by the global handlers.

Exception Hierarchy:
    RelayError (base)
    ├── ValidationError              → 400 Bad Request
    ├── NotFoundError                → 404 Not Found
    ├── ConfigurationError           → startup abort (never an HTTP response)
    └── UpstreamServiceError         → 500 Internal Server Error
        ├── ChatServiceError         → shaped by the chat routes
        ├── StorageServiceError      → 500 with the provider message
        └── PipelineError            → 500 with a fixed, masked message
            └── MalformedResponseError

Every error response body carries an "error" key; the chat endpoints add
their own fields (see routes/chat.py).
"""

from typing import Any, Dict, List, Optional


class RelayError(Exception):
    """
    Base exception for all relay errors.

    Attributes:
        message:  Error description. Safe to return unless a handler masks it.
        context:  Additional debug info (logged, never returned to the client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(RelayError):
    """
    Raised when client input is missing or malformed.

    When:    Invalid chat prompt, missing upload, upload over the size limit.
    HTTP:    400 Bad Request, body {"error": message}
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(RelayError):
    """
    Raised when a lookup legitimately produced nothing to show.

    When:    GET /get-images over a container with no image blobs.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        message: str = "The requested resource was not found",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ConfigurationError(RelayError):
    """Raised at startup when required credentials are missing."""

    def __init__(
        self,
        message: str = "Configuration validation failed",
        missing: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["missing"] = list(missing or [])
        super().__init__(message=message, context=ctx)
        self.missing = ctx["missing"]


class UpstreamServiceError(RelayError):
    """
    Raised when a third-party provider call fails.

    Attributes:
        code:        Provider error code or HTTP status, when known
        error_type:  Provider error type string, when known

    HTTP:    500 Internal Server Error. No automatic retry.
    """

    def __init__(
        self,
        message: str = "Upstream service request failed",
        code: Optional[Any] = None,
        error_type: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.code = code
        self.error_type = error_type


class ChatServiceError(UpstreamServiceError):
    """The LLM chat-completion call failed (network, auth, quota, model)."""


class StorageServiceError(UpstreamServiceError):
    """
    Blob listing or SAS signing failed.

    The provider message is returned to the client as-is.
    """


class PipelineError(UpstreamServiceError):
    """
    A stage of the OCR → translation pipeline failed.

    The message is descriptive for the logs; the HTTP handler replaces it
    with PIPELINE_FAILURE_MESSAGE so upstream detail never reaches the caller.
    """

    def __init__(
        self,
        message: str = "Image processing failed",
        stage: Optional[str] = None,
        code: Optional[Any] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if stage:
            ctx["stage"] = stage
        super().__init__(message=message, code=code, context=ctx)
        self.stage = stage


class MalformedResponseError(PipelineError):
    """A provider body did not contain the JSON document we expected."""


PIPELINE_FAILURE_MESSAGE = "An error occurred while processing the image."
