"""
Cloud Relay — Chat Relay Routes
=================================

What:  POST /ask forwards a prompt to the chat provider; GET /test-api
       probes the provider and reports the round-trip time.
How:   Prompt validation is a dependency, so an invalid body is rejected
       before any provider call. Provider failures are turned into each
       endpoint's own 500 body here rather than by a global handler,
       because the two endpoints report the same error differently.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from cloudrelay.dependencies import ProviderContext, get_providers
from cloudrelay.exceptions import ChatServiceError, ValidationError
from cloudrelay.schemas.relay import (
    AskErrorResponse,
    AskResponse,
    ErrorResponse,
    ProbeErrorResponse,
    ProbeResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])

ASK_FAILURE_MESSAGE = "Failed to fetch response from Claude"


async def require_prompt(request: Request) -> str:
    """
    Dependency: the `prompt` string from a JSON body.

    Raises ValidationError (400) when the body is not a JSON object or the
    prompt is missing, not a string, or blank after trimming. The prompt
    itself is returned untrimmed.
    """
    body: Any = None
    try:
        body = await request.json()
    except ValueError:
        pass

    prompt = body.get("prompt") if isinstance(body, dict) else None
    if not isinstance(prompt, str) or not prompt.strip():
        logger.warning("Invalid prompt format (body type=%s)", type(body).__name__)
        raise ValidationError(message="Invalid prompt format", field="prompt")
    return prompt


@router.get(
    "/test-api",
    response_model=ProbeResponse,
    responses={500: {"description": "Chat provider unreachable", "model": ProbeErrorResponse}},
    summary="Probe the chat provider",
)
async def test_api(providers: ProviderContext = Depends(get_providers)):
    try:
        result = await providers.chat.probe()
    except ChatServiceError as e:
        return JSONResponse(
            status_code=500,
            content=ProbeErrorResponse(
                error=e.message, code=e.code, type=e.error_type
            ).model_dump(),
        )
    return ProbeResponse(response_time=result.response_time_ms, content=result.content)


@router.post(
    "/ask",
    response_model=AskResponse,
    responses={
        400: {"description": "Invalid prompt", "model": ErrorResponse},
        500: {"description": "Chat provider failed", "model": AskErrorResponse},
    },
    summary="Relay a prompt to the chat provider",
    description=(
        "Body: {\"prompt\": \"...\"}. The prompt is sent as the only user message "
        "and the provider's content blocks are returned unmodified."
    ),
)
async def ask(
    prompt: str = Depends(require_prompt),
    providers: ProviderContext = Depends(get_providers),
):
    try:
        content = await providers.chat.complete(prompt)
    except ChatServiceError as e:
        return JSONResponse(
            status_code=500,
            content=AskErrorResponse(error=ASK_FAILURE_MESSAGE, details=e.message).model_dump(),
        )
    return AskResponse(response=content)
