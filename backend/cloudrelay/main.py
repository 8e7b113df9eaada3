"""
Cloud Relay — FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers; the
       lifespan validates credentials and builds the ProviderContext.
Who:   uvicorn (`cloudrelay.main:app`) and the console entry point
       (`python -m cloudrelay`).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                        FastAPI App                       │
    │                                                          │
    │  Middleware: CORS → RateLimit → RequestID → Logging → GZip│
    │                                                          │
    │  Routes:  /ask  /test-api  /generate-sas-url/{blobName}  │
    │           /get-images  /extract-text  /health            │
    │                                                          │
    │  Handlers: Validation→400 │ NotFound→404 │ Upstream→500  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → credential check (abort if missing) → provider clients
    Shutdown: close provider clients
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from cloudrelay import __version__
from cloudrelay.config import settings
from cloudrelay.dependencies import build_providers
from cloudrelay.exceptions import (
    PIPELINE_FAILURE_MESSAGE,
    NotFoundError,
    PipelineError,
    UpstreamServiceError,
    ValidationError,
)
from cloudrelay.middleware.logging import RequestLoggingMiddleware
from cloudrelay.middleware.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from cloudrelay.middleware.request_id import RequestIDMiddleware, request_id_var
from cloudrelay.routes import chat, extract, health, storage
from cloudrelay.routes.extract import NO_IMAGE_MESSAGE

logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "Something went wrong!"

# Body fields whose validation failure has a fixed client message.
FIELD_ERROR_MESSAGES = {"image": NO_IMAGE_MESSAGE}


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout.
    Called once, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("azure").setLevel(logging.WARNING)
    logging.getLogger("anthropic").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate required credentials; ConfigurationError aborts startup
        3. Build the provider clients into app.state.providers

    Shutdown:
        1. Close every provider client
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("Cloud Relay %s starting up...", __version__)

    settings.validate_required()

    app.state.providers = build_providers(settings)

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    logger.info("Cloud Relay shutting down...")
    await app.state.providers.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types onto status codes and {"error": ...} bodies.

        ValidationError        → 400, message returned
        RequestValidationError → 400, fixed per-field message or the first error
        NotFoundError          → 404, message returned
        PipelineError          → 500, fixed message (upstream detail masked)
        UpstreamServiceError   → 500, provider message returned
        Exception (fallback)   → 500, fixed message, traceback logged
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = first.get("loc") or ()
        field = str(loc[-1]) if loc else ""
        detail = first.get("msg", "validation failed")
        message = FIELD_ERROR_MESSAGES.get(field) or f"Invalid request: {detail}"
        logger.warning("[%s] Request validation error at %s: %s", rid, field or "body", detail)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"error": exc.message})

    @app.exception_handler(PipelineError)
    async def handle_pipeline_error(request: Request, exc: PipelineError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Pipeline error at %s: %s | Context: %s",
            rid,
            exc.stage or "unknown",
            exc.message,
            exc.context,
        )
        return JSONResponse(status_code=500, content={"error": PIPELINE_FAILURE_MESSAGE})

    @app.exception_handler(UpstreamServiceError)
    async def handle_upstream_error(request: Request, exc: UpstreamServiceError):
        rid = request_id_var.get("")
        logger.error("[%s] Upstream error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Server error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(status_code=500, content={"error": FALLBACK_ERROR_MESSAGE})


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(rate_limiter: Optional[FixedWindowRateLimiter] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        rate_limiter: Limiter policy to enforce; defaults to one built from
                      settings. Tests pass their own (with a fake clock).
    """
    app = FastAPI(
        title="Cloud Relay API",
        description=(
            "Relay for an LLM chat API, Azure Blob Storage SAS issuance and "
            "an Azure OCR + translation pipeline."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in reverse order of addition:
    # CORS → RateLimit → RequestID → Logging → GZip
    # CORS is outermost, so 429 rejections carry CORS headers too.
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        limiter=rate_limiter
        or FixedWindowRateLimiter(
            limit=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window,
        ),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "Retry-After",
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
        ],
    )

    register_exception_handlers(app)

    app.include_router(chat.router)
    app.include_router(storage.router)
    app.include_router(extract.router)
    app.include_router(health.router)

    return app


app = create_app()
