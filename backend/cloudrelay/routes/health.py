"""
Cloud Relay — Health Check Route
==================================

What:  GET /health for container and load balancer probes.
How:   Reports process liveness, version, uptime and whether the optional
       OCR pipeline is configured. Makes no provider calls, so probes
       never spend provider quota. Exempt from rate limiting.
"""

import time

from fastapi import APIRouter

from cloudrelay import __version__
from cloudrelay.config import settings
from cloudrelay.schemas.relay import HealthResponse

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        ocr_pipeline="configured" if settings.ocr_pipeline_configured else "not_configured",
    )
