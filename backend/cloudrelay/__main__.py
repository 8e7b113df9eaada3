"""
Cloud Relay — Console Entry Point
===================================

Usage:
    python -m cloudrelay        (or the `cloudrelay` console script)

Checks the required credentials before the HTTP listener binds. Each
missing variable is logged and the process exits with status 1.
"""

import logging
import sys

import uvicorn

from cloudrelay.config import settings
from cloudrelay.main import setup_logging

logger = logging.getLogger("cloudrelay")


def ensure_required_settings() -> None:
    """Exit with status 1 if any required environment variable is missing."""
    missing = settings.missing_required()
    for name in missing:
        logger.error("Missing environment variable: %s", name)
    if missing:
        sys.exit(1)


def main() -> None:
    setup_logging()
    ensure_required_settings()
    uvicorn.run(
        "cloudrelay.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
