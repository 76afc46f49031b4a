"""Production startup for the BrandLens Analytics API.

Applies pending Alembic migrations (unless RUN_MIGRATIONS=false), then
replaces this process with uvicorn serving ``api.main:app``.
"""

import os
import subprocess
import sys

import structlog

from api.config import get_settings
from api.logging import setup_logging

logger = structlog.get_logger("scripts.start")


def run_migrations() -> bool:
    """Upgrade the report database to the latest revision."""
    logger.info("Running database migrations")
    try:
        result = subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            capture_output=True,
            text=True,
        )
    except subprocess.CalledProcessError as e:
        logger.error("Migration failed", stderr=e.stderr)
        return False
    logger.info("Migrations complete", output=result.stdout.strip() or None)
    return True


def start_api() -> None:
    """Exec uvicorn with host, port and workers from settings."""
    settings = get_settings()
    port = os.getenv("PORT", str(settings.api_port))

    logger.info(
        "Starting API server",
        host=settings.api_host,
        port=port,
        workers=settings.api_workers,
    )
    os.execvp(
        "uvicorn",
        [
            "uvicorn",
            "api.main:app",
            "--host",
            settings.api_host,
            "--port",
            port,
            "--workers",
            str(settings.api_workers),
            "--proxy-headers",
        ],
    )


def main() -> None:
    setup_logging()

    if os.getenv("RUN_MIGRATIONS", "true").lower() == "true" and not run_migrations():
        sys.exit(1)

    start_api()


if __name__ == "__main__":
    main()
