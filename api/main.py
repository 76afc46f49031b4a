"""FastAPI application factory and main entrypoint."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from api.config import get_settings
from api.database import get_engine
from api.exceptions import BrandLensError
from api.logging import setup_logging
from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routers import health, reports

setup_logging()
logger = structlog.get_logger(__name__)


def _error(status_code: int, code: str, message: str, **extra) -> ORJSONResponse:
    body = {"code": code, "message": message, **{k: v for k, v in extra.items() if v}}
    return ORJSONResponse(status_code=status_code, content={"error": body})


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()
    logger.info("Starting BrandLens Analytics API", env=settings.env, version=app.version)
    yield
    # The pool only exists once a query has run
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
    logger.info("Shutting down BrandLens Analytics API")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="BrandLens Analytics API",
        description="Aggregated brand intelligence over generated LLM reports",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/openapi.json" if settings.debug else None,
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # First added = last executed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router, prefix="/api")
    app.include_router(reports.router, prefix="/v1")
    return app


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": {"code", "message", ...}}``."""

    @app.exception_handler(BrandLensError)
    async def brandlens_error_handler(request: Request, exc: BrandLensError) -> ORJSONResponse:
        logger.warning(
            "Application error", error_code=exc.code, message=exc.message, path=request.url.path
        )
        return _error(exc.status_code, exc.code, exc.message, details=exc.details)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        errors = jsonable_encoder(exc.errors())
        first_error = errors[0] if errors else {}
        # Drop the "query"/"path" prefix from the location
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])

        logger.warning("Validation error", path=request.url.path, errors=errors)
        return _error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "validation_error",
            first_error.get("msg", "Validation error"),
            field=field,
            details={"errors": errors},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
        logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "An unexpected error occurred"
        )


app = create_app()
