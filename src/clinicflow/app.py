"""
FastAPI application factory and main app configuration.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .api.errors import APIError, domain_error_status
from .api.routers import appointments, catalog, health, scheduling
from .api.utils.responses import error_json
from .core.config import get_settings
from .core.exceptions import ClinicFlowException, OperationsCommitError
from .core.structured_logger import configure_logging
from .domain.errors import DomainError
from .middleware.performance_middleware import PerformanceMiddleware
from .middleware.request_id_middleware import RequestIDMiddleware

logger = logging.getLogger("clinicflow")


async def _connect_database(app: FastAPI) -> None:
    """Connect Motor and register the Beanie document models."""
    import certifi
    from beanie import init_beanie
    from motor.motor_asyncio import AsyncIOMotorClient

    from .adapters.db.mongo.models.scheduling_m import DOCUMENT_MODELS

    settings = get_settings()
    mongo_uri = settings.database.uri

    # Enable TLS only for Atlas SRV URIs
    if mongo_uri.startswith("mongodb+srv://"):
        client = AsyncIOMotorClient(
            mongo_uri,
            serverSelectionTimeoutMS=15000,
            tls=True,
            tlsCAFile=certifi.where(),
            tlsAllowInvalidCertificates=False,
        )
    else:
        client = AsyncIOMotorClient(mongo_uri, serverSelectionTimeoutMS=15000)

    await init_beanie(database=client[settings.database.db_name], document_models=DOCUMENT_MODELS)
    app.state.mongo_client = client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    configure_logging(settings.logging.level, settings.logging.format)
    logger.info(f"Starting {settings.app_name} v{__version__}")
    logger.info(f"Environment: {settings.app_env} | backend: {settings.database.backend}")

    app.state.mongo_client = None
    if settings.database.backend == "mongo":
        try:
            await _connect_database(app)
            logger.info("Database connection established")
        except Exception as e:
            # Keep serving so /health/ready can report the failure
            logger.error(f"Database connection failed: {type(e).__name__}: {e}", exc_info=True)

    yield

    client = getattr(app.state, "mongo_client", None)
    if client is not None:
        client.close()
    logger.info("Shutdown complete")


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Appointment authoring and treatment package scheduling",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.allowed_origins,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allowed_methods,
        allow_headers=settings.cors.allowed_headers,
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )
    app.add_middleware(PerformanceMiddleware)
    # Outermost so every other layer sees request.state.request_id
    app.add_middleware(RequestIDMiddleware)

    app.include_router(health.router)
    app.include_router(catalog.router)
    app.include_router(scheduling.router)
    app.include_router(appointments.router)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError):
        status_code = domain_error_status(exc)
        logger.info(f"DomainError: {exc.error_code} ({status_code}) {exc.message}")
        return error_json(request, status_code, exc.error_code or "DOMAIN_ERROR", exc.message, exc.details)

    @app.exception_handler(ClinicFlowException)
    async def infrastructure_error_handler(request: Request, exc: ClinicFlowException):
        status_code = 409 if isinstance(exc, OperationsCommitError) else 500
        logger.error(f"{type(exc).__name__}: {exc.message}")
        return error_json(request, status_code, exc.error_code or "INTERNAL_ERROR", exc.message, exc.details)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        logger.warning(f"APIError: {exc.code} ({exc.http_status}) {exc.message}")
        return error_json(request, exc.http_status, exc.code, exc.message, exc.details)

    @app.exception_handler(RequestValidationError)
    async def pydantic_error_handler(request: Request, exc: RequestValidationError):
        error_details = exc.errors()
        logger.warning(f"ValidationError on {request.method} {request.url.path}: {error_details}")

        error_messages = []
        for error in error_details:
            loc = " -> ".join(str(x) for x in error.get("loc", []))
            msg = error.get("msg", "Validation error")
            error_messages.append(f"{loc}: {msg}")

        return error_json(
            request,
            422,
            "INVALID_INPUT",
            f"Input validation failed: {'; '.join(error_messages)}",
            {"errors": error_details, "path": request.url.path},
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error: {type(exc).__name__}", exc_info=exc)
        return error_json(
            request,
            500,
            "INTERNAL_ERROR",
            "An unexpected error has occurred. Please try again later.",
        )

    @app.get("/", tags=["health"])
    async def root():
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "environment": settings.app_env,
            "status": "running",
            "docs": "/docs",
            "endpoints": {
                "health": "GET /health",
                "ready": "GET /health/ready",
                "services": "GET /services",
                "patient_orders": "GET /patients/{patient_id}/orders",
                "add_session": "POST /scheduling/sessions/add",
                "remove_session": "POST /scheduling/sessions/remove",
                "preview_packages": "POST /scheduling/packages/preview",
                "package_price": "POST /scheduling/packages/price",
                "session_operations": "POST /scheduling/operations",
                "create_appointment": "POST /appointments",
                "get_appointment": "GET /appointments/{appointment_id}",
                "appointment_form": "GET /appointments/{appointment_id}/form",
                "update_appointment": "PUT /appointments/{appointment_id}",
            },
        }

    return app


# Create the app instance
app = create_app()
