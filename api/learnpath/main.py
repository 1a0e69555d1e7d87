"""LearnPath API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from learnpath.auth.service import UserDirectory
from learnpath.catalog.service import CatalogService
from learnpath.certificates.renderer import CertificateRenderer
from learnpath.certificates.router import router as certificates_router
from learnpath.certificates.service import CertificationGate
from learnpath.config import Settings, get_settings
from learnpath.core.context import get_request_id
from learnpath.core.database import init_async_cassandra, shutdown_async_cassandra
from learnpath.core.logging import configure_structlog, get_logger
from learnpath.core.middleware import RequestContextMiddleware
from learnpath.enrollments.service import EnrollmentService
from learnpath.health import router as health_router
from learnpath.progress.router import router as progress_router
from learnpath.progress.service import ProgressTracker


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, log_dir=Path(settings.log_dir))

logger = get_logger(__name__)


def init_services(app: FastAPI, session: Any, settings: Settings) -> None:
    """Build the services on top of a Cassandra session and put them on app.state."""
    keyspace = settings.cassandra_keyspace

    users = UserDirectory(session=session, keyspace=keyspace)
    catalog = CatalogService(session=session, keyspace=keyspace)
    enrollments = EnrollmentService(session=session, keyspace=keyspace)
    tracker = ProgressTracker(
        session=session,
        keyspace=keyspace,
        catalog=catalog,
        enrollments=enrollments,
        users=users,
    )
    gate = CertificationGate(
        session=session,
        keyspace=keyspace,
        tracker=tracker,
        catalog=catalog,
        users=users,
        renderer=CertificateRenderer(
            output_dir=settings.certificate_dir,
            issuer=settings.certificate_issuer,
        ),
    )

    app.state.user_directory = users
    app.state.catalog_service = catalog
    app.state.enrollment_service = enrollments
    app.state.progress_tracker = tracker
    app.state.certification_gate = gate


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    try:
        session = await init_async_cassandra()
        logger.info("cassandra_initialized")

        init_services(app, session, settings)
        logger.info("services_initialized")
    except Exception as e:
        # Readiness reports not_ready and service routes answer 503
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    logger.info("shutting_down_application")
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # debug=False keeps stack traces out of responses
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="LearnPath - sequential progress and certificates API",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages.

        Domain errors carry a dict detail (message, code and extras), which
        is merged into the body.
        """
        request_id = _get_request_id_safe(request)

        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        content: dict[str, Any] = {
            "error": True,
            "message": "Internal server error",
            "status_code": exc.status_code,
            "request_id": request_id,
        }
        if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
            if isinstance(exc.detail, dict):
                content.update(exc.detail)
            else:
                content["message"] = str(exc.detail)

        return ORJSONResponse(
            status_code=exc.status_code,
            content=content,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle validation errors with safe error messages."""
        request_id = _get_request_id_safe(request)

        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "message": "Validation error",
                "status_code": 422,
                "request_id": request_id,
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler for unhandled exceptions.

        Full details go to the log; the caller gets a generic message.
        """
        request_id = _get_request_id_safe(request)

        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": request_id,
            },
        )

    app.include_router(health_router)
    app.include_router(progress_router)
    app.include_router(certificates_router)

    @app.get("/", include_in_schema=False)
    async def root(request: Request) -> dict[str, str]:
        """Root endpoint."""
        return {
            "message": "LearnPath API",
            "version": settings.app_version,
            "docs": f"{request.url}docs",
        }

    return app


app = create_app()
