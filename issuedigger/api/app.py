"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics,
health checks and the service graph behind the webhook.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from issuedigger import __version__
from issuedigger.api.container import ServiceContainer
from issuedigger.api.routes import router
from issuedigger.config import get_settings
from issuedigger.exceptions import ErrorCode, IssueDiggerError
from issuedigger.logging_config import get_logger, setup_logging
from issuedigger.observability import MetricsMiddleware, get_metrics
from issuedigger.observability.metrics import get_metrics_content_type

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the service graph on startup and closes it on shutdown.
    """
    # Startup
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting issuedigger",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    container = ServiceContainer.build(settings)
    await container.start()
    app.state.container = container

    yield

    # Shutdown
    logger.info("Shutting down issuedigger")
    await container.close()
    app.state.container = None


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="issuedigger",
        description="GitHub App that finds similar issues",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.container = None

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(IssueDiggerError, issuedigger_exception_handler)

    # Register routes
    app.include_router(router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics, methods=["GET"], tags=["Observability"])

    return app


async def issuedigger_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle IssueDiggerError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, IssueDiggerError):
        return JSONResponse(
            status_code=500,
            content={"error": {"code": ErrorCode.INTERNAL_ERROR.value, "message": str(exc), "details": {}}},
        )

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=_get_status_code(exc.code),
        content=exc.to_dict(),
    )


def _get_status_code(error_code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    # Rejected input -> 400
    if error_code in (
        ErrorCode.VALIDATION_ERROR,
        ErrorCode.SIGNATURE_MISSING,
        ErrorCode.EVENT_MALFORMED,
        ErrorCode.INSTALLATION_MISSING,
    ):
        return 400

    # Unauthenticated -> 401
    if error_code is ErrorCode.SIGNATURE_MISMATCH:
        return 401

    # Upstream failures -> 502
    if error_code in (ErrorCode.GITHUB_API_ERROR, ErrorCode.GITHUB_AUTH_ERROR):
        return 502

    # Not ready or saturated -> 503
    if error_code in (ErrorCode.CONFIGURATION_ERROR, ErrorCode.QUEUE_FULL):
        return 503

    # Default to 500 for internal errors
    return 500


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> dict[str, Any]:
    """Kubernetes readiness probe.

    Ready once the service graph is built and the queue is being consumed.
    """
    container: ServiceContainer | None = getattr(request.app.state, "container", None)

    checks: dict[str, str] = {
        "config": "ok",
        "services": "ok" if container is not None else "not_started",
        "consumer": "ok" if container is not None and container.consumer.running else "stopped",
    }

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def liveness_check() -> dict[str, str]:
    """Kubernetes liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
