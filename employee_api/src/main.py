"""
FastAPI application entry point for the Employee Directory API.

This module provides the main FastAPI application with:
- The GraphQL endpoint (Strawberry)
- Health and Prometheus metrics endpoints
- Request logging with correlation IDs
- OpenTelemetry distributed tracing (optional)
- CORS, security headers, and rate limiting
- MongoDB connection management
- Graceful startup and shutdown
"""

import resource
import sys
import time
import uuid
import structlog
import uvicorn
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from strawberry.fastapi import GraphQLRouter

from prometheus_client import CONTENT_TYPE_LATEST

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from employee_api.src.config import get_settings, Settings
from employee_api.src.database import Database
from employee_api.src.dependencies import (
    close_database,
    get_graphql_context,
    get_optional_database,
    init_database,
)
from employee_api.src.gql import create_schema
from employee_api.src.utils.datetime_utils import to_iso, utcnow
from shared.logging import bind_request_context, configure_logging
from shared.metrics import DirectoryMetrics, get_metrics, get_metrics_handler
from shared.models import DatabaseHealth, DatabaseStatus, HealthResponse, HealthStatus, MemoryInfo
from shared.tracing import configure_tracing, instrument_app, shutdown_tracing

# Initialize logger
logger = structlog.get_logger(__name__)

STARTED_AT = time.monotonic()


def _max_rss_mb() -> float:
    usage = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is bytes on macOS and kilobytes elsewhere
    divisor = 1024 * 1024 if sys.platform == "darwin" else 1024
    return round(usage / divisor, 2)


# ============================================================================
# Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, correlation IDs and HTTP metrics."""

    def __init__(self, app, metrics: Optional[DirectoryMetrics] = None):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())

        bind_request_context(correlation_id)

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"

        if self.metrics:
            self.metrics.http_requests_in_progress.labels(method=method, endpoint=path).inc()

        start_time = time.perf_counter()
        logger.info("request_started", method=method, path=path, client_ip=client_ip)

        try:
            response = await call_next(request)

            duration = time.perf_counter() - start_time
            route = request.scope.get("route")
            endpoint = getattr(route, "path", path)

            if self.metrics:
                self.metrics.http_requests.labels(
                    method=method,
                    endpoint=endpoint,
                    status=response.status_code
                ).inc()
                self.metrics.http_request_duration.labels(
                    method=method,
                    endpoint=endpoint
                ).observe(duration)

            logger.info(
                "request_completed",
                method=method,
                path=path,
                status_code=response.status_code,
                duration=f"{duration:.3f}s",
            )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            if self.metrics:
                self.metrics.http_requests_in_progress.labels(method=method, endpoint=path).dec()


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if self.settings.security_require_https:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.settings.security_hsts_max_age}; includeSubDomains"
            )

        return response


# ============================================================================
# Lifespan Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - MongoDB connection (with retries) and index creation
    - OpenTelemetry tracing setup
    - Graceful shutdown and resource cleanup
    """
    settings: Settings = app.state.settings
    tracer_provider = None

    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    try:
        if settings.tracing_enabled:
            logger.info("initializing_tracing", endpoint=settings.tracing_otlp_endpoint)
            tracer_provider = configure_tracing(
                service_name=settings.app_name,
                service_version=settings.app_version,
                environment=settings.environment,
                otlp_endpoint=settings.tracing_otlp_endpoint,
                sampling_rate=settings.tracing_sample_rate,
            )

        await init_database(settings)

        if settings.metrics_enabled:
            get_metrics().database_up.set(1)

        logger.info(
            "application_started",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.environment
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        logger.info("application_shutting_down")
        await close_database()
        shutdown_tracing(tracer_provider)
        logger.info("application_shutdown_complete")


# ============================================================================
# FastAPI Application
# ============================================================================


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings override (defaults to get_settings())

    Returns:
        Configured application
    """
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        app_name=settings.app_name,
        environment=settings.environment,
    )

    metrics = get_metrics() if settings.metrics_enabled else None

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="GraphQL API for browsing and managing the employee directory.",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings

    # ------------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------------

    limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit],
        enabled=settings.rate_limit_enabled,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # ------------------------------------------------------------------------
    # Middleware
    # ------------------------------------------------------------------------

    if settings.security_headers_enabled:
        app.add_middleware(SecurityHeadersMiddleware, settings=settings)

    app.add_middleware(RequestLoggingMiddleware, metrics=metrics)

    if settings.cors_enabled:
        logger.info("configuring_cors", origins=settings.cors_origins)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials="*" not in settings.cors_origins,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    if settings.tracing_enabled:
        instrument_app(app, excluded_urls=f"{settings.health_path},{settings.metrics_endpoint}")

    # ------------------------------------------------------------------------
    # Exception handlers
    # ------------------------------------------------------------------------

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        logger.warning("validation_error", path=request.url.path, errors=exc.errors())
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": exc.errors()}
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle HTTP exceptions."""
        logger.warning(
            "http_exception",
            path=request.url.path,
            status_code=exc.status_code,
            detail=exc.detail
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.error("unexpected_exception", path=request.url.path, error=str(exc), exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )

    # ------------------------------------------------------------------------
    # GraphQL
    # ------------------------------------------------------------------------

    graphql_router = GraphQLRouter(
        create_schema(settings),
        context_getter=get_graphql_context,
        graphql_ide="graphiql" if not settings.is_production else None,
    )
    app.include_router(graphql_router, prefix=settings.graphql_path)

    # ------------------------------------------------------------------------
    # Health and metrics
    # ------------------------------------------------------------------------

    @app.get(settings.health_path, tags=["Health"], response_model=HealthResponse)
    @limiter.exempt
    async def health_check(
        request: Request,
        database: Optional[Database] = Depends(get_optional_database),
    ) -> JSONResponse:
        """
        Health check endpoint.

        Reports process uptime and memory, and whether MongoDB answers a
        ping. Returns 503 when the database is unreachable.
        """
        reachable = await database.ping() if database is not None else False
        if metrics:
            metrics.database_up.set(1 if reachable else 0)

        body = HealthResponse(
            status=HealthStatus.OK if reachable else HealthStatus.DEGRADED,
            service=settings.app_name,
            version=settings.app_version,
            environment=settings.environment,
            timestamp=to_iso(utcnow()),
            uptime=round(time.monotonic() - STARTED_AT, 3),
            database=DatabaseHealth(
                status=DatabaseStatus.CONNECTED if reachable else DatabaseStatus.DISCONNECTED,
                state=database.state if database is not None else "disconnected",
            ),
            memory=MemoryInfo(max_rss_mb=_max_rss_mb()),
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK if reachable else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )

    if metrics:
        metrics_handler = get_metrics_handler(metrics.registry)

        @app.get(settings.metrics_endpoint, tags=["Monitoring"], include_in_schema=False)
        @limiter.exempt
        async def prometheus_metrics(request: Request) -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=metrics_handler(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "employee_api.src.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=settings.is_development and settings.debug,
    )
