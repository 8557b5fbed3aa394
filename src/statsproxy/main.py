"""FastAPI application factory for StatsProxy.

This module creates and configures the FastAPI application with:
- Lifespan management for the upstream HTTP client and shared services
- Middleware configuration (CORS, request ID, logging)
- Exception handlers
- API routers
"""

import argparse
import time
import uuid
from collections.abc import AsyncGenerator, Callable, Sequence
from contextlib import asynccontextmanager
from typing import Annotated, Any

import httpx
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statsproxy.config import Settings, get_settings
from statsproxy.core.exceptions import StatsProxyError
from statsproxy.core.logging import (
    clear_correlation_id,
    configure_logging,
    get_logger,
    set_correlation_id,
)
from statsproxy.dependencies import SettingsDep, get_token_manager
from statsproxy.schemas.common import HealthResponse, ServiceInfo
from statsproxy.services.analytics import AnalyticsClient
from statsproxy.services.auth import TokenManager
from statsproxy.services.cache import VisitorCache
from statsproxy.services.visitors import VisitorService
from statsproxy.sites import Deployment

logger = get_logger(__name__)


def init_services(
    app: FastAPI,
    settings: Settings,
    http: httpx.AsyncClient,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Build the shared upstream services and attach them to ``app.state``.

    One token manager and one cache exist per process; every request sees
    the same instances.

    Args:
        app: The FastAPI application instance
        settings: Application settings
        http: HTTP client used for all upstream calls
        clock: Monotonic time source for cache expiry
    """
    client = AnalyticsClient(
        http,
        base_url=settings.analytics_base_url,
        timeout=settings.analytics_timeout,
    )
    tokens = TokenManager(
        client,
        username=settings.analytics_username,
        password=settings.analytics_password,
    )
    cache = VisitorCache(ttl_seconds=settings.cache_ttl_seconds, clock=clock)

    app.state.analytics_client = client
    app.state.token_manager = tokens
    app.state.visitor_cache = cache
    app.state.visitor_service = VisitorService(
        client, tokens, cache, retry_budget=settings.auth_retry_budget
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events.

    Handles initialization and cleanup of:
    - Logging configuration
    - The upstream HTTP client and the services built on it

    Args:
        app: The FastAPI application instance

    Yields:
        None: Control back to the application
    """
    settings: Settings = app.state.settings

    # ========================================
    # Startup
    # ========================================
    configure_logging(settings)
    startup_logger = get_logger(__name__)

    if not settings.analytics_configured:
        startup_logger.warning(
            "analytics_credentials_incomplete",
            base_url_set=bool(settings.analytics_base_url),
            username_set=bool(settings.analytics_username),
        )

    async with httpx.AsyncClient(timeout=settings.analytics_timeout) as http:
        init_services(app, settings, http)

        startup_logger.info(
            "application_starting",
            app_name=settings.app_name,
            version=settings.app_version,
            environment=settings.app_env.value,
            deployment=settings.deployment.value,
            port=settings.listen_port,
            websites=sorted(settings.alias_table),
        )

        yield

    # ========================================
    # Shutdown
    # ========================================
    startup_logger.info("application_shutting_down", app_name=settings.app_name)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override for testing or for running a
            specific deployment

    Returns:
        FastAPI: Configured application instance
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Proxy for per-website visitor statistics. Logs in to the analytics "
            "service on the caller's behalf and caches results briefly."
        ),
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings

    configure_middleware(app, settings)
    configure_exception_handlers(app)
    configure_routes(app)

    return app


def configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Configure application middleware.

    Args:
        app: The FastAPI application instance
        settings: Application settings
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next: Any) -> Any:
        """Log requests and responses with correlation ID."""
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
        request.state.request_id = request_id

        set_correlation_id(request_id)

        request_logger = get_logger("statsproxy.request")
        start_time = time.perf_counter()

        request_logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
            query=str(request.query_params) if request.query_params else None,
        )

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
            )

            response.headers["X-Request-ID"] = request_id
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            request_logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                duration_ms=round(duration_ms, 2),
                error=str(exc),
            )
            raise

        finally:
            clear_correlation_id()


def configure_exception_handlers(app: FastAPI) -> None:
    """Configure global exception handlers.

    Args:
        app: The FastAPI application instance
    """
    exception_logger = get_logger("statsproxy.exceptions")

    @app.exception_handler(StatsProxyError)
    async def statsproxy_exception_handler(
        request: Request, exc: StatsProxyError
    ) -> JSONResponse:
        """Render API errors as ``{"error": message}``; details stay in the logs."""
        if exc.status_code >= 500:
            log, event = exception_logger.error, "application_error"
        else:
            log, event = exception_logger.warning, "client_error"
        log(
            event,
            error_code=exc.code,
            error_message=exc.message,
            status_code=exc.status_code,
            path=request.url.path,
            **exc.details,
        )

        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions with a consistent error response."""
        exception_logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def configure_routes(app: FastAPI) -> None:
    """Configure application routes.

    Args:
        app: The FastAPI application instance
    """

    @app.get(
        "/health/live",
        tags=["Health"],
        summary="Liveness check",
        response_model=HealthResponse,
        response_model_exclude_none=True,
    )
    async def liveness() -> HealthResponse:
        """Liveness check for container orchestration."""
        return HealthResponse(status="ok")

    @app.get(
        "/health/ready",
        tags=["Health"],
        summary="Readiness check",
        response_model=HealthResponse,
    )
    async def readiness(
        settings: SettingsDep,
        tokens: Annotated[TokenManager | None, Depends(get_token_manager)],
    ) -> JSONResponse:
        """Ready once upstream URL and credentials are configured.

        Whether a token is currently held is reported but does not affect
        readiness; the first request logs in lazily.
        """
        configured = settings.analytics_configured
        body = HealthResponse(
            status="ok" if configured else "error",
            checks={
                "configuration": "ok" if configured else "error",
                "token": "held" if tokens is not None and tokens.has_token else "absent",
            },
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK
            if configured
            else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(),
        )

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        response_model=ServiceInfo,
    )
    async def root(settings: SettingsDep) -> ServiceInfo:
        """API root endpoint with service information."""
        return ServiceInfo(
            service=settings.app_name,
            version=settings.app_version,
            deployment=settings.deployment.value,
        )

    from statsproxy.api.router import router as api_router

    app.include_router(api_router, prefix="/api")


# Create the application instance
app = create_app()


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line flags that select the deployment to run."""
    parser = argparse.ArgumentParser(
        prog="statsproxy",
        description="Run the visitor statistics proxy.",
    )
    parser.add_argument(
        "--deployment",
        choices=[d.value for d in Deployment],
        help="Deployment instance (selects alias table and default port)",
    )
    parser.add_argument("--host", help="Bind address")
    parser.add_argument("--port", type=int, help="Bind port")
    return parser.parse_args(argv)


def cli(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for running the application."""
    import uvicorn

    args = parse_args(argv)
    overrides: dict[str, Any] = {}
    if args.deployment:
        overrides["deployment"] = args.deployment
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port

    settings = Settings(**overrides) if overrides else get_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.listen_port,
        log_level=settings.log_level.value.lower(),
    )


if __name__ == "__main__":
    cli()
