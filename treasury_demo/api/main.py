"""
Main FastAPI application.

Demo backend API with:
- CORS configuration
- Error envelopes ({success, error: {message}})
- Request ID tracking
- Structured logging
- Prometheus metrics
"""
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from treasury_demo.config import Settings, get_settings
from treasury_demo.core.exceptions import SessionError, ValidationError
from treasury_demo.integrations.session_store import SessionStore
from treasury_demo.integrations.stripe_client import StripeClientFactory
from treasury_demo.monitoring.logging import setup_logging

from .routes import api_router, monitoring_router
from .schemas import api_response

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, Any]:
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info(
        "application_startup",
        app_name=settings.app_name,
        env=settings.app_env,
        demo_mode=settings.demo_mode,
        test_mode=settings.is_test_mode,
    )

    yield

    logger.info("application_shutdown")
    try:
        await app.state.session_store.close()
        logger.info("session_store_closed")
    except Exception as e:
        logger.error("session_store_shutdown_error", error=str(e))


async def add_request_id_middleware(request: Request, call_next: Any) -> Response:
    """
    Add request ID to all requests for tracing.

    Also adds timing information and structured logging context.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start_time = time.time()

    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    logger.info(
        "request_started",
        client_host=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_seconds=time.time() - start_time,
        )
        return response

    except Exception as e:
        logger.error(
            "request_failed",
            error=str(e),
            duration_seconds=time.time() - start_time,
        )
        raise

    finally:
        structlog.contextvars.clear_contextvars()


def error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    """Error envelope carrying the request ID, also outside the middleware."""
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=api_response(success=False, error_message=message),
        headers={"X-Request-ID": request_id} if request_id else None,
    )


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed bodies get the same envelope as field validation errors."""
    message = str(ValidationError.from_pydantic(exc))
    logger.warning("malformed_request", path=request.url.path, error=message)
    return error_response(request, status.HTTP_400_BAD_REQUEST, message)


async def session_exception_handler(request: Request, exc: SessionError) -> JSONResponse:
    logger.warning("session_rejected", path=request.url.path, error=str(exc))
    return error_response(request, status.HTTP_401_UNAUTHORIZED, str(exc))


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.

    Stripe failures and missing resources end up here.
    """
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application."""
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Treasury Demo",
        description=(
            "Demo backend for Stripe Connect onboarding and Treasury outbound payments. "
            "In demo mode it fabricates test-mode KYC data and can force payment outcomes."
        ),
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.settings = settings
    app.state.session_store = SessionStore(
        redis_url=settings.redis_url,
        key_prefix=settings.session_key_prefix,
        ttl=settings.session_ttl,
    )
    app.state.stripe_clients = StripeClientFactory(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(add_request_id_middleware)

    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(SessionError, session_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(api_router)
    app.include_router(monitoring_router)

    @app.get("/", tags=["root"])
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "service": settings.app_name,
            "version": "0.1.0",
            "status": "operational",
            "environment": settings.app_env,
            "demo_mode": settings.demo_mode,
            "test_mode": settings.is_test_mode,
        }

    return app


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "treasury_demo.api.main:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
