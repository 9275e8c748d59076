"""
FastAPI application entry point.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Awaitable, Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadcall import __version__
from leadcall.admin.router import router as admin_router
from leadcall.callflow.router import router as callflow_router
from leadcall.config import get_settings
from leadcall.context import AppContext, build_context
from leadcall.intake.router import router as intake_router
from leadcall.shared.exceptions import AppError
from leadcall.shared.logging import correlation_id_var, get_logger, setup_logging
from leadcall.webhooks.router import router as webhooks_router

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    setup_logging(settings.log_level)

    if app.state.context is None:
        app.state.context = build_context(settings)
    ctx: AppContext = app.state.context

    logger.info(
        "Application starting",
        extra={"env": settings.app_env, "provider": ctx.provider.name},
    )
    await ctx.startup()

    yield

    logger.info("Shutting down application")
    await ctx.aclose()
    logger.info("Application shutdown complete")


def create_app(context: AppContext | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        context: Prebuilt application context. When omitted it is built from
            the environment at startup.
    """
    settings = context.settings if context is not None else get_settings()

    app = FastAPI(
        title="Lead Callback API",
        description="Outbound call-back requests with provider webhook reconciliation",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.context = context

    # Map domain exceptions to HTTP responses
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                extra={"path": request.url.path, "error": exc.message, "error_type": type(exc).__name__},
            )
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": exc.message})

    # Request validation (FastAPI/Pydantic) -> 400 in the same envelope
    @app.exception_handler(RequestValidationError)
    async def _request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        errors = []
        for error in exc.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            errors.append(
                {
                    "field": field,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"ok": False, "error": "Request validation failed", "errors": errors},
        )

    @app.middleware("http")
    async def _correlation_id(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        correlation_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = correlation_id
        return response

    # CORS middleware; credentials only for an explicit origin list
    cors_origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(intake_router)
    app.include_router(webhooks_router)
    app.include_router(admin_router)
    app.include_router(callflow_router)

    @app.get("/health")
    async def health_check() -> dict[str, object]:
        return {"ok": True, "status": "healthy"}

    return app


app = create_app()
