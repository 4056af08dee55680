# src/waitlist_gate/main.py
"""Main entry point for the Waitlist Gate application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import FileResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from waitlist_gate.api.v1 import (
    auth_router,
    system_router,
    waitlist_router,
    wallet_router,
)
from waitlist_gate.core.errors import WaitlistGateError
from waitlist_gate.core.logging import configure_logging
from waitlist_gate.core.settings import Settings
from waitlist_gate.core.settings import settings as default_settings
from waitlist_gate.db.session import Database
from waitlist_gate.services.identity_provider import (
    IdentityProviderClient,
    load_provider_config,
)
from waitlist_gate.services.oauth_state import AuthorizationAttemptStore, build_attempt_store

logger = logging.getLogger(__name__)

API_PREFIX = "/api"
INDEX_DOCUMENT = "index.html"


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    provider_client: IdentityProviderClient | None = None,
    attempt_store: AuthorizationAttemptStore | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Configuration; the process-wide settings are used when omitted
        database: Pre-built database (tests pass an in-memory engine)
        provider_client: Pre-built identity provider client
        attempt_store: Pre-built authorization attempt store

    Returns:
        Configured application whose resources are opened and released by its lifespan
    """
    cfg = settings or default_settings
    configure_logging(cfg.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.database.create_tables()
        logger.info("Server running on port %s", cfg.port)
        logger.info("Environment: %s", cfg.environment)
        try:
            yield
        finally:
            await app.state.provider_client.close()
            close_store = getattr(app.state.attempt_store, "close", None)
            if close_store is not None:
                await close_store()
            app.state.database.dispose()

    app = FastAPI(
        title=cfg.app_name,
        description="Sign in with X, join the waitlist, attach a wallet",
        version=cfg.app_version,
        lifespan=lifespan,
    )
    app.state.settings = cfg
    app.state.database = database or Database(cfg)
    app.state.provider_client = provider_client or IdentityProviderClient(
        load_provider_config(cfg)
    )
    app.state.attempt_store = (
        attempt_store if attempt_store is not None else build_attempt_store(cfg)
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=cfg.cors_allow_credentials,
        allow_methods=cfg.cors_allow_methods,
        allow_headers=cfg.cors_allow_headers,
    )

    # Add GZip middleware for compression
    app.add_middleware(GZipMiddleware)

    register_error_handlers(app)

    # Include API routers
    app.include_router(system_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(waitlist_router, prefix=API_PREFIX)
    if cfg.wallet_attach_enabled:
        app.include_router(wallet_router, prefix=API_PREFIX)

    register_frontend(app, Path(cfg.static_dir))
    return app


def register_error_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": message}``."""

    @app.exception_handler(WaitlistGateError)
    async def service_error(request: Request, exc: WaitlistGateError) -> JSONResponse:
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("%s %s invalid request: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Missing required fields"},
        )


def register_frontend(app: FastAPI, static_dir: Path) -> None:
    """Serve the built front end, falling back to ``index.html`` for client routes."""
    root = static_dir.resolve()

    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str) -> FileResponse:
        if full_path.startswith(API_PREFIX.lstrip("/") + "/"):
            raise StarletteHTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")

        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)

        index = root / INDEX_DOCUMENT
        if not index.is_file():
            raise StarletteHTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Front end has not been built",
            )
        return FileResponse(index)


app = create_app()


def run() -> None:
    """Run the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "waitlist_gate.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
    )


if __name__ == "__main__":
    run()
