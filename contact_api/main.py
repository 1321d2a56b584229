"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from contact_api import __version__
from contact_api.api.contact import router as contact_router
from contact_api.config import Settings, settings as default_settings
from contact_api.errors import ContactAPIError, PersistenceError
from contact_api.resources import build_resources

logger = structlog.get_logger()


def configure_logging(settings: Settings) -> None:
    processors = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
    ]
    if settings.is_development:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    settings: Settings = app.state.settings
    logger.info(
        "app_starting",
        environment=settings.environment,
        port=settings.port,
        version=__version__,
    )
    app.state.resources = await build_resources(settings)
    try:
        yield
    finally:
        logger.info("app_shutting_down")
        await app.state.resources.close()


def _error_response(status_code: int, error: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ContactAPIError)
    async def contact_api_error_handler(request: Request, exc: ContactAPIError) -> JSONResponse:
        if isinstance(exc, PersistenceError):
            logger.error("persistence_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.payload(),
            headers=exc.headers() or None,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 404:
            return _error_response(404, f"Not found - {request.url.path}")
        if exc.status_code == 405:
            return _error_response(405, "Method not allowed", getattr(exc, "headers", None))
        return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"field": str(err["loc"][-1]) if err.get("loc") else "body", "message": err["msg"]}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Validation failed", "details": details},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "unhandled_error",
            path=request.url.path,
            method=request.method,
            exc_info=exc,
        )
        return _error_response(500, "Internal server error")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or default_settings
    configure_logging(settings)

    app = FastAPI(
        title="Portfolio Contact API",
        description="Contact form backend for the portfolio website",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    if settings.is_development:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            started = time.perf_counter()
            response = await call_next(request)
            logger.info(
                "request",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
            return response

    register_exception_handlers(app)

    app.include_router(contact_router)

    @app.get("/api/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {
            "success": True,
            "message": "Portfolio API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.environment,
        }

    @app.get("/")
    async def root() -> dict:
        """Root endpoint."""
        return {
            "success": True,
            "message": "Welcome to the Portfolio Contact API",
            "version": __version__,
            "endpoints": {
                "health": "GET /api/health",
                "contactHealth": "GET /api/contact/health",
                "submitContact": "POST /api/contact",
            },
        }

    return app


app = create_app()


def run() -> None:
    """Run the API server (``portfolio-contact-api`` command)."""
    import uvicorn

    uvicorn.run(
        "contact_api.main:app",
        host=default_settings.host,
        port=default_settings.port,
        log_level=default_settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
