"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn leadership_canvas.main:app --reload

For production:
    gunicorn leadership_canvas.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.dependencies import get_database
from .api.results import ApiError
from .api.routes import account, canvas, coach, health, nudges, weekly_actions
from .config.settings import Settings, get_settings

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=get_settings().log_level.upper(),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup validates configuration and, when enabled, creates missing
    tables. Shutdown releases the connection pool.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Leadership Canvas API starting",
        extra={
            "version": __version__,
            "nudge_webhook_configured": bool(settings.nudge_webhook_url),
            "automation_configured": bool(settings.automation_api_secret),
        },
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        # Logged, not fatal: readiness reports it and every session is rejected.
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields},
        )

    database = get_database(settings)
    if settings.database_auto_create:
        database.init_schema()

    yield

    logger.info("Leadership Canvas API shutting down")
    database.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory.

    Pass settings to run against a specific configuration (tests do);
    otherwise they are read from the environment.
    """
    app_settings = settings or get_settings()

    app = FastAPI(
        title=app_settings.api_title,
        version=__version__,
        description="""
        Leadership coaching canvas.

        ## Clients

        - Set a leadership purpose and up to three development themes
        - Add hypotheses to try under each theme
        - Keep a checklist of weekly actions and a progress log

        ## Coaches

        - See every client's canvas and activity at a glance
        - Send SMS nudges through the delivery webhook

        ## Authentication

        Session token in `Authorization: Bearer <token>` or the session
        cookie. The weekly scheduler uses `Authorization: Bearer <secret>`
        on `/api/weekly-nudges`.
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    if settings is not None:
        app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        account.router,
        prefix="/api/v1/account",
        tags=["Account"],
    )

    app.include_router(
        canvas.router,
        prefix="/api/v1/canvas",
        tags=["Canvas"],
    )

    app.include_router(
        weekly_actions.router,
        prefix="/api/v1/weekly-actions",
        tags=["Weekly Actions"],
    )

    app.include_router(
        coach.router,
        prefix="/api/v1/coach",
        tags=["Coach"],
    )

    app.include_router(
        nudges.router,
        prefix="/api",
        tags=["Nudges"],
    )

    # Root endpoint
    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - point at the docs."""
        return {
            "message": "Leadership Canvas API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.error, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        """Malformed bodies, paths or queries answer 400 in the error/message shape."""
        errors = exc.errors()
        message = "Invalid request"
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first['msg']}" if location else first["msg"]
        logger.info(
            "Request failed validation",
            extra={"path": request.url.path, "error_count": len(errors)},
        )
        return JSONResponse(
            status_code=400,
            content={"error": "Validation Error", "message": message},
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Log the full error server-side but return a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal Server Error",
                "message": "An unexpected error occurred",
            },
        )

    return app


app = create_app()
