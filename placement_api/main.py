"""Main FastAPI application."""

from contextlib import asynccontextmanager

import sentry_sdk
import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from placement_api.api.v1 import api_router
from placement_api.config import settings
from placement_api.core.logging import setup_logging
from placement_api.db.session import engine, ping_db

# Setup logging
setup_logging()
logger = structlog.get_logger(__name__)

# Initialize Sentry for error tracking (only if DSN is properly configured)
if settings.SENTRY_DSN and settings.SENTRY_DSN.startswith("https://"):
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            LoggingIntegration(
                level=None,  # Capture all logs
                event_level="ERROR",  # Only send ERROR and above as events
            ),
        ],
        release=settings.APP_VERSION,
        attach_stacktrace=True,
        send_default_pii=False,  # Student records are personal data
    )
else:
    logger.info("sentry_disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("app_starting", environment=settings.ENVIRONMENT, version=settings.APP_VERSION)
    yield
    await engine.dispose()
    logger.info("app_stopped")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Placement management: students, drives, applications and multi-round recruitment",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    swagger_ui_parameters={
        "persistAuthorization": True,  # Persist authorization after page refresh
    },
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix="/api")


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint."""
    return {
        "message": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "operational",
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check with a database round trip."""
    try:
        database_ok = await ping_db()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health_db_unreachable", error=str(e))
        database_ok = False

    body = {
        "status": "healthy" if database_ok else "degraded",
        "environment": settings.ENVIRONMENT,
        "database": "ok" if database_ok else "unavailable",
    }
    return JSONResponse(status_code=200 if database_ok else 503, content=body)


# Fields whose bad values have a dedicated message
VALIDATION_MESSAGES = {
    "round": "Invalid round number",
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing request fields are a 400 with a one-line detail."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = "" if first.get("type") == "json_invalid" else ".".join(str(p) for p in first.get("loc", ())[1:])
    if field in VALIDATION_MESSAGES:
        detail = VALIDATION_MESSAGES[field]
    elif field:
        detail = f"Invalid or missing field: {field}"
    else:
        detail = "Invalid request body"
    logger.info("request_validation_failed", path=request.url.path, field=field or None)
    return JSONResponse(status_code=400, content={"detail": detail})


@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
@app.exception_handler(OSError)
async def database_unavailable_handler(request: Request, exc: Exception):
    """Connection level database failures, including sockets the driver could not open."""
    logger.error("database_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=503, content={"detail": "Database unavailable"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred",
        },
    )
