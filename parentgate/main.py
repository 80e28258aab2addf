"""
FastAPI application entry point.

Run with: uvicorn parentgate.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from parentgate import __version__
from parentgate.core.config import load_gate_config, settings
from parentgate.core.logging import configure_logging, get_logger, bind_context, clear_context
from parentgate.persistence.database import init_database
from parentgate.services.context import build_context
from parentgate.api.routes import credentials, health, mode, notifications, session
from parentgate.api.exception_handlers import setup_exception_handlers

# Configure logging before anything else
configure_logging()
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique correlation ID to each request.

    - Generates a UUID4 request_id for each incoming request
    - Binds it to structlog context for all logs in that request
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())
        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the gate context once; routes reach it through app.state.
    """
    log.info(
        "application_starting",
        debug=settings.debug,
        database_path=str(settings.database_path),
        timezone=settings.timezone,
    )

    # Fail fast on a broken gate_config.yaml before touching the database
    gate_config = load_gate_config()

    await init_database(settings.database_path)
    app.state.context = await build_context(settings, gate_config)

    log.info("application_started", mode=app.state.context.gate.current_mode().value)

    yield

    log.info("application_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="Parent Gate",
    description="PIN-gated parent mode, time locks and session redirection",
    version=__version__,
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware for development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(mode.router)
app.include_router(credentials.router)
app.include_router(session.router)
app.include_router(notifications.router)


@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {"name": "Parent Gate", "version": __version__, "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "parentgate.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
