"""
Practice Board - Main Application

Single FastAPI application that serves:
- The login page and the song board (Jinja2 templates)
- Static files (CSS)
- JSON API for login/logout and songs CRUD
- Health check endpoint
- Session-cookie authentication gate in front of everything else

Configuration is read once from the environment into a ``Settings`` object
and passed explicitly to the authenticator and the song store.
"""

import sys
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from loguru import logger

from practiceboard.auth import SessionAuthenticator
from practiceboard.config import (
    APP_HOST,
    APP_PORT,
    DEBUG,
    LOG_LEVEL,
    STATIC_DIR,
    TEMPLATES_DIR,
    Settings,
    ensure_directories,
)
from practiceboard.database import SongStore
from practiceboard.errors import register_exception_handlers
from practiceboard.gate import auth_required, login_redirect
from practiceboard.routes.api import router as api_router
from practiceboard.routes.pages import router as pages_router

# ---------------------------------------------------------------------------
# Logging setup — stdout only
# ---------------------------------------------------------------------------
logger.remove()

logger.add(
    sys.stdout,
    level="DEBUG" if DEBUG else LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    On startup:
        1. Report the auth configuration
        2. Create the database directory
        3. Bootstrap the songs table

    On shutdown:
        4. Log shutdown
    """
    settings: Settings = app.state.settings

    logger.info("🚀 Starting Practice Board v{}", settings.app_version)
    logger.info("📋 Environment: {} | Debug: {}", settings.app_env, settings.debug)

    if settings.auth_configured:
        logger.info("🔒 Authentication enabled for '{}'", settings.admin_user)
    else:
        logger.warning(
            "🔒 ADMIN_USER / ADMIN_PASS / SESSION_SECRET not set — nobody can log in"
        )

    ensure_directories(settings)

    try:
        await app.state.store.ensure_schema()
    except Exception as e:
        logger.critical("❌ Database initialization failed: {}", e)
        raise
    logger.success("✅ Database ready at {}", settings.db_path)

    yield

    logger.info("👋 Shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Practice Board",
        description="Track the songs you are learning now and the ones coming up next.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.settings = settings
    app.state.authenticator = SessionAuthenticator(
        settings.session_secret, settings.session_max_age
    )
    app.state.store = SongStore(settings.db_path)
    app.state.templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

    register_exception_handlers(app, expose_details=not settings.is_production)

    # ------------------------------------------------------------------
    # Authentication middleware
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        """Redirect unauthenticated requests to the login page."""
        if auth_required(request, app.state.authenticator, settings.cookie_name):
            return login_redirect(request)
        return await call_next(request)

    # ------------------------------------------------------------------
    # Request logging middleware
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log every incoming HTTP request with timing information."""
        start = time.time()
        try:
            response = await call_next(request)
        except Exception as exc:
            duration = round(time.time() - start, 3)
            logger.error(
                "❌ {method} {path} — unhandled error after {duration}s: {exc}",
                method=request.method,
                path=request.url.path,
                duration=duration,
                exc=exc,
            )
            raise

        duration = round(time.time() - start, 3)
        status = response.status_code
        if status >= 500:
            log = logger.error
        elif status >= 400:
            log = logger.warning
        elif request.url.path.startswith("/static"):
            return response
        else:
            log = logger.info

        log(
            "📤 {method} {path} — {status} [{duration}s]",
            method=request.method,
            path=request.url.path,
            status=status,
            duration=duration,
        )
        return response

    # ------------------------------------------------------------------
    # Register routers
    # ------------------------------------------------------------------
    app.include_router(api_router)  # /api/*  — JSON endpoints
    app.include_router(pages_router)  # /login and /

    return app


# ---------------------------------------------------------------------------
# Create the app instance (used by Uvicorn)
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# Direct execution (development)
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "practiceboard.main:app",
        host=APP_HOST,
        port=APP_PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info",
    )
