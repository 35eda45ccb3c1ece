"""
Main FastAPI application for the lead qualifier.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import chat, config, leads
from .services import get_services, initialize_services
from .middleware.metrics import MetricsMiddleware, metrics_endpoint
from config.settings import get_settings
from qualification.exceptions import ConfigurationError, ProviderCallError, SessionNotFoundError

logger = logging.getLogger(__name__)


def configure_logging(level: str):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Lead qualifier starting up...")

    # Initialize database (if configured)
    settings = get_settings()
    if settings.database_url:
        from database.session import init_db
        await init_db(settings.database_url)

    initialize_services()
    logger.info("Lead qualifier ready")
    yield
    logger.info("Lead qualifier shutting down...")

    if settings.database_url:
        from database.session import close_db
        await close_db()


def _error_response(status_code: int, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=error.to_dict())


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.api_title,
        description="Conversational lead qualification with LLM answer extraction and hot/cold/invalid classification.",
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Prometheus metrics middleware
    app.add_middleware(MetricsMiddleware)

    # Error mapping
    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        return _error_response(503, exc)

    @app.exception_handler(ProviderCallError)
    async def provider_error_handler(request: Request, exc: ProviderCallError):
        return _error_response(502, exc)

    @app.exception_handler(SessionNotFoundError)
    async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
        return _error_response(404, exc)

    # --- Core routers ---
    app.include_router(chat.router, prefix="/api/v1", tags=["Sessions"])
    app.include_router(leads.router, prefix="/api/v1", tags=["Leads"])
    app.include_router(config.router, prefix="/api/v1", tags=["Config"])

    # --- Prometheus metrics endpoint ---
    app.get("/metrics", tags=["Monitoring"])(metrics_endpoint)

    # Root endpoint
    @app.get("/")
    async def root():
        return {
            "service": "GrowEasy Lead Qualifier",
            "version": settings.api_version,
            "status": "operational",
            "docs": "/docs",
        }

    # Health check
    @app.get("/health")
    async def health():
        services = get_services()
        return {
            "status": "healthy" if services.is_ready else "degraded",
            "services": services.health(),
        }

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
