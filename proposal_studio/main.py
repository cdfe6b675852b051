"""
Proposal Studio - FastAPI Application Entry Point.

Generates business proposals section by section with LLM agents and
renders them with embedded charts, diagrams, tables and callouts:
- Proposal storage, branding and design configuration
- Streamed section generation
- HTML preview (A4 or tabbed) and PDF export

Run with:
    uvicorn proposal_studio.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from proposal_studio import __version__
from proposal_studio.core.config import get_settings
from proposal_studio.core.database import proposal_store
from proposal_studio.api.errors import ApiError, api_error_handler
from proposal_studio.api.proposals import router as proposals_router
from proposal_studio.api.visualizations import router as visualizations_router


# ===========================================
# Logging Configuration
# ===========================================

def setup_logging():
    """Configure application logging."""
    settings = get_settings()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("weasyprint").setLevel(logging.WARNING)
    logging.getLogger("fontTools").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


logger = setup_logging()


# ===========================================
# Application Lifespan
# ===========================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info("Proposal Studio Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"AI provider: {settings.AI_PROVIDER}")
    logger.info(f"Diagram renderer: {settings.KROKI_URL}")

    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.warning("Supabase credentials not configured!")

    provider_keys = {
        "openai": settings.OPENAI_API_KEY,
        "gemini": settings.GOOGLE_API_KEY,
        "grok": settings.XAI_API_KEY,
    }
    if not provider_keys.get(settings.AI_PROVIDER.lower()):
        logger.warning(f"API key for AI provider '{settings.AI_PROVIDER}' not configured!")

    logger.info("Startup complete - ready to accept requests")

    yield

    logger.info("Proposal Studio shutting down...")


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Proposal Studio",
        description="""
        AI proposal generation with rich, branded rendering.

        ## Proposals

        - `GET/POST /api/proposals` - List and create
        - `GET/PATCH/DELETE /api/proposals/{id}` - Read, update, delete
        - `/api/proposals/{id}/branding` and `/design` - Look and feel
        - `GET /api/proposals/{id}/generate?stream=true` - Streamed generation
        - `GET /api/proposals/{id}/preview` - HTML preview
        - `GET /api/proposals/{id}/export/pdf` - PDF export

        ## Visualizations

        - `POST /api/visualizations/chart/recommend`
        - `POST /api/visualizations/diagram/render`
        """,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ApiError, api_error_handler)

    app.include_router(proposals_router)
    app.include_router(visualizations_router)

    return app


# Create app instance
app = create_app()


# ===========================================
# Service Endpoints
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Proposal Studio",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "proposals": {
                "list": "GET /api/proposals",
                "create": "POST /api/proposals",
                "generate": "GET /api/proposals/{id}/generate?stream=true",
                "preview": "GET /api/proposals/{id}/preview?mode=a4|tab",
                "export": "GET /api/proposals/{id}/export/pdf"
            },
            "visualizations": {
                "recommend": "POST /api/visualizations/chart/recommend",
                "validate": "POST /api/visualizations/chart/validate",
                "render_diagram": "POST /api/visualizations/diagram/render",
                "generate_diagram": "POST /api/visualizations/diagram/generate"
            },
            "health": "GET /health",
            "docs": "GET /docs"
        }
    })


@app.get("/health", tags=["root"])
async def health():
    """Health check including database connectivity."""
    database_ok = await proposal_store.health_check()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={
            "status": "healthy" if database_ok else "degraded",
            "database": "connected" if database_ok else "unavailable",
            "version": __version__
        }
    )


# ===========================================
# Error Handlers
# ===========================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if get_settings().DEBUG else "An error occurred"
        }
    )


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "proposal_studio.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
