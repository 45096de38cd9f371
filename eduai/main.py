"""
FastAPI entry point for the tutoring service.

Run with any ASGI server, e.g. `uvicorn eduai.main:app`.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging

from eduai.core.config import settings
from eduai.api.router import api_router
from eduai.agents.orchestrator import get_orchestrator
from eduai.middleware.error_handler import setup_error_middleware
from eduai.services.session_registry import session_registry
from eduai.utils.log_config import setup_logging

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and optionally compile the pipeline before serving."""
    setup_logging(settings.LOG_LEVEL)
    logger.info(f"🚀 Starting EduAI Tutor API ({settings.ENVIRONMENT})")

    if settings.WARM_START:
        # Loads the spaCy model and compiles the workflow up front
        get_orchestrator()
        logger.info("🔥 Tutoring pipeline warmed up")

    yield

    logger.info(f"👋 Shutting down with {len(session_registry.session_ids())} session(s) in memory")


def create_app() -> FastAPI:
    application = FastAPI(
        title="EduAI Tutor API",
        description="Adaptive tutoring pipeline: concept extraction, session memory and engagement-aware answers",
        version=API_VERSION,
        lifespan=lifespan,
    )

    setup_error_middleware(application)

    @application.middleware("http")
    async def security_headers_middleware(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    application.include_router(api_router)
    return application


app = create_app()


@app.get("/")
async def root():
    """API information."""
    return {
        "service": "EduAI Tutor API",
        "version": API_VERSION,
        "docs": "/docs",
        "status": "healthy"
    }


@app.get("/health")
async def health():
    """Pipeline configuration and live session count."""
    return {
        "status": "healthy",
        "memory_metric": settings.MEMORY_METRIC,
        "memory_threshold": settings.memory_threshold,
        "camera_enabled": settings.ENABLE_CAMERA,
        "llm_enabled": bool(settings.GEMINI_API_KEY),
        "sessions": len(session_registry.session_ids()),
    }
