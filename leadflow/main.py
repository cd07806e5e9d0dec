"""
Leadflow - FastAPI Application Entry Point.

Lead-qualification pipeline using CrewAI agents for:
- Quiz scoring and lead capture
- Research, qualification and outreach drafting
- Human approval of outreach emails via Slack

Run with:
    uvicorn leadflow.main:app --reload --port 8000
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leadflow import __version__
from leadflow.core.config import get_settings
from leadflow.core.errors import (
    InvalidQuestionSet,
    InvalidSubmission,
    LeadflowError,
    WorkflowNotFound,
)
from leadflow.api.webhooks import quiz_router, slack_router, workflow_router, test_router


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

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)

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
    logger.info("Leadflow Starting Up")
    logger.info("=" * 50)
    logger.info(f"Environment: {'Development' if settings.DEBUG else 'Production'}")
    logger.info(f"AI research: {'enabled' if settings.ENABLE_AI_RESEARCH else 'disabled'}")

    # Verify critical settings
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        logger.warning("Supabase credentials not configured!")

    if settings.MOCK_PROVIDERS:
        logger.warning("Mock providers enabled - no real research or approvals!")
    elif not settings.OPENAI_API_KEY:
        logger.warning("OpenAI API key not configured!")

    if not settings.slack_configured:
        logger.warning("Slack not configured - approval requests will be skipped!")

    logger.info("Startup complete - ready to accept submissions")

    yield

    # Shutdown
    logger.info("Leadflow shutting down...")


# ===========================================
# FastAPI Application
# ===========================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Leadflow",
        description="""
        Lead-qualification pipeline powered by CrewAI agents.

        ## Features

        - **Quiz Scoring**: Readiness score and tier per submission
        - **Lead Research**: Web research on hot and qualified leads
        - **Qualification**: QUALIFIED / FOLLOW_UP / UNQUALIFIED / SUPPORT
        - **Outreach Approval**: Drafted emails reviewed in Slack before sending

        ## Endpoints

        - `POST /quiz/submit` - Quiz submissions
        - `POST /slack/actions` - Slack approve/reject buttons
        - `GET /workflows/{workflow_id}` - Workflow status
        - `GET /test/health` - Health check
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

    # Include routers
    app.include_router(quiz_router)
    app.include_router(slack_router)
    app.include_router(workflow_router)
    app.include_router(test_router)

    register_exception_handlers(app)

    return app


# ===========================================
# Error Handlers
# ===========================================

def _error_status(exc: LeadflowError) -> int:
    if isinstance(exc, (InvalidSubmission, InvalidQuestionSet)):
        return 400
    if isinstance(exc, WorkflowNotFound):
        return 404
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """Map application errors that escape a route to HTTP responses."""

    @app.exception_handler(LeadflowError)
    async def leadflow_exception_handler(request, exc: LeadflowError):
        status_code = _error_status(exc)
        if status_code == 500:
            logger.error(f"Unhandled application error: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status_code,
            content={"error": type(exc).__name__, "message": str(exc)}
        )

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


# Create app instance
app = create_app()


# ===========================================
# Root Endpoint
# ===========================================

@app.get("/", tags=["root"])
async def root():
    """Root endpoint with API information."""
    return JSONResponse({
        "service": "Leadflow",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "quiz": {
                "submit": "POST /quiz/submit"
            },
            "slack": {
                "actions": "POST /slack/actions"
            },
            "workflows": {
                "status": "GET /workflows/{workflow_id}"
            },
            "testing": {
                "health": "GET /test/health"
            },
            "docs": "GET /docs"
        }
    })


# ===========================================
# Main Entry Point
# ===========================================

if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "leadflow.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
