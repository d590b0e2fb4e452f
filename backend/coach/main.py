"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coach.config import get_settings
from coach.api import api_router
from coach.registry import SessionRegistry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting {settings.app_name}")
    app.state.registry = SessionRegistry()
    yield
    app.state.registry.clear()
    logger.info(f"Shutting down {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
    Smart Coach API

    Real-time exercise coaching: pose frames in, rep counts, form scores and
    fault feedback out, plus an adaptive session engine for rest times and
    workout adaptations.

    ## Key Features

    - **Rep Counting**: Phase state machine with hysteresis per exercise
    - **Form Scoring**: Fault detection blended with joint-angle compliance
    - **Adaptive Rest**: Rest recommendations from effort, fatigue and biometrics
    - **Adaptations**: Prioritized intensity, rest, technique and volume directives

    Pose frames are analyzed at a fixed cadence; faster frames are dropped,
    latest frame wins.
    """,
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "version": "1.0.0"
    }


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "health": "/health"
    }
