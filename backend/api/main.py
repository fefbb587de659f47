"""
YieldOps API — FastAPI Application Entry Point
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from revenue.engine import create_engine_from_settings

settings = get_settings()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    app.state.engine = create_engine_from_settings(settings)
    logger.info(
        "YieldOps API starting up",
        version=settings.app_version,
        synthetic_fallback=settings.allow_synthetic_fallback,
    )
    yield
    logger.info("YieldOps API shutting down")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Rule-based yield and revenue optimization for hospitality properties",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Import and register routers
from api.v1.routers import strategies, yield_dashboard

app.include_router(strategies.router)
app.include_router(yield_dashboard.router)
app.include_router(yield_dashboard.cache_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "engine_ready": getattr(app.state, "engine", None) is not None,
    }
