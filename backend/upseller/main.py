"""
FastAPI application entry point.

WHAT: Main application setup and wiring
WHY: Initialize all components and routes
HOW: Create FastAPI app, register middleware, routers, handlers
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.state import build_app_state
from .utils.logger import setup_logging, get_logger
from .middleware.error_handler import register_exception_handlers
from .api.v1.router import api_router

# Setup logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    WHAT: Startup and shutdown logic
    WHY: Build in-memory state once, close HTTP clients cleanly
    HOW: Async context manager for FastAPI lifespan
    """
    # Startup (tests may install their own state before the app starts)
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    if getattr(app.state, "upseller", None) is None:
        app.state.upseller = build_app_state(settings)
    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    state = app.state.upseller
    for client in (state.llm_provider, state.calendar):
        close = getattr(client, "close", None)
        if close is not None:
            await close()
    logger.info("Application shutdown complete")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include API router
app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "upseller.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
