"""FastAPI application entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.middleware import RateLimitMiddleware
from src.api.routes import health, sync
from src.config import settings
from src.database import dispose_engine

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("application_startup", env=settings.app_env)
    yield
    await dispose_engine()
    logger.info("application_shutdown")


# Create FastAPI app
app = FastAPI(
    title="Channel Sync",
    description="Catalog and order synchronization for connected sales channels",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.is_development else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.is_production:
    app.add_middleware(RateLimitMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(
    sync.router,
    prefix="/api/v1",
    tags=["Sync"],
)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Channel Sync",
        "version": "0.1.0",
        "status": "running",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
    )
