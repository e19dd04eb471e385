"""Fitness Sync API - FastAPI application entry point."""
import logging
import os
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings, validate_environment
from .database import db_manager
from .routes import automation, google_fit, insights, metrics
from .services.dependencies import get_sync_scheduler

logger = logging.getLogger(__name__)

settings = get_settings()
STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_environment(settings)
    db_manager.init_schema()
    yield
    get_sync_scheduler().stop_scheduler()


app = FastAPI(
    title="Fitness Sync API",
    description="Google Fit sync, daily fitness metrics and derived wellness scores",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Include routers
app.include_router(google_fit.router)
app.include_router(metrics.router)
app.include_router(insights.router)
app.include_router(automation.router)


@app.get("/health")
async def health_check():
    """Health check endpoint, including a database round trip."""
    try:
        db_manager.ping()
    except Exception as e:
        logger.error(f"[HEALTH] Database check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": "Database check failed", "error": str(e)},
        )
    return {
        "status": "ok",
        "service": "fitness-sync-api",
        "uptime": round(time.monotonic() - STARTED_AT, 1),
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": os.getenv("ENVIRONMENT", "development"),
    }


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "server.fitness_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
