"""
FastAPI service for the brag list builder.

Thin HTTP surface over BragService; all rules live in the brag package.
"""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from brag.common.config import Config
from brag.common.logger import get_logger, setup_logging
from version import __version__

from .config import validate_config_on_startup
from .routes import brag_router

setup_logging(Config.LOG_LEVEL, Config.LOG_FORMAT)
logger = get_logger(__name__, component="app")

# Validate configuration at startup
settings = validate_config_on_startup()

app = FastAPI(title="Brag List Service", version=__version__)

if settings.cors_origins_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(brag_router)
logger.info(f"Brag List Service {__version__} ready (offline={settings.brag_offline})")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    offline: bool
    model: str
    timestamp: datetime


@app.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Liveness check; does not call the text generation backend."""
    return HealthResponse(
        status="healthy",
        offline=settings.brag_offline,
        model=Config.LLM_MODEL,
        timestamp=datetime.now(timezone.utc),
    )
