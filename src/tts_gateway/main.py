"""
FastAPI Application Entry Point.

Usage:
    # Run with uvicorn
    uvicorn tts_gateway.main:app --host 0.0.0.0 --port 8000

    # Or via the CLI
    tts-gateway serve --port 8000
"""
from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from tts_gateway import __version__
from tts_gateway.api.routes import router
from tts_gateway.core.logging import configure_logging, get_logger, info
from tts_gateway.services.tts_service import reset_service


@asynccontextmanager
async def _lifespan(app: FastAPI):
    yield
    # Close provider HTTP clients
    reset_service()
    info(get_logger("tts-gateway.main"), "shutdown")


def create_app() -> FastAPI:
    """Create the FastAPI application with logging configured."""
    configure_logging()

    app = FastAPI(title="tts-gateway", version=__version__, lifespan=_lifespan)
    app.include_router(router)
    return app


# Global application instance for ASGI servers
app = create_app()
