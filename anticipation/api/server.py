"""
Anticipation API server: FastAPI app exposing the signal store.

Run standalone:
    anticipation serve --db ~/.anticipation/data/anticipation.db
"""

import logging
import os

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..intelligence.signal_store import SignalStore
from ..intelligence.temporal import to_iso, utc_now
from .response_models import HealthResponse
from .signals_router import signals_router

logger = logging.getLogger(__name__)


def create_app(store: SignalStore) -> FastAPI:
    """Build an app bound to one SignalStore."""
    app = FastAPI(
        title="Anticipation Engine API",
        description="Proactive signals: query, dismiss, act on",
        version="1.0.0",
    )

    # CORS origins from ANTICIPATION_CORS_ORIGINS (comma-separated); dev default allows all
    cors_origins = [
        o.strip() for o in os.getenv("ANTICIPATION_CORS_ORIGINS", "*").split(",") if o.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.state.store = store
    app.include_router(signals_router)

    @app.get("/health", response_model=HealthResponse)
    def health():
        return HealthResponse(status="ok", signals=len(store), timestamp=to_iso(utc_now()))

    return app


def serve(store: SignalStore, host: str = "127.0.0.1", port: int = 8420) -> None:
    """Run the API with uvicorn (blocking)."""
    logger.info(f"Serving anticipation API on http://{host}:{port}")
    uvicorn.run(create_app(store), host=host, port=port, log_config=None)
