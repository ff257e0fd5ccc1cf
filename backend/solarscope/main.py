# solarscope/main.py
"""
FastAPI application entry point.
Builds the storage backend at startup, waits for the database check and
mounts the API routes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solarscope.config import Settings, settings as default_settings
from solarscope.database import init_database
from solarscope.repositories import HybridStorage, Storage, create_storage
from solarscope.routers import admin, auth, health, history

logger = logging.getLogger(__name__)


async def initialize_storage(storage: Storage) -> None:
    """Block until the backend knows which store it is on, then log it."""
    if isinstance(storage, HybridStorage):
        await storage.wait_for_connection_check()
    logger.warning(f"Storage type: {storage.get_storage_status().type}")


def create_app(storage: Optional[Storage] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the app. Tests pass a ready storage instance; in production the
    lifespan hook creates one from settings.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = None
        if storage is None:
            engine, session_factory = await init_database(settings)
            app.state.storage = create_storage(settings, session_factory)
        else:
            app.state.storage = storage
        await initialize_storage(app.state.storage)
        try:
            yield
        finally:
            if engine is not None:
                await engine.dispose()

    app = FastAPI(title="SolarScope API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    if storage is not None:
        app.state.storage = storage

    # ---- CORS Middleware ----
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],  # Must include X-Session-Id
    )

    # ---- API Routes ----
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(history.router)
    if settings.APP_ENV != "production":
        app.include_router(admin.router)

    # ---- Root Endpoint ----
    @app.get("/")
    async def root():
        return {"status": "ok", "message": "SolarScope backend is running"}

    return app


def run() -> FastAPI:
    """uvicorn factory: `uvicorn solarscope.main:run --factory`."""
    # Configure logging level from environment variable
    logging.basicConfig(level=default_settings.LOG_LEVEL)
    return create_app()
