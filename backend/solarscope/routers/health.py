"""
Health check endpoint for service monitoring and readiness probes.
"""

import logging
from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from solarscope.dependencies import get_storage
from solarscope.repositories import HybridStorage, Storage
from solarscope.schemas import StorageType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/healthz", tags=["health"])

class DatabaseHealth(BaseModel):
    status: Literal["connected", "fallback_to_memory", "not_configured", "error"]
    error: Optional[str] = None
    storage_type: StorageType

class HealthResponse(BaseModel):
    status: Literal["healthy", "degraded"]
    timestamp: str
    service: str = "SolarScope"
    database: DatabaseHealth

@router.get("", response_model=HealthResponse)
async def health_check(storage: Storage = Depends(get_storage)):
    # Only the hybrid backend has a database to report on
    if not isinstance(storage, HybridStorage):
        db = DatabaseHealth(
            status="not_configured",
            error="DATABASE_URL not provided - using memory storage",
            storage_type="memory",
        )
    else:
        try:
            # Touch the store so a dead database is noticed (and fallen back from) here
            await storage.get_chat_messages(1)
            current = storage.get_storage_status()
            if current.type == "database":
                db = DatabaseHealth(status="connected", storage_type="database")
            else:
                db = DatabaseHealth(
                    status="fallback_to_memory",
                    error="Database connection failed - using memory storage fallback",
                    storage_type="memory",
                )
        except Exception as e:
            logger.warning(f"Health check storage probe failed: {e}")
            db = DatabaseHealth(status="error", error=str(e), storage_type="memory")

    return HealthResponse(
        status="degraded" if db.status == "error" else "healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        database=db,
    )
