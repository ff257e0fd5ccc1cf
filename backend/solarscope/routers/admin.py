# solarscope/routers/admin.py
"""
Development-only maintenance endpoints. main.py mounts this router only when
APP_ENV is not "production".
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from solarscope.dependencies import get_auth_service, get_storage
from solarscope.repositories import Storage
from solarscope.security import DEMO_EMAIL, DEMO_PASSWORD, DEMO_USERNAME
from solarscope.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

@router.post("/clear-users", summary="Wipe users, analyses and chat messages")
async def clear_users(storage: Storage = Depends(get_storage)):
    await storage.clear_all_users_except_testing()
    return {
        "success": True,
        "storage_type": storage.get_storage_status().type,
        "testing_user": {"username": DEMO_USERNAME, "email": DEMO_EMAIL},
    }

@router.post("/fix-test-user", summary="Reset the demo account password")
async def fix_test_user(auth: AuthService = Depends(get_auth_service)):
    user = await auth.reset_password(DEMO_EMAIL, DEMO_PASSWORD)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Testing user not found")
    logger.warning(f"Demo account password reset for user {user.id}")
    return {"success": True, "user_id": user.id}
