# solarscope/services/auth_service.py
from __future__ import annotations
from typing import Optional
import logging
from dataclasses import dataclass

from solarscope.repositories import DuplicateKey, Storage
from solarscope.schemas import UserCreate, UserRecord, normalize_email
from solarscope.security import hash_password, verify_password

logger = logging.getLogger(__name__)

# --- AuthError for safe, classifiable failures ---
@dataclass
class AuthError(Exception):
    code: str                 # "DUPLICATE_ACCOUNT" | "BAD_CREDENTIALS" | "UNEXPECTED"
    public_detail: str        # safe message for clients
    log_detail: str = ""      # extra info for server logs

class AuthService:
    """
    Registration and credential checks on top of whichever storage backend
    the app was built with.
    """

    def __init__(self, storage: Storage):
        self.storage = storage

    async def register_user(self, username: str, email: str, password: str) -> UserRecord:
        """
        Create an account. Username and email must both be unused; the store's
        DuplicateKey is turned into an AuthError the route layer can show.
        """
        email_norm = normalize_email(email)
        data = UserCreate(username=username, email=email_norm, password_hash=hash_password(password))
        try:
            user = await self.storage.create_user(data)
        except DuplicateKey as e:
            logger.warning({"step": "register_failed", "reason": f"duplicate_{e.field}", "username": username})
            raise AuthError(
                code="DUPLICATE_ACCOUNT",
                public_detail=f"That {e.field} is already registered.",
                log_detail=str(e),
            )

        logger.info({"step": "register_success", "user_id": user.id, "username": user.username})
        return user

    async def authenticate(self, email: str, password: str) -> UserRecord:
        """
        Return the user for valid credentials. Unknown email and wrong
        password raise the same BAD_CREDENTIALS code to avoid enumeration.
        """
        email_norm = normalize_email(email)
        user = await self.storage.get_user_by_email(email_norm)

        if not user:
            logger.warning({"step": "authenticate_failed", "reason": "user_not_found", "email_norm": email_norm})
            raise AuthError(
                code="BAD_CREDENTIALS",
                public_detail="Incorrect email or password.",
                log_detail=f"no user for {email_norm}",
            )

        try:
            ok = verify_password(password, user.password_hash)
        except Exception as e:
            # Unrecognized or corrupt hash in storage
            logger.exception({"step": "authenticate_verify_exception", "user_id": user.id})
            raise AuthError(
                code="UNEXPECTED",
                public_detail="We couldn’t sign you in. Please try again.",
                log_detail=str(e),
            )

        if not ok:
            logger.warning({"step": "authenticate_failed", "reason": "bad_password", "user_id": user.id})
            raise AuthError(
                code="BAD_CREDENTIALS",
                public_detail="Incorrect email or password.",
                log_detail=f"bad password for uid={user.id}",
            )

        logger.info({"step": "authenticate_success", "user_id": user.id})
        return user

    async def reset_password(self, email: str, new_password: str) -> Optional[UserRecord]:
        """Administrative password reset (e.g. repairing the demo account)."""
        return await self.storage.update_user_password(email, hash_password(new_password))
