# solarscope/routers/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from solarscope.dependencies import get_auth_service
from solarscope.services.auth_service import AuthService, AuthError

router = APIRouter(prefix="/auth", tags=["auth"])

# ---- Schemas ----
class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

class UserResponse(BaseModel):
    user_id: int
    username: str
    email: str

# ---- Routes ----
@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        user = await auth.register_user(payload.username, payload.email, payload.password)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.public_detail,
            headers={"X-Error-Code": e.code},
        )
    return UserResponse(user_id=user.id, username=user.username, email=user.email)

@router.post("/login", response_model=UserResponse, summary="Check credentials")
async def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    try:
        user = await auth.authenticate(payload.email, payload.password)
    except AuthError as e:
        # Always 401 to avoid account enumeration; the code lets the UI pick its copy
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.public_detail,
            headers={"X-Error-Code": e.code},
        )
    return UserResponse(user_id=user.id, username=user.username, email=user.email)
