"""
FastAPI dependency providers shared by the routers.

The storage backend is built once at startup and kept on app.state; routers
never import a module-level storage instance.
"""

from fastapi import Request

from solarscope.config import Settings
from solarscope.repositories import Storage
from solarscope.services.auth_service import AuthService


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_service(request: Request) -> AuthService:
    return AuthService(get_storage(request))
