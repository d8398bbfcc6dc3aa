"""
Dependencies module - reusable FastAPI dependencies for route handlers.

Everything here reads from `app.state`, which the application lifespan
fills in at startup (see google_signin.main).
"""

from typing import Optional

from fastapi import Request

from google_signin.core.config import Settings
from google_signin.core.security import SESSION_COOKIE_NAME, unsign_session_id
from google_signin.environments.google.auth import GoogleAuthClient
from google_signin.services.login import LoginService
from google_signin.services.session_manager import SessionManager


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth_client(request: Request) -> GoogleAuthClient:
    return request.app.state.auth_client


def get_login_service(request: Request) -> LoginService:
    return request.app.state.login_service


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_session_id(request: Request) -> Optional[str]:
    """
    Session id from the signed cookie, or None.

    A missing, tampered, or foreign cookie is treated as no session at all.
    """
    settings: Settings = request.app.state.settings
    return unsign_session_id(request.cookies.get(SESSION_COOKIE_NAME), settings.SESSION_SECRET)
