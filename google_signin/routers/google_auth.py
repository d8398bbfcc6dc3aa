"""
Google Auth Router - OAuth 2.0 sign-in endpoints.

Endpoints:
==========
- GET /auth/google                → Redirect to Google OAuth consent screen
- GET /api/auth/google/callback   → Exchange code, store identity, bind session
- GET /logout                     → Destroy session

OAuth Flow:
===========
1. User clicks "Sign in with Google"
2. Browser hits GET /auth/google
3. Backend redirects to Google's consent screen
4. User grants permissions
5. Google redirects to /api/auth/google/callback with code
6. Backend exchanges code for tokens, fetches profile, stores identity
7. User is redirected back to / with a flash message

The callback always answers with a redirect to /, whatever happened;
failures are reported through the flash message.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse

from google_signin.core.config import Settings
from google_signin.core.exceptions import SessionError, SignInError
from google_signin.core.security import (
    clear_session_cookie_kwargs,
    session_cookie_kwargs,
    sign_session_id,
)
from google_signin.deps import (
    get_auth_client,
    get_login_service,
    get_session_id,
    get_session_manager,
    get_settings,
)
from google_signin.environments.base import ExchangeError
from google_signin.environments.google.auth import GoogleAuthClient
from google_signin.services.login import LoginService
from google_signin.services.session_manager import SessionManager


logger = logging.getLogger("google_signin.routers.google_auth")


# ---------------------------------------------------------------------------
# ROUTER SETUP
# ---------------------------------------------------------------------------
router = APIRouter(tags=["google-auth"])


# ---------------------------------------------------------------------------
# ENDPOINTS
# ---------------------------------------------------------------------------


@router.get("/auth/google")
def google_login(auth_client: GoogleAuthClient = Depends(get_auth_client)):
    """
    Initiate Google OAuth login flow.

    Returns:
        302 RedirectResponse to Google's OAuth consent screen
    """
    if not auth_client.client_id:
        logger.error("Google OAuth not configured - missing GOOGLE_CLIENT_ID")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google OAuth is not configured. Please set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET.",
        )

    logger.info("Redirecting to Google consent screen")
    return RedirectResponse(url=auth_client.build_authorization_url(), status_code=status.HTTP_302_FOUND)


@router.get("/api/auth/google/callback")
async def google_callback(
    code: Optional[str] = Query(None, description="Authorization code from Google"),
    error: Optional[str] = Query(None, description="Error from Google"),
    error_description: Optional[str] = Query(None, description="Error details"),
    session_id: Optional[str] = Depends(get_session_id),
    settings: Settings = Depends(get_settings),
    login_service: LoginService = Depends(get_login_service),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Handle Google OAuth callback.

    Flow:
        1. Reject provider errors and a missing code
        2. Exchange code for tokens
        3. Get user info from Google
        4. Upsert the identity
        5. Bind it to a fresh session (or record the failure)
        6. Redirect to /
    """
    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    identity = None
    failure_reason = None

    try:
        if error:
            raise ExchangeError(
                f"Google returned an error: {error}",
                detail=error_description or error,
            )
        if not code:
            raise ExchangeError("Missing authorization code", detail="Missing authorization code")

        identity = await login_service.complete_login(code)
    except SignInError as e:
        logger.warning(f"Google sign-in failed: {e}")
        failure_reason = e.detail

    try:
        if identity is not None:
            new_session_id = await run_in_threadpool(sessions.start, identity, session_id)
        else:
            new_session_id = await run_in_threadpool(sessions.mark_failed, session_id, failure_reason)
    except SessionError as e:
        logger.error(f"Could not record sign-in result in session: {e}")
        return response

    response.set_cookie(**session_cookie_kwargs(
        sign_session_id(new_session_id, settings.SESSION_SECRET),
        max_age=sessions.ttl_seconds,
        secure=settings.SESSION_COOKIE_SECURE,
    ))
    return response


@router.get("/logout")
def logout(
    session_id: Optional[str] = Depends(get_session_id),
    settings: Settings = Depends(get_settings),
    sessions: SessionManager = Depends(get_session_manager),
):
    """
    Sign out: destroy the server-side session and clear the cookie.

    Returns:
        302 RedirectResponse to /
    """
    sessions.destroy(session_id)

    response = RedirectResponse(url="/", status_code=status.HTTP_302_FOUND)
    response.delete_cookie(**clear_session_cookie_kwargs(settings.SESSION_COOKIE_SECURE))
    return response
