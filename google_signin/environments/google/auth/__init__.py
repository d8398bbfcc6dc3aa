"""
Google Auth Module - OAuth 2.0 sign-in with Google.

OAuth 2.0 Flow Overview:
========================
1. User clicks "Sign in with Google"
2. Backend redirects to Google's consent screen
3. User grants permissions
4. Google redirects back with an authorization code
5. Backend exchanges code for access + refresh tokens
6. Backend fetches the user's profile with the access token
"""

from google_signin.environments.google.auth.client import GoogleAuthClient
from google_signin.environments.google.auth.schemas import (
    GoogleAuthConfig,
    GoogleTokenResponse,
    GoogleUserInfo,
    PROFILE_SCOPES,
)

__all__ = [
    "GoogleAuthClient",
    "GoogleAuthConfig",
    "GoogleTokenResponse",
    "GoogleUserInfo",
    "PROFILE_SCOPES",
]
