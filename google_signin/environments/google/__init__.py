"""
Google Environment Module - Sign in with Google.

Usage:
======
    from google_signin.environments.google import GoogleAuthClient

    auth_client = GoogleAuthClient(settings.google_auth_config())
    auth_url = auth_client.build_authorization_url()

    # After callback
    tokens = await auth_client.exchange_code(code)
    profile = await auth_client.fetch_profile(tokens.access_token)
"""

from google_signin.environments.google.auth import (
    GoogleAuthClient,
    GoogleAuthConfig,
    PROFILE_SCOPES,
)

__all__ = ["GoogleAuthClient", "GoogleAuthConfig", "PROFILE_SCOPES"]
