"""
Google OAuth Client - Handles the sign-in flow with Google APIs.

Key Features:
=============
1. Authorization URL generation
2. Code-to-token exchange
3. User profile fetch from the userinfo endpoint

OAuth 2.0 Flow Implementation:
==============================
1. build_authorization_url() → User redirected to Google
2. exchange_code()           → Called in callback, gets tokens
3. fetch_profile()           → Fetch Google account details

Every outbound call is bounded by the configured timeout and is never
retried; a failure surfaces immediately to the caller.

References:
===========
- OAuth 2.0: https://developers.google.com/identity/protocols/oauth2
- Token endpoint: https://oauth2.googleapis.com/token
- Userinfo: https://www.googleapis.com/oauth2/v3/userinfo
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from google_signin.environments.base import (
    IdentityProvider,
    OAuthTokens,
    UserInfo,
    ExchangeError,
    ProfileFetchError,
    ProviderTimeoutError,
)
from google_signin.environments.google.auth.schemas import (
    GoogleAuthConfig,
    GoogleTokenResponse,
    GoogleUserInfo,
)


logger = logging.getLogger("google_signin.environments.google.auth")


def _error_detail(response: httpx.Response) -> str:
    """Pull Google's error description out of a failed response."""
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        detail = data.get("error_description") or data.get("error")
        if isinstance(detail, dict):
            # userinfo errors look like {"error": {"message": ..., "status": ...}}
            detail = detail.get("message") or detail.get("status")
        if detail:
            return str(detail)

    return f"HTTP {response.status_code}"


class GoogleAuthClient(IdentityProvider):
    """
    Google OAuth 2.0 Client implementation.

    Example Usage:
        client = GoogleAuthClient(settings.google_auth_config())

        # Step 1: Generate auth URL
        auth_url = client.build_authorization_url()
        # Redirect user to auth_url

        # Step 2: Handle callback
        tokens = await client.exchange_code(code="abc123")

        # Step 3: Get user info
        user_info = await client.fetch_profile(tokens.access_token)

    `transport` is passed through to httpx; tests use it to plug in an
    httpx.MockTransport instead of the network.
    """

    provider_name = "google"

    AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"
    USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"

    def __init__(
        self,
        config: GoogleAuthConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport

        if not config.client_id or not config.client_secret:
            logger.warning(
                "Google OAuth not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET in environment variables."
            )

    @property
    def client_id(self) -> str:
        return self.config.client_id

    def _http(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            transport=self._transport,
        )

    # -------------------------------------------------------------------------
    # AUTHORIZATION URL
    # -------------------------------------------------------------------------

    def build_authorization_url(self) -> str:
        """
        Generate the Google OAuth consent URL.

        A pure function of the client's configuration.

        Returns:
            Full authorization URL to redirect the user to
        """
        params = {
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.config.scopes),
        }
        if self.config.offline_access:
            params["access_type"] = "offline"  # include refresh_token
            params["prompt"] = "consent"  # always show consent screen

        return f"{self.AUTHORIZATION_URL}?{urlencode(params)}"

    # -------------------------------------------------------------------------
    # TOKEN EXCHANGE
    # -------------------------------------------------------------------------

    async def exchange_code(self, code: str) -> OAuthTokens:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            code: Authorization code from Google callback

        Returns:
            OAuthTokens with access_token, refresh_token, expiration, scopes

        Raises:
            ExchangeError: non-success status, malformed body, network failure
            ProviderTimeoutError: the token endpoint did not answer in time
        """
        token_data = {
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.config.redirect_uri,
        }

        logger.info("Exchanging authorization code for tokens")

        async with self._http() as client:
            try:
                response = await client.post(self.TOKEN_URL, data=token_data)
            except httpx.TimeoutException as e:
                logger.error(f"Token exchange timed out: {e}")
                raise ProviderTimeoutError("Token exchange timed out", detail="Google did not respond in time")
            except httpx.RequestError as e:
                logger.error(f"Network error during token exchange: {e}")
                raise ExchangeError(f"Network error: {e}", detail="Could not reach Google")

        if not response.is_success:
            detail = _error_detail(response)
            logger.error(f"Token exchange failed: {detail}")
            raise ExchangeError(f"Token exchange failed: {detail}", detail=detail)

        try:
            token_response = GoogleTokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed token response: {e}")
            raise ExchangeError("Malformed token response", detail="Malformed token response")

        logger.info(
            "Successfully obtained Google tokens",
            extra={
                "has_refresh_token": bool(token_response.refresh_token),
                "expires_in": token_response.expires_in,
            },
        )

        return OAuthTokens(
            access_token=token_response.access_token,
            token_type=token_response.token_type,
            refresh_token=token_response.refresh_token or None,
            expires_in=token_response.expires_in,
            expires_at=token_response.get_expires_at(datetime.now(timezone.utc)),
            scopes=token_response.get_scopes_list(),
        )

    # -------------------------------------------------------------------------
    # USER INFO
    # -------------------------------------------------------------------------

    async def fetch_profile(self, access_token: str) -> UserInfo:
        """
        Get the signed-in user's profile from Google.

        Args:
            access_token: Valid access token

        Returns:
            UserInfo with Google account details

        Raises:
            ProfileFetchError: non-success status, missing id, network failure
            ProviderTimeoutError: the userinfo endpoint did not answer in time
        """
        logger.info("Fetching user info from Google")

        async with self._http() as client:
            try:
                response = await client.get(
                    self.USERINFO_URL,
                    headers={"Authorization": f"Bearer {access_token}"},
                )
            except httpx.TimeoutException as e:
                logger.error(f"User info fetch timed out: {e}")
                raise ProviderTimeoutError("User info fetch timed out", detail="Google did not respond in time")
            except httpx.RequestError as e:
                logger.error(f"Network error fetching user info: {e}")
                raise ProfileFetchError(f"Network error: {e}", detail="Could not reach Google")

        if not response.is_success:
            detail = _error_detail(response)
            logger.error(f"Failed to fetch user info: {detail}")
            raise ProfileFetchError(f"Failed to fetch user info: {detail}", detail=detail)

        try:
            google_user = GoogleUserInfo.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Malformed user info response: {e}")
            raise ProfileFetchError("Malformed user info response", detail="Malformed profile response")

        logger.info("Successfully fetched Google user info")

        return UserInfo(
            provider_user_id=google_user.sub,
            email=google_user.email,
            name=google_user.name,
            picture_url=google_user.picture,
        )

