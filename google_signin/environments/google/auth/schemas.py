"""
Google OAuth Schemas - Data structures for Google authentication.

Pydantic models for the config handed to the client and for the two
responses we parse (token endpoint and userinfo endpoint).
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field


# ---------------------------------------------------------------------------
# OAUTH SCOPE CONSTANTS
# ---------------------------------------------------------------------------
# Reference: https://developers.google.com/identity/protocols/oauth2/scopes

# Profile scopes - basic user information
PROFILE_SCOPES = [
    "openid",   # OpenID Connect (stable user ID)
    "email",    # User's email
    "profile",  # Name, picture
]


# ---------------------------------------------------------------------------
# CONFIGURATION
# ---------------------------------------------------------------------------

class GoogleAuthConfig(BaseModel):
    """
    Configuration for Google OAuth client.

    Built from Settings at startup (see Settings.google_auth_config).
    """
    client_id: str = Field(..., description="Google OAuth Client ID")
    client_secret: str = Field(..., description="Google OAuth Client Secret")
    redirect_uri: str = Field(..., description="OAuth callback URL")
    scopes: List[str] = Field(default_factory=lambda: list(PROFILE_SCOPES))
    offline_access: bool = Field(True, description="Ask for a refresh token")
    timeout_seconds: float = Field(10.0, gt=0, description="Outbound call timeout")


# ---------------------------------------------------------------------------
# TOKEN RESPONSES
# ---------------------------------------------------------------------------

class GoogleTokenResponse(BaseModel):
    """
    Response from Google's token endpoint.

    Example response from Google:
    {
        "access_token": "ya29.a0AfB_byC...",
        "expires_in": 3599,
        "refresh_token": "1//0eXyz...",
        "scope": "openid https://www.googleapis.com/auth/userinfo.email",
        "token_type": "Bearer",
        "id_token": "eyJhbGciOiJSUzI1NiIs..."
    }

    refresh_token is only present on the first consent (or when
    prompt=consent forces a new one).
    """
    access_token: str = Field(..., min_length=1, description="OAuth access token")
    token_type: str = Field(default="Bearer", description="Token type (usually Bearer)")
    expires_in: Optional[int] = Field(None, description="Seconds until expiration")
    refresh_token: Optional[str] = Field(None, description="Refresh token for renewal")
    scope: Optional[str] = Field(None, description="Space-separated scopes granted")
    id_token: Optional[str] = Field(None, description="JWT with user info (OpenID)")

    def get_scopes_list(self) -> List[str]:
        """Convert space-separated scope string to list."""
        if self.scope:
            return self.scope.split()
        return []

    def get_expires_at(self, now: Optional[datetime] = None) -> Optional[datetime]:
        """Calculate expiration datetime from expires_in seconds."""
        if self.expires_in is None:
            return None
        now = now or datetime.now(timezone.utc)
        return now + timedelta(seconds=self.expires_in)


# ---------------------------------------------------------------------------
# USER INFO
# ---------------------------------------------------------------------------

class GoogleUserInfo(BaseModel):
    """
    User information from Google's userinfo endpoint.

    The v3 endpoint names the account id `sub`, the v1/v2 endpoints name
    it `id`; both are accepted.

    Example:
    {
        "sub": "123456789",
        "email": "user@gmail.com",
        "email_verified": true,
        "name": "John Doe",
        "picture": "https://lh3.googleusercontent.com/a/..."
    }
    """
    sub: str = Field(
        ...,
        min_length=1,
        validation_alias=AliasChoices("sub", "id"),
        description="Unique Google user ID",
    )
    email: Optional[str] = Field(None, description="User's email address")
    email_verified: Optional[bool] = Field(None, description="Is email verified?")
    name: Optional[str] = Field(None, description="User's display name")
    picture: Optional[str] = Field(None, description="Profile picture URL")
