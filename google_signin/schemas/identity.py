"""
Identity schemas - the backend-neutral shape of a signed-in account.

Both credential stores accept and return `Identity`; the session keeps a
`SessionUser` snapshot (profile only, never tokens).
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from google_signin.environments.base import OAuthTokens, UserInfo


class Identity(BaseModel):
    """A Google account mirrored locally with its current OAuth credentials."""

    model_config = ConfigDict(from_attributes=True)

    subject_id: str = Field(..., min_length=1, description="Google account id")
    display_name: Optional[str] = None
    email: Optional[str] = None
    profile_picture_url: Optional[str] = None

    access_token: str
    # Only issued on first consent; a missing value never erases a stored one
    refresh_token: Optional[str] = None
    token_expiry: Optional[datetime] = None
    granted_scopes: List[str] = Field(default_factory=list)
    token_uri: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_provider(cls, profile: UserInfo, tokens: OAuthTokens, token_uri: Optional[str] = None) -> "Identity":
        """Combine the two provider responses of a login into one record."""
        return cls(
            subject_id=profile.provider_user_id,
            display_name=profile.name,
            email=profile.email,
            profile_picture_url=profile.picture_url,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token or None,
            token_expiry=tokens.expires_at,
            granted_scopes=list(tokens.scopes),
            token_uri=token_uri,
        )


class SessionUser(BaseModel):
    """Public profile snapshot stored in the browser's session."""

    subject_id: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    profile_picture_url: Optional[str] = None

    @classmethod
    def from_identity(cls, identity: Identity) -> "SessionUser":
        return cls(
            subject_id=identity.subject_id,
            display_name=identity.display_name,
            email=identity.email,
            profile_picture_url=identity.profile_picture_url,
        )


class SessionData(BaseModel):
    """Server-side session record keyed by the session id."""

    user: Optional[SessionUser] = None
    message: Optional[str] = None


class SessionView(BaseModel):
    """What a page render sees: the bound user and the consumed flash."""

    user: Optional[SessionUser] = None
    message: str = ""
