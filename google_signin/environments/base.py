"""
Base classes and interfaces for identity providers.

This module defines the contract an identity provider implements for the
sign-in flow, the provider-agnostic data structures passed between the
OAuth client and storage, and the provider-side exceptions.

Design Pattern: Strategy
========================
- IdentityProvider: Abstract base for OAuth providers. Google is the only
  implementation today; the callback pipeline only talks to this contract.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from google_signin.core.exceptions import SignInError


# ---------------------------------------------------------------------------
# CUSTOM EXCEPTIONS
# ---------------------------------------------------------------------------


class ProviderError(SignInError):
    """Base exception for failures talking to the identity provider."""
    pass


class ExchangeError(ProviderError):
    """Raised when the authorization code cannot be traded for tokens."""
    pass


class ProfileFetchError(ProviderError):
    """Raised when the user's profile cannot be fetched."""
    pass


class ProviderTimeoutError(ProviderError):
    """Raised when an outbound call to the provider exceeds its timeout."""
    pass


# ---------------------------------------------------------------------------
# DATA STRUCTURES
# ---------------------------------------------------------------------------


@dataclass
class OAuthTokens:
    """
    Standardized token data from the provider's token endpoint.

    `expires_in` is kept as returned; `expires_at` is the absolute UTC
    instant computed when the response was received.
    """
    access_token: str
    token_type: str = "Bearer"
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    expires_at: Optional[datetime] = None
    scopes: List[str] = field(default_factory=list)


@dataclass
class UserInfo:
    """
    Basic user information from the provider's userinfo endpoint.
    """
    provider_user_id: str  # Google's stable account id
    email: Optional[str] = None
    name: Optional[str] = None
    picture_url: Optional[str] = None


# ---------------------------------------------------------------------------
# ABSTRACT BASE CLASS
# ---------------------------------------------------------------------------


class IdentityProvider(ABC):
    """
    Abstract base class for OAuth identity providers.

    The provider is responsible for:
    - Building the consent URL
    - Exchanging authorization codes for tokens
    - Fetching the signed-in user's profile
    """

    provider_name: str = ""

    # Token endpoint the stored credentials are valid against
    TOKEN_URL: str = ""

    @abstractmethod
    def build_authorization_url(self) -> str:
        """Return the URL to redirect the browser to for consent."""

    @abstractmethod
    async def exchange_code(self, code: str) -> OAuthTokens:
        """
        Exchange an authorization code for tokens.

        Raises:
            ExchangeError: provider rejected the code or returned a bad body
            ProviderTimeoutError: the call timed out
        """

    @abstractmethod
    async def fetch_profile(self, access_token: str) -> UserInfo:
        """
        Fetch the user's profile with a bearer access token.

        Raises:
            ProfileFetchError: provider rejected the token or returned a bad body
            ProviderTimeoutError: the call timed out
        """
