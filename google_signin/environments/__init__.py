"""
Environments Module - Identity provider integrations.

environments/
├── __init__.py           # Module exports
├── base.py               # Provider contract, shared data structures, errors
└── google/
    └── auth/             # Google OAuth sign-in
        ├── client.py     # OAuth flow implementation
        └── schemas.py    # Auth-related data structures
"""

from google_signin.environments.base import (
    IdentityProvider,
    OAuthTokens,
    UserInfo,
    ProviderError,
    ExchangeError,
    ProfileFetchError,
    ProviderTimeoutError,
)

__all__ = [
    "IdentityProvider",
    "OAuthTokens",
    "UserInfo",
    "ProviderError",
    "ExchangeError",
    "ProfileFetchError",
    "ProviderTimeoutError",
]
