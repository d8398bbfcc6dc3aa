"""
Error taxonomy for the sign-in flow.

Provider-side failures (ExchangeError, ProfileFetchError,
ProviderTimeoutError) live in google_signin.environments.base next to the
provider contract; storage-side failures live here. All of them derive
from SignInError so the callback route can catch the whole family at the
request boundary.
"""

from typing import Optional


class SignInError(Exception):
    """Base exception for every failure in the sign-in flow."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        # Human-readable detail safe to show the user (e.g. Google's
        # error_description). Never contains tokens.
        self.detail = detail


class StoreError(SignInError):
    """Raised when the credential store fails (constraint, connectivity)."""
    pass


class SessionError(SignInError):
    """Raised when the session store is unavailable."""
    pass
