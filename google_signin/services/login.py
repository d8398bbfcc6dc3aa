"""
Login pipeline - what happens between Google's redirect and the session.

    exchange_code(code) → fetch_profile(access_token) → upsert(identity)

Each stage runs only when the previous one succeeded; the first failure
propagates to the caller unchanged (ExchangeError, ProfileFetchError,
ProviderTimeoutError or StoreError). Nothing is retried.
"""

import logging

from fastapi.concurrency import run_in_threadpool

from google_signin.environments.base import IdentityProvider
from google_signin.schemas.identity import Identity
from google_signin.stores.base import CredentialStore


logger = logging.getLogger("google_signin.services.login")


class LoginService:
    """Runs the callback pipeline against a provider and a credential store."""

    def __init__(self, provider: IdentityProvider, credentials: CredentialStore):
        self.provider = provider
        self.credentials = credentials

    async def complete_login(self, code: str) -> Identity:
        """
        Trade an authorization code for a stored, up-to-date Identity.

        Returns:
            The identity as stored after the merge
        """
        tokens = await self.provider.exchange_code(code)
        profile = await self.provider.fetch_profile(tokens.access_token)

        identity = Identity.from_provider(profile, tokens, token_uri=self.provider.TOKEN_URL)

        # Store drivers are blocking
        stored = await run_in_threadpool(self.credentials.upsert, identity)

        logger.info(
            f"Login completed for {stored.subject_id}",
            extra={"has_refresh_token": bool(stored.refresh_token)},
        )
        return stored
