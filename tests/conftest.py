"""
Test configuration and fixtures for pytest.

This module provides shared fixtures used across all tests:
- Test stores (SQLite in-memory and mongomock, no servers needed)
- A fake Google behind httpx.MockTransport
- Test client (FastAPI TestClient on an app wired to the above)
- Sample data factories
"""

from datetime import datetime, timedelta, timezone
from typing import Generator, Optional

import httpx
import mongomock
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from google_signin.core.config import Settings
from google_signin.environments.google.auth import GoogleAuthClient
from google_signin.main import create_app
from google_signin.schemas.identity import Identity
from google_signin.stores.factory import Stores
from google_signin.stores.mongo import MongoCredentialStore, MongoSessionStore
from google_signin.stores.sql import SqlCredentialStore, SqlSessionStore


# ---------------------------------------------------------------------------
# SETTINGS
# ---------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    """Settings with fixed test values; no .env file is read."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        LOG_LEVEL="WARNING",
        GOOGLE_CLIENT_ID="test-client-id",
        GOOGLE_CLIENT_SECRET="test-client-secret",
        REDIRECT_URI_DEV="http://localhost:3000/api/auth/google/callback",
        SESSION_SECRET="test-session-secret",
        DATABASE_URL="sqlite:///:memory:",
    )


# ---------------------------------------------------------------------------
# TEST DATABASE SETUP
# ---------------------------------------------------------------------------
# Use SQLite in-memory for fast tests (no PostgreSQL dependency)
# StaticPool keeps the same connection across all operations

@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database for each test function."""
    test_engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},  # Required for SQLite
        poolclass=StaticPool,  # Keep connection alive across operations
    )
    try:
        yield test_engine
    finally:
        test_engine.dispose()


@pytest.fixture
def mongo_db():
    """Fresh mongomock database for each test function."""
    return mongomock.MongoClient()["google_signin_test"]


@pytest.fixture(params=["postgres", "mongodb"])
def stores(request, engine: Engine, mongo_db) -> Stores:
    """
    Initialized stores for both backends.

    Tests using this fixture run once against SQLite and once against
    mongomock.
    """
    if request.param == "mongodb":
        test_stores = Stores(
            credentials=MongoCredentialStore(mongo_db["users"]),
            sessions=MongoSessionStore(mongo_db["sessions"]),
        )
    else:
        test_stores = Stores(
            credentials=SqlCredentialStore(engine),
            sessions=SqlSessionStore(engine),
        )
    test_stores.initialize()
    return test_stores


def count_identities(stores: Stores) -> int:
    """Number of identity rows/documents in the credential store."""
    credentials = stores.credentials
    if isinstance(credentials, MongoCredentialStore):
        return credentials.collection.count_documents({})

    from sqlalchemy import func, select
    from google_signin.models.identity import IdentityRecord

    with credentials.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(IdentityRecord)).scalar_one()


# ---------------------------------------------------------------------------
# FAKE GOOGLE
# ---------------------------------------------------------------------------

class FakeGoogle:
    """
    Stand-in for Google's token and userinfo endpoints.

    Tests set `token_status`/`token_body` and `userinfo_status`/
    `userinfo_body` (or `token_error`/`userinfo_error` to raise a transport
    error) before driving the flow. Every request is recorded.
    """

    def __init__(self):
        self.token_status = 200
        self.token_body = {
            "access_token": "a1",
            "expires_in": 3599,
            "refresh_token": "r1",
            "scope": "openid https://www.googleapis.com/auth/userinfo.email https://www.googleapis.com/auth/userinfo.profile",
            "token_type": "Bearer",
        }
        self.token_error: Optional[Exception] = None

        self.userinfo_status = 200
        self.userinfo_body = {
            "sub": "g-123",
            "email": "ada@example.com",
            "email_verified": True,
            "name": "Ada Lovelace",
            "picture": "https://lh3.googleusercontent.com/a/ada",
        }
        self.userinfo_error: Optional[Exception] = None

        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/token":
            if self.token_error is not None:
                raise self.token_error
            return httpx.Response(self.token_status, json=self.token_body)

        if request.url.path == "/oauth2/v3/userinfo":
            if self.userinfo_error is not None:
                raise self.userinfo_error
            return httpx.Response(self.userinfo_status, json=self.userinfo_body)

        return httpx.Response(404, json={"error": "not_found"})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def auth_client(settings: Settings, fake_google: FakeGoogle) -> GoogleAuthClient:
    """GoogleAuthClient talking to the fake Google."""
    return GoogleAuthClient(settings.google_auth_config(), transport=fake_google.transport())


# ---------------------------------------------------------------------------
# APP FIXTURES
# ---------------------------------------------------------------------------

@pytest.fixture
def client(settings: Settings, stores: Stores, auth_client: GoogleAuthClient) -> Generator[TestClient, None, None]:
    """
    Test client for an app wired to the test stores and the fake Google.

    Redirects are not followed so tests can assert on them.
    """
    app = create_app(settings=settings, stores=stores, auth_client=auth_client)

    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# DATA FACTORIES
# ---------------------------------------------------------------------------

def make_identity(
    subject_id: str = "g-123",
    access_token: str = "a1",
    refresh_token: Optional[str] = "r1",
    display_name: str = "Ada Lovelace",
    email: str = "ada@example.com",
) -> Identity:
    """
    Build an Identity as the login pipeline would.

    Datetimes are truncated to whole seconds so they survive MongoDB's
    millisecond precision unchanged.
    """
    now = datetime.now(timezone.utc).replace(microsecond=0)
    return Identity(
        subject_id=subject_id,
        display_name=display_name,
        email=email,
        profile_picture_url="https://lh3.googleusercontent.com/a/ada",
        access_token=access_token,
        refresh_token=refresh_token,
        token_expiry=now + timedelta(hours=1),
        granted_scopes=["openid", "email", "profile"],
        token_uri="https://oauth2.googleapis.com/token",
    )


def count_sessions(stores: Stores) -> int:
    """Number of session rows/documents, expired ones included."""
    sessions = stores.sessions
    if isinstance(sessions, MongoSessionStore):
        return sessions.collection.count_documents({})

    from sqlalchemy import func, select
    from google_signin.models.web_session import WebSessionRecord

    with sessions.engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(WebSessionRecord)).scalar_one()
