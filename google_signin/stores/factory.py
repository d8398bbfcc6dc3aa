"""
Backend selection - build the credential and session stores named by
Settings.STORE_BACKEND, sharing one connection pool between them.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List

from pymongo import MongoClient

from google_signin.core.config import Settings
from google_signin.db.session import create_db_engine
from google_signin.stores.base import CredentialStore, SessionStore
from google_signin.stores.mongo import MongoCredentialStore, MongoSessionStore
from google_signin.stores.sql import SqlCredentialStore, SqlSessionStore


logger = logging.getLogger("google_signin.stores")

# How long pymongo waits for a server before failing a call
MONGO_SERVER_SELECTION_TIMEOUT_MS = 5000


@dataclass
class Stores:
    """The pair of stores the application runs on."""

    credentials: CredentialStore
    sessions: SessionStore
    _closers: List[Callable[[], None]] = field(default_factory=list)

    def initialize(self) -> None:
        """
        Prepare both stores. Raises StoreError/SessionError on failure;
        the application treats that as fatal.
        """
        self.credentials.initialize()
        self.sessions.initialize()

    def close(self) -> None:
        self.credentials.close()
        self.sessions.close()
        for closer in self._closers:
            closer()


def build_stores(settings: Settings) -> Stores:
    """Create (but do not initialize) the stores for the configured backend."""
    if settings.STORE_BACKEND == "mongodb":
        client = MongoClient(
            settings.MONGODB_URI,
            serverSelectionTimeoutMS=MONGO_SERVER_SELECTION_TIMEOUT_MS,
        )
        database = client[settings.MONGODB_DATABASE]
        logger.info(f"Using MongoDB store (database={settings.MONGODB_DATABASE})")
        return Stores(
            credentials=MongoCredentialStore(database["users"]),
            sessions=MongoSessionStore(database["sessions"]),
            _closers=[client.close],
        )

    engine = create_db_engine(settings.DATABASE_URL)
    logger.info(f"Using relational store ({engine.url.render_as_string(hide_password=True)})")
    return Stores(
        credentials=SqlCredentialStore(engine),
        sessions=SqlSessionStore(engine),
        _closers=[engine.dispose],
    )
