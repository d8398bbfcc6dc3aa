"""
Stores module - persistence for identities and sessions.

Two interchangeable backends implement the same interfaces:
- sql.py:   SQLAlchemy (PostgreSQL in production)
- mongo.py: pymongo (MongoDB)

factory.build_stores() picks one from Settings.STORE_BACKEND.
"""

from google_signin.stores.base import CredentialStore, SessionStore
from google_signin.stores.factory import Stores, build_stores
from google_signin.stores.mongo import MongoCredentialStore, MongoSessionStore
from google_signin.stores.sql import SqlCredentialStore, SqlSessionStore

__all__ = [
    "CredentialStore",
    "SessionStore",
    "Stores",
    "build_stores",
    "MongoCredentialStore",
    "MongoSessionStore",
    "SqlCredentialStore",
    "SqlSessionStore",
]
