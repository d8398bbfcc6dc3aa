"""
Tests for the credential stores (SQLite and mongomock).

These tests verify:
- First login creates exactly one record
- Re-login overwrites the access token and profile
- A missing refresh token never erases the stored one
- A new refresh token replaces the stored one
- Repeating the same upsert is idempotent
- A lost first-insert race is retried once as an update
"""

from datetime import timedelta

import pytest
from pymongo.errors import DuplicateKeyError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from google_signin.core.exceptions import StoreError
from google_signin.models.identity import IdentityRecord
from google_signin.stores.mongo import MongoCredentialStore
from google_signin.stores.sql import SqlCredentialStore

from conftest import count_identities, make_identity


class TestCredentialUpsert:
    """Tests for the refresh-token-preserving upsert, on both backends."""

    def test_first_login_creates_record(self, stores):
        """Should insert a record carrying the first refresh token."""
        stored = stores.credentials.upsert(make_identity(access_token="a1", refresh_token="r1"))

        assert stored.subject_id == "g-123"
        assert stored.access_token == "a1"
        assert stored.refresh_token == "r1"
        assert count_identities(stores) == 1

    def test_relogin_without_refresh_token_keeps_stored_one(self, stores):
        """Should replace the access token but keep r1 when none is sent."""
        stores.credentials.upsert(make_identity(access_token="a1", refresh_token="r1"))

        stored = stores.credentials.upsert(make_identity(access_token="a2", refresh_token=None))

        assert stored.access_token == "a2"
        assert stored.refresh_token == "r1"
        assert count_identities(stores) == 1

    def test_empty_refresh_token_treated_as_absent(self, stores):
        """Should not overwrite r1 with an empty string."""
        stores.credentials.upsert(make_identity(refresh_token="r1"))

        stored = stores.credentials.upsert(make_identity(access_token="a2", refresh_token=""))

        assert stored.refresh_token == "r1"

    def test_new_refresh_token_replaces_stored_one(self, stores):
        """Should overwrite the refresh token when Google issues a new one."""
        stores.credentials.upsert(make_identity(access_token="a1", refresh_token="r1"))
        stores.credentials.upsert(make_identity(access_token="a2", refresh_token=None))

        stored = stores.credentials.upsert(make_identity(access_token="a3", refresh_token="r2"))

        assert stored.access_token == "a3"
        assert stored.refresh_token == "r2"
        assert count_identities(stores) == 1

    def test_first_login_without_refresh_token(self, stores):
        """Should store a record with no refresh token at all."""
        stored = stores.credentials.upsert(make_identity(refresh_token=None))

        assert stored.refresh_token is None
        assert stores.credentials.find_by_subject_id("g-123").refresh_token is None

    def test_upsert_is_idempotent(self, stores):
        """Should leave the same state when the same identity is upserted twice."""
        identity = make_identity()

        first = stores.credentials.upsert(identity)
        second = stores.credentials.upsert(identity)

        assert count_identities(stores) == 1
        for field in ("subject_id", "access_token", "refresh_token", "email", "display_name", "granted_scopes"):
            assert getattr(first, field) == getattr(second, field)
        assert first.token_expiry == second.token_expiry

    def test_profile_fields_updated_on_relogin(self, stores):
        """Should overwrite name, email and token expiry on re-login."""
        original = make_identity()
        stores.credentials.upsert(original)

        changed = make_identity(display_name="Ada King", email="ada.king@example.com")
        changed.token_expiry = original.token_expiry + timedelta(hours=2)
        changed.granted_scopes = ["openid", "email"]
        stores.credentials.upsert(changed)

        stored = stores.credentials.find_by_subject_id("g-123")
        assert stored.display_name == "Ada King"
        assert stored.email == "ada.king@example.com"
        assert stored.token_expiry == changed.token_expiry
        assert stored.granted_scopes == ["openid", "email"]

    def test_separate_accounts_get_separate_records(self, stores):
        """Should key records by subject id."""
        stores.credentials.upsert(make_identity(subject_id="g-123", email="ada@example.com"))
        stores.credentials.upsert(make_identity(subject_id="g-456", email="grace@example.com"))

        assert count_identities(stores) == 2
        assert stores.credentials.find_by_subject_id("g-456").email == "grace@example.com"

    def test_timestamps_set(self, stores):
        """Should stamp created_at and updated_at as UTC datetimes."""
        stored = stores.credentials.upsert(make_identity())

        assert stored.created_at is not None
        assert stored.updated_at is not None
        assert stored.created_at.utcoffset() == timedelta(0)

    def test_token_uri_persisted(self, stores):
        """Should keep the token endpoint alongside the tokens."""
        stores.credentials.upsert(make_identity())

        stored = stores.credentials.find_by_subject_id("g-123")
        assert stored.token_uri == "https://oauth2.googleapis.com/token"


class TestCredentialLookup:
    """Tests for find_by_subject_id."""

    def test_unknown_subject_returns_none(self, stores):
        """Should return None for an account that never signed in."""
        assert stores.credentials.find_by_subject_id("nobody") is None

    def test_initialize_is_repeatable(self, stores):
        """Should not fail when tables and indexes already exist."""
        stores.initialize()
        stores.credentials.upsert(make_identity())

        assert count_identities(stores) == 1


class TestConcurrentFirstLogin:
    """Tests for the retry when two first logins race on the insert."""

    def test_sql_lost_insert_race_retries_as_update(self, engine, monkeypatch):
        """Should merge into the row the other request inserted."""
        store = SqlCredentialStore(engine)
        store.initialize()
        store.upsert(make_identity(access_token="a1", refresh_token="r1"))

        calls = []

        def stale_lookup(db, subject_id):
            # First attempt does not see the row yet, as if it was inserted concurrently
            calls.append(subject_id)
            if len(calls) == 1:
                return None
            return SqlCredentialStore._locked_record(db, subject_id)

        monkeypatch.setattr(store, "_locked_record", stale_lookup)

        stored = store.upsert(make_identity(access_token="a2", refresh_token=None))

        assert len(calls) == 2
        assert stored.access_token == "a2"
        assert stored.refresh_token == "r1"
        with engine.connect() as conn:
            assert conn.execute(select(func.count()).select_from(IdentityRecord)).scalar_one() == 1

    def test_sql_second_conflict_raises_store_error(self, engine, monkeypatch):
        """Should give up after one retry."""
        store = SqlCredentialStore(engine)
        store.initialize()
        store.upsert(make_identity())

        monkeypatch.setattr(store, "_locked_record", lambda db, subject_id: None)

        with pytest.raises(StoreError) as exc_info:
            store.upsert(make_identity(access_token="a2"))

        assert exc_info.value.detail == "Could not save your account"

    def test_sql_outage_reports_same_detail(self, engine, monkeypatch):
        """Should describe a database failure the same way on every attempt."""
        store = SqlCredentialStore(engine)
        store.initialize()

        def broken(identity):
            raise SQLAlchemyError("connection lost")

        monkeypatch.setattr(store, "_upsert_once", broken)

        with pytest.raises(StoreError) as exc_info:
            store.upsert(make_identity())

        assert exc_info.value.detail == "Could not save your account"

    def test_mongo_lost_insert_race_retries_as_update(self, mongo_db, monkeypatch):
        """Should retry once after the unique index rejects the insert."""
        collection = mongo_db["users"]
        store = MongoCredentialStore(collection)
        store.initialize()
        store.upsert(make_identity(access_token="a1", refresh_token="r1"))

        original = collection.find_one_and_update
        calls = []

        def racing_update(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise DuplicateKeyError("E11000 duplicate key error")
            return original(*args, **kwargs)

        monkeypatch.setattr(collection, "find_one_and_update", racing_update)

        stored = store.upsert(make_identity(access_token="a2", refresh_token=None))

        assert len(calls) == 2
        assert stored.access_token == "a2"
        assert stored.refresh_token == "r1"
        assert collection.count_documents({}) == 1

    def test_mongo_second_conflict_raises_store_error(self, mongo_db, monkeypatch):
        """Should give up after one retry."""
        collection = mongo_db["users"]
        store = MongoCredentialStore(collection)
        store.initialize()

        def always_conflicts(*args, **kwargs):
            raise DuplicateKeyError("E11000 duplicate key error")

        monkeypatch.setattr(collection, "find_one_and_update", always_conflicts)

        with pytest.raises(StoreError) as exc_info:
            store.upsert(make_identity())

        assert exc_info.value.detail == "Could not save your account"
