"""
Document stores - pymongo implementations of the store interfaces.

Identities live in the 'users' collection with a unique index on
google_id; sessions live in 'sessions' with a TTL index on `expire` so
MongoDB reaps them on its own.

Datetimes are written as naive UTC (BSON dates carry no zone) and tagged
UTC again when read back.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pymongo import ASCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError

from google_signin.core.exceptions import SessionError, StoreError
from google_signin.schemas.identity import Identity, SessionData
from google_signin.stores.base import CredentialStore, SessionStore, ensure_utc, merge_fields


logger = logging.getLogger("google_signin.stores.mongo")


# Identity field → document key
_DOCUMENT_KEYS = {
    "subject_id": "google_id",
    "display_name": "employee_name",
    "email": "email",
    "profile_picture_url": "profile_picture",
    "access_token": "access_token",
    "refresh_token": "refresh_token",
    "token_expiry": "expires_at",
    "granted_scopes": "scopes",
    "token_uri": "token_uri",
}


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    return ensure_utc(value).replace(tzinfo=None)


def _to_document(fields: Dict[str, Any]) -> Dict[str, Any]:
    doc = {}
    for name, value in fields.items():
        if isinstance(value, datetime):
            value = _naive_utc(value)
        doc[_DOCUMENT_KEYS[name]] = value
    return doc


def _to_identity(doc: Dict[str, Any]) -> Identity:
    return Identity(
        subject_id=doc["google_id"],
        display_name=doc.get("employee_name"),
        email=doc.get("email"),
        profile_picture_url=doc.get("profile_picture"),
        access_token=doc["access_token"],
        refresh_token=doc.get("refresh_token"),
        token_expiry=ensure_utc(doc.get("expires_at")),
        granted_scopes=list(doc.get("scopes") or []),
        token_uri=doc.get("token_uri"),
        created_at=ensure_utc(doc.get("created_at")),
        updated_at=ensure_utc(doc.get("updated_at")),
    )


class MongoCredentialStore(CredentialStore):
    """
    Identity documents keyed by google_id.

    The whole merge is one atomic find_one_and_update(upsert=True):
    refresh_token is only in `$set` when Google issued one, otherwise it is
    only written on insert. A racing first insert for the same account
    fails on the unique index and is retried once, which then takes the
    update path.
    """

    backend_name = "mongodb"

    def __init__(self, collection: Collection):
        self.collection = collection

    def initialize(self) -> None:
        try:
            self.collection.create_index([("google_id", ASCENDING)], unique=True)
            self.collection.create_index([("email", ASCENDING)])
        except PyMongoError as e:
            raise StoreError(f"Could not initialize identity collection: {e}")
        logger.info("Identity collection ready")

    def find_by_subject_id(self, subject_id: str) -> Optional[Identity]:
        try:
            doc = self.collection.find_one({"google_id": subject_id})
        except PyMongoError as e:
            raise StoreError(f"Identity lookup failed: {e}")
        return _to_identity(doc) if doc else None

    def upsert(self, identity: Identity) -> Identity:
        now = datetime.now(timezone.utc).replace(tzinfo=None)

        set_fields = _to_document(merge_fields(identity))
        set_fields["updated_at"] = now

        on_insert: Dict[str, Any] = {"created_at": now}
        if "refresh_token" not in set_fields:
            on_insert["refresh_token"] = None

        update = {"$set": set_fields, "$setOnInsert": on_insert}

        for attempt in (1, 2):
            try:
                doc = self.collection.find_one_and_update(
                    {"google_id": identity.subject_id},
                    update,
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
                break
            except DuplicateKeyError:
                if attempt == 2:
                    raise StoreError(
                        f"Duplicate identity for {identity.subject_id}",
                        detail="Could not save your account",
                    )
                logger.info(f"Concurrent insert for {identity.subject_id}, retrying as update")
            except PyMongoError as e:
                raise StoreError(f"Identity upsert failed: {e}", detail="Could not save your account")

        logger.info(f"Upserted identity {identity.subject_id}")
        return _to_identity(doc)


class MongoSessionStore(SessionStore):
    """Session documents: {_id: sid, session: {...}, expire: date}."""

    backend_name = "mongodb"

    def __init__(self, collection: Collection):
        self.collection = collection

    def initialize(self) -> None:
        try:
            # expireAfterSeconds=0: the document expires at its `expire` value
            self.collection.create_index([("expire", ASCENDING)], expireAfterSeconds=0)
        except PyMongoError as e:
            raise SessionError(f"Could not initialize session collection: {e}")
        logger.info("Session collection ready")

    def load(self, session_id: str, now: Optional[datetime] = None) -> Optional[SessionData]:
        now = _naive_utc(now or datetime.now(timezone.utc))
        try:
            doc = self.collection.find_one({"_id": session_id, "expire": {"$gt": now}})
        except PyMongoError as e:
            raise SessionError(f"Session load failed: {e}")
        if doc is None:
            return None
        return SessionData.model_validate(doc.get("session") or {})

    def save(self, session_id: str, data: SessionData, expires_at: datetime) -> None:
        try:
            self.collection.replace_one(
                {"_id": session_id},
                {
                    "_id": session_id,
                    "session": data.model_dump(mode="json"),
                    "expire": _naive_utc(expires_at),
                },
                upsert=True,
            )
        except PyMongoError as e:
            raise SessionError(f"Session save failed: {e}")

    def update(self, session_id: str, data: SessionData, now: Optional[datetime] = None) -> bool:
        now = _naive_utc(now or datetime.now(timezone.utc))
        try:
            result = self.collection.update_one(
                {"_id": session_id, "expire": {"$gt": now}},
                {"$set": {"session": data.model_dump(mode="json")}},
            )
        except PyMongoError as e:
            raise SessionError(f"Session update failed: {e}")
        return result.matched_count > 0

    def delete(self, session_id: str) -> None:
        try:
            self.collection.delete_one({"_id": session_id})
        except PyMongoError as e:
            raise SessionError(f"Session delete failed: {e}")

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = _naive_utc(now or datetime.now(timezone.utc))
        try:
            return self.collection.delete_many({"expire": {"$lte": now}}).deleted_count
        except PyMongoError as e:
            raise SessionError(f"Session purge failed: {e}")
