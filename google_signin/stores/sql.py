"""
Relational stores - SQLAlchemy implementations of the store interfaces.

Production runs against PostgreSQL (DATABASE_URL with the psycopg driver);
tests run the same code against in-memory SQLite.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from google_signin.core.exceptions import SessionError, StoreError
from google_signin.db.base import Base
from google_signin.db.session import create_session_factory
from google_signin.models.identity import IdentityRecord
from google_signin.models.web_session import WebSessionRecord
from google_signin.schemas.identity import Identity, SessionData
from google_signin.stores.base import CredentialStore, SessionStore, ensure_utc, merge_fields


logger = logging.getLogger("google_signin.stores.sql")


def _to_identity(record: IdentityRecord) -> Identity:
    return Identity(
        subject_id=record.subject_id,
        display_name=record.display_name,
        email=record.email,
        profile_picture_url=record.profile_picture_url,
        access_token=record.access_token,
        refresh_token=record.refresh_token,
        token_expiry=ensure_utc(record.token_expiry),
        granted_scopes=list(record.granted_scopes or []),
        token_uri=record.token_uri,
        created_at=ensure_utc(record.created_at),
        updated_at=ensure_utc(record.updated_at),
    )


class SqlCredentialStore(CredentialStore):
    """
    Identity records in the 'users' table.

    Concurrency:
    - re-logins for an existing account lock the row (SELECT ... FOR UPDATE
      on PostgreSQL) before merging
    - two first-time logins for the same account race on the insert; the
      loser hits the unique constraint on google_id, rolls back and retries
      as an update (last writer wins, one row either way)
    """

    backend_name = "postgres"

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = create_session_factory(engine)

    def initialize(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine, tables=[IdentityRecord.__table__])
        except SQLAlchemyError as e:
            raise StoreError(f"Could not initialize identity table: {e}")
        logger.info("Identity table ready")

    def find_by_subject_id(self, subject_id: str) -> Optional[Identity]:
        try:
            with self._session_factory() as db:
                record = db.query(IdentityRecord).filter(
                    IdentityRecord.subject_id == subject_id
                ).first()
                return _to_identity(record) if record else None
        except SQLAlchemyError as e:
            raise StoreError(f"Identity lookup failed: {e}")

    def upsert(self, identity: Identity) -> Identity:
        try:
            return self._upsert_once(identity)
        except IntegrityError:
            # Lost a first-insert race, the row exists now
            logger.info(f"Concurrent insert for {identity.subject_id}, retrying as update")
        except SQLAlchemyError as e:
            raise StoreError(f"Identity upsert failed: {e}", detail="Could not save your account")

        try:
            return self._upsert_once(identity)
        except SQLAlchemyError as e:
            raise StoreError(f"Identity upsert failed: {e}", detail="Could not save your account")

    def _upsert_once(self, identity: Identity) -> Identity:
        with self._session_factory() as db:
            record = self._locked_record(db, identity.subject_id)

            if record is not None:
                for name, value in merge_fields(identity).items():
                    setattr(record, name, value)
                logger.info(f"Updated identity {identity.subject_id}")
            else:
                record = IdentityRecord(
                    subject_id=identity.subject_id,
                    refresh_token=identity.refresh_token or None,
                    **{
                        name: value
                        for name, value in merge_fields(identity).items()
                        if name != "refresh_token"
                    },
                )
                db.add(record)
                logger.info(f"Created identity {identity.subject_id}")

            db.commit()
            return _to_identity(record)

    @staticmethod
    def _locked_record(db: Session, subject_id: str) -> Optional[IdentityRecord]:
        return db.query(IdentityRecord).filter(
            IdentityRecord.subject_id == subject_id
        ).with_for_update().first()


class SqlSessionStore(SessionStore):
    """Session records in the 'session' table."""

    backend_name = "postgres"

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = create_session_factory(engine)

    def initialize(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine, tables=[WebSessionRecord.__table__])
        except SQLAlchemyError as e:
            raise SessionError(f"Could not initialize session table: {e}")
        logger.info("Session table ready")

    def load(self, session_id: str, now: Optional[datetime] = None) -> Optional[SessionData]:
        now = now or datetime.now(timezone.utc)
        try:
            with self._session_factory() as db:
                row = db.get(WebSessionRecord, session_id)
                if row is None or ensure_utc(row.expire) <= now:
                    return None
                return SessionData.model_validate(row.sess)
        except SQLAlchemyError as e:
            raise SessionError(f"Session load failed: {e}")

    def save(self, session_id: str, data: SessionData, expires_at: datetime) -> None:
        try:
            with self._session_factory() as db:
                db.merge(WebSessionRecord(
                    sid=session_id,
                    sess=data.model_dump(mode="json"),
                    expire=expires_at,
                ))
                db.commit()
        except SQLAlchemyError as e:
            raise SessionError(f"Session save failed: {e}")

    def update(self, session_id: str, data: SessionData, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        try:
            with self._session_factory() as db:
                row = db.get(WebSessionRecord, session_id)
                if row is None or ensure_utc(row.expire) <= now:
                    return False
                row.sess = data.model_dump(mode="json")
                db.commit()
                return True
        except SQLAlchemyError as e:
            raise SessionError(f"Session update failed: {e}")

    def delete(self, session_id: str) -> None:
        try:
            with self._session_factory() as db:
                db.query(WebSessionRecord).filter(WebSessionRecord.sid == session_id).delete()
                db.commit()
        except SQLAlchemyError as e:
            raise SessionError(f"Session delete failed: {e}")

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        try:
            with self._session_factory() as db:
                removed = db.query(WebSessionRecord).filter(WebSessionRecord.expire <= now).delete()
                db.commit()
                return removed
        except SQLAlchemyError as e:
            raise SessionError(f"Session purge failed: {e}")
