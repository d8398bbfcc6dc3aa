"""
Store interfaces shared by the relational and document backends.

CredentialStore
===============
One record per Google account. `upsert` applies the merge rule:

- insert when no record exists for the subject id
- otherwise overwrite profile fields, access_token, token_expiry,
  granted_scopes and token_uri
- overwrite refresh_token ONLY when the incoming value is non-empty;
  Google omits it on repeat consent and losing it breaks offline access

SessionStore
============
Opaque session id → SessionData with an absolute expiry. `load` never
returns an expired record.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from google_signin.schemas.identity import Identity, SessionData


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def merge_fields(incoming: Identity) -> Dict[str, Any]:
    """
    Fields written to an existing record on re-authentication.

    refresh_token is only included when Google issued a new one.
    """
    fields: Dict[str, Any] = {
        "display_name": incoming.display_name,
        "email": incoming.email,
        "profile_picture_url": incoming.profile_picture_url,
        "access_token": incoming.access_token,
        "token_expiry": incoming.token_expiry,
        "granted_scopes": list(incoming.granted_scopes),
        "token_uri": incoming.token_uri,
    }
    if incoming.refresh_token:
        fields["refresh_token"] = incoming.refresh_token
    return fields


class CredentialStore(ABC):
    """Persistence for Identity records, keyed by subject id."""

    backend_name: str = ""

    @abstractmethod
    def initialize(self) -> None:
        """
        Create tables/collections and unique indexes.

        Raises:
            StoreError: the store is unreachable or cannot be prepared
        """

    @abstractmethod
    def find_by_subject_id(self, subject_id: str) -> Optional[Identity]:
        """Return the stored identity or None."""

    @abstractmethod
    def upsert(self, identity: Identity) -> Identity:
        """
        Insert or merge `identity`, returning the stored state.

        Raises:
            StoreError: constraint violation or connectivity loss
        """

    def close(self) -> None:
        """Release connections. No-op by default."""


class SessionStore(ABC):
    """Persistence for server-side session records."""

    backend_name: str = ""

    @abstractmethod
    def initialize(self) -> None:
        """
        Create the session table/collection and expiry index.

        Raises:
            SessionError: the store is unreachable or cannot be prepared
        """

    @abstractmethod
    def load(self, session_id: str, now: Optional[datetime] = None) -> Optional[SessionData]:
        """Return the live session record, or None if absent or expired."""

    @abstractmethod
    def save(self, session_id: str, data: SessionData, expires_at: datetime) -> None:
        """Create or replace a session record."""

    @abstractmethod
    def update(self, session_id: str, data: SessionData, now: Optional[datetime] = None) -> bool:
        """
        Replace a live session's data without touching its expiry.

        Returns False when the session no longer exists.
        """

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Remove a session record. Missing ids are ignored."""

    @abstractmethod
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete expired records and return how many were removed."""

    def close(self) -> None:
        """Release connections. No-op by default."""
