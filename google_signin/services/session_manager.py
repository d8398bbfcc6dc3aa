"""
Session Manager - binds a browser's session to a signed-in identity.

State machine:
==============
    Anonymous ──code received──► Authenticating ──ok──► Authenticated
                                       │
                                       └──failed──► Anonymous (flash set)
    Authenticated ──logout──► Anonymous

Nothing about the in-flight exchange is persisted: a crash between the
callback arriving and start() leaves the browser Anonymous.

Sessions last SESSION_TTL_SECONDS from creation (24h by default) and are
not extended by later requests. Expired records are purged once at
startup and then every SESSION_PURGE_INTERVAL_SECONDS by a background
task; MongoDB additionally reaps them through its TTL index.
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool

from google_signin.core.exceptions import SessionError
from google_signin.core.security import new_session_id
from google_signin.schemas.identity import Identity, SessionData, SessionUser, SessionView
from google_signin.stores.base import SessionStore


logger = logging.getLogger("google_signin.services.session")

SUCCESS_MESSAGE = "Authentication successful"
FAILURE_MESSAGE = "Authentication failed"


def failure_message(reason: Optional[str] = None) -> str:
    """Flash text for a failed login, with the provider's detail if any."""
    if reason:
        return f"{FAILURE_MESSAGE}: {reason}"
    return FAILURE_MESSAGE


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionManager:
    """
    Session lifecycle on top of a SessionStore.

    Every method takes the caller's current session id (None for a browser
    without a valid cookie) and, where the id can change, returns the id
    the browser should hold from now on.
    """

    def __init__(
        self,
        store: SessionStore,
        ttl_seconds: int = 60 * 60 * 24,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def ttl_seconds(self) -> int:
        return int(self.ttl.total_seconds())

    def start(self, identity: Identity, session_id: Optional[str] = None) -> str:
        """
        Bind `identity` to a fresh session and set the success flash.

        The previous session (if any) is dropped and a new id issued, so a
        session id seen before login is never authenticated.
        """
        if session_id:
            self.store.delete(session_id)

        new_id = new_session_id()
        data = SessionData(user=SessionUser.from_identity(identity), message=SUCCESS_MESSAGE)
        self.store.save(new_id, data, self._clock() + self.ttl)

        logger.info(f"Session started for {identity.subject_id}")
        return new_id

    def mark_failed(self, session_id: Optional[str], reason: Optional[str] = None) -> str:
        """
        Record a failed login as the flash message.

        The identity binding of an existing session is left as it was.
        A browser without a live session gets a new anonymous one to carry
        the message.
        """
        message = failure_message(reason)

        if session_id:
            data = self.store.load(session_id, now=self._clock())
            if data is not None:
                data.message = message
                if self.store.update(session_id, data, now=self._clock()):
                    logger.info("Login failure recorded on existing session")
                    return session_id

        new_id = new_session_id()
        self.store.save(new_id, SessionData(message=message), self._clock() + self.ttl)
        logger.info("Login failure recorded on new anonymous session")
        return new_id

    def read(self, session_id: Optional[str]) -> SessionView:
        """
        Return the bound user and consume the flash message.

        The message is returned once; the next read sees an empty string.
        """
        if not session_id:
            return SessionView()

        data = self.store.load(session_id, now=self._clock())
        if data is None:
            return SessionView()

        message = data.message or ""
        if data.message:
            data.message = None
            self.store.update(session_id, data, now=self._clock())

        return SessionView(user=data.user, message=message)

    def destroy(self, session_id: Optional[str]) -> None:
        """Invalidate the session. Later reads return no user."""
        if not session_id:
            return
        self.store.delete(session_id)
        logger.info("Session destroyed")

    # -------------------------------------------------------------------------
    # EXPIRED SESSION CLEANUP
    # -------------------------------------------------------------------------

    def cleanup_expired(self) -> int:
        """Delete every expired session record. Returns how many were removed."""
        removed = self.store.purge_expired(now=self._clock())
        if removed:
            logger.info(f"Purged {removed} expired sessions")
        return removed

    async def start_cleanup_loop(self, interval_seconds: float = 15 * 60):
        """
        Start background task to purge expired sessions periodically.

        Args:
            interval_seconds: How often to run cleanup (default 15 min)
        """
        if self._cleanup_task is not None:
            logger.warning("Cleanup loop already running")
            return

        async def cleanup_loop():
            while True:
                await asyncio.sleep(interval_seconds)
                try:
                    # Store drivers are blocking
                    await run_in_threadpool(self.cleanup_expired)
                except SessionError as e:
                    logger.error(f"Session cleanup failed: {e}")

        self._cleanup_task = asyncio.create_task(cleanup_loop())
        logger.info(f"Started session cleanup loop (interval: {interval_seconds}s)")

    async def stop_cleanup_loop(self):
        """Stop the background cleanup task."""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
            logger.info("Stopped session cleanup loop")
