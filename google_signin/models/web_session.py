"""
Web session model - server-side session records keyed by session id.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from google_signin.db.base import Base


class WebSessionRecord(Base):
    """
    SQLAlchemy ORM model for the 'session' table.

    `sess` holds the serialized SessionData; `expire` is fixed when the
    session is created and is not pushed back by later requests.
    """

    __tablename__ = "session"

    sid: Mapped[str] = mapped_column(String(128), primary_key=True)
    sess: Mapped[dict] = mapped_column(JSON, nullable=False)
    expire: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<WebSessionRecord(sid='{self.sid[:8]}...', expire={self.expire})>"
