"""
Identity model - one row per Google account that has signed in.

Example Usage:
    record = IdentityRecord(
        subject_id="109876543210",
        display_name="Ada Lovelace",
        email="ada@example.com",
        access_token="ya29.xxx",
        refresh_token="1//xxx",
        token_expiry=datetime.now(timezone.utc) + timedelta(hours=1),
        granted_scopes=["openid", "email", "profile"],
    )
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from google_signin.db.base import Base


class IdentityRecord(Base):
    """
    SQLAlchemy ORM model for the 'users' table.

    Key Features:
    - google_id is unique: at most one row per Google account
    - email is unique as well
    - access token and expiry are replaced on every login, the refresh
      token only when Google sends a new one
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # ---------------------------------------------------------------------------
    # GOOGLE ACCOUNT
    # ---------------------------------------------------------------------------
    subject_id: Mapped[str] = mapped_column(
        "google_id", String(255), unique=True, index=True, nullable=False
    )
    display_name: Mapped[Optional[str]] = mapped_column("employee_name", String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True, nullable=True)
    profile_picture_url: Mapped[Optional[str]] = mapped_column("profile_picture", Text, nullable=True)

    # ---------------------------------------------------------------------------
    # TOKEN DATA
    # ---------------------------------------------------------------------------
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    token_expiry: Mapped[Optional[datetime]] = mapped_column(
        "expires_at", DateTime(timezone=True), nullable=True, index=True
    )
    granted_scopes: Mapped[Optional[List[str]]] = mapped_column("scopes", JSON, nullable=True)
    token_uri: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # ---------------------------------------------------------------------------
    # TIMESTAMPS
    # ---------------------------------------------------------------------------
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<IdentityRecord(subject_id='{self.subject_id}', email='{self.email}')>"
