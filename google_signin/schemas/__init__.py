"""
Schemas module - pydantic models passed between the provider, stores and pages.
"""

from google_signin.schemas.identity import Identity, SessionData, SessionUser, SessionView

__all__ = ["Identity", "SessionData", "SessionUser", "SessionView"]
