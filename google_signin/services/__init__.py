"""
Services module - sign-in business logic shared by the routers.

- login: code exchange, profile fetch and identity upsert
- session_manager: session lifecycle, flash messages and expiry cleanup
"""

from google_signin.services.login import LoginService
from google_signin.services.session_manager import (
    FAILURE_MESSAGE,
    SUCCESS_MESSAGE,
    SessionManager,
    failure_message,
)

__all__ = [
    "LoginService",
    "SessionManager",
    "SUCCESS_MESSAGE",
    "FAILURE_MESSAGE",
    "failure_message",
]
