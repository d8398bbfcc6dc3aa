"""
Security utilities - session id generation and session cookie signing.

The browser only ever holds an opaque, random session id. The cookie value
is that id signed as a compact JWS (HS256 with SESSION_SECRET) so a forged
or tampered cookie is rejected before the session store is consulted.
"""

import secrets
from typing import Optional

from jose import jws
from jose.exceptions import JWSError

SESSION_COOKIE_NAME = "google_signin_sid"
SESSION_SIGNING_ALGORITHM = "HS256"


def new_session_id() -> str:
    """Random URL-safe session id (256 bits)."""
    return secrets.token_urlsafe(32)


def sign_session_id(session_id: str, secret: str) -> str:
    """Return the cookie value for `session_id`."""
    return jws.sign(session_id.encode("utf-8"), secret, algorithm=SESSION_SIGNING_ALGORITHM)


def unsign_session_id(value: Optional[str], secret: str) -> Optional[str]:
    """
    Verify a cookie value and return the session id inside it.

    Returns None for a missing, malformed, or badly signed cookie.
    """
    if not value:
        return None
    try:
        payload = jws.verify(value, secret, algorithms=[SESSION_SIGNING_ALGORITHM])
    except JWSError:
        return None
    try:
        session_id = payload.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return session_id or None


def session_cookie_kwargs(value: str, max_age: int, secure: bool) -> dict:
    """Keyword arguments for Response.set_cookie."""
    return {
        "key": SESSION_COOKIE_NAME,
        "value": value,
        "max_age": max_age,
        "httponly": True,
        "secure": secure,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(secure: bool) -> dict:
    """Keyword arguments for Response.delete_cookie."""
    return {
        "key": SESSION_COOKIE_NAME,
        "httponly": True,
        "secure": secure,
        "samesite": "lax",
        "path": "/",
    }
