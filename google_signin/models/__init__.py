"""
ORM models. Importing this package registers every table on Base.metadata.
"""

from google_signin.models.identity import IdentityRecord
from google_signin.models.web_session import WebSessionRecord

__all__ = ["IdentityRecord", "WebSessionRecord"]
