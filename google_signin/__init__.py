"""
google_signin - "Sign in with Google" web application.

Redirects the browser to Google's consent screen, exchanges the returned
code for tokens, stores the account (PostgreSQL or MongoDB), and keeps the
signed-in user in a server-side session.
"""

__version__ = "1.0.0"
