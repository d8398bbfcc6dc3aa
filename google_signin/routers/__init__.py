"""
Routers module - endpoint handlers organized by feature.

- google_auth: /auth/google, /api/auth/google/callback, /logout
- home: / (login or profile view)
"""
