"""
Main application entry point - FastAPI app instance and configuration.
Run with: uvicorn google_signin.main:app --port 3000
      or: python -m google_signin

Startup (lifespan):
1. Build the stores for STORE_BACKEND and initialize them. Any failure
   here is fatal: the lifespan re-raises and the server exits, since the
   app cannot serve correctly without its store.
2. Build the Google client from an explicit config struct.
3. Wire the login pipeline and session manager onto app.state.
4. Purge expired sessions, then keep purging on a timer until shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse

from google_signin.core.config import Settings, get_settings
from google_signin.core.exceptions import SessionError, StoreError
from google_signin.core.logging import configure_logging
from google_signin.environments.google.auth import GoogleAuthClient
from google_signin.routers import google_auth, home
from google_signin.services.login import LoginService
from google_signin.services.session_manager import SessionManager
from google_signin.stores.factory import Stores, build_stores


logger = logging.getLogger("google_signin.main")


def create_app(
    settings: Optional[Settings] = None,
    stores: Optional[Stores] = None,
    auth_client: Optional[GoogleAuthClient] = None,
) -> FastAPI:
    """
    Build the ASGI application.

    `stores` and `auth_client` default to the ones described by `settings`;
    tests pass their own (SQLite/mongomock stores, a client on a mock
    transport).
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_stores = stores or build_stores(settings)
        try:
            app_stores.initialize()
        except (StoreError, SessionError) as e:
            logger.critical(f"Store initialization failed, shutting down: {e}")
            app_stores.close()
            raise

        client = auth_client or GoogleAuthClient(settings.google_auth_config())

        app.state.stores = app_stores
        app.state.auth_client = client
        app.state.login_service = LoginService(client, app_stores.credentials)
        sessions = SessionManager(
            app_stores.sessions,
            ttl_seconds=settings.SESSION_TTL_SECONDS,
        )
        app.state.session_manager = sessions

        try:
            await run_in_threadpool(sessions.cleanup_expired)
        except SessionError as e:
            logger.error(f"Startup session cleanup failed: {e}")
        await sessions.start_cleanup_loop(settings.SESSION_PURGE_INTERVAL_SECONDS)

        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Redirect URI: {settings.redirect_uri}")
        logger.info(f"Store backend: {app_stores.credentials.backend_name}")

        try:
            yield
        finally:
            await sessions.stop_cleanup_loop()
            app_stores.close()
            logger.info("Stores closed")

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ---------------------------------------------------------------------------
    # ERROR HANDLERS
    # ---------------------------------------------------------------------------
    # Outside the callback there is no flash to report a broken session
    # store through, so it surfaces as 503.
    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError):
        logger.error(f"Session store unavailable on {request.url.path}: {exc}")
        return PlainTextResponse(
            "Session store unavailable, please try again later.",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    # ---------------------------------------------------------------------------
    # REGISTER ROUTERS
    # ---------------------------------------------------------------------------
    app.include_router(google_auth.router)
    app.include_router(home.router)

    @app.get("/health", tags=["health"])
    def health_check():
        """Liveness probe. Does not touch the stores."""
        return {"status": "ok"}

    return app


app = create_app()
