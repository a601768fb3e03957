#main __init__.py
"""
SecureShop - credential and session lifecycle core for an e-commerce backend.

Wires the session manager, its stores and the authentication routes into a
FastAPI application.
"""

__version__ = "0.1.0"

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from .api import PUBLIC_PATHS, auth_router
from .auth import (
    AuditSink,
    AuthError,
    CredentialStore,
    DatabaseAuditSink,
    EmailSender,
    LoggingAuditSink,
    SessionManager,
    SQLAlchemyCredentialStore,
)
from .cache import KeyValueBackend, StoreUnavailable, create_backend, guarded
from .core.config import Settings, get_settings
from .db import Database
from .middleware import LoggingMiddleware, SessionMiddleware, auth_error_response
from .utils.datetime import Clock, get_current_time

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: "ShopAPI"):
    """Create tables on startup; flush audit writes and release stores on shutdown."""
    app.logger.info(f"Starting up {app.title}...")
    try:
        await app.state.database.create_all()
    except Exception as e:
        app.logger.error(f"Error during startup: {e}")
        raise
    yield
    app.logger.info(f"Shutting down {app.title}...")
    try:
        await app.state.auth.close()
        await app.state.backend.close()
        await app.state.database.dispose()
        app.logger.info("Application shutdown complete")
    except Exception as e:
        app.logger.error(f"Error during application shutdown: {e}", exc_info=True)


class ShopAPI(FastAPI):
    """Main application class for SecureShop."""

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("lifespan", lifespan)
        super().__init__(*args, **kwargs)
        self.logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    backend: Optional[KeyValueBackend] = None,
    database: Optional[Database] = None,
    credentials: Optional[CredentialStore] = None,
    audit_sinks: Optional[List[AuditSink]] = None,
    email_sender: Optional[EmailSender] = None,
    clock: Clock = get_current_time,
    debug: Optional[bool] = None,
    **kwargs
) -> ShopAPI:
    """
    Create and configure the SecureShop application.

    Args:
        settings: Application settings; the cached global settings by default.
        backend: Shared key-value store; selected by ``STORE_BACKEND`` if omitted.
        database: Database holding accounts and audit logs.
        credentials: Credential store; SQL-backed on ``database`` if omitted.
        audit_sinks: Audit destinations; log and database by default.
        email_sender: Delivery for password reset tokens.
        clock: Wall-clock source for lockout and session timestamps.
        debug: Whether to run the application in debug mode.
        **kwargs: Additional keyword arguments to pass to the FastAPI constructor.

    Returns:
        ShopAPI: The configured application instance.
    """
    settings = settings or get_settings()
    debug = settings.DEBUG if debug is None else debug

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        logger.info(f"Creating {settings.APP_NAME} application (version: {__version__})")

        database = database or Database(settings.DATABASE_URL, echo_sql=settings.ECHO_SQL)
        backend = backend or create_backend(settings)
        credentials = credentials or SQLAlchemyCredentialStore(database)
        if audit_sinks is None:
            audit_sinks = [LoggingAuditSink(), DatabaseAuditSink(database)]
        manager = SessionManager.build(
            settings,
            backend,
            credentials,
            audit_sinks=audit_sinks,
            email_sender=email_sender,
            clock=clock,
        )

        app = ShopAPI(
            title=settings.APP_NAME,
            version=__version__,
            debug=debug,
            **kwargs
        )
        app.state.settings = settings
        app.state.database = database
        app.state.backend = backend
        app.state.auth = manager

        @app.exception_handler(AuthError)
        async def handle_auth_error(request: Request, exc: AuthError):
            return auth_error_response(exc, settings)

        app.include_router(auth_router, prefix=settings.API_V1_STR)

        excluded_paths = [f"{settings.API_V1_STR}{auth_router.prefix}{path}" for path in PUBLIC_PATHS]
        excluded_paths += ["/health", "/docs", "/redoc", "/openapi.json"]

        # Last added runs first: CORS, then request logging, then authentication.
        app.add_middleware(
            SessionMiddleware,
            manager=manager,
            protected_prefixes=[settings.API_V1_STR],
            excluded_paths=excluded_paths,
        )
        app.add_middleware(LoggingMiddleware, excluded_paths=["/health"])
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        @app.get("/health", include_in_schema=True)
        async def health_check():
            """Health check endpoint."""
            health_status = {"status": "ok", "database": "disconnected", "store": "disconnected"}

            if await database.health_check():
                health_status["database"] = "connected"
            try:
                if await guarded(backend.ping(), settings.STORE_TIMEOUT_SECONDS, "health.ping"):
                    health_status["store"] = "connected"
            except StoreUnavailable as e:
                logger.error(f"Store health check failed: {e}")

            if "disconnected" in health_status.values():
                health_status["status"] = "degraded"
            return health_status

        logger.info("Application initialization complete")
        return app

    except Exception as e:
        logger.critical(f"Failed to create application: {e}", exc_info=True)
        raise


__all__ = ["ShopAPI", "create_app", "__version__"]
