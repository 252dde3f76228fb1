"""
Name: FastAPI Application (rentalhub.api.main)

Responsibilities:
  - Build the FastAPI application (create_app) with metadata and lifespan
  - Configure middleware (CORS, request context)
  - Mount auth and complaint routes, exception handlers
  - Expose /healthz and /metrics

Collaborators:
  - RequestContextMiddleware: X-Request-Id and logging context
  - api.auth_routes / interfaces.api.http.router
  - infrastructure.db.pool: init/close when DATABASE_URL is configured
  - application.dev_seed: local demo accounts

Notes:
  - Middleware order matters: RequestContext → CORS → routes
  - Settings are validated in lifespan, not at import time
  - In test/ci or without DATABASE_URL the container uses in-memory repositories
    and no pool is opened
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..application.dev_seed import ensure_dev_users
from ..container import get_user_repository
from ..crosscutting.config import get_settings
from ..crosscutting.logger import logger
from ..crosscutting.metrics import get_metrics_response
from ..crosscutting.middleware import RequestContextMiddleware
from ..identity.auth_users import hash_password
from ..infrastructure.db.pool import close_pool, init_pool, is_pool_initialized, ping
from ..interfaces.api.http.router import router
from .auth_routes import router as auth_router
from .exception_handlers import register_exception_handlers


def _uses_database() -> bool:
    settings = get_settings()
    return bool(settings.database_url.strip()) and not settings.is_test()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle. Validates settings and initializes pool."""
    settings = get_settings()

    if settings.is_production():
        settings.validate_security_requirements()

    if _uses_database() and not is_pool_initialized():
        init_pool(
            database_url=settings.database_url,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )

    try:
        ensure_dev_users(
            settings, user_repo=get_user_repository(), password_hasher=hash_password
        )
        logger.info(
            "RentalHub API starting up",
            extra={
                "env": settings.app_env,
                "database": _uses_database(),
                "db_pool_min": settings.db_pool_min_size,
                "db_pool_max": settings.db_pool_max_size,
            },
        )

        yield

    finally:
        close_pool()
        logger.info("RentalHub API shutting down")


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="RentalHub API",
        version=__version__,
        lifespan=lifespan,
        openapi_tags=[
            {"name": "auth", "description": "Session and password recovery (JWT)"},
            {"name": "complaints", "description": "Complaint lifecycle"},
        ],
    )

    # R: Middleware order (bottom = first to execute)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_allowed_origins_list(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-Id"],
        expose_headers=["X-Request-Id"],
    )

    app.include_router(auth_router)
    app.include_router(router)
    register_exception_handlers(app)

    @app.get("/healthz", tags=["ops"])
    def healthz(request: Request):
        """
        R: Health check for orchestration.

        db: "connected" | "disconnected" | "in_memory"
        """
        if _uses_database():
            db_status = "connected" if ping() else "disconnected"
        else:
            db_status = "in_memory"
        return {
            "ok": db_status != "disconnected",
            "db": db_status,
            "request_id": getattr(request.state, "request_id", None),
        }

    @app.get("/metrics", tags=["ops"])
    def metrics():
        """R: Prometheus text format metrics."""
        body, content_type = get_metrics_response()
        return Response(content=body, media_type=content_type)

    return app


app = create_app()

__all__ = ["app", "create_app"]
