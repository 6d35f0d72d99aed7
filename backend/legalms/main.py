"""
FastAPI application factory.

Startup sequence:
  1. Validate settings
  2. Check DB connectivity (warn on failure; do not crash)
  3. Mount all API routers

Dev-mode notes:
  When DEV_SKIP_AUTH=true (development only):
    - A starlette middleware reads the X-Dev-User-ID header and sets a context
      variable so get_current_user() can look up the user without a token.
    - This middleware is NOT installed in staging/production.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from legalms import __version__
from legalms.core.config import get_settings
from legalms.core.db import check_db_connection
from legalms.core.security import set_dev_user_id
from legalms.core.sequence import IdentifierConflictError, SequenceAllocationError
from legalms.api.v1.auth import router as auth_router
from legalms.api.v1.billing import router as billing_router
from legalms.api.v1.case_types import router as case_types_router
from legalms.api.v1.cases import router as cases_router
from legalms.api.v1.clients import router as clients_router
from legalms.api.v1.health import router as health_router
from legalms.api.v1.health import status_router
from legalms.api.v1.messages import router as messages_router
from legalms.api.v1.notices import router as notices_router
from legalms.api.v1.users import router as users_router

settings = get_settings()
logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting legalms backend (env=%s)", settings.environment)
    db_ok = await check_db_connection()
    if db_ok:
        logger.info("Database connection: OK")
    else:
        logger.warning("Database connection: FAILED — check DB_HOST / credentials")

    if settings.auth_disabled:
        logger.warning(
            "DEV_SKIP_AUTH=true — JWT verification is DISABLED. "
            "This must never be enabled in staging or production."
        )
    logger.info(
        "Sequence allocation: strategy=%s fallback=%s max_attempts=%d",
        settings.sequence_strategy,
        settings.sequence_fallback,
        settings.sequence_max_attempts,
    )

    yield

    logger.info("Shutting down legalms backend")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Legal Practice Management — API",
        version=__version__,
        description="Clients, cases, billing, messaging and notices for a law practice",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # ------------------------------------------------------------------ #
    # CORS: wildcard only in development
    # ------------------------------------------------------------------ #
    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Dev-mode header middleware
    # ------------------------------------------------------------------ #
    if settings.auth_disabled:
        @app.middleware("http")
        async def dev_auth_middleware(request: Request, call_next):
            """
            Reads X-Dev-User-ID (a user UUID) and stores it in a context
            variable so get_current_user() can find the user.
            """
            set_dev_user_id(request.headers.get("X-Dev-User-ID"))
            response = await call_next(request)
            return response

    # ------------------------------------------------------------------ #
    # Exception handlers
    # ------------------------------------------------------------------ #
    @app.exception_handler(SequenceAllocationError)
    async def sequence_unavailable_handler(request: Request, exc: SequenceAllocationError):
        return JSONResponse(
            status_code=503,
            content={"detail": f"{exc.kind.value} numbering is temporarily unavailable"},
        )

    @app.exception_handler(IdentifierConflictError)
    async def identifier_conflict_handler(request: Request, exc: IdentifierConflictError):
        logger.error("Gave up allocating %s number after %d attempt(s)", exc.kind.value, exc.attempts)
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url)
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # ------------------------------------------------------------------ #
    # Routers
    # ------------------------------------------------------------------ #
    app.include_router(health_router)
    app.include_router(status_router, prefix="/api/v1")
    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(users_router, prefix="/api/v1")
    app.include_router(clients_router, prefix="/api/v1")
    app.include_router(cases_router, prefix="/api/v1")
    app.include_router(case_types_router, prefix="/api/v1")
    app.include_router(billing_router, prefix="/api/v1")
    app.include_router(messages_router, prefix="/api/v1")
    app.include_router(notices_router, prefix="/api/v1")

    return app


app = create_app()
