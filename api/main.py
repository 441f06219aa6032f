"""
api/main.py -- FastAPI application entry point for AdminDesk.

Exposes admin authentication and read-only user-directory browsing over HTTP
for the operator console.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins

Lifespan handles startup (settings, token issuer, stores) and shutdown
(close DB connections) symmetrically.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.models import Envelope, HealthStatus
from api.routes.v1.auth import router as auth_router
from api.routes.v1.users import router as users_router
from auth.store import AdminStore
from auth.tokens import TokenIssuer
from core.config import APP_VERSION, get_settings
from core.errors import AdminDeskError, ValidationFailed
from directory.store import UserDirectoryStore

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("admindesk.api")

# Settings are resolved at import time: a missing SECRET_KEY in production
# mode aborts startup here, before the server binds a port.
_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown. The signing key is read from Settings exactly once, here, and
    handed to the TokenIssuer; request handlers only see the issuer.
    """
    # Startup
    logger.info("AdminDesk API starting up")
    settings = get_settings()
    app.state.settings = settings
    app.state.token_issuer = TokenIssuer(settings.secret_key, settings.token_expire_seconds)
    app.state.admin_store = AdminStore(settings.admin_db_url)
    app.state.directory = UserDirectoryStore(settings.directory_db_url)
    logger.info(
        "Stores initialized (token lifetime=%ds, page size=%d)",
        settings.token_expire_seconds,
        settings.page_size,
    )

    yield

    # Shutdown
    app.state.admin_store.close()
    app.state.directory.close()
    logger.info("AdminDesk API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AdminDesk API",
    description="Admin authentication and user-directory browsing for the operator console.",
    version=APP_VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# Register in the order you want the request to encounter them:
# TrustedHost -> CORS.
# ---------------------------------------------------------------------------

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. Wall-clock time is captured around call_next so every response
# line carries its latency.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(users_router, prefix="/api/v1", tags=["Users"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same Envelope so console clients can parse every
# response uniformly and branch on status alone.
# ---------------------------------------------------------------------------


def _envelope_response(status_code: int, message: str = "", error="") -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=Envelope(status=status_code, message=message, error=error).model_dump(),
    )


def _field_errors(exc: RequestValidationError) -> dict[str, str]:
    """Flatten pydantic errors into {field: reason}, first reason per field wins."""
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ())]
        # First element names the request part (body/query/path/header).
        field = ".".join(loc[1:]) or (loc[0] if loc else "body")
        if field in fields:
            continue
        if err.get("type") in ("missing", "string_too_short"):
            fields[field] = f"The {field} field is required."
        else:
            fields[field] = err.get("msg", "Invalid value.")
    return fields


@app.exception_handler(AdminDeskError)
async def admindesk_error_handler(request: Request, exc: AdminDeskError) -> JSONResponse:
    """Render a domain error raised by a store, dependency, or route handler."""
    return _envelope_response(exc.status_code, message=exc.message, error=exc.error)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with a {field: reason} map when body, query, or path params fail validation."""
    failed = ValidationFailed(_field_errors(exc))
    return _envelope_response(failed.status_code, message=failed.message, error=failed.error)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework HTTP errors (unknown route, wrong method) in the envelope."""
    return _envelope_response(exc.status_code, message=str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response
    body. The client receives only a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _envelope_response(500, message="An unexpected error occurred.")


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state and never requires auth.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", response_model=Envelope, tags=["Health"])
async def health() -> Envelope:
    """Return API liveness and current version."""
    return Envelope(status=200, data=HealthStatus(version=APP_VERSION).model_dump())
