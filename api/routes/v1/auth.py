"""
api/routes/v1/auth.py -- Admin sign-up, log-in, and log-out endpoints.

Routes:
  POST /api/v1/auth/signup   -- create an admin account; data = new admin id
  POST /api/v1/auth/login    -- verify credentials; data = session token
  POST /api/v1/auth/logout   -- clear the stored session token
  GET  /api/v1/auth/me       -- current admin profile (requires auth)

Security:
  authenticate_admin() provides timing equalization -- use it, never inline.
  Unknown email and wrong password produce the same InvalidCredentials
  response so the log-in form cannot be used to enumerate accounts.
  Cache-Control: no-store on log-in responses (they carry a bearer token).

Errors are raised as core.errors exceptions; api/main.py renders them into
the envelope. Missing/empty fields never reach these handlers -- pydantic
rejects them and the RequestValidationError handler answers 400.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import AdminProfile, Envelope, LogInRequest, LogOutRequest, SignUpRequest
from auth.dependencies import get_current_admin
from auth.models import Admin
from auth.store import AdminStore
from auth.tokens import TokenIssuer, authenticate_admin, hash_password
from core.config import now_epoch
from core.errors import InvalidCredentials, NotFound

logger = logging.getLogger("admindesk.auth")

# Auth policy:
# - POST /api/v1/auth/signup:  public -- the console's registration form
# - POST /api/v1/auth/login:   public -- log-in endpoint must be unauthenticated
# - POST /api/v1/auth/logout:  public -- the token in the body is the credential
# - GET  /api/v1/auth/me:      requires auth (get_current_admin)
router = APIRouter()


@router.post("/auth/signup", response_model=Envelope)
def sign_up(request: Request, body: SignUpRequest) -> Envelope:
    """Create a new admin account and return its id.

    The new admin is its own creator (created_by = id). A duplicate email
    raises DuplicateEmail from the store; nothing is overwritten.
    """
    admin_store: AdminStore = request.app.state.admin_store

    admin_id = str(uuid.uuid4())
    admin = Admin(
        id=admin_id,
        name=body.name,
        email=body.email,
        gender=body.gender,
        hashed_password=hash_password(body.password),
        created_by=admin_id,
        created_at=now_epoch(),
        is_active=True,
        is_deleted=False,
    )
    admin_store.create_admin(admin)
    logger.info("Admin %s signed up", admin_id)

    return Envelope(status=200, data=admin_id, message="Data Created Successfully")


@router.post("/auth/login", response_model=Envelope)
def log_in(request: Request, body: LogInRequest) -> JSONResponse:
    """Authenticate with email and password; return a fresh session token.

    The token is persisted on the admin record, replacing any previous one,
    so only the most recent log-in holds a live session.
    """
    admin_store: AdminStore = request.app.state.admin_store
    issuer: TokenIssuer = request.app.state.token_issuer

    admin = authenticate_admin(admin_store, body.email, body.password)
    if admin is None:
        logger.warning("Failed log-in attempt")
        raise InvalidCredentials()

    token = issuer.issue(admin.id)
    admin_store.set_token(admin.id, token)
    logger.info("Admin %s logged in", admin.id)

    resp = JSONResponse(
        status_code=200,
        content=Envelope(status=200, data=token, message="Logged in successfully").model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/logout", response_model=Envelope)
def log_out(request: Request, body: LogOutRequest) -> Envelope:
    """Clear the stored session token.

    Only the stored-token match is checked, so an admin can still log out
    after the token has expired. A token nobody holds -- including one that
    was already logged out -- is reported as not found.
    """
    admin_store: AdminStore = request.app.state.admin_store

    admin = admin_store.get_by_token(body.token)
    if admin is None:
        raise NotFound("No admin found for this token")

    admin_store.set_token(admin.id, None)
    logger.info("Admin %s logged out", admin.id)
    return Envelope(status=200, message="Logged out successfully")


@router.get("/auth/me", response_model=Envelope)
def me(current_admin: Admin = Depends(get_current_admin)) -> Envelope:
    """Return profile information for the currently authenticated admin."""
    profile = AdminProfile(
        id=current_admin.id,
        name=current_admin.name,
        email=current_admin.email,
        gender=current_admin.gender,
    )
    return Envelope(status=200, data=profile.model_dump())
